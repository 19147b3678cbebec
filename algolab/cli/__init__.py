"""Command-line interface for algolab."""
