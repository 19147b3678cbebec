"""algolab: algorithm simulators behind an educational quiz."""

__version__ = "1.0.0"
