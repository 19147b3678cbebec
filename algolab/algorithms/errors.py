"""Errors raised by the algorithm library."""


class InvalidInputError(ValueError):
    """Raised when an algorithm receives structurally malformed input."""

    def __init__(self, algorithm: str, message: str):
        self.algorithm = algorithm
        super().__init__(f"{algorithm}: {message}")
