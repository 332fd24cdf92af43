from __future__ import annotations


class BoidsError(Exception):
    """Base class for precondition violations raised by the simulation core."""


class DimensionMismatch(BoidsError, ValueError):
    def __init__(self, expected: int, actual: int, what: str = "vector"):
        super().__init__(f"{what} has dimension {actual}, expected {expected}")
        self.expected = expected
        self.actual = actual


class InvalidArgument(BoidsError, ValueError):
    pass


class IndexOutOfRange(BoidsError, IndexError):
    def __init__(self, index: int, dimension: int):
        super().__init__(f"component index {index} out of range for dimension {dimension}")
        self.index = index
        self.dimension = dimension
