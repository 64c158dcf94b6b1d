from __future__ import annotations

from typing import Hashable


class BuildError(ValueError):
    """Raised when a Markov matrix or probability vector cannot be built.

    The whole construction is rejected; no partial object is returned.
    """


class SizeMismatch(BuildError):
    """Declared dimension differs from the number of distinct labels found."""

    def __init__(self, expected: int, actual: int):
        self.expected = int(expected)
        self.actual = int(actual)
        super().__init__(f"size mismatch: expected {self.expected}, found {self.actual}")


class NonPositive(BuildError):
    """A weight (or a total mass) that must be strictly positive is not."""

    def __init__(self, message: str = "non-positive weight encountered"):
        super().__init__(message)


class EmptyRow(BuildError):
    """A row has no positive total weight and cannot be normalized."""

    def __init__(self, label: Hashable):
        self.label = label
        super().__init__(f"row {label!r} has zero total weight")


class EmptyMatrix(BuildError):
    """A zero-sized matrix was requested."""

    def __init__(self, message: str = "matrix has zero size"):
        super().__init__(message)
