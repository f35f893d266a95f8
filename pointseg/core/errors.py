"""Exceptions raised by the fitting and clustering code."""

from __future__ import annotations


class PointSegError(Exception):
    """Base class for all pointseg failures."""


class InvalidInputError(PointSegError, ValueError):
    """Bad arguments detected before any sampling or querying starts."""


class OutOfRangeError(PointSegError, IndexError):
    """A point index outside ``[0, len(source))`` was requested."""

    def __init__(self, index: int, length: int):
        super().__init__(f"Point index {index} out of range for source of length {length}")
        self.index = index
        self.length = length
