"""
slanter/util/errors
"""

from __future__ import annotations


class SlanterError(Exception):
    """
    Base class for errors raised by slanter computations.
    """


class InvalidInputError(SlanterError, ValueError):
    """
    Raised for negative weights, non-square dissimilarities, non-finite entries,
    unknown methods, or values that are not permutations.
    """


class DimensionMismatchError(SlanterError, ValueError):
    """
    Raised when a permutation, tree, or matrix disagree in size.
    """


class NumericInstabilityError(SlanterError, ArithmeticError):
    """
    Raised when a merge cost or center of mass would be non-finite.
    """
