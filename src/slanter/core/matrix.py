"""
slanter/core/matrix
~~~~~~~~~~~~~~~~~~~
"""

from __future__ import annotations

from typing import Any, Tuple, Type, Union

import numpy as np
import pandas as pd

from slanter.util.errors import DimensionMismatchError, InvalidInputError
from slanter.util.warnings import warn

_SEMANTICS = ("weights", "dissimilarity")

MatrixLike = Union["Matrix", pd.DataFrame, np.ndarray, Any]


class Matrix:
    """
    Immutable container for a weight or dissimilarity matrix.

    Note: this object should be treated as immutable. The order solver and the
    clustering engine read `values` and never write to it.
    """

    def __init__(self, data: Any, *, semantics: str = "weights") -> None:
        """
        Initializes Matrix.

        Args:
            data (Any): DataFrame or 2-D array-like holding matrix contents. A
                DataFrame's index and columns become the row and column labels.
            semantics (str, optional): Semantics of matrix values.
                One of {"weights", "dissimilarity"}. Defaults to "weights".

        Raises:
            InvalidInputError: If the contents violate the semantics' constraints.
        """
        if semantics not in _SEMANTICS:
            raise InvalidInputError(
                f"semantics must be one of {_SEMANTICS}, got {semantics!r}"
            )
        if isinstance(data, Matrix):
            data = data.df
        if isinstance(data, pd.DataFrame):
            df = data.copy()
        else:
            arr = np.asarray(data)
            if arr.ndim != 2:
                raise InvalidInputError(f"Matrix must be 2-D, got {arr.ndim}-D input")
            df = pd.DataFrame(np.array(arr, copy=True))

        self.semantics = semantics
        self.df = df
        self.row_labels = df.index.to_numpy(dtype=object)
        self.col_labels = df.columns.to_numpy(dtype=object)
        self.values = _numeric_values(df)
        self._validate()
        self.values.setflags(write=False)

    @property
    def shape(self) -> Tuple[int, int]:
        """
        Returns the (rows, columns) shape of the matrix.

        Returns:
            Tuple[int, int]: Matrix shape.
        """
        return self.values.shape

    def _validate(self) -> None:
        """
        Validates matrix contents and properties.

        Raises:
            InvalidInputError: If matrix is invalid.
        """
        if self.df.index.has_duplicates or self.df.columns.has_duplicates:
            raise InvalidInputError("Matrix labels must be unique")
        _check_finite(self.values)

        if self.semantics == "weights":
            if np.any(self.values < 0):
                raise InvalidInputError("Weight matrix entries must be nonnegative")
            return

        n_rows, n_cols = self.values.shape
        if n_rows != n_cols:
            raise InvalidInputError(
                f"Dissimilarity matrix must be square, got {n_rows}x{n_cols}"
            )
        if not np.allclose(self.values, self.values.T):
            warn("Dissimilarity matrix is not symmetric; averaging with its transpose")
            self.values = (self.values + self.values.T) / 2.0
            self.df = pd.DataFrame(
                self.values.copy(), index=self.df.index, columns=self.df.columns
            )


def _numeric_values(df: pd.DataFrame) -> np.ndarray:
    """Return a float copy of the DataFrame values or raise on non-numeric content."""
    if df.size == 0:
        raise InvalidInputError("Matrix must not be empty")
    try:
        return df.to_numpy(dtype=float, copy=True)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError("Matrix values must be numeric") from exc


def _check_finite(values: np.ndarray) -> None:
    if not np.all(np.isfinite(values)):
        raise InvalidInputError("Matrix entries must be finite (no NaN or inf)")


def as_matrix(data: MatrixLike, semantics: str) -> Matrix:
    """Wrap `data` in a Matrix with the requested semantics (re-validating if needed)."""
    if isinstance(data, Matrix) and data.semantics == semantics:
        return data
    return Matrix(data, semantics=semantics)


def as_permutation(
    order: Any,
    n: int,
    *,
    name: str = "order",
    mismatch: Type[Exception] = DimensionMismatchError,
    invalid: Type[Exception] = InvalidInputError,
) -> np.ndarray:
    """
    Validates and freezes a permutation of `range(n)`.

    Args:
        order (Any): 1-D integer sequence mapping position -> original index.
        n (int): Expected length.

    Kwargs:
        name (str): Argument name used in error messages. Defaults to "order".
        mismatch (Type[Exception]): Error raised on a length mismatch.
        invalid (Type[Exception]): Error raised when `order` is not a permutation.

    Returns:
        np.ndarray: Read-only int array.
    """
    arr = np.asarray(order)
    if arr.ndim != 1:
        raise invalid(f"{name} must be 1-D")
    if arr.shape[0] != n:
        raise mismatch(f"{name} has {arr.shape[0]} entries, expected {n}")
    try:
        perm = arr.astype(np.intp, copy=True)
    except (TypeError, ValueError) as exc:
        raise invalid(f"{name} must contain integer indices") from exc
    if not np.array_equal(perm, arr):
        raise invalid(f"{name} must contain integer indices")
    if not np.array_equal(np.sort(perm), np.arange(n)):
        raise invalid(f"{name} must be a permutation of 0..{n - 1}")
    perm.setflags(write=False)
    return perm


def identity_permutation(n: int) -> np.ndarray:
    perm = np.arange(n, dtype=np.intp)
    perm.setflags(write=False)
    return perm


def frozen(perm: np.ndarray) -> np.ndarray:
    """Return a read-only intp copy of `perm`."""
    out = np.array(perm, dtype=np.intp, copy=True)
    out.setflags(write=False)
    return out
