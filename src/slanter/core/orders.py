"""
slanter/core/orders
~~~~~~~~~~~~~~~~~~~

Slanted ordering: permute rows and columns so that large weights gather near
the diagonal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Optional, Set, Tuple

import numpy as np
import pandas as pd

from slanter.util.errors import InvalidInputError, NumericInstabilityError
from slanter.util.warnings import ConvergenceWarning, warn

from .config import SolverConfig, resolve_config
from .matrix import Matrix, MatrixLike, as_matrix, as_permutation, frozen, identity_permutation


@dataclass(frozen=True)
class SlantedOrders:
    """
    Data class for the row and column permutations produced by `slanted_orders`.

    `rows[p]` is the original index of the row shown at position `p` (same for
    `cols`). `converged` is False when the iteration cap was reached or the
    iteration started cycling, in which case the orders may not be a fixed point.
    """

    rows: np.ndarray
    cols: np.ndarray
    iterations: int
    converged: bool

    def __iter__(self) -> Iterator[np.ndarray]:
        yield self.rows
        yield self.cols


# ------------------------------------------------------------
# Center of mass sorting
# ------------------------------------------------------------


def _sort_by_center(order: np.ndarray, totals: np.ndarray, moments: np.ndarray) -> np.ndarray:
    """Stable-sort the weighted entries of `order` by center of mass.

    Entries with zero total weight keep their position; the others are sorted
    into the remaining positions, ties keeping their previous relative order.
    """
    movable = np.flatnonzero(totals > 0)
    with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
        centers = moments[movable] / totals[movable]
    if not np.all(np.isfinite(centers)):
        raise NumericInstabilityError(
            "Center of mass is not finite; weights are too large to sum in float64"
        )
    ranked = movable[np.argsort(centers, kind="stable")]
    new_order = np.array(order, copy=True)
    new_order[movable] = order[ranked]
    return new_order


def _reorder_axis(weights: np.ndarray, order: np.ndarray, other_order: np.ndarray) -> np.ndarray:
    """Reorder axis 0 of `weights` by the center of mass along the current `other_order`."""
    ordered = weights[np.ix_(order, other_order)]
    positions = np.arange(ordered.shape[1], dtype=float)
    with np.errstate(over="ignore", invalid="ignore"):
        totals = ordered.sum(axis=1)
        moments = ordered @ positions
    return _sort_by_center(order, totals, moments)


def _reorder_shared(weights: np.ndarray, order: np.ndarray) -> np.ndarray:
    """Reorder a square matrix whose rows and columns share `order`."""
    ordered = weights[np.ix_(order, order)]
    positions = np.arange(ordered.shape[0], dtype=float)
    with np.errstate(over="ignore", invalid="ignore"):
        totals = ordered.sum(axis=1) + ordered.sum(axis=0)
        moments = ordered @ positions + ordered.T @ positions
    return _sort_by_center(order, totals, moments)


def _converge(
    weights: np.ndarray,
    rows: np.ndarray,
    cols: np.ndarray,
    *,
    order_rows: bool,
    order_cols: bool,
    same_order: bool,
    max_iterations: int,
) -> Tuple[np.ndarray, np.ndarray, int, bool]:
    """
    Alternates row and column phases until a full pass changes nothing.

    Returns:
        Tuple[np.ndarray, np.ndarray, int, bool]: (rows, cols, passes, converged).
    """
    seen: Set[Tuple[bytes, bytes]] = {(rows.tobytes(), cols.tobytes())}
    for iteration in range(1, max_iterations + 1):
        if same_order:
            new_rows = _reorder_shared(weights, rows)
            new_cols = new_rows
        else:
            new_rows = _reorder_axis(weights, rows, cols) if order_rows else rows
            new_cols = _reorder_axis(weights.T, cols, new_rows) if order_cols else cols

        if np.array_equal(new_rows, rows) and np.array_equal(new_cols, cols):
            return rows, cols, iteration, True

        key = (new_rows.tobytes(), new_cols.tobytes())
        if key in seen:
            warn(
                f"Slanted ordering is cycling between permutations after {iteration} passes; "
                "stopping early",
                ConvergenceWarning,
                stacklevel=4,
            )
            return new_rows, new_cols, iteration, False
        seen.add(key)
        rows, cols = new_rows, new_cols

    warn(
        f"Slanted ordering did not converge within max_iterations={max_iterations}",
        ConvergenceWarning,
        stacklevel=4,
    )
    return rows, cols, max_iterations, False


def _discount_outliers(weights: np.ndarray, rows: np.ndarray, cols: np.ndarray) -> np.ndarray:
    """Divide each weight by its cell's distance (in rows, at least 1) from the slanted diagonal."""
    n_rows, n_cols = weights.shape
    row_pos = np.empty(n_rows, dtype=float)
    row_pos[rows] = np.arange(n_rows)
    col_pos = np.empty(n_cols, dtype=float)
    col_pos[cols] = np.arange(n_cols)
    # The diagonal runs from the top-left cell to the bottom-right cell
    scale = (n_rows - 1) / (n_cols - 1) if n_cols > 1 else 0.0
    distance = np.abs(row_pos[:, None] - col_pos[None, :] * scale)
    return weights / np.maximum(distance, 1.0)


# ------------------------------------------------------------
# Public API
# ------------------------------------------------------------


def slanted_orders(
    data: MatrixLike,
    *,
    max_iterations: Optional[int] = None,
    order_rows: bool = True,
    order_cols: bool = True,
    squared_order: Optional[bool] = None,
    same_order: Optional[bool] = None,
    discount_outliers: Optional[bool] = None,
    row_order: Optional[Any] = None,
    col_order: Optional[Any] = None,
    config: Optional[SolverConfig] = None,
) -> SlantedOrders:
    """
    Computes row and column orders that move large weights toward the diagonal.

    Each pass sorts rows by their center of mass (the weighted mean of current
    column positions), then columns by their center of mass over the new row
    positions. Rows or columns with zero total weight never move. Ties keep the
    previous relative order, so the result is deterministic and a solved matrix
    maps to the identity permutation.

    Args:
        data (MatrixLike): Nonnegative weights: a Matrix, DataFrame or 2-D array.

    Kwargs:
        max_iterations (Optional[int]): Cap on full passes per convergence phase.
        order_rows (bool): Whether to reorder rows. Defaults to True.
        order_cols (bool): Whether to reorder columns. Defaults to True.
        squared_order (Optional[bool]): Square the weights before ordering.
        same_order (Optional[bool]): Use one shared permutation for a square matrix.
        discount_outliers (Optional[bool]): Run a second phase with weights divided
            by their distance from the diagonal of the first phase's result.
        row_order (Optional[Any]): Warm-start row permutation. Defaults to identity.
        col_order (Optional[Any]): Warm-start column permutation. Defaults to identity.
        config (Optional[SolverConfig]): Source for arguments left as None.

    Returns:
        SlantedOrders: Row and column permutations with convergence metadata.

    Raises:
        InvalidInputError: If weights are negative, non-finite, or options are inconsistent.
        DimensionMismatchError: If a warm start has the wrong length.
        NumericInstabilityError: If a center of mass is not finite.
    """
    cfg = resolve_config(config)
    max_iterations = int(cfg.resolve("max_iterations", max_iterations))
    squared_order = bool(cfg.resolve("squared_order", squared_order))
    same_order = bool(cfg.resolve("same_order", same_order))
    discount_outliers = bool(cfg.resolve("discount_outliers", discount_outliers))
    if max_iterations < 1:
        raise InvalidInputError(f"max_iterations must be >= 1, got {max_iterations}")

    matrix = as_matrix(data, "weights")
    weights = np.array(matrix.values, dtype=float)
    n_rows, n_cols = weights.shape

    rows = (
        identity_permutation(n_rows)
        if row_order is None
        else as_permutation(row_order, n_rows, name="row_order")
    )
    cols = (
        identity_permutation(n_cols)
        if col_order is None
        else as_permutation(col_order, n_cols, name="col_order")
    )

    if same_order:
        if n_rows != n_cols:
            raise InvalidInputError(
                f"same_order requires a square matrix, got {n_rows}x{n_cols}"
            )
        if not (order_rows and order_cols):
            raise InvalidInputError("same_order requires ordering both rows and columns")
        if row_order is not None and col_order is not None and not np.array_equal(rows, cols):
            raise InvalidInputError("same_order requires row_order and col_order to agree")
        if row_order is None:
            rows = cols

    if squared_order:
        with np.errstate(over="ignore"):
            weights = weights * weights

    rows, cols, iterations, converged = _converge(
        weights,
        np.array(rows),
        np.array(rows if same_order else cols),
        order_rows=order_rows,
        order_cols=order_cols,
        same_order=same_order,
        max_iterations=max_iterations,
    )

    if discount_outliers:
        discounted = _discount_outliers(weights, rows, cols)
        rows, cols, more, converged_again = _converge(
            discounted,
            rows,
            cols,
            order_rows=order_rows,
            order_cols=order_cols,
            same_order=same_order,
            max_iterations=max_iterations,
        )
        iterations += more
        converged = converged and converged_again

    return SlantedOrders(
        rows=frozen(rows),
        cols=frozen(cols),
        iterations=int(iterations),
        converged=bool(converged),
    )


def slanted_reorder(data: MatrixLike, **kwargs: Any) -> Any:
    """
    Returns `data` with rows and columns permuted by `slanted_orders`.

    A DataFrame (or Matrix) comes back as a DataFrame with its labels permuted
    alongside the values; any other input comes back as an ndarray.

    Args:
        data (MatrixLike): Nonnegative weights.
        **kwargs: Forwarded to `slanted_orders`.

    Returns:
        Any: Reordered DataFrame or ndarray.
    """
    rows, cols = slanted_orders(data, **kwargs)
    if isinstance(data, Matrix):
        data = data.df
    if isinstance(data, pd.DataFrame):
        return data.iloc[rows, cols]
    return np.asarray(data, dtype=float)[np.ix_(rows, cols)]
