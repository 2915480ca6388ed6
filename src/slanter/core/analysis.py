"""
slanter/core/analysis
~~~~~~~~~~~~~~~~~~~~~
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Union

import numpy as np
import pandas as pd

from slanter.util.errors import InvalidInputError

from .clustering import Clusters, cut_dendrogram
from .config import SolverConfig, resolve_config
from .layout import SlantedLayout, compute_layout
from .matrix import Matrix, MatrixLike, as_matrix
from .oclust import WardMethod, oclust
from .orders import SlantedOrders, slanted_orders
from .reorder import reorder_hclust
from .tree import Dendrogram

_AXES = ("rows", "cols")


def _align_to_labels(dissimilarity: MatrixLike, labels: np.ndarray, axis: str) -> MatrixLike:
    """Reindex a labelled dissimilarity to `labels`; unlabelled input is used by position."""
    if isinstance(dissimilarity, Matrix):
        dissimilarity = dissimilarity.df
    if not isinstance(dissimilarity, pd.DataFrame):
        return dissimilarity
    expected = set(labels.tolist())
    if set(dissimilarity.index) != expected or set(dissimilarity.columns) != expected:
        raise InvalidInputError(f"Dissimilarity labels do not match the {axis} labels")
    keys = labels.tolist()
    return dissimilarity.loc[keys, keys]


class Analysis:
    """
    Class for orchestrating slanted ordering, order-compatible clustering, and layout over a matrix.
    """

    def __init__(self, matrix: MatrixLike, *, config: Optional[SolverConfig] = None) -> None:
        """
        Initializes the Analysis instance.

        Args:
            matrix (MatrixLike): Nonnegative weight matrix to order.

        Kwargs:
            config (Optional[SolverConfig]): Settings shared by every step. Defaults to None.
        """
        self.matrix = as_matrix(matrix, "weights")
        self.config = resolve_config(config)
        self.orders: Optional[SlantedOrders] = None
        self.dendrograms: Dict[str, Optional[Dendrogram]] = {"rows": None, "cols": None}
        self.clusters: Dict[str, Optional[Clusters]] = {"rows": None, "cols": None}
        self.layout: Optional[SlantedLayout] = None

    def order(self, **kwargs: Any) -> Analysis:
        """
        Computes slanted row and column orders.

        Args:
            **kwargs: Forwarded to `slanted_orders`.

        Returns:
            Analysis: The Analysis instance (for method chaining).
        """
        self.orders = slanted_orders(self.matrix, config=self.config, **kwargs)
        self.dendrograms = {"rows": None, "cols": None}
        self.clusters = {"rows": None, "cols": None}
        self.layout = None
        return self

    def cluster(
        self,
        axis: str = "rows",
        *,
        dissimilarity: Optional[MatrixLike] = None,
        tree: Optional[Union[Dendrogram, np.ndarray]] = None,
        method: Optional[Union[str, WardMethod]] = None,
        members: Optional[Any] = None,
    ) -> Analysis:
        """
        Builds a dendrogram over one axis that is compatible with the slanted order.

        Args:
            axis (str): One of {"rows", "cols"}. Defaults to "rows".

        Kwargs:
            dissimilarity (Optional[MatrixLike]): Dissimilarities between the axis'
                elements; clustered with `oclust` along the slanted order. A DataFrame
                or Matrix is matched to the axis labels; an array is taken by position.
            tree (Optional[Union[Dendrogram, np.ndarray]]): External (unconstrained)
                tree; re-oriented with `reorder_hclust` toward the slanted order.
            method (Optional[Union[str, WardMethod]]): Ward variant for `oclust`.
            members (Optional[Any]): Initial cluster sizes for `oclust`.

        Returns:
            Analysis: The Analysis instance (for method chaining).

        Raises:
            RuntimeError: If order() has not been called.
            InvalidInputError: If the axis is unknown or not exactly one source is given.
                Also raised when a labelled dissimilarity does not carry the axis labels.
        """
        # Validation
        if self.orders is None:
            raise RuntimeError("order() must be called before cluster()")
        if axis not in _AXES:
            raise InvalidInputError(f"axis must be one of {_AXES}, got {axis!r}")
        if (dissimilarity is None) == (tree is None):
            raise InvalidInputError("Pass exactly one of dissimilarity or tree")

        order = self.orders.rows if axis == "rows" else self.orders.cols
        labels = self.matrix.row_labels if axis == "rows" else self.matrix.col_labels
        if tree is not None:
            dendrogram = reorder_hclust(tree, order)
        else:
            dendrogram = oclust(
                _align_to_labels(dissimilarity, labels, axis),
                order,
                method=method,
                members=members,
                config=self.config,
            )
        self.dendrograms[axis] = dendrogram
        self.clusters[axis] = None
        self.layout = None
        return self

    def finalize(
        self,
        *,
        row_clusters: Optional[int] = None,
        col_clusters: Optional[int] = None,
    ) -> Analysis:
        """
        Finalizes the analysis by cutting any dendrograms and computing a layout
        for an external heatmap renderer.

        Kwargs:
            row_clusters (Optional[int]): Number of contiguous row groups. Defaults to None.
            col_clusters (Optional[int]): Number of contiguous column groups. Defaults to None.

        Returns:
            Analysis: The Analysis instance (for method chaining).

        Raises:
            RuntimeError: If order() has not been called, or a cut is requested
                for an axis without a dendrogram.
        """
        # Validation
        if self.orders is None:
            raise RuntimeError("order() must be called before finalize()")

        labels = {"rows": self.matrix.row_labels, "cols": self.matrix.col_labels}
        for axis, k in (("rows", row_clusters), ("cols", col_clusters)):
            if k is None:
                continue
            dendrogram = self.dendrograms[axis]
            if dendrogram is None:
                raise RuntimeError(f"cluster(axis={axis!r}) must be called before cutting {axis}")
            self.clusters[axis] = cut_dendrogram(dendrogram, k, labels=labels[axis])

        self.layout = compute_layout(
            self.matrix,
            self.orders,
            row_dendrogram=self.dendrograms["rows"],
            col_dendrogram=self.dendrograms["cols"],
            row_clusters=self.clusters["rows"],
            col_clusters=self.clusters["cols"],
        )
        return self
