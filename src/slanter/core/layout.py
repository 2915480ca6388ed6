"""
slanter/core/layout
~~~~~~~~~~~~~~~~~~~
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from .clustering import Clusters
from .matrix import Matrix
from .orders import SlantedOrders
from .tree import Dendrogram


@dataclass(frozen=True)
class SlantedLayout:
    """
    Data class for storing the final row/column order, trees and cluster spans for plotting.

    When an axis has a dendrogram, that axis follows the dendrogram's leaf order
    (which is contiguous for every cluster); otherwise it follows the slanted order.
    """

    row_order: np.ndarray
    col_order: np.ndarray
    ordered_row_labels: np.ndarray
    ordered_col_labels: np.ndarray
    df: pd.DataFrame
    converged: bool
    row_dendrogram: Optional[Dendrogram] = None
    col_dendrogram: Optional[Dendrogram] = None
    row_spans: Optional[List[Tuple[int, int, int]]] = None
    col_spans: Optional[List[Tuple[int, int, int]]] = None


def compute_layout(
    matrix: Matrix,
    orders: SlantedOrders,
    *,
    row_dendrogram: Optional[Dendrogram] = None,
    col_dendrogram: Optional[Dendrogram] = None,
    row_clusters: Optional[Clusters] = None,
    col_clusters: Optional[Clusters] = None,
) -> SlantedLayout:
    """
    Assembles a SlantedLayout from solved orders and optional trees and cuts.

    Args:
        matrix (Matrix): Matrix providing values and labels.
        orders (SlantedOrders): Solved slanted orders.

    Kwargs:
        row_dendrogram (Optional[Dendrogram]): Tree over rows. Defaults to None.
        col_dendrogram (Optional[Dendrogram]): Tree over columns. Defaults to None.
        row_clusters (Optional[Clusters]): Flat cut of the row tree. Defaults to None.
        col_clusters (Optional[Clusters]): Flat cut of the column tree. Defaults to None.

    Returns:
        SlantedLayout: Frozen layout for an external renderer.
    """
    row_order = orders.rows if row_dendrogram is None else row_dendrogram.leaf_order
    col_order = orders.cols if col_dendrogram is None else col_dendrogram.leaf_order
    return SlantedLayout(
        row_order=row_order,
        col_order=col_order,
        ordered_row_labels=matrix.row_labels[row_order],
        ordered_col_labels=matrix.col_labels[col_order],
        df=matrix.df.iloc[row_order, col_order],
        converged=orders.converged,
        row_dendrogram=row_dendrogram,
        col_dendrogram=col_dendrogram,
        row_spans=None if row_clusters is None else row_clusters.spans(),
        col_spans=None if col_clusters is None else col_clusters.spans(),
    )
