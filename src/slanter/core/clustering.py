"""
slanter/core/clustering
~~~~~~~~~~~~~~~~~~~~~~~
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Set, Tuple, Union

import numpy as np

from slanter.util.errors import DimensionMismatchError, InvalidInputError

from .tree import Dendrogram, Internal, as_dendrogram


# ------------------------------------------------------------
# Boundary finding over contiguous leaf ranges
# ------------------------------------------------------------


def _cut_nodes(dendro: Dendrogram, n_clusters: Optional[int], height: Optional[float]) -> List[Internal]:
    """Select the merges to undo; the selection is closed under taking ancestors."""
    if (n_clusters is None) == (height is None):
        raise InvalidInputError("Specify exactly one of n_clusters or height")

    n = dendro.n_leaves
    if n_clusters is not None:
        k = int(n_clusters)
        if not 1 <= k <= n:
            raise InvalidInputError(f"n_clusters must be in [1, {n}], got {n_clusters}")
        # Ancestors sort first: heights never decrease and ids grow toward the root
        ranked = sorted(dendro.merges, key=lambda nd: (nd.height, nd.node_id), reverse=True)
        return ranked[: k - 1]

    threshold = float(height)
    if not np.isfinite(threshold):
        raise InvalidInputError(f"height must be finite, got {height}")
    return [nd for nd in dendro.merges if nd.height > threshold]


def _boundaries(cut: Sequence[Internal], n_leaves: int) -> List[int]:
    """Sorted start positions of every flat group (always begins with 0)."""
    starts = {0}
    for node in cut:
        starts.add(int(node.left.leaf_range[1]))
    return sorted(s for s in starts if s < n_leaves)


class Clusters:
    """Holds a dendrogram and a flat cut into contiguous groups.

    This object is the single source of truth for:
      - leaf order
      - element → cluster mapping
      - cluster → elements mapping
      - cluster spans in leaf order (contiguous by construction)

    Cluster ids run 1..K in leaf order.
    """

    def __init__(
        self,
        dendrogram: Dendrogram,
        starts: Sequence[int],
        labels: Optional[Sequence[Any]] = None,
    ):
        self.dendrogram = dendrogram
        n = dendrogram.n_leaves
        if labels is None:
            labels = np.arange(n)
        self.labels = np.asarray(labels, dtype=object)
        if self.labels.shape[0] != n:
            raise DimensionMismatchError(
                f"labels has {self.labels.shape[0]} entries, dendrogram has {n} leaves"
            )

        ordered = np.zeros(n, dtype=int)
        for cid, start in enumerate(starts, start=1):
            ordered[start:] = cid
        self._ordered_cluster_ids = ordered
        self.cluster_ids = np.empty(n, dtype=int)
        self.cluster_ids[dendrogram.leaf_order] = ordered

        # Lazy caches
        self._cluster_to_labels: Optional[Dict[int, Set[Any]]] = None
        self._cluster_sizes: Optional[Dict[int, int]] = None

    @property
    def leaf_order(self) -> np.ndarray:
        """Leaf order of the underlying dendrogram."""
        return self.dendrogram.leaf_order

    @property
    def n_clusters(self) -> int:
        return int(self._ordered_cluster_ids[-1])

    @property
    def unique_clusters(self) -> np.ndarray:
        """Unique cluster IDs (sorted)."""
        return np.arange(1, self.n_clusters + 1)

    @property
    def ordered_cluster_ids(self) -> np.ndarray:
        """Cluster IDs aligned to leaf order."""
        return self._ordered_cluster_ids

    @property
    def label_to_cluster(self) -> Dict[Any, int]:
        """Map labels to integer cluster IDs."""
        return dict(zip(self.labels.tolist(), self.cluster_ids.tolist()))

    @property
    def cluster_to_labels(self) -> Dict[int, Set[Any]]:
        """Map cluster ID → set of labels."""
        if self._cluster_to_labels is None:
            out: Dict[int, Set[Any]] = {}
            for lab, cid in zip(self.labels, self.cluster_ids):
                out.setdefault(int(cid), set()).add(lab)
            self._cluster_to_labels = out
        return self._cluster_to_labels

    @property
    def cluster_sizes(self) -> Dict[int, int]:
        """Map cluster ID → number of elements in that cluster."""
        if self._cluster_sizes is None:
            ids, counts = np.unique(self.cluster_ids, return_counts=True)
            self._cluster_sizes = {int(c): int(m) for c, m in zip(ids, counts)}
        return self._cluster_sizes

    def spans(self) -> List[Tuple[int, int, int]]:
        """Return contiguous spans for each cluster in leaf order.

        Returns
        -------
        list of (cluster_id, start, end)
            start/end are inclusive positions in the *ordered* (leaf) space.
        """
        cids = self._ordered_cluster_ids
        spans: List[Tuple[int, int, int]] = []
        start = 0
        cur = int(cids[0])
        for i in range(1, cids.size):
            nxt = int(cids[i])
            if nxt != cur:
                spans.append((cur, start, i - 1))
                start = i
                cur = nxt
        spans.append((cur, start, int(cids.size - 1)))
        return spans


def cut_dendrogram(
    tree: Union[Dendrogram, np.ndarray],
    n_clusters: Optional[int] = None,
    *,
    height: Optional[float] = None,
    labels: Optional[Sequence[Any]] = None,
) -> Clusters:
    """Cut a dendrogram into flat groups that are contiguous in its leaf order.

    Either the `n_clusters - 1` highest merges are undone, or every merge above
    `height` is (same semantics as SciPy's `fcluster(..., criterion="distance")`).
    Because every node spans a contiguous range, each undone merge contributes
    one boundary position and the groups are the runs between boundaries.
    """
    dendro = as_dendrogram(tree)
    cut = _cut_nodes(dendro, n_clusters, height)
    return Clusters(dendro, _boundaries(cut, dendro.n_leaves), labels=labels)
