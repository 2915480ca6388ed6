"""
slanter/core/reorder
~~~~~~~~~~~~~~~~~~~~
"""

from __future__ import annotations

from typing import Any, List, Union

import numpy as np

from slanter.util.errors import DimensionMismatchError

from .matrix import as_permutation
from .tree import ClusterNode, Dendrogram, Internal, Leaf, as_dendrogram


def reorder_hclust(tree: Union[Dendrogram, np.ndarray], order: Any) -> Dendrogram:
    """
    Flips subtrees of an existing dendrogram so its leaves follow `order` as closely as possible.

    Every leaf gets its rank in `order`. Working bottom-up, each merge places
    first the child whose leaves have the smaller mean rank; equal means keep
    the input orientation. Topology, node ids and heights are unchanged, and
    the input tree is left untouched.

    Args:
        tree (Union[Dendrogram, np.ndarray]): Dendrogram or SciPy linkage matrix,
            typically from an unconstrained clustering.
        order (Any): Ideal order (position -> original index).

    Returns:
        Dendrogram: New tree with the re-oriented leaf order.

    Raises:
        DimensionMismatchError: If `order` does not cover exactly the tree's leaves.
    """
    dendro = as_dendrogram(tree)
    n = dendro.n_leaves
    perm = as_permutation(order, n, name="order", invalid=DimensionMismatchError)

    # Integer rank sums keep the mean comparison exact
    rank_sum: List[int] = [0] * (2 * n - 1)
    size: List[int] = [1] * (2 * n - 1)
    for position, index in enumerate(perm.tolist()):
        rank_sum[index] = position

    first: List[int] = []
    second: List[int] = []
    for k, node in enumerate(dendro.merges):
        a = node.left.node_id
        b = node.right.node_id
        if rank_sum[b] * size[a] < rank_sum[a] * size[b]:
            a, b = b, a
        first.append(a)
        second.append(b)
        rank_sum[n + k] = rank_sum[a] + rank_sum[b]
        size[n + k] = size[a] + size[b]

    # Top-down: each node hands its starting position to its children
    offset: List[int] = [0] * (2 * n - 1)
    for k in range(len(dendro.merges) - 1, -1, -1):
        start = offset[n + k]
        offset[first[k]] = start
        offset[second[k]] = start + size[first[k]]

    nodes: List[ClusterNode] = [Leaf(i, offset[i]) for i in range(n)]
    for k, node in enumerate(dendro.merges):
        nodes.append(Internal(n + k, nodes[first[k]], nodes[second[k]], node.height))
    return Dendrogram(nodes[:n], nodes[n:])
