"""
slanter/core/tree
~~~~~~~~~~~~~~~~~
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Sequence, Tuple, Union

import numpy as np
from scipy.cluster.hierarchy import is_valid_linkage, leaves_list

from slanter.util.errors import InvalidInputError


@dataclass(frozen=True, eq=False)
class Leaf:
    """
    A single original element placed at `position` in the dendrogram order.
    """

    node_id: int
    position: int

    height = 0.0
    size = 1
    is_leaf = True

    @property
    def leaf_range(self) -> Tuple[int, int]:
        return (self.position, self.position + 1)


@dataclass(frozen=True, eq=False)
class Internal:
    """
    A merge of two adjacent subtrees.

    `leaf_range` and `size` are derived from the children on construction; the
    children must cover adjacent, non-overlapping position ranges.
    """

    node_id: int
    left: "ClusterNode" = field(repr=False)
    right: "ClusterNode" = field(repr=False)
    height: float
    leaf_range: Tuple[int, int] = field(init=False)
    size: int = field(init=False)

    is_leaf = False

    def __post_init__(self) -> None:
        lo, mid = self.left.leaf_range
        mid2, hi = self.right.leaf_range
        if mid != mid2:
            raise ValueError(
                f"Node {self.node_id}: child ranges {self.left.leaf_range} and "
                f"{self.right.leaf_range} are not adjacent"
            )
        object.__setattr__(self, "leaf_range", (lo, hi))
        object.__setattr__(self, "size", self.left.size + self.right.size)

    @property
    def children(self) -> Tuple["ClusterNode", "ClusterNode"]:
        return (self.left, self.right)


ClusterNode = Union[Leaf, Internal]


class Dendrogram:
    """Rooted binary merge tree over `n` leaves.

    Node ids follow the SciPy convention: leaf ids are the original element
    indices `0..n-1` and the k-th merge has id `n + k`. `merges` is kept in
    creation order, so every merge appears after both of its children.

    Instances are never mutated after construction; `reorder_hclust` builds a
    new tree.
    """

    def __init__(self, leaves: Sequence[Leaf], merges: Sequence[Internal]) -> None:
        n = len(leaves)
        if n == 0:
            raise InvalidInputError("Dendrogram needs at least one leaf")
        if len(merges) != n - 1:
            raise InvalidInputError(f"Expected {n - 1} merges for {n} leaves, got {len(merges)}")
        for i, leaf in enumerate(leaves):
            if leaf.node_id != i:
                raise InvalidInputError(f"Leaf at index {i} has node_id {leaf.node_id}")
        for k, node in enumerate(merges):
            if node.node_id != n + k:
                raise InvalidInputError(f"Merge {k} has node_id {node.node_id}, expected {n + k}")

        self.leaves: Tuple[Leaf, ...] = tuple(leaves)
        self.merges: Tuple[Internal, ...] = tuple(merges)
        self.root: ClusterNode = self.merges[-1] if self.merges else self.leaves[0]
        if self.root.leaf_range != (0, n):
            raise InvalidInputError(f"Root covers {self.root.leaf_range}, expected (0, {n})")

        order = np.empty(n, dtype=np.intp)
        order[[leaf.position for leaf in self.leaves]] = np.arange(n, dtype=np.intp)
        order.setflags(write=False)
        self._leaf_order = order

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def n_leaves(self) -> int:
        return len(self.leaves)

    def __len__(self) -> int:
        return self.n_leaves

    def __repr__(self) -> str:
        return f"Dendrogram(n_leaves={self.n_leaves}, root_height={self.root.height:.6g})"

    @property
    def leaf_order(self) -> np.ndarray:
        """Original leaf indices by position (read-only)."""
        return self._leaf_order

    @property
    def heights(self) -> np.ndarray:
        """Merge heights in creation order."""
        return np.array([node.height for node in self.merges], dtype=float)

    def node(self, node_id: int) -> ClusterNode:
        """Return the node with SciPy-style id `node_id`."""
        n = self.n_leaves
        if 0 <= node_id < n:
            return self.leaves[node_id]
        if n <= node_id < 2 * n - 1:
            return self.merges[node_id - n]
        raise KeyError(node_id)

    def iter_postorder(self) -> Iterator[ClusterNode]:
        """Yield every node, children before parents, left to right.

        Uses an explicit stack (no recursion) to avoid recursion depth issues.
        """
        stack: List[Tuple[ClusterNode, bool]] = [(self.root, False)]
        while stack:
            node, expanded = stack.pop()
            if node.is_leaf or expanded:
                yield node
                continue
            stack.append((node, True))
            stack.extend((child, False) for child in reversed(node.children))

    def parents(self) -> Dict[int, int]:
        """Map node id -> parent node id (the root is absent)."""
        out: Dict[int, int] = {}
        for node in self.merges:
            out[node.left.node_id] = node.node_id
            out[node.right.node_id] = node.node_id
        return out

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------

    def validate(self) -> "Dendrogram":
        """Re-check contiguity and height monotonicity over the whole tree.

        Raises:
            InvalidInputError: If any internal node violates an invariant.
        """
        for node in self.merges:
            lo, mid = node.left.leaf_range
            mid2, hi = node.right.leaf_range
            if mid != mid2 or node.leaf_range != (lo, hi):
                raise InvalidInputError(f"Node {node.node_id} does not cover a contiguous range")
            if node.size != hi - lo:
                raise InvalidInputError(f"Node {node.node_id} size disagrees with its range")
            if node.height < max(node.left.height, node.right.height):
                raise InvalidInputError(
                    f"Node {node.node_id} height {node.height} is below a child height"
                )
        return self

    # ------------------------------------------------------------------
    # SciPy interoperation
    # ------------------------------------------------------------------

    def to_linkage(self) -> np.ndarray:
        """
        Returns a SciPy linkage matrix for this tree.

        Column 0 holds the left (first) child, so `scipy.cluster.hierarchy.leaves_list`
        of the result equals `leaf_order`.

        Returns:
            np.ndarray: Array of shape (n-1, 4).
        """
        Z = np.empty((len(self.merges), 4), dtype=float)
        for k, node in enumerate(self.merges):
            Z[k, 0] = node.left.node_id
            Z[k, 1] = node.right.node_id
            Z[k, 2] = node.height
            Z[k, 3] = node.size
        return Z

    @classmethod
    def from_linkage(cls, Z: np.ndarray) -> "Dendrogram":
        """
        Builds a Dendrogram from a SciPy linkage matrix, keeping its leaf order.

        Args:
            Z (np.ndarray): Linkage matrix of shape (n-1, 4).

        Returns:
            Dendrogram: Equivalent tree; `leaf_order` equals `leaves_list(Z)`.

        Raises:
            InvalidInputError: If `Z` is not a valid linkage or heights decrease toward the root.
        """
        Z = np.asarray(Z, dtype=float)
        if Z.ndim != 2 or Z.shape[1] != 4 or Z.shape[0] == 0:
            raise InvalidInputError("Linkage matrix must have shape (n-1, 4) with n >= 2")
        if not is_valid_linkage(Z):
            raise InvalidInputError("Linkage matrix is not a valid SciPy linkage")

        n = int(Z.shape[0] + 1)
        position = np.empty(n, dtype=np.intp)
        position[leaves_list(Z)] = np.arange(n, dtype=np.intp)

        nodes: List[ClusterNode] = [Leaf(i, int(position[i])) for i in range(n)]
        merges: List[Internal] = []
        for k in range(n - 1):
            node_id = n + k
            a = nodes[int(Z[k, 0])]
            b = nodes[int(Z[k, 1])]
            if a.height > Z[k, 2] or b.height > Z[k, 2]:
                raise InvalidInputError(
                    f"Linkage row {k} has height {Z[k, 2]} below one of its children"
                )
            node = Internal(node_id, a, b, float(Z[k, 2]))
            nodes.append(node)
            merges.append(node)
        return cls(nodes[:n], merges)


def as_dendrogram(tree: Union[Dendrogram, np.ndarray]) -> Dendrogram:
    """Accept either a Dendrogram or a SciPy linkage matrix."""
    if isinstance(tree, Dendrogram):
        return tree
    return Dendrogram.from_linkage(tree)
