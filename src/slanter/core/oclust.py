"""
slanter/core/oclust
~~~~~~~~~~~~~~~~~~~

Order-constrained Ward clustering: only clusters that are adjacent in a given
element order may merge, so every cluster is a contiguous run of that order.
"""

from __future__ import annotations

import heapq
from enum import Enum
from typing import Any, List, Optional, Tuple, Union

import numpy as np

from slanter.util.errors import DimensionMismatchError, InvalidInputError, NumericInstabilityError
from slanter.util.warnings import HeightReversalWarning, warn

from .config import SolverConfig, resolve_config
from .matrix import MatrixLike, as_matrix, as_permutation
from .orders import slanted_orders
from .tree import ClusterNode, Dendrogram, Internal, Leaf


class WardMethod(str, Enum):
    """Ward variants supported by the clustering engine."""

    WARD_D = "ward.D"
    WARD_D2 = "ward.D2"

    @classmethod
    def parse(cls, method: Union[str, "WardMethod"]) -> "WardMethod":
        try:
            return cls(method)
        except ValueError as exc:
            allowed = ", ".join(repr(m.value) for m in cls)
            raise InvalidInputError(
                f"Unknown clustering method {method!r}; expected one of {allowed}"
            ) from exc

    @property
    def squared(self) -> bool:
        """Whether the recurrence runs on squared distances."""
        return self is WardMethod.WARD_D2


# ------------------------------------------------------------
# Lance-Williams update and merge cost
# ------------------------------------------------------------


def _lance_williams(
    d_ki: np.ndarray,
    d_kj: np.ndarray,
    d_ij: float,
    n_i: float,
    n_j: float,
    n_k: np.ndarray,
) -> np.ndarray:
    """Ward update of the working distances from clusters k to the union of i and j."""
    return ((n_i + n_k) * d_ki + (n_j + n_k) * d_kj - n_k * d_ij) / (n_i + n_j + n_k)


def _merge_cost(work: float, method: WardMethod) -> float:
    """Convert a working distance back to the reported merge height."""
    if method.squared:
        return float(np.sqrt(max(work, 0.0)))
    return float(work)


# ------------------------------------------------------------
# Active cluster sequence
# ------------------------------------------------------------


class _ActiveSequence:
    """Ordered, doubly linked sequence of unmerged clusters.

    Each cluster lives in a slot; slot ids increase left to right and a merged
    cluster reuses its left slot, so comparing slot ids compares positions.
    Candidate pairs sit in a heap keyed by (cost, left slot) and are invalidated
    lazily through per-slot version stamps.
    """

    def __init__(
        self,
        work: np.ndarray,
        sizes: np.ndarray,
        nodes: List[ClusterNode],
        method: WardMethod,
    ):
        n = len(nodes)
        self.work = work
        self.sizes = sizes
        self.nodes = nodes
        self.method = method
        self.alive = np.ones(n, dtype=bool)
        self.prev = np.arange(-1, n - 1, dtype=np.intp)
        self.next = np.arange(1, n + 1, dtype=np.intp)
        self.next[n - 1] = -1
        self.version = np.zeros(n, dtype=np.int64)
        self.heap: List[Tuple[float, int, int, int, int]] = []
        for a in range(n - 1):
            self._push(a, a + 1)

    def _push(self, a: int, b: int) -> None:
        work = float(self.work[a, b])
        if not np.isfinite(work):
            raise NumericInstabilityError(
                f"Non-finite Ward distance between adjacent clusters at slots {a} and {b}"
            )
        cost = _merge_cost(work, self.method)
        heapq.heappush(self.heap, (cost, a, b, int(self.version[a]), int(self.version[b])))

    def pop_closest(self) -> Tuple[float, int, int]:
        """Pop the cheapest valid adjacent pair (leftmost on ties)."""
        while self.heap:
            cost, a, b, va, vb = heapq.heappop(self.heap)
            if (
                self.alive[a]
                and self.alive[b]
                and self.next[a] == b
                and self.version[a] == va
                and self.version[b] == vb
            ):
                return cost, a, b
        raise RuntimeError("No adjacent pair left to merge")

    def merge(self, a: int, b: int, node: Internal) -> None:
        """Replace clusters a and b by `node` in slot a and refresh its distances."""
        n_i = float(self.sizes[a])
        n_j = float(self.sizes[b])
        others = np.flatnonzero(self.alive)
        others = others[(others != a) & (others != b)]
        if others.size:
            updated = _lance_williams(
                self.work[others, a],
                self.work[others, b],
                float(self.work[a, b]),
                n_i,
                n_j,
                self.sizes[others],
            )
            if self.method.squared:
                # Rounding can push squared distances slightly below zero
                updated = np.maximum(updated, 0.0)
            if not np.all(np.isfinite(updated)):
                raise NumericInstabilityError(
                    f"Lance-Williams update produced non-finite distances merging slots {a} and {b}"
                )
            self.work[others, a] = updated
            self.work[a, others] = updated

        self.alive[b] = False
        self.sizes[a] = n_i + n_j
        self.nodes[a] = node
        self.version[a] += 1
        self.version[b] += 1

        q = int(self.next[b])
        self.next[a] = q
        if q != -1:
            self.prev[q] = a
        p = int(self.prev[a])
        if p != -1:
            self._push(p, a)
        if q != -1:
            self._push(a, q)


# ------------------------------------------------------------
# Public API
# ------------------------------------------------------------


def oclust(
    dissimilarity: MatrixLike,
    order: Optional[Any] = None,
    *,
    method: Optional[Union[str, WardMethod]] = None,
    members: Optional[Any] = None,
    config: Optional[SolverConfig] = None,
) -> Dendrogram:
    """
    Builds an order-constrained Ward dendrogram.

    Only clusters that are neighbours in `order` are ever merged, so the leaf
    order of the result is exactly `order` and each node spans a contiguous run
    of it. At each step the adjacent pair with the smallest Ward distance
    merges (leftmost pair on ties) and distances to every remaining cluster are
    refreshed with the Lance-Williams recurrence.

    Args:
        dissimilarity (MatrixLike): Square matrix of pairwise dissimilarities.
        order (Optional[Any]): Element order (position -> original index). If None,
            the order is derived by slanting the similarity `max(d) - d`.

    Kwargs:
        method (Optional[Union[str, WardMethod]]): "ward.D2" (squared recurrence, the
            default) or "ward.D" (recurrence on raw distances).
        members (Optional[Any]): Initial cluster size of each element. Defaults to ones.
        config (Optional[SolverConfig]): Source for arguments left as None.

    Returns:
        Dendrogram: Tree with `leaf_order` equal to `order`.

    Raises:
        InvalidInputError: If the matrix is not square, not finite, or arguments are invalid.
        DimensionMismatchError: If `order` or `members` disagree with the matrix size.
        NumericInstabilityError: If a merge distance becomes non-finite.
    """
    cfg = resolve_config(config)
    ward = WardMethod.parse(cfg.resolve("method", method))
    warn_reversals = bool(cfg.get("warn_height_reversals"))

    matrix = as_matrix(dissimilarity, "dissimilarity")
    values = np.array(matrix.values, dtype=float)
    n = values.shape[0]

    if order is None:
        similarity = values.max() - values
        order = slanted_orders(similarity, same_order=True, config=cfg).rows
    perm = as_permutation(order, n, name="order")

    if members is None:
        sizes = np.ones(n, dtype=float)
    else:
        sizes = np.asarray(members, dtype=float)
        if sizes.ndim != 1:
            raise InvalidInputError("members must be 1-D")
        if sizes.shape[0] != n:
            raise DimensionMismatchError(f"members has {sizes.shape[0]} entries, expected {n}")
        if not np.all(np.isfinite(sizes)) or np.any(sizes <= 0):
            raise InvalidInputError("members must be positive and finite")
        sizes = sizes[perm].copy()

    leaves: List[Leaf] = [None] * n  # type: ignore[list-item]
    for position, index in enumerate(perm.tolist()):
        leaves[index] = Leaf(int(index), position)
    if n == 1:
        return Dendrogram(leaves, [])

    # Slot s holds the element at position s; working distances are squared for ward.D2
    work = values[np.ix_(perm, perm)]
    if ward.squared:
        with np.errstate(over="ignore"):
            work = work * work
    sequence = _ActiveSequence(work, sizes, [leaves[i] for i in perm.tolist()], ward)

    merges: List[Internal] = []
    for k in range(n - 1):
        cost, a, b = sequence.pop_closest()
        left = sequence.nodes[a]
        right = sequence.nodes[b]
        floor = max(left.height, right.height)
        if cost < floor:
            if warn_reversals:
                warn(
                    f"Merge cost {cost:.6g} is below child height {floor:.6g}; "
                    "raising it to keep heights monotone",
                    HeightReversalWarning,
                )
            cost = floor
        node = Internal(n + k, left, right, cost)
        merges.append(node)
        sequence.merge(a, b, node)

    return Dendrogram(leaves, merges)
