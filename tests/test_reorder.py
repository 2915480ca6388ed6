"""
tests/test_reorder
~~~~~~~~~~~~~~~~~~
"""

import numpy as np
import pytest
from scipy.cluster.hierarchy import leaves_list
from scipy.cluster.hierarchy import linkage as scipy_linkage
from scipy.spatial.distance import squareform

from slanter import Dendrogram, DimensionMismatchError, oclust, reorder_hclust


def _topology(Z):
    """Return each merge's unordered child pair plus its height and size."""
    return [(frozenset(row[:2].astype(int).tolist()), row[2], row[3]) for row in Z]


@pytest.fixture
def line_linkage(line_points):
    """
    Returns a SciPy Ward linkage over the 1-D line points.

    Args:
        line_points (np.ndarray): 1-D point fixture.

    Returns:
        np.ndarray: Linkage matrix.
    """
    return scipy_linkage(line_points[:, None], method="ward")


@pytest.mark.api
def test_reorder_realizes_sorted_order(line_linkage, line_points):
    """
    Ensures a tree of contiguous 1-D clusters is flipped into the sorted order.

    Args:
        line_linkage (np.ndarray): Linkage fixture.
        line_points (np.ndarray): 1-D point fixture.
    """
    ideal = np.argsort(line_points)
    tree = reorder_hclust(line_linkage, ideal)

    assert tree.leaf_order.tolist() == [1, 3, 0, 4, 2]


@pytest.mark.api
def test_reorder_realizes_reversed_order(line_linkage, line_points):
    """
    Ensures the reversed ideal order yields the reversed leaf order.

    Args:
        line_linkage (np.ndarray): Linkage fixture.
        line_points (np.ndarray): 1-D point fixture.
    """
    ideal = np.argsort(line_points)[::-1]
    tree = reorder_hclust(line_linkage, ideal)

    assert tree.leaf_order.tolist() == [2, 4, 0, 3, 1]


@pytest.mark.api
def test_reorder_preserves_topology_and_heights(random_dissimilarity):
    """
    Ensures only child orientation changes, never the merges or their heights.

    Args:
        random_dissimilarity (Callable): Random dissimilarity factory.
    """
    d = random_dissimilarity(20, seed=4)
    Z = scipy_linkage(squareform(d), method="average")
    ideal = np.random.default_rng(8).permutation(20)
    tree = reorder_hclust(Z, ideal)

    assert _topology(tree.to_linkage()) == _topology(Z)
    assert sorted(tree.leaf_order.tolist()) == list(range(20))
    assert tree.validate() is tree


@pytest.mark.api
def test_reorder_is_noop_for_current_order(line_linkage):
    """
    Ensures a tree already in the ideal order comes back structurally identical.

    Args:
        line_linkage (np.ndarray): Linkage fixture.
    """
    tree = reorder_hclust(line_linkage, leaves_list(line_linkage))

    assert np.array_equal(tree.to_linkage(), line_linkage)


@pytest.mark.api
def test_reorder_noop_on_order_compatible_tree(pairs_dissimilarity):
    """
    Ensures reordering an oclust tree toward its own order changes nothing.

    Args:
        pairs_dissimilarity (np.ndarray): Two-pair dissimilarity fixture.
    """
    tree = oclust(pairs_dissimilarity, [2, 3, 1, 0])
    again = reorder_hclust(tree, [2, 3, 1, 0])

    assert again is not tree
    assert np.array_equal(again.to_linkage(), tree.to_linkage())


@pytest.mark.api
def test_reorder_does_not_mutate_input(line_linkage, line_points):
    """
    Ensures the input tree keeps its leaf order after reordering.

    Args:
        line_linkage (np.ndarray): Linkage fixture.
        line_points (np.ndarray): 1-D point fixture.
    """
    original = Dendrogram.from_linkage(line_linkage)
    before = original.leaf_order.tolist()
    Z_before = line_linkage.copy()

    reorder_hclust(original, np.argsort(line_points)[::-1])

    assert original.leaf_order.tolist() == before
    assert np.array_equal(line_linkage, Z_before)


@pytest.mark.api
def test_reorder_ties_keep_input_orientation():
    """
    Ensures children with equal mean rank are not swapped.
    """
    # Leaves 0 and 2 under one node, ideal ranks 0 and 2 vs. leaf 1 alone at rank 1
    Z = np.array([[0.0, 2.0, 1.0, 2.0], [1.0, 3.0, 2.0, 3.0]])
    tree = reorder_hclust(Z, [0, 1, 2])

    assert tree.leaf_order.tolist() == [1, 0, 2]


@pytest.mark.api
def test_reorder_length_mismatch_raises(line_linkage):
    """
    Ensures an ideal order of the wrong length raises DimensionMismatchError.

    Args:
        line_linkage (np.ndarray): Linkage fixture.
    """
    with pytest.raises(DimensionMismatchError):
        reorder_hclust(line_linkage, [0, 1, 2, 3])


@pytest.mark.api
def test_reorder_foreign_leaves_raise(line_linkage):
    """
    Ensures an ideal order over different element ids raises DimensionMismatchError.

    Args:
        line_linkage (np.ndarray): Linkage fixture.
    """
    with pytest.raises(DimensionMismatchError):
        reorder_hclust(line_linkage, [0, 1, 2, 3, 7])
