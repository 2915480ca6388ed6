"""
tests/test_tree
~~~~~~~~~~~~~~~
"""

import numpy as np
import pytest
from scipy.cluster.hierarchy import leaves_list
from scipy.cluster.hierarchy import linkage as scipy_linkage

from slanter import Dendrogram, Internal, InvalidInputError, Leaf, oclust


@pytest.mark.api
def test_internal_requires_adjacent_children():
    """
    Ensures a node over non-adjacent leaf ranges cannot be built.
    """
    with pytest.raises(ValueError):
        Internal(3, Leaf(0, 0), Leaf(1, 2), 1.0)


@pytest.mark.api
def test_internal_derives_range_and_size():
    """
    Ensures leaf_range and size are derived from the children.
    """
    node = Internal(2, Leaf(1, 0), Leaf(0, 1), 0.5)

    assert node.leaf_range == (0, 2)
    assert node.size == 2
    assert node.children[0].node_id == 1
    assert node.children[1].node_id == 0


@pytest.mark.api
def test_leaf_order_and_linkage_roundtrip(pairs_dissimilarity):
    """
    Ensures to_linkage() yields a SciPy tree with the same leaf order.

    Args:
        pairs_dissimilarity (np.ndarray): Two-pair dissimilarity fixture.
    """
    tree = oclust(pairs_dissimilarity, [3, 2, 0, 1])
    Z = tree.to_linkage()

    assert Z.shape == (3, 4)
    assert leaves_list(Z).tolist() == tree.leaf_order.tolist() == [3, 2, 0, 1]
    rebuilt = Dendrogram.from_linkage(Z)
    assert np.array_equal(rebuilt.to_linkage(), Z)


@pytest.mark.api
def test_from_linkage_keeps_scipy_leaf_order(line_points):
    """
    Ensures a SciPy linkage converts with its own leaf order and heights.

    Args:
        line_points (np.ndarray): 1-D point fixture.
    """
    Z = scipy_linkage(line_points[:, None], method="ward")
    tree = Dendrogram.from_linkage(Z)

    assert tree.leaf_order.tolist() == leaves_list(Z).tolist()
    assert np.allclose(tree.heights, Z[:, 2])
    assert tree.validate() is tree


@pytest.mark.api
def test_from_linkage_rejects_decreasing_heights():
    """
    Ensures a linkage whose parent is lower than a child is rejected.
    """
    Z = np.array([[0.0, 1.0, 2.0, 2.0], [2.0, 3.0, 1.0, 3.0]])
    with pytest.raises(InvalidInputError):
        Dendrogram.from_linkage(Z)


@pytest.mark.api
def test_from_linkage_rejects_bad_shape():
    """
    Ensures malformed linkage arrays are rejected.
    """
    with pytest.raises(InvalidInputError):
        Dendrogram.from_linkage(np.zeros((2, 3)))


@pytest.mark.api
def test_postorder_visits_children_first(pairs_dissimilarity):
    """
    Ensures iter_postorder() yields every node with children before parents.

    Args:
        pairs_dissimilarity (np.ndarray): Two-pair dissimilarity fixture.
    """
    tree = oclust(pairs_dissimilarity, [0, 1, 2, 3])
    visited = [node.node_id for node in tree.iter_postorder()]

    assert visited == [0, 1, 4, 2, 3, 5, 6]
    assert tree.parents() == {0: 4, 1: 4, 2: 5, 3: 5, 4: 6, 5: 6}


@pytest.mark.api
def test_node_lookup(pairs_dissimilarity):
    """
    Ensures node ids follow the SciPy convention.

    Args:
        pairs_dissimilarity (np.ndarray): Two-pair dissimilarity fixture.
    """
    tree = oclust(pairs_dissimilarity, [0, 1, 2, 3])

    assert tree.node(2).is_leaf
    assert tree.node(6) is tree.root
    with pytest.raises(KeyError):
        tree.node(7)


@pytest.mark.api
def test_dendrogram_rejects_wrong_merge_count():
    """
    Ensures a dendrogram needs exactly n-1 merges.
    """
    with pytest.raises(InvalidInputError):
        Dendrogram([Leaf(0, 0), Leaf(1, 1)], [])


@pytest.mark.api
def test_deep_chain_does_not_recurse():
    """
    Ensures long chains are handled without hitting the recursion limit.
    """
    n = 1500
    d = np.abs(np.arange(n, dtype=float)[:, None] ** 1.5 - np.arange(n, dtype=float)[None, :] ** 1.5)
    tree = oclust(d, np.arange(n))

    assert sum(1 for _ in tree.iter_postorder()) == 2 * n - 1
    assert tree.validate() is tree
