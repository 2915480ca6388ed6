"""
tests/conftest
~~~~~~~~~~~~~~
"""

import numpy as np
import pandas as pd
import pytest

from slanter import Matrix


@pytest.fixture(scope="session")
def scrambled_diagonal():
    """
    Returns a 4x4 0/1 matrix with exactly one 1 per row and column, off the diagonal.

    Returns:
        np.ndarray: Scrambled permutation matrix.
    """
    weights = np.zeros((4, 4))
    for row, col in enumerate([2, 0, 3, 1]):
        weights[row, col] = 1.0
    return weights


@pytest.fixture(scope="session")
def smooth_weights():
    """
    Returns a rectangular matrix with a smooth ridge, rows and columns shuffled.

    Returns:
        np.ndarray: 8x6 nonnegative weights.
    """
    rng = np.random.default_rng(7)
    i = np.arange(8)[:, None] / 7.0
    j = np.arange(6)[None, :] / 5.0
    ridge = np.exp(-10.0 * (i - j) ** 2)
    return ridge[np.ix_(rng.permutation(8), rng.permutation(6))]


@pytest.fixture(scope="session")
def pairs_dissimilarity():
    """
    Returns a 4x4 dissimilarity where (0, 1) and (2, 3) are close and all else is far.

    Returns:
        np.ndarray: Symmetric dissimilarity matrix with a zero diagonal.
    """
    d = np.full((4, 4), 10.0)
    np.fill_diagonal(d, 0.0)
    d[0, 1] = d[1, 0] = 0.1
    d[2, 3] = d[3, 2] = 0.1
    return d


@pytest.fixture(scope="session")
def line_points():
    """
    Returns unevenly spaced 1-D points whose sorted order is [1, 3, 0, 4, 2].

    Returns:
        np.ndarray: Point coordinates.
    """
    return np.array([5.0, 1.0, 9.5, 3.2, 7.9])


@pytest.fixture(scope="session")
def two_group_df():
    """
    Returns a labelled similarity DataFrame for two interleaved groups of three.

    Returns:
        pd.DataFrame: 6x6 nonnegative weights with "a*" / "b*" labels.
    """
    x = np.array([0.0, 5.0, 0.2, 5.3, 0.4, 5.1])
    labels = ["a0", "b0", "a1", "b1", "a2", "b2"]
    weights = np.exp(-np.abs(x[:, None] - x[None, :]))
    return pd.DataFrame(weights, index=labels, columns=labels)


@pytest.fixture(scope="session")
def two_group_dissimilarity(two_group_df):
    """
    Returns the dissimilarity matching `two_group_df`.

    Args:
        two_group_df (pd.DataFrame): Labelled similarity fixture.

    Returns:
        pd.DataFrame: 6x6 absolute coordinate differences.
    """
    x = np.array([0.0, 5.0, 0.2, 5.3, 0.4, 5.1])
    d = np.abs(x[:, None] - x[None, :])
    return pd.DataFrame(d, index=two_group_df.index, columns=two_group_df.columns)


@pytest.fixture(scope="session")
def two_group_matrix(two_group_df):
    """
    Returns a Matrix built from the two-group DataFrame.

    Args:
        two_group_df (pd.DataFrame): Labelled similarity fixture.

    Returns:
        Matrix: Weight matrix wrapper.
    """
    return Matrix(two_group_df)


@pytest.fixture(scope="session")
def random_dissimilarity():
    """
    Returns a factory for symmetric random dissimilarities with a zero diagonal.

    Returns:
        Callable[[int, int], np.ndarray]: Factory taking (n, seed).
    """

    def _make(n, seed):
        rng = np.random.default_rng(seed)
        a = rng.uniform(0.5, 10.0, size=(n, n))
        d = (a + a.T) / 2.0
        np.fill_diagonal(d, 0.0)
        return d

    return _make
