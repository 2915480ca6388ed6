"""
slanter
~~~~~~~

Slanted matrix ordering and order-compatible hierarchical clustering.
"""

from .core.analysis import Analysis
from .core.clustering import Clusters, cut_dendrogram
from .core.config import DEFAULT_SETTINGS, SolverConfig
from .core.layout import SlantedLayout
from .core.matrix import Matrix
from .core.oclust import WardMethod, oclust
from .core.orders import SlantedOrders, slanted_orders, slanted_reorder
from .core.reorder import reorder_hclust
from .core.tree import Dendrogram, Internal, Leaf
from .util.errors import (
    DimensionMismatchError,
    InvalidInputError,
    NumericInstabilityError,
    SlanterError,
)

__all__ = [
    "Analysis",
    "Clusters",
    "cut_dendrogram",
    "DEFAULT_SETTINGS",
    "SolverConfig",
    "SlantedLayout",
    "Matrix",
    "WardMethod",
    "oclust",
    "SlantedOrders",
    "slanted_orders",
    "slanted_reorder",
    "reorder_hclust",
    "Dendrogram",
    "Internal",
    "Leaf",
    "SlanterError",
    "InvalidInputError",
    "DimensionMismatchError",
    "NumericInstabilityError",
]

__version__ = "0.1.0"
