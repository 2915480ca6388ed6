"""
slanter/core
~~~~~~~~~~~~
"""

from .analysis import Analysis
from .clustering import Clusters, cut_dendrogram
from .config import SolverConfig
from .layout import SlantedLayout, compute_layout
from .matrix import Matrix
from .oclust import WardMethod, oclust
from .orders import SlantedOrders, slanted_orders, slanted_reorder
from .reorder import reorder_hclust
from .tree import Dendrogram

__all__ = [
    "Matrix",
    "Analysis",
    "Clusters",
    "cut_dendrogram",
    "SolverConfig",
    "SlantedLayout",
    "compute_layout",
    "WardMethod",
    "oclust",
    "SlantedOrders",
    "slanted_orders",
    "slanted_reorder",
    "reorder_hclust",
    "Dendrogram",
]
