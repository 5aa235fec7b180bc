"""
Conversion task graph construction.
"""

from .tasks import BuildGraph, ConversionTask
from .builder import GraphBuilder, build_graph

__all__ = [
    "BuildGraph",
    "ConversionTask",
    "GraphBuilder",
    "build_graph",
]
