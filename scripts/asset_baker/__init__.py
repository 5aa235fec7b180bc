"""
Asset Baker

Walks an asset tree, classifies every file by its compound extension, resolves
the zon config overlays that apply to it and turns the result into a graph of
converter invocations (textures, shaders, font atlases and verbatim copies).
The graph can be written out as a ninja file or executed by the local runner.
"""

__version__ = "0.1.0"
__author__ = "Old Times Development Team"

from .config import BakeConfig, OptimizeMode
from .errors import BakeError, UnsupportedExtension, InvalidPath, UnexpectedConfig, OutputCollision
from .discovery.classifier import AssetKind, classify
from .discovery.walker import AssetEntry, TreeWalker
from .discovery.overlays import ConfigOverlay, resolve_overlay_chain
from .graph.builder import GraphBuilder, build_graph
from .graph.tasks import BuildGraph, ConversionTask

__all__ = [
    "BakeConfig",
    "OptimizeMode",
    "BakeError",
    "UnsupportedExtension",
    "InvalidPath",
    "UnexpectedConfig",
    "OutputCollision",
    "AssetKind",
    "classify",
    "AssetEntry",
    "TreeWalker",
    "ConfigOverlay",
    "resolve_overlay_chain",
    "GraphBuilder",
    "build_graph",
    "BuildGraph",
    "ConversionTask",
]
