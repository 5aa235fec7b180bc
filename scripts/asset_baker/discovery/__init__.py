"""
Asset discovery: extension classification, tree walking and config overlay resolution.
"""

from .classifier import AssetKind, KIND_TAGS, classify, kind_for_extension
from .walker import AssetEntry, DirectoryFrame, TreeWalker, WalkResult, WalkStats
from .overlays import (
    ConfigOverlay,
    OverlayChain,
    OverlayScope,
    merge_overlay_options,
    reject_overlays,
    resolve_overlay_chain
)

__all__ = [
    "AssetKind",
    "KIND_TAGS",
    "classify",
    "kind_for_extension",
    "AssetEntry",
    "DirectoryFrame",
    "TreeWalker",
    "WalkResult",
    "WalkStats",
    "ConfigOverlay",
    "OverlayChain",
    "OverlayScope",
    "merge_overlay_options",
    "reject_overlays",
    "resolve_overlay_chain",
]
