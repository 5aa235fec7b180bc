"""
Config overlay discovery.

An asset's options come from zon files next to it and above it:

* ``<extension>.zon`` (e.g. ``.png.zon``) applies to every asset with that
  extension in its directory and below.
* ``<basename>.zon`` (e.g. ``tex.png.zon``) applies to that one file.

Overlays are ordered from the asset root down to the asset's directory, with
the file-specific overlay last. Later overlays take precedence.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Sequence, Tuple, Union

from ..errors import UnexpectedConfig
from ..utils import zon
from .classifier import OVERLAY_SUFFIX
from .walker import AssetEntry, DirectoryFrame

logger = logging.getLogger(__name__)


class OverlayScope(Enum):
    """Which assets an overlay applies to."""
    EXTENSION_WIDE = "extension"
    FILE_SPECIFIC = "file"


@dataclass(frozen=True)
class ConfigOverlay:
    """A config file contributing options to an asset."""
    path: str
    scope: OverlayScope
    precedence: int


OverlayChain = Tuple[ConfigOverlay, ...]


def resolve_overlay_chain(entry: AssetEntry, ancestors: Sequence[DirectoryFrame]) -> OverlayChain:
    """
    Find every overlay that applies to ``entry``, lowest precedence first.

    Args:
        entry: Asset to resolve overlays for
        ancestors: Open directories from the asset root down to the directory
            containing the asset, as maintained by the tree walker

    Returns:
        Overlay chain, empty if no overlay applies
    """
    if not ancestors:
        raise ValueError(f"{entry.path}: no enclosing directory to search for overlays")

    found = []

    extension_zon = f"{entry.extension_key}{OVERLAY_SUFFIX}"
    for frame in ancestors:
        if frame.contains(extension_zon):
            found.append((frame.join(extension_zon), OverlayScope.EXTENSION_WIDE))

    own_frame = ancestors[-1]
    file_zon = f"{entry.basename}{OVERLAY_SUFFIX}"
    if own_frame.contains(file_zon):
        found.append((own_frame.join(file_zon), OverlayScope.FILE_SPECIFIC))

    chain = tuple(
        ConfigOverlay(path=path, scope=scope, precedence=index)
        for index, (path, scope) in enumerate(found)
    )
    if chain:
        logger.debug(f"{entry.path}: overlays {[o.path for o in chain]}")
    return chain


def reject_overlays(entry: AssetEntry, chain: OverlayChain) -> None:
    """
    Fail if any overlay applies to an asset kind that does not take one.

    Raises:
        UnexpectedConfig: Naming the first overlay in the chain
    """
    if chain:
        overlay = chain[0]
        logger.error(f"{overlay.path}: {entry.kind.value} assets don't accept zon config")
        raise UnexpectedConfig(entry.path, overlay.path, entry.kind.value)


def merge_overlay_options(root: Union[str, Path], chain: OverlayChain) -> Dict[str, Any]:
    """
    Load and merge the options of an overlay chain.

    Top-level keys from later overlays replace those of earlier ones. The
    converters read overlays themselves; this is what they will see.

    Raises:
        ZonError: If an overlay is not a valid zon struct
        OSError: If an overlay cannot be read
    """
    root = Path(root)
    options: Dict[str, Any] = {}
    for overlay in chain:
        data = zon.load(root / overlay.path)
        if not isinstance(data, dict):
            raise zon.ZonError(f"{overlay.path}: overlay must be a struct", 1, 1)
        options.update(data)
    return options
