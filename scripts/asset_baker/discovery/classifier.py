"""
Classifies asset files by their compound extension.
"""

from enum import Enum
from typing import Optional

from ..utils.paths import extensions

OVERLAY_SUFFIX = ".zon"

# Files consumed by other assets rather than baked on their own: raw glsl is
# included by the shader programs, ttf is referenced by font atlases.
IGNORED_SUFFIXES = (
    "glsl",
    "ttf",
    "README.md",
)


class AssetKind(Enum):
    """Classification outcome for a file in the asset tree."""
    TEXTURE = "texture"
    COMPUTE_SHADER = "compute_shader"
    VERTEX_FRAGMENT_SHADER = "vertex_fragment_shader"
    ZON_PASSTHROUGH = "zon_passthrough"
    FONT_ATLAS = "font_atlas"
    OVERLAY = "overlay"
    IGNORED = "ignored"
    UNSUPPORTED = "unsupported"

    @property
    def tag(self) -> Optional[str]:
        """Compound extension that selects this kind, if it is bakeable."""
        return KIND_TAGS.get(self)

    @property
    def is_bakeable(self) -> bool:
        return self in KIND_TAGS

    @property
    def accepts_overlays(self) -> bool:
        return self is AssetKind.TEXTURE


KIND_TAGS = {
    AssetKind.TEXTURE: ".png",
    AssetKind.COMPUTE_SHADER: ".comp.glsl",
    AssetKind.VERTEX_FRAGMENT_SHADER: ".vf.glsl",
    AssetKind.ZON_PASSTHROUGH: ".zon",
    AssetKind.FONT_ATLAS: ".atlas.zon",
}

_KINDS_BY_TAG = {tag: kind for kind, tag in KIND_TAGS.items()}


def kind_for_extension(extension: str) -> Optional[AssetKind]:
    """Look up the bakeable kind whose tag is exactly ``extension``."""
    return _KINDS_BY_TAG.get(extension)


def classify(basename: str) -> AssetKind:
    """
    Classify a file name.

    Exact tag matches win, so ``foo.atlas.zon`` is a font atlas rather than a
    passthrough zon file. ``<tag>.zon`` files are overlays, names ending in an
    ignored suffix are ignored, and everything else is unsupported.
    """
    ext = extensions(basename)

    kind = kind_for_extension(ext)
    if kind is not None:
        return kind

    if ext.endswith(OVERLAY_SUFFIX):
        prefix = ext[:-len(OVERLAY_SUFFIX)]
        if kind_for_extension(prefix) is not None:
            return AssetKind.OVERLAY

    for suffix in IGNORED_SUFFIXES:
        if basename.endswith(suffix):
            return AssetKind.IGNORED

    return AssetKind.UNSUPPORTED
