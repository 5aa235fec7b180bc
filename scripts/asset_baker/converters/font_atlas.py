"""
Argument contract of the font atlas compiler.

A single invocation writes both the atlas metadata and the atlas texture.
"""

from typing import Tuple

from .base import BuildLayout

METADATA_SUFFIX = ".atlas"
ATLAS_SUFFIX = ".atlas.ktx2"


def font_atlas_command(tool: str, layout: BuildLayout, source: str, depfile: str,
                       metadata_output: str, atlas_output: str) -> Tuple[str, ...]:
    return (
        tool,
        "--config-path", str(layout.source_path(source)),
        "--write-deps", str(layout.build_path(depfile)),
        "--output-metadata-path", str(layout.build_path(metadata_output)),
        "--output-atlas-path", str(layout.build_path(atlas_output)),
    )
