"""
Argument contract of the texture converter (PNG to KTX2).
"""

from typing import Sequence, Tuple

from .base import BuildLayout

OUTPUT_SUFFIX = ".ktx2"


def texture_command(tool: str, layout: BuildLayout, source: str,
                    overlays: Sequence[str], output: str) -> Tuple[str, ...]:
    """
    Build the texture converter command line.

    Overlays are passed in chain order, lowest precedence first; the converter
    applies them in that order so later files win.
    """
    args = [tool]
    for overlay in overlays:
        args.extend(["--config", str(layout.source_path(overlay))])
    args.extend(["--input", str(layout.source_path(source))])
    args.extend(["--output", str(layout.build_path(output))])
    return tuple(args)
