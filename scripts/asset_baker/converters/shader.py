"""
Argument contract of the SPIR-V shader compiler.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

from ..config import BakeConfig, OptimizeMode
from .base import BuildLayout

STAGES = ("comp", "vert", "frag")


@dataclass(frozen=True)
class ShaderCompilerOptions:
    """Options shared by every invocation of the shader compiler."""
    default_version: str = "460"
    target: str = "Vulkan-1.3"
    debug_info: bool = True
    optimize_perf: bool = False
    optimize_size: bool = False
    defines: Tuple[str, ...] = ()
    preambles: Tuple[str, ...] = ()
    include_paths: Tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: BakeConfig) -> "ShaderCompilerOptions":
        """Derive compiler options from the bake configuration and its optimize mode."""
        mode = config.optimize_mode
        if mode in (OptimizeMode.DEBUG, OptimizeMode.RELEASE_SAFE):
            safety = "RUNTIME_SAFETY=1"
        else:
            safety = "RUNTIME_SAFETY=0"

        return cls(
            default_version=config.shader_default_version,
            target=config.shader_target,
            debug_info=config.shader_debug_info,
            optimize_perf=mode is not OptimizeMode.DEBUG,
            optimize_size=mode is OptimizeMode.RELEASE_SMALL,
            defines=(safety, *config.shader_defines),
            preambles=tuple(str(Path(p).resolve()) for p in config.shader_preambles),
            include_paths=tuple(str(Path(p).resolve()) for p in config.shader_include_paths),
        )


def shader_output_suffix(stage: str) -> str:
    return f".{stage}.spv"


def shader_command(tool: str, options: ShaderCompilerOptions, layout: BuildLayout,
                   source: str, stage: str, depfile: str, output: str,
                   program_defines: Sequence[str] = ()) -> Tuple[str, ...]:
    """
    Build the shader compiler command line for one stage of a program.

    Raises:
        ValueError: If ``stage`` is not a known shader stage
    """
    if stage not in STAGES:
        raise ValueError(f"Unknown shader stage: {stage}")

    args: List[str] = [tool]

    for preamble in options.preambles:
        args.extend(["--preamble", preamble])

    args.append("--scalar-block-layout")
    args.extend(["--default-version", options.default_version])
    args.extend(["--target", options.target])
    args.extend(["--stage", stage])

    if options.optimize_perf:
        args.append("--optimize-perf")
    if options.optimize_size:
        args.append("--optimize-size")
    if options.debug_info:
        args.append("--debug")

    for include in options.include_paths:
        args.extend(["--include-path", include])

    for define in (*options.defines, *program_defines):
        args.extend(["--define", define])

    args.extend(["--write-deps", str(layout.build_path(depfile))])
    args.append(str(layout.source_path(source)))
    args.append(str(layout.build_path(output)))
    return tuple(args)
