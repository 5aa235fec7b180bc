"""
Task graph data: conversion tasks and the graph handed to the host build engine.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple

from ..converters.base import BuildLayout
from ..discovery.classifier import AssetKind
from ..discovery.overlays import OverlayChain


@dataclass(frozen=True)
class ConversionTask:
    """One invocation of an external converter, or one verbatim copy."""
    name: str
    kind: AssetKind
    source: str
    overlays: OverlayChain
    outputs: Tuple[str, ...]
    command: Optional[Tuple[str, ...]] = None
    stage: Optional[str] = None
    depfile: Optional[str] = None

    @property
    def inputs(self) -> Tuple[str, ...]:
        """Primary input followed by the overlay chain, all relative to the asset root."""
        return (self.source, *(overlay.path for overlay in self.overlays))

    @property
    def is_copy(self) -> bool:
        return self.command is None


@dataclass(frozen=True)
class BuildGraph:
    """
    Every conversion task of a bake plus the final install step.

    The install step copies each declared output from the build directory to
    the same relative path in the install tree.
    """
    layout: BuildLayout
    tasks: Tuple[ConversionTask, ...]
    producers: Dict[str, ConversionTask]

    def __len__(self) -> int:
        return len(self.tasks)

    def __iter__(self) -> Iterator[ConversionTask]:
        return iter(self.tasks)

    @property
    def outputs(self) -> Tuple[str, ...]:
        return tuple(sorted(self.producers))

    def install_plan(self, install_dir: Path) -> Tuple[Tuple[Path, Path], ...]:
        """``(build_path, install_path)`` pairs for every declared output."""
        install_dir = Path(install_dir)
        return tuple(
            (self.layout.build_path(output), install_dir / output)
            for output in self.outputs
        )

    def tasks_for(self, source: str) -> Tuple[ConversionTask, ...]:
        return tuple(task for task in self.tasks if task.source == source)
