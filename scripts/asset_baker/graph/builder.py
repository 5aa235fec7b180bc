"""
Builds the conversion task graph for an asset tree.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from ..config import BakeConfig
from ..converters.base import BuildLayout, depfile_for
from ..converters.font_atlas import ATLAS_SUFFIX, METADATA_SUFFIX, font_atlas_command
from ..converters.shader import ShaderCompilerOptions, shader_command, shader_output_suffix
from ..converters.texture import OUTPUT_SUFFIX as TEXTURE_SUFFIX, texture_command
from ..discovery.classifier import AssetKind
from ..discovery.overlays import OverlayChain, reject_overlays, resolve_overlay_chain
from ..discovery.walker import AssetEntry, TreeWalker
from ..errors import OutputCollision
from ..utils.paths import strip_extensions
from .tasks import BuildGraph, ConversionTask

logger = logging.getLogger(__name__)


class GraphBuilder:
    """
    Accumulates conversion tasks for one bake.

    The builder owns the output registry used for collision detection. It is
    single use: ``finish`` hands the tasks over as a ``BuildGraph`` and closes
    the builder.
    """

    def __init__(self, config: BakeConfig, asset_root: Optional[Union[str, Path]] = None,
                 build_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the builder.

        Args:
            config: Bake configuration (tools, shader settings, default paths)
            asset_root: Asset tree to bake, defaults to ``config.assets_dir``
            build_dir: Converter output directory, defaults to ``config.build_dir``
        """
        self.config = config
        self.layout = BuildLayout(
            asset_root=Path(asset_root if asset_root is not None else config.assets_dir),
            build_dir=Path(build_dir if build_dir is not None else config.build_dir),
        )
        self.shader_options = ShaderCompilerOptions.from_config(config)
        self.walker = TreeWalker(self.layout.asset_root)

        self._tasks: List[ConversionTask] = []
        self._producers: Dict[str, ConversionTask] = {}
        self._finished = False

        self._handlers: Dict[AssetKind, Callable[[AssetEntry, OverlayChain], List[ConversionTask]]] = {
            AssetKind.TEXTURE: self._build_texture,
            AssetKind.COMPUTE_SHADER: self._build_compute_shader,
            AssetKind.VERTEX_FRAGMENT_SHADER: self._build_vertex_fragment_shader,
            AssetKind.ZON_PASSTHROUGH: self._build_zon_passthrough,
            AssetKind.FONT_ATLAS: self._build_font_atlas,
        }
    def add_tree(self) -> int:
        """
        Walk the asset root and add tasks for every accepted asset.

        Returns:
            Number of assets added
        """
        count = 0
        for result in self.walker.walk():
            chain = resolve_overlay_chain(result.entry, result.ancestors)
            self.add_asset(result.entry, chain)
            count += 1

        stats = self.walker.stats
        logger.info(
            f"Discovered {stats.accepted} assets in {self.layout.asset_root} "
            f"({stats.overlays} overlays, {stats.ignored} ignored, {stats.skipped} skipped)"
        )
        return count

    def add_asset(self, entry: AssetEntry, chain: OverlayChain) -> Tuple[ConversionTask, ...]:
        """
        Create the tasks for one asset and claim their outputs.

        Raises:
            UnexpectedConfig: If the asset's kind does not accept overlays
            OutputCollision: If an output is already claimed by another asset
        """
        if self._finished:
            raise RuntimeError("GraphBuilder.finish() was already called")

        handler = self._handlers.get(entry.kind)
        if handler is None:
            raise ValueError(f"{entry.path}: {entry.kind.value} assets cannot be baked")

        if not entry.kind.accepts_overlays:
            reject_overlays(entry, chain)

        tasks = handler(entry, chain)
        for task in tasks:
            for output in task.outputs:
                self._claim(output, task)
        self._tasks.extend(tasks)
        return tuple(tasks)

    def finish(self) -> BuildGraph:
        """Hand the accumulated tasks over as a build graph."""
        graph = BuildGraph(
            layout=self.layout,
            tasks=tuple(self._tasks),
            producers=dict(self._producers),
        )
        self._producers.clear()
        self._tasks = []
        self._finished = True
        logger.info(f"Build graph has {len(graph)} tasks and {len(graph.producers)} outputs")
        return graph

    def _claim(self, output: str, task: ConversionTask) -> None:
        existing = self._producers.get(output)
        if existing is not None:
            logger.error(f"{output}: output produced by both {existing.source} and {task.source}")
            raise OutputCollision(output, existing.source, task.source)
        self._producers[output] = task

    # Per-kind task builders
    def _build_texture(self, entry: AssetEntry, chain: OverlayChain) -> List[ConversionTask]:
        output = f"{strip_extensions(entry.path)}{TEXTURE_SUFFIX}"
        command = texture_command(
            self.config.texture_tool,
            self.layout,
            entry.path,
            [overlay.path for overlay in chain],
            output,
        )
        return [ConversionTask(
            name=f"texture {entry.path}",
            kind=entry.kind,
            source=entry.path,
            overlays=chain,
            outputs=(output,),
            command=command,
        )]

    def _build_compute_shader(self, entry: AssetEntry, chain: OverlayChain) -> List[ConversionTask]:
        return [self._shader_task(entry, "comp")]

    def _build_vertex_fragment_shader(self, entry: AssetEntry, chain: OverlayChain) -> List[ConversionTask]:
        return [self._shader_task(entry, "vert"), self._shader_task(entry, "frag")]

    def _shader_task(self, entry: AssetEntry, stage: str) -> ConversionTask:
        output = f"{strip_extensions(entry.path)}{shader_output_suffix(stage)}"
        depfile = depfile_for(output)
        command = shader_command(
            self.config.shader_tool,
            self.shader_options,
            self.layout,
            entry.path,
            stage,
            depfile,
            output,
        )
        return ConversionTask(
            name=f"shader {entry.path} ({stage})",
            kind=entry.kind,
            source=entry.path,
            overlays=(),
            outputs=(output,),
            command=command,
            stage=stage,
            depfile=depfile,
        )

    def _build_zon_passthrough(self, entry: AssetEntry, chain: OverlayChain) -> List[ConversionTask]:
        return [ConversionTask(
            name=f"copy {entry.path}",
            kind=entry.kind,
            source=entry.path,
            overlays=(),
            outputs=(entry.path,),
        )]

    def _build_font_atlas(self, entry: AssetEntry, chain: OverlayChain) -> List[ConversionTask]:
        base = strip_extensions(entry.path)
        metadata_output = f"{base}{METADATA_SUFFIX}"
        atlas_output = f"{base}{ATLAS_SUFFIX}"
        depfile = depfile_for(metadata_output)
        command = font_atlas_command(
            self.config.font_atlas_tool,
            self.layout,
            entry.path,
            depfile,
            metadata_output,
            atlas_output,
        )
        return [ConversionTask(
            name=f"font atlas {entry.path}",
            kind=entry.kind,
            source=entry.path,
            overlays=(),
            outputs=(metadata_output, atlas_output),
            command=command,
            depfile=depfile,
        )]


def build_graph(config: BakeConfig, asset_root: Optional[Union[str, Path]] = None,
                build_dir: Optional[Union[str, Path]] = None) -> BuildGraph:
    """Walk an asset tree and return its complete build graph."""
    builder = GraphBuilder(config, asset_root=asset_root, build_dir=build_dir)
    builder.add_tree()
    return builder.finish()
