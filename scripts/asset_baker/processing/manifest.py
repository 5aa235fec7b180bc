"""
Manifest generation for the install tree.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import toml

from ..graph.tasks import BuildGraph

logger = logging.getLogger(__name__)


class ManifestGenerator:
    """Describes every baked asset, its overlays and its outputs in a TOML file."""

    def __init__(self, graph: BuildGraph, optimize: Optional[str] = None):
        self.graph = graph
        self.optimize = optimize

    def generate(self, timestamp: Optional[str] = None) -> Dict[str, Any]:
        """
        Build the manifest document.

        Assets are keyed by their path relative to the asset root and listed in
        sorted order so the file is stable between runs.
        """
        assets: Dict[str, Dict[str, Any]] = {}
        for task in self.graph.tasks:
            asset = assets.setdefault(task.source, {
                "kind": task.kind.value,
                "overlays": [overlay.path for overlay in task.overlays],
                "outputs": [],
            })
            asset["outputs"].extend(task.outputs)
            if task.stage:
                asset.setdefault("stages", []).append(task.stage)

        bake: Dict[str, Any] = {
            "generated": timestamp or datetime.now().isoformat(),
            "asset_count": len(assets),
            "task_count": len(self.graph),
            "output_count": len(self.graph.producers),
        }
        if self.optimize:
            bake["optimize"] = self.optimize

        return {
            "bake": bake,
            "assets": {path: assets[path] for path in sorted(assets)},
        }

    def render(self, timestamp: Optional[str] = None) -> str:
        return toml.dumps(self.generate(timestamp))

    def write(self, install_dir: Union[str, Path], name: str = "manifest.toml") -> Path:
        """Write the manifest into the install tree."""
        path = Path(install_dir) / name
        if name in self.graph.producers:
            raise ValueError(f"Manifest name {name} collides with a baked output")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render(), encoding="utf-8")
        logger.info(f"Wrote manifest {path}")
        return path
