"""
Bake pipeline coordinator.
Builds the task graph, then hands it to a host engine (ninja file or local runner),
installs the outputs and writes the manifest.
"""

import time
import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Any, Callable, Set, Union
from dataclasses import dataclass, field

from .config import BakeConfig
from .errors import BakeError
from .graph.builder import GraphBuilder
from .graph.tasks import BuildGraph
from .processing.manifest import ManifestGenerator
from .processing.ninja import NinjaWriter
from .processing.runner import LocalRunner, RunSummary


class BakeStep(Enum):
    """Enumeration of pipeline steps."""
    GRAPH = "graph"
    NINJA = "ninja"
    EXECUTE = "execute"
    INSTALL = "install"
    MANIFEST = "manifest"


@dataclass
class StepResult:
    """Result of a pipeline step execution."""
    step: BakeStep
    success: bool
    duration: float
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)


@dataclass
class PipelineState:
    """Current state of the pipeline execution."""
    current_step: Optional[BakeStep] = None
    completed_steps: Set[BakeStep] = field(default_factory=set)
    failed_steps: Set[BakeStep] = field(default_factory=set)
    step_results: Dict[BakeStep, StepResult] = field(default_factory=dict)
    start_time: Optional[float] = None
    graph: Optional[BuildGraph] = None
    run_summary: Optional[RunSummary] = None


class PipelineError(Exception):
    """Raised when a pipeline step fails for a reason other than a bake error."""
    def __init__(self, message: str, step: Optional[BakeStep] = None):
        super().__init__(message)
        self.step = step


class BakePipeline:
    """
    Coordinates a bake from asset discovery to installed outputs.

    Graph construction always completes (or fails) before any converter runs,
    so a malformed asset tree never produces a partial bake.
    """

    # Step dependencies - each step depends on the completion of its dependencies
    STEP_DEPENDENCIES = {
        BakeStep.GRAPH: set(),
        BakeStep.NINJA: {BakeStep.GRAPH},
        BakeStep.EXECUTE: {BakeStep.GRAPH},
        BakeStep.INSTALL: {BakeStep.EXECUTE},
        BakeStep.MANIFEST: {BakeStep.GRAPH},
    }

    def __init__(self, config: BakeConfig, asset_root: Optional[Union[str, Path]] = None,
                 install_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the bake pipeline.

        Args:
            config: Bake configuration
            asset_root: Asset tree to bake, defaults to ``config.assets_dir``
            install_dir: Final artifact tree, defaults to ``config.install_dir``
        """
        self.config = config
        self.asset_root = Path(asset_root if asset_root is not None else config.assets_dir)
        self.install_dir = Path(install_dir if install_dir is not None else config.install_dir)
        self.state = PipelineState()
        self.logger = self._setup_logging()
        self._runner: Optional[LocalRunner] = None
        self._planned_steps: List[BakeStep] = []

        self._step_handlers: Dict[BakeStep, Callable[[], Dict[str, Any]]] = {
            BakeStep.GRAPH: self._execute_graph_step,
            BakeStep.NINJA: self._execute_ninja_step,
            BakeStep.EXECUTE: self._execute_execute_step,
            BakeStep.INSTALL: self._execute_install_step,
            BakeStep.MANIFEST: self._execute_manifest_step,
        }

    def _setup_logging(self) -> logging.Logger:
        """Set up logging for the pipeline."""
        logger = logging.getLogger("asset_baker")
        logger.setLevel(logging.INFO)

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def default_steps(self) -> List[BakeStep]:
        steps = [BakeStep.GRAPH, BakeStep.EXECUTE, BakeStep.INSTALL]
        if self.config.write_manifest:
            steps.append(BakeStep.MANIFEST)
        return steps

    def run(self, steps: Optional[List[BakeStep]] = None) -> PipelineState:
        """
        Run the bake or the specified steps (plus their dependencies).

        Raises:
            BakeError: If the asset tree cannot be turned into a valid graph
            PipelineError: If any later step fails
        """
        if steps is None:
            steps = self.default_steps()

        self.logger.info(f"Starting bake of {self.asset_root}")
        self.state.start_time = time.time()

        self._planned_steps = self._calculate_execution_order(steps)
        for step in self._planned_steps:
            if step in self.state.completed_steps:
                continue
            self._execute_step(step)

        self._generate_execution_summary()
        return self.state

    def _calculate_execution_order(self, requested_steps: List[BakeStep]) -> List[BakeStep]:
        """Include all dependencies of the requested steps and order them topologically."""
        all_required_steps = set()

        def add_dependencies(step: BakeStep):
            if step not in all_required_steps:
                all_required_steps.add(step)
                for dep in self.STEP_DEPENDENCIES[step]:
                    add_dependencies(dep)

        for step in requested_steps:
            add_dependencies(step)

        # Declaration order of BakeStep is already a valid topological order
        return [step for step in BakeStep if step in all_required_steps]

    def _execute_step(self, step: BakeStep):
        """Execute a single pipeline step with timing and bookkeeping."""
        self.state.current_step = step
        self.logger.info(f"Executing step: {step.value}")

        start_time = time.time()

        try:
            result = self._step_handlers[step]()
        except Exception as e:
            duration = time.time() - start_time
            self.state.step_results[step] = StepResult(
                step=step,
                success=False,
                duration=duration,
                message=f"Step {step.value} failed: {e}",
                errors=[str(e)]
            )
            self.state.failed_steps.add(step)
            self.logger.error(f"Step {step.value} failed after {duration:.2f}s: {e}")

            if isinstance(e, (BakeError, PipelineError)):
                raise
            raise PipelineError(f"Step {step.value} failed: {e}", step) from e

        duration = time.time() - start_time
        self.state.step_results[step] = StepResult(
            step=step,
            success=True,
            duration=duration,
            message=f"Step {step.value} completed successfully",
            data=result
        )
        self.state.completed_steps.add(step)
        self.logger.info(f"Step {step.value} completed in {duration:.2f}s")

    # Step execution methods
    def _execute_graph_step(self) -> Dict[str, Any]:
        builder = GraphBuilder(self.config, asset_root=self.asset_root)
        assets = builder.add_tree()
        self.state.graph = builder.finish()
        name = self.config.manifest_name
        if BakeStep.MANIFEST in self._planned_steps and name in self.state.graph.producers:
            raise PipelineError(f"Manifest name {name} collides with a baked output", BakeStep.GRAPH)
        return {"assets": assets, "tasks": len(self.state.graph), "outputs": len(self.state.graph.producers)}

    def _execute_ninja_step(self) -> Dict[str, Any]:
        path = NinjaWriter().write(self._require_graph(), self.install_dir)
        return {"ninja_file": str(path)}

    def _execute_execute_step(self) -> Dict[str, Any]:
        self._runner = LocalRunner(self._require_graph(), jobs=self.config.effective_jobs)
        summary = self._runner.run()
        self.state.run_summary = summary
        return {"executed": summary.executed, "cached": summary.cached}

    def _execute_install_step(self) -> Dict[str, Any]:
        runner = self._runner or LocalRunner(self._require_graph(), jobs=self.config.effective_jobs)
        installed = runner.install(self.install_dir)
        if self.state.run_summary is not None:
            self.state.run_summary.installed = installed
        return {"installed": installed}

    def _execute_manifest_step(self) -> Dict[str, Any]:
        generator = ManifestGenerator(self._require_graph(), optimize=self.config.optimize)
        path = generator.write(self.install_dir, self.config.manifest_name)
        return {"manifest": str(path)}

    def _require_graph(self) -> BuildGraph:
        if self.state.graph is None:
            raise PipelineError("Build graph has not been constructed", self.state.current_step)
        return self.state.graph

    def _generate_execution_summary(self):
        """Generate and log execution summary."""
        total_duration = time.time() - (self.state.start_time or time.time())

        self.logger.info("=" * 60)
        self.logger.info("BAKE SUMMARY")
        self.logger.info("=" * 60)
        self.logger.info(f"Total execution time: {total_duration:.2f}s")
        if self.state.graph is not None:
            self.logger.info(f"Tasks: {len(self.state.graph)}")
            self.logger.info(f"Outputs: {len(self.state.graph.producers)}")
        if self.state.run_summary is not None:
            self.logger.info(f"Executed: {self.state.run_summary.executed}")
            self.logger.info(f"Up to date: {self.state.run_summary.cached}")

        self.logger.info("Step execution times:")
        for step, result in self.state.step_results.items():
            status = "✓" if result.success else "✗"
            self.logger.info(f"  {status} {step.value}: {result.duration:.2f}s")

        self.logger.info("=" * 60)
