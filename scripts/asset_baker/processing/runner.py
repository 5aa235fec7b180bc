"""
Local task runner.

A small stand-in for a host build engine: runs every conversion task of a
build graph in a thread pool, skips tasks whose inputs are unchanged since the
last successful run, and copies the declared outputs into the install tree.
"""

import hashlib
import json
import logging
import shutil
import subprocess
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..converters.base import ConverterError
from ..graph.tasks import BuildGraph, ConversionTask

logger = logging.getLogger(__name__)

CACHE_INDEX_NAME = ".bake-cache.json"
CACHE_VERSION = 1


class TaskStatus(Enum):
    EXECUTED = "executed"
    CACHED = "cached"
    FAILED = "failed"


@dataclass
class TaskOutcome:
    """Result of running (or skipping) one task."""
    task: ConversionTask
    status: TaskStatus
    duration: float = 0.0
    returncode: int = 0
    stderr: str = ""
    cache_entry: Optional[Dict[str, Any]] = None


@dataclass
class RunSummary:
    """Aggregated results of a run."""
    outcomes: List[TaskOutcome] = field(default_factory=list)
    installed: int = 0

    def _count(self, status: TaskStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def executed(self) -> int:
        return self._count(TaskStatus.EXECUTED)

    @property
    def cached(self) -> int:
        return self._count(TaskStatus.CACHED)

    @property
    def failed(self) -> List[TaskOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is TaskStatus.FAILED]


def parse_depfile(text: str) -> List[str]:
    """
    Return the prerequisites listed in a Makefile-style dependency file.

    Handles line continuations, ``\\ `` escaped spaces, ``$$`` and multiple
    rules. Targets are dropped.
    """
    text = text.replace("\\\r\n", " ").replace("\\\n", " ")
    deps: List[str] = []
    for line in text.splitlines():
        tokens = _split_depfile_line(line)
        for index, token in enumerate(tokens):
            if token.endswith(":"):
                deps.extend(tokens[index + 1:])
                break
    return deps


def _split_depfile_line(line: str) -> List[str]:
    tokens: List[str] = []
    current: List[str] = []
    i = 0
    while i < len(line):
        char = line[i]
        if char == "\\" and i + 1 < len(line) and line[i + 1] in " #":
            current.append(line[i + 1])
            i += 2
            continue
        if char == "$" and line[i + 1:i + 2] == "$":
            current.append("$")
            i += 2
            continue
        if char.isspace():
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)
        i += 1
    if current:
        tokens.append("".join(current))
    return tokens


class LocalRunner:
    """Executes a build graph on this machine."""

    def __init__(self, graph: BuildGraph, jobs: int = 1):
        """
        Initialize the runner.

        Args:
            graph: Build graph to execute
            jobs: Maximum number of converters running at once
        """
        self.graph = graph
        self.layout = graph.layout
        self.jobs = max(1, jobs)
        self.cache_path = self.layout.build_dir / CACHE_INDEX_NAME
        self._cache_index: Dict[str, Dict[str, Any]] = {}

    def run(self) -> RunSummary:
        """
        Execute every task that is out of date.

        Raises:
            ConverterError: If any converter failed, after all running tasks finished
            OSError: If a converter cannot be started or a file cannot be copied
        """
        self._load_cache_index()
        summary = RunSummary()
        pending: List[ConversionTask] = []
        start_errors: Dict[str, OSError] = {}

        for task in self.graph.tasks:
            if self._is_up_to_date(task):
                summary.outcomes.append(TaskOutcome(task, TaskStatus.CACHED))
            else:
                pending.append(task)

        logger.info(f"{len(pending)} of {len(self.graph)} tasks out of date, running with {self.jobs} jobs")

        try:
            with ThreadPoolExecutor(max_workers=self.jobs) as pool:
                futures = {pool.submit(self._run_task, task): task for task in pending}
                for future in as_completed(futures):
                    task = futures[future]
                    try:
                        outcome = future.result()
                    except OSError as e:
                        logger.error(f"{task.name} could not be run: {e}")
                        start_errors[task.name] = e
                        outcome = TaskOutcome(task, TaskStatus.FAILED, stderr=str(e))
                    summary.outcomes.append(outcome)
                    if outcome.cache_entry is not None:
                        self._cache_index[outcome.task.name] = outcome.cache_entry
        finally:
            self._save_cache_index()

        if start_errors:
            raise start_errors[min(start_errors)]

        failed = summary.failed
        if failed:
            for outcome in failed:
                logger.error(f"{outcome.task.name} failed with status {outcome.returncode}")
            first = min(failed, key=lambda o: o.task.name)
            raise ConverterError(first.task.name, first.returncode, first.stderr)

        return summary

    def install(self, install_dir: Union[str, Path]) -> int:
        """Copy every declared output into the install tree and return the count."""
        count = 0
        for build_path, install_path in self.graph.install_plan(Path(install_dir)):
            install_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(build_path, install_path)
            count += 1
        logger.info(f"Installed {count} files into {install_dir}")
        return count

    def _run_task(self, task: ConversionTask) -> TaskOutcome:
        start = time.time()
        for output in task.outputs:
            self.layout.build_path(output).parent.mkdir(parents=True, exist_ok=True)

        if task.is_copy:
            shutil.copy2(self.layout.source_path(task.source), self.layout.build_path(task.outputs[0]))
        else:
            logger.debug(f"Running {task.name}: {' '.join(task.command)}")
            result = subprocess.run(list(task.command), capture_output=True, text=True)
            if result.returncode != 0:
                return TaskOutcome(
                    task,
                    TaskStatus.FAILED,
                    duration=time.time() - start,
                    returncode=result.returncode,
                    stderr=result.stderr,
                )

        deps = self._read_deps(task)
        entry = {"stamp": self._stamp(task, deps), "deps": deps}
        duration = time.time() - start
        logger.info(f"{task.name} finished in {duration:.2f}s")
        return TaskOutcome(task, TaskStatus.EXECUTED, duration=duration, cache_entry=entry)

    def _is_up_to_date(self, task: ConversionTask) -> bool:
        entry = self._cache_index.get(task.name)
        if entry is None:
            return False
        if not all(self.layout.build_path(output).exists() for output in task.outputs):
            return False
        return entry.get("stamp") == self._stamp(task, entry.get("deps", []))

    def _read_deps(self, task: ConversionTask) -> List[str]:
        if not task.depfile:
            return []
        depfile = self.layout.build_path(task.depfile)
        if not depfile.exists():
            logger.warning(f"{task.name}: converter did not write {depfile}")
            return []
        return parse_depfile(depfile.read_text(encoding="utf-8"))

    def _stamp(self, task: ConversionTask, deps: List[str]) -> str:
        """Hash the command, the declared inputs and the depfile prerequisites."""
        digest = hashlib.sha256()
        digest.update(json.dumps(task.command).encode("utf-8"))
        paths = [self.layout.source_path(path) for path in task.inputs]
        paths.extend(Path(dep) for dep in deps)
        for path in paths:
            digest.update(str(path).encode("utf-8"))
            try:
                digest.update(path.read_bytes())
            except FileNotFoundError:
                digest.update(b"\0missing")
        return digest.hexdigest()

    def _load_cache_index(self) -> None:
        self._cache_index = {}
        if not self.cache_path.exists():
            return
        try:
            with open(self.cache_path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable cache index {self.cache_path}: {e}")
            return
        if data.get("version") == CACHE_VERSION:
            self._cache_index = data.get("tasks", {})

    def _save_cache_index(self) -> None:
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.cache_path, "w") as f:
            json.dump({"version": CACHE_VERSION, "tasks": self._cache_index}, f, indent=2, sort_keys=True)
