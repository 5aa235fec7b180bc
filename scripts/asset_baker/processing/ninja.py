"""
Ninja build file generation.

Ninja acts as the host build engine: it runs the conversion tasks in parallel,
skips those whose inputs (including the files named in converter depfiles) are
unchanged, and finally copies every output into the install tree.
"""

import logging
import platform
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from jinja2 import Environment, FileSystemLoader, TemplateError

from ..graph.tasks import BuildGraph, ConversionTask

logger = logging.getLogger(__name__)

TEMPLATE_NAME = "build.ninja.j2"


class NinjaGenerationError(Exception):
    """Exception raised when the ninja file cannot be generated."""
    pass


def escape_path(path: Union[str, Path]) -> str:
    """Escape a path for use in a ninja ``build`` line."""
    return str(path).replace("$", "$$").replace(" ", "$ ").replace(":", "$:")


def escape_value(value: str) -> str:
    """Escape a variable value; only ``$`` is special there."""
    return value.replace("$", "$$")


def format_command(args: Sequence[str], windows: Optional[bool] = None) -> str:
    """Join a command line for the host shell."""
    if windows is None:
        windows = platform.system() == "Windows"
    if windows:
        return subprocess.list2cmdline(list(args))
    return shlex.join(args)


@dataclass
class NinjaEdge:
    """A rendered ``build`` statement."""
    rule: str
    outputs: List[str]
    inputs: List[str]
    description: str
    command: Optional[str] = None
    depfile: Optional[str] = None


@dataclass
class NinjaCopy:
    source: str
    target: str


class NinjaWriter:
    """Renders a build graph as a ``build.ninja`` file."""

    def __init__(self, template_dir: Optional[Union[str, Path]] = None, windows: Optional[bool] = None):
        """
        Initialize the writer.

        Args:
            template_dir: Directory containing ``build.ninja.j2``, defaults to the
                package templates
            windows: Format commands for ``cmd.exe``, detected from the platform by default
        """
        if template_dir is None:
            template_dir = Path(__file__).parent.parent / "templates"

        self.template_dir = Path(template_dir)
        self.windows = platform.system() == "Windows" if windows is None else windows
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False
        )

    @property
    def copy_command(self) -> str:
        if self.windows:
            return "cmd /c copy /Y $in $out"
        return "cp -f $in $out"

    def render(self, graph: BuildGraph, install_dir: Union[str, Path]) -> str:
        """
        Render the ninja file for a graph.

        Raises:
            NinjaGenerationError: If the template is missing or broken
        """
        layout = graph.layout
        edges = [self._edge(graph, task) for task in graph.tasks]
        installs = [
            NinjaCopy(source=escape_path(build_path), target=escape_path(install_path))
            for build_path, install_path in graph.install_plan(Path(install_dir))
        ]

        try:
            template = self.env.get_template(TEMPLATE_NAME)
            return template.render(
                asset_root=layout.asset_root,
                build_dir=escape_value(str(layout.build_dir)),
                copy_command=self.copy_command,
                edges=edges,
                installs=installs,
            )
        except TemplateError as e:
            raise NinjaGenerationError(f"Failed to render {TEMPLATE_NAME}: {e}")

    def write(self, graph: BuildGraph, install_dir: Union[str, Path],
              output_path: Optional[Union[str, Path]] = None) -> Path:
        """Render the ninja file and write it, by default to ``<build_dir>/build.ninja``."""
        output_path = Path(output_path) if output_path else graph.layout.build_dir / "build.ninja"
        content = self.render(graph, install_dir)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
        logger.info(f"Wrote {output_path} ({len(graph)} tasks)")
        return output_path

    def _edge(self, graph: BuildGraph, task: ConversionTask) -> NinjaEdge:
        layout = graph.layout
        outputs = [escape_path(layout.build_path(output)) for output in task.outputs]
        inputs = [escape_path(layout.source_path(path)) for path in task.inputs]

        if task.is_copy:
            return NinjaEdge(rule="copy", outputs=outputs, inputs=inputs, description=escape_value(task.name))

        depfile = None
        if task.depfile:
            depfile = escape_value(str(layout.build_path(task.depfile)))
        return NinjaEdge(
            rule="convert_deps" if depfile else "convert",
            outputs=outputs,
            inputs=inputs,
            description=escape_value(task.name),
            command=escape_value(format_command(task.command, self.windows)),
            depfile=depfile,
        )
