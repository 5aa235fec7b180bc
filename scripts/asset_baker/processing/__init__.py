"""
Host engines and outputs for a build graph: ninja files, the local runner and the manifest.
"""

from .ninja import NinjaWriter, NinjaGenerationError
from .runner import LocalRunner, RunSummary, TaskOutcome, TaskStatus, parse_depfile
from .manifest import ManifestGenerator

__all__ = [
    "NinjaWriter",
    "NinjaGenerationError",
    "LocalRunner",
    "RunSummary",
    "TaskOutcome",
    "TaskStatus",
    "parse_depfile",
    "ManifestGenerator",
]
