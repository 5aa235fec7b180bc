"""
Shared pieces of the external converter boundary.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEPFILE_SUFFIX = ".d"


@dataclass(frozen=True)
class BuildLayout:
    """Where sources are read from and where converters write their outputs."""
    asset_root: Path
    build_dir: Path

    def source_path(self, relative: str) -> Path:
        return self.asset_root / relative

    def build_path(self, relative: str) -> Path:
        return self.build_dir / relative


def depfile_for(output: str) -> str:
    """Dependency file name for a converter's primary output."""
    return f"{output}{DEPFILE_SUFFIX}"


class ConverterError(Exception):
    """Raised when an external converter exits unsuccessfully."""

    def __init__(self, task: str, returncode: int, stderr: Optional[str] = None):
        message = f"{task}: converter exited with status {returncode}"
        if stderr:
            message = f"{message}\n{stderr.strip()}"
        super().__init__(message)
        self.task = task
        self.returncode = returncode
        self.stderr = stderr
