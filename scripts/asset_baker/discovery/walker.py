"""
Recursive asset tree walker.

The walker keeps a stack of the directories it currently has open. Each frame
remembers the regular files listed in its directory, which lets the overlay
resolver check every ancestor for config files without touching the
filesystem again.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterator, List, Optional, Tuple, Union

from ..errors import UnsupportedExtension
from ..utils.paths import SEPARATOR, extensions, is_skipped, stem, validate_path
from .classifier import AssetKind, classify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetEntry:
    """A discovered file that will be baked."""
    relative_path: Tuple[str, ...]
    extension_key: str
    kind: AssetKind

    @classmethod
    def from_path(cls, path: str) -> "AssetEntry":
        """Build an entry for a ``/`` separated relative path."""
        basename = path.rsplit(SEPARATOR, 1)[-1]
        return cls(tuple(path.split(SEPARATOR)), extensions(basename), classify(basename))

    @property
    def path(self) -> str:
        return SEPARATOR.join(self.relative_path)

    @property
    def basename(self) -> str:
        return self.relative_path[-1]

    @property
    def dirname(self) -> str:
        return SEPARATOR.join(self.relative_path[:-1])

    @property
    def stem(self) -> str:
        return stem(self.basename)


@dataclass(frozen=True)
class DirectoryFrame:
    """
    An open directory on the walk stack.

    ``files`` holds the regular files that are walked. ``linked`` holds names
    that are symlinks to regular files: they are never baked, but overlay
    lookups see them.
    """
    path: str
    files: FrozenSet[str]
    linked: FrozenSet[str] = frozenset()

    def contains(self, name: str) -> bool:
        return name in self.files or name in self.linked

    def join(self, name: str) -> str:
        if not self.path:
            return name
        return f"{self.path}{SEPARATOR}{name}"


@dataclass(frozen=True)
class WalkResult:
    """An accepted asset together with the directories enclosing it, root first."""
    entry: AssetEntry
    ancestors: Tuple[DirectoryFrame, ...]


@dataclass
class WalkStats:
    """Counters for a single walk."""
    files_seen: int = 0
    overlays: int = 0
    ignored: int = 0
    skipped: int = 0
    accepted: int = 0
    by_kind: dict = field(default_factory=dict)


class TreeWalker:
    """Enumerates bakeable assets below an asset root."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.stats = WalkStats()

    def walk(self) -> Iterator[WalkResult]:
        """
        Yield every accepted asset below the root.

        Files are classified first, then their path is validated, and only then
        are entries under ``_``-prefixed components skipped. Overlays and
        ignored files never reach the caller.

        Raises:
            UnsupportedExtension: If a file has no known kind
            InvalidPath: If an asset path is unsafe
            OSError: If the tree cannot be read
        """
        self.stats = WalkStats()
        stack: List[DirectoryFrame] = []
        yield from self._walk_directory(self.root, "", stack)

    def _walk_directory(self, directory: Path, relative: str,
                        stack: List[DirectoryFrame]) -> Iterator[WalkResult]:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)

        files = frozenset(e.name for e in entries if e.is_file(follow_symlinks=False))
        linked = frozenset(e.name for e in entries if e.is_symlink() and e.is_file())
        frame = DirectoryFrame(relative, files, linked)
        stack.append(frame)
        try:
            for dir_entry in entries:
                child = frame.join(dir_entry.name)
                if dir_entry.is_dir(follow_symlinks=False):
                    yield from self._walk_directory(Path(dir_entry.path), child, stack)
                elif dir_entry.name in files:
                    result = self._visit_file(child, dir_entry.name, stack)
                    if result is not None:
                        yield result
        finally:
            stack.pop()

    def _visit_file(self, path: str, basename: str,
                    stack: List[DirectoryFrame]) -> Optional[WalkResult]:
        self.stats.files_seen += 1
        kind = classify(basename)

        if kind is AssetKind.OVERLAY:
            self.stats.overlays += 1
            return None
        if kind is AssetKind.IGNORED:
            self.stats.ignored += 1
            return None
        if kind is AssetKind.UNSUPPORTED:
            ext = extensions(basename)
            logger.error(f'{path}: cannot bake unsupported extension "{ext}"')
            raise UnsupportedExtension(path, ext)

        # Output paths are derived from input paths, so checking the input is sufficient
        validate_path(path)

        if is_skipped(path):
            self.stats.skipped += 1
            logger.debug(f"Skipping {path} (underscore component)")
            return None

        entry = AssetEntry(tuple(path.split(SEPARATOR)), extensions(basename), kind)
        self.stats.accepted += 1
        self.stats.by_kind[kind] = self.stats.by_kind.get(kind, 0) + 1
        return WalkResult(entry, tuple(stack))
