"""
Error hierarchy for graph construction.

Every error here is fatal: the bake aborts before any converter runs.
"""

from typing import Optional


class BakeError(Exception):
    """Base exception for bake errors."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class UnsupportedExtension(BakeError):
    """Raised when a file has no known asset kind."""

    def __init__(self, path: str, extension: str):
        super().__init__(f'{path}: cannot bake unsupported extension "{extension}"', path)
        self.extension = extension


class InvalidPath(BakeError):
    """Raised when an asset path contains illegal characters or structure."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}", path)
        self.reason = reason


class UnexpectedConfig(BakeError):
    """Raised when an overlay applies to an asset kind that does not accept one."""

    def __init__(self, path: str, overlay_path: str, kind: str):
        super().__init__(f"{overlay_path}: {kind} assets don't accept zon config (applies to {path})", path)
        self.overlay_path = overlay_path


class OutputCollision(BakeError):
    """Raised when two assets derive the same output path."""

    def __init__(self, output: str, first: str, second: str):
        super().__init__(f"{output}: output produced by both {first} and {second}", output)
        self.output = output
        self.first = first
        self.second = second
