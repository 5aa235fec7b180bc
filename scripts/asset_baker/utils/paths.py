"""
Path helpers for asset names.

Output paths are derived verbatim from input paths, so input paths have to be
safe on case-insensitive filesystems (and for patch tools that assume one) and
inside Makefile-style dependency files, which use unescaped whitespace and a
handful of other characters as syntax.
"""

import logging
import posixpath
import string

from ..errors import InvalidPath

logger = logging.getLogger(__name__)

SEPARATOR = "/"

_ALLOWED = frozenset(string.ascii_lowercase + string.digits + "-_.")


def extensions(path: str) -> str:
    """
    Return every extension of a file name, starting at the first dot.

    ``extensions("shaders/foo.vf.glsl")`` is ``".vf.glsl"``, not ``".glsl"``.
    Names without a dot have no extension.
    """
    basename = posixpath.basename(path)
    index = basename.find(".")
    if index < 0:
        return ""
    return basename[index:]


def stem(path: str) -> str:
    """Return the basename with all extensions removed."""
    basename = posixpath.basename(path)
    index = basename.find(".")
    if index < 0:
        return basename
    return basename[:index]


def strip_extensions(path: str) -> str:
    """Return ``path`` with the extensions of its last component removed."""
    dirname = posixpath.dirname(path)
    if not dirname:
        return stem(path)
    return f"{dirname}{SEPARATOR}{stem(path)}"


def validate_path(path: str) -> None:
    """
    Reject upper case, doubled separators and anything outside ``[a-z0-9._-]``.

    Args:
        path: Asset path relative to the asset root, ``/`` separated

    Raises:
        InvalidPath: If the path is not safe to derive output names from
    """
    last_was_sep = False
    for char in path:
        if char == SEPARATOR:
            if last_was_sep:
                logger.error(f'{path} contains illegal substring: "{SEPARATOR}{SEPARATOR}"')
                raise InvalidPath(path, f'contains illegal substring "{SEPARATOR}{SEPARATOR}"')
            last_was_sep = True
        elif char in _ALLOWED:
            last_was_sep = False
        elif char.isupper():
            logger.error(f"{path}: path contains upper case characters")
            raise InvalidPath(path, "path contains upper case characters")
        else:
            logger.error(f"{path}: path contains illegal character: {char!r}")
            raise InvalidPath(path, f"path contains illegal character {char!r}")


def is_skipped(path: str) -> bool:
    """Check whether any component starts with an underscore."""
    return any(part.startswith("_") for part in path.split(SEPARATOR))
