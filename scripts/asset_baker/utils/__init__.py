"""
Utility modules for asset path handling and zon parsing.
"""

from .paths import extensions, stem, strip_extensions, validate_path, is_skipped
from .zon import ZonError

__all__ = [
    "extensions",
    "stem",
    "strip_extensions",
    "validate_path",
    "is_skipped",
    "ZonError",
]
