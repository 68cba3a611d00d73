# SITEPUB Content Types
# Extension to MIME type mapping for published objects

from collections.abc import Mapping
from pathlib import PurePosixPath
from typing import Optional

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES: dict[str, str] = {
    "html": "text/html",
    "css": "text/css",
    "js": "application/javascript",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
}


def get_extension(path: str) -> Optional[str]:
    """
    Extract the final extension of a path.

    Only the last path component is considered. A name without a dot has no
    extension; ``archive.tar.gz`` has extension ``gz``.

    Args:
        path: Relative path (POSIX or native separators).

    Returns:
        Extension without the dot, or None.
    """
    name = PurePosixPath(path.replace("\\", "/")).name
    if "." not in name:
        return None
    return name.rsplit(".", 1)[1]


class ContentTypeResolver:
    """Resolves MIME types from file extensions using a fixed table."""

    def __init__(self, overrides: Optional[Mapping[str, str]] = None):
        """
        Initialize resolver.

        Args:
            overrides: Extra or replacement extension mappings (".webp" or "webp").
        """
        self.table = dict(CONTENT_TYPES)
        for ext, content_type in (overrides or {}).items():
            self.table[ext.lower().lstrip(".")] = content_type

    def resolve(self, path: str) -> str:
        """Return the MIME type for *path*, falling back to application/octet-stream."""
        ext = get_extension(path)
        if ext is None:
            return DEFAULT_CONTENT_TYPE
        return self.table.get(ext.lower(), DEFAULT_CONTENT_TYPE)


_default_resolver = ContentTypeResolver()


def resolve_content_type(path: str) -> str:
    """Resolve a content type with the fixed table only."""
    return _default_resolver.resolve(path)
