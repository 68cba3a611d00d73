# SITEPUB Utilities Module
# Helper functions for path handling and content hashing

from sitepub.utils.hashing import (
    content_hash,
    document_hash,
    file_hash,
)
from sitepub.utils.paths import (
    atomic_write,
    ensure_dir,
    matches_any_pattern,
    matches_pattern,
    normalize_prefix,
    object_key,
)

__all__ = [
    # Paths
    "ensure_dir",
    "atomic_write",
    "object_key",
    "normalize_prefix",
    "matches_pattern",
    "matches_any_pattern",
    # Hashing
    "content_hash",
    "file_hash",
    "document_hash",
]
