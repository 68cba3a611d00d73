# SITEPUB Path Utilities
# Atomic writes, object key mapping and pattern matching

import fnmatch
import os
import tempfile
from pathlib import Path, PurePosixPath


def ensure_dir(path: Path) -> Path:
    """
    Ensure directory exists, creating if necessary.

    Args:
        path: Directory path.

    Returns:
        The path that was ensured.
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write(path: Path, content: str | bytes, *, encoding: str = "utf-8") -> None:
    """
    Atomically write content to file.

    Uses a temporary file in the same directory and an atomic rename, so
    readers never observe a half-written file.

    Args:
        path: Target file path.
        content: Content to write (str or bytes).
        encoding: Encoding for string content (default utf-8).
    """
    ensure_dir(path.parent)

    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        if isinstance(content, str):
            with os.fdopen(fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
        os.replace(temp_path, path)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def object_key(relative_path: str, prefix: str = "") -> str:
    """
    Map an asset relative path to a remote object key.

    Args:
        relative_path: POSIX relative path of the asset.
        prefix: Optional key prefix of the storage target.

    Returns:
        Object key.
    """
    prefix = normalize_prefix(prefix)
    return f"{prefix}{relative_path.lstrip('/')}"


def normalize_prefix(prefix: str) -> str:
    """Prefixes are stored without a leading slash and with a trailing one."""
    prefix = prefix.strip("/")
    return f"{prefix}/" if prefix else ""


def matches_pattern(path: str | Path, pattern: str) -> bool:
    """
    Check if path matches a glob pattern.

    Supports:
    - * for any characters within path component
    - ** for any path components
    - ? for single character

    Bare patterns without a slash also match against the final path
    component, so ``.DS_Store`` excludes the file at any depth.

    Args:
        path: Path to check.
        pattern: Glob pattern.

    Returns:
        True if path matches pattern.
    """
    path_str = str(path)

    if "**" in pattern:
        parts = pattern.split("**")
        if len(parts) == 2:
            prefix, suffix = parts
            if prefix and not fnmatch.fnmatch(path_str, f"{prefix}*"):
                return False
            if suffix:
                suffix = suffix.lstrip("/")
                if not fnmatch.fnmatch(path_str, f"*{suffix}"):
                    return False
            return True

    if fnmatch.fnmatch(path_str, pattern):
        return True
    if "/" not in pattern:
        return fnmatch.fnmatch(PurePosixPath(path_str).name, pattern)
    return False


def matches_any_pattern(path: str | Path, patterns: list[str]) -> bool:
    """
    Check if path matches any of the given patterns.

    Args:
        path: Path to check.
        patterns: List of glob patterns.

    Returns:
        True if path matches any pattern.
    """
    return any(matches_pattern(path, p) for p in patterns)
