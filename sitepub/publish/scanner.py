# SITEPUB File Set Scanner
# Enumerates a local asset tree into a stable ordered set of relative paths

import os
from collections.abc import Callable
from pathlib import Path
from typing import Optional

from sitepub.errors import ScanError
from sitepub.utils.paths import matches_any_pattern

IgnorePredicate = Callable[[str], bool]


def ignore_patterns(patterns: list[str]) -> Optional[IgnorePredicate]:
    """
    Build an ignore predicate from glob patterns.

    Args:
        patterns: Glob patterns matched against the relative path and its name.

    Returns:
        Predicate, or None when there are no patterns.
    """
    if not patterns:
        return None
    patterns = list(patterns)
    return lambda rel_path: matches_any_pattern(rel_path, patterns)


class FileSetScanner:
    """
    Walks a directory tree and returns sorted POSIX relative paths of files.

    Symbolic links are followed; a link that points back into the directory
    chain currently being walked is reported as a cycle.
    """

    def __init__(self, ignore: Optional[IgnorePredicate] = None):
        """
        Initialize scanner.

        Args:
            ignore: Predicate receiving a relative path; True skips the entry
                    (and the whole subtree for directories). Default: keep all.
        """
        self.ignore = ignore

    def scan(self, root: Path) -> list[str]:
        """
        Scan *root* and return relative file paths in lexicographic order.

        Raises:
            ScanError: If the root is missing or unreadable, or a symlink cycle exists.
        """
        root = Path(root)
        if not root.is_dir():
            raise ScanError(f"Asset root is not a readable directory: {root}")

        found: list[str] = []
        real_root = os.path.realpath(root)
        self._walk(root, "", frozenset({real_root}), found)
        return sorted(found)

    def _walk(self, directory: Path, rel_dir: str, chain: frozenset[str], found: list[str]) -> None:
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            raise ScanError(f"Cannot read directory {directory}: {e}") from e

        for entry in entries:
            rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name

            if self.ignore is not None and self.ignore(rel_path):
                continue

            try:
                is_dir = entry.is_dir(follow_symlinks=True)
                is_file = not is_dir and entry.is_file(follow_symlinks=True)
            except OSError as e:
                raise ScanError(f"Cannot stat {rel_path}: {e}") from e

            if is_dir:
                real = os.path.realpath(entry.path)
                if real in chain:
                    raise ScanError(f"Symbolic link cycle detected at {rel_path} -> {real}")
                self._walk(Path(entry.path), rel_path, chain | {real}, found)
            elif is_file:
                found.append(rel_path)
            # Broken links, sockets and fifos are not publishable


def scan_paths(root: Path, *, ignore: Optional[IgnorePredicate] = None) -> list[str]:
    """Convenience wrapper around FileSetScanner.scan."""
    return FileSetScanner(ignore=ignore).scan(root)
