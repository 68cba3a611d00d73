# SITEPUB Assets
# Local files destined for publication

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sitepub.errors import ScanError
from sitepub.publish.content_types import ContentTypeResolver
from sitepub.utils.hashing import file_hash


@dataclass(frozen=True)
class Asset:
    """
    A local file destined for publication.

    Identified by its POSIX relative path; immutable for one publish run.
    """

    relative_path: str
    path: Path
    content_type: str
    fingerprint: str
    size: int

    def read_bytes(self) -> bytes:
        """Read the asset content."""
        return self.path.read_bytes()


def load_asset(root: Path, relative_path: str, resolver: ContentTypeResolver) -> Asset:
    """
    Build an Asset for a scanned file.

    Args:
        root: Scan root.
        relative_path: POSIX relative path from the scanner.
        resolver: Content type resolver.

    Returns:
        Asset with fingerprint and size.

    Raises:
        ScanError: If the file vanished or cannot be read.
    """
    path = root.joinpath(*relative_path.split("/"))
    try:
        fingerprint = file_hash(path)
        size = path.stat().st_size
    except OSError as e:
        raise ScanError(f"Cannot read asset {relative_path}: {e}") from e

    if fingerprint is None:
        raise ScanError(f"Asset disappeared during scan: {relative_path}")

    return Asset(
        relative_path=relative_path,
        path=path,
        content_type=resolver.resolve(relative_path),
        fingerprint=fingerprint,
        size=size,
    )


def build_assets(
    root: Path,
    relative_paths: list[str],
    resolver: Optional[ContentTypeResolver] = None,
    *,
    workers: int = 4,
) -> list[Asset]:
    """
    Fingerprint and type every scanned path.

    Hashing runs on a thread pool; the returned list keeps the input order.

    Args:
        root: Scan root.
        relative_paths: Ordered relative paths from the scanner.
        resolver: Content type resolver (default table if None).
        workers: Maximum hashing threads.

    Returns:
        Assets in the same order as relative_paths.
    """
    resolver = resolver or ContentTypeResolver()
    root = Path(root)

    if workers <= 1 or len(relative_paths) <= 1:
        return [load_asset(root, rel, resolver) for rel in relative_paths]

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sitepub-hash") as pool:
        return list(pool.map(lambda rel: load_asset(root, rel, resolver), relative_paths))
