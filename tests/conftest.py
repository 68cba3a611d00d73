# SITEPUB Test Fixtures
# Pytest fixtures for sitepub tests

import tempfile
from collections.abc import Generator, Sequence
from pathlib import Path
from typing import Optional

import pytest
import yaml

from sitepub.config.schema import StorageBackend, StorageTarget
from sitepub.errors import CdnError
from sitepub.storage.base import CdnService
from sitepub.storage.local import LocalDirectoryStorage

ACCOUNT_ID = "123456789012"
DISTRIBUTION_ID = "E123ABC"


class RecordingCdn(CdnService):
    """CDN double that records invalidations and error route pushes."""

    def __init__(self, distribution_id: str = DISTRIBUTION_ID, fail_invalidation: bool = False):
        self.distribution_id = distribution_id
        self.fail_invalidation = fail_invalidation
        self.invalidations: list[list[str]] = []
        self.applied_routes: list[list] = []

    def get_distribution_identifier(self) -> str:
        return self.distribution_id

    def invalidate(self, keys: Sequence[str]) -> str:
        if self.fail_invalidation:
            raise CdnError("invalidation endpoint unavailable")
        self.invalidations.append(list(keys))
        return f"I{len(self.invalidations)}"

    def apply_error_routes(self, routes: Sequence) -> bool:
        self.applied_routes.append(list(routes))
        return True


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("SITEPUB_CONFIG", raising=False)
    return home


@pytest.fixture
def site_dir(temp_dir: Path) -> Path:
    """Create a built site with index.html, error.html and img/logo.png."""
    site = temp_dir / "site"
    (site / "img").mkdir(parents=True)
    (site / "index.html").write_text("<html><body>Home</body></html>", encoding="utf-8")
    (site / "error.html").write_text("<html><body>Not found</body></html>", encoding="utf-8")
    (site / "img" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\nlogo")
    return site


@pytest.fixture
def bucket_dir(temp_dir: Path) -> Path:
    """Directory backing the local storage service."""
    return temp_dir / "bucket"


@pytest.fixture
def local_storage(bucket_dir: Path) -> LocalDirectoryStorage:
    """Local directory storage service."""
    return LocalDirectoryStorage(bucket_dir)


@pytest.fixture
def storage_target(bucket_dir: Path) -> StorageTarget:
    """Storage target for the local backend."""
    return StorageTarget(
        backend=StorageBackend.LOCAL,
        bucket="site-bucket",
        account_id=ACCOUNT_ID,
        local_path=str(bucket_dir),
    )


@pytest.fixture
def cdn() -> RecordingCdn:
    """Recording CDN double."""
    return RecordingCdn()


@pytest.fixture
def sample_config(site_dir: Path, bucket_dir: Path) -> dict:
    """Create sample configuration dict for the local backend."""
    return {
        "site": {"root": str(site_dir)},
        "storage": {
            "backend": "local",
            "bucket": "site-bucket",
            "account_id": ACCOUNT_ID,
            "local_path": str(bucket_dir),
        },
        "cdn": {
            "backend": "none",
            "distribution_id": DISTRIBUTION_ID,
        },
        "scan": {"exclude": [".DS_Store"]},
        "upload": {"max_concurrency": 2, "backoff_base": 0},
        "output": {"verbose": False, "colored": False},
    }


def write_config(path: Path, data: Optional[dict]) -> Path:
    """Write a configuration dict as YAML."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False)
    return path


@pytest.fixture
def config_file(temp_home: Path, sample_config: dict) -> Path:
    """Create a configuration file in the default location."""
    return write_config(temp_home / ".config" / "sitepub" / "config.yaml", sample_config)


@pytest.fixture
def failing_cdn() -> RecordingCdn:
    """CDN double whose invalidations fail."""
    return RecordingCdn(fail_invalidation=True)
