# SITEPUB Local Directory Storage
# Storage backend that publishes into a local directory

import json
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import yaml
from filelock import FileLock, Timeout

from sitepub.errors import PolicyConflictError, StorageError
from sitepub.storage.base import PolicyRecord, PublicAccessBlock, RemoteObject, StorageService
from sitepub.utils.hashing import document_hash
from sitepub.utils.paths import atomic_write, ensure_dir

INDEX_DIR = ".sitepub"
INDEX_FILE = "index.yaml"
LOCK_FILE = "index.lock"
LOCK_TIMEOUT = 30.0


@dataclass
class ObjectState:
    """Stored metadata for a single object."""

    key: str
    content_type: Optional[str] = None
    fingerprint: Optional[str] = None
    revision: Optional[str] = None
    size: int = 0
    last_modified: Optional[str] = None  # ISO format datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ObjectState":
        """Create from dictionary."""
        return cls(
            key=data.get("key", ""),
            content_type=data.get("content_type"),
            fingerprint=data.get("fingerprint"),
            revision=data.get("revision"),
            size=data.get("size", 0),
            last_modified=data.get("last_modified"),
        )

    def to_remote(self) -> RemoteObject:
        return RemoteObject(
            key=self.key,
            content_type=self.content_type,
            fingerprint=self.fingerprint,
            revision=self.revision,
            size=self.size,
        )


@dataclass
class StorageIndex:
    """
    Complete metadata index of a local storage directory.

    Holds object metadata, the access policy and the public-access toggles.
    """

    version: str = "1.0"
    generation: int = 0
    objects: dict[str, ObjectState] = field(default_factory=dict)
    policy: Optional[dict[str, Any]] = None
    public_access_block: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "version": self.version,
            "generation": self.generation,
            "objects": {key: obj.to_dict() for key, obj in self.objects.items()},
            "policy": self.policy,
            "public_access_block": self.public_access_block,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StorageIndex":
        """Create from dictionary."""
        objects = {key: ObjectState.from_dict(obj) for key, obj in (data.get("objects") or {}).items()}
        return cls(
            version=data.get("version", "1.0"),
            generation=data.get("generation", 0),
            objects=objects,
            policy=data.get("policy"),
            public_access_block=data.get("public_access_block") or {},
        )


class LocalDirectoryStorage(StorageService):
    """
    Storage service backed by a local directory.

    Objects are written as plain files under ``root``; their metadata lives in
    ``root/.sitepub/index.yaml``. All writes are atomic, and every
    load-modify-save of the index holds ``root/.sitepub/index.lock``, so
    several instances or processes can publish into the same directory.
    """

    def __init__(self, root: Path):
        """
        Initialize local storage.

        Args:
            root: Directory objects are published into.
        """
        self.root = Path(root)
        self.index_path = self.root / INDEX_DIR / INDEX_FILE
        self.lock_path = self.root / INDEX_DIR / LOCK_FILE
        self._lock = threading.RLock()
        self._file_lock = FileLock(str(self.lock_path), timeout=LOCK_TIMEOUT)

    @property
    def resource_name(self) -> str:
        return f"local:{self.root.resolve()}"

    def load(self) -> StorageIndex:
        """Load the index from disk."""
        if not self.index_path.exists():
            return StorageIndex()

        try:
            with open(self.index_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise StorageError(f"Cannot read storage index {self.index_path}: {e}") from e

        if data is None:
            return StorageIndex()
        return StorageIndex.from_dict(data)

    def save(self, index: StorageIndex) -> None:
        """Write the index to disk."""
        content = yaml.safe_dump(index.to_dict(), default_flow_style=False, sort_keys=False, allow_unicode=True)
        try:
            atomic_write(self.index_path, content)
        except OSError as e:
            raise StorageError(f"Cannot write storage index {self.index_path}: {e}") from e

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the index lock across threads and processes."""
        with self._lock:
            try:
                ensure_dir(self.lock_path.parent)
                self._file_lock.acquire()
            except Timeout as e:
                raise StorageError(f"Timed out waiting for storage lock {self.lock_path}") from e
            except OSError as e:
                raise StorageError(f"Cannot lock storage index {self.lock_path}: {e}") from e
            try:
                yield
            finally:
                self._file_lock.release()

    def list(self, prefix: str = "") -> list[RemoteObject]:
        with self._lock:
            index = self.load()
        return [obj.to_remote() for key, obj in sorted(index.objects.items()) if key.startswith(prefix)]

    def put(self, key: str, body: bytes, content_type: str, fingerprint: str) -> RemoteObject:
        target = self._object_path(key)

        with self.locked():
            try:
                atomic_write(target, body)
            except OSError as e:
                raise StorageError(f"Cannot write object {key}: {e}") from e

            index = self.load()
            index.generation += 1
            state = ObjectState(
                key=key,
                content_type=content_type,
                fingerprint=fingerprint,
                revision=str(index.generation),
                size=len(body),
                last_modified=datetime.now().isoformat(),
            )
            index.objects[key] = state
            self.save(index)

        return state.to_remote()

    def set_public_access_block(self, all_blocked: bool) -> PublicAccessBlock:
        with self.locked():
            index = self.load()
            index.public_access_block = {
                "BlockPublicAcls": all_blocked,
                "IgnorePublicAcls": all_blocked,
                "BlockPublicPolicy": all_blocked,
                "RestrictPublicBuckets": all_blocked,
            }
            self.save(index)
            return self.get_public_access_block()

    def get_public_access_block(self) -> PublicAccessBlock:
        """Return the stored public-access toggles."""
        toggles = self.load().public_access_block
        return PublicAccessBlock(
            block_public_acls=toggles.get("BlockPublicAcls", False),
            ignore_public_acls=toggles.get("IgnorePublicAcls", False),
            block_public_policy=toggles.get("BlockPublicPolicy", False),
            restrict_public_buckets=toggles.get("RestrictPublicBuckets", False),
        )

    def get_policy(self) -> PolicyRecord:
        with self._lock:
            policy = self.load().policy
        return PolicyRecord(document=policy, revision=_policy_revision(policy))

    def put_policy(self, document: dict[str, Any], expected_revision: str) -> str:
        with self.locked():
            index = self.load()
            current = _policy_revision(index.policy)
            if current != expected_revision:
                raise PolicyConflictError(
                    f"Policy revision changed (expected {expected_revision or 'none'}, found {current or 'none'})"
                )
            index.policy = document
            self.save(index)
            return _policy_revision(document)

    def read_object(self, key: str) -> bytes:
        """Return the stored bytes of an object."""
        try:
            return self._object_path(key).read_bytes()
        except OSError as e:
            raise StorageError(f"Cannot read object {key}: {e}") from e

    def _object_path(self, key: str) -> Path:
        parts = [part for part in key.split("/") if part]
        if not parts or parts[0] == INDEX_DIR or any(part == ".." for part in parts):
            raise StorageError(f"Invalid object key: {key!r}")
        return ensure_dir(self.root).joinpath(*parts)


def _policy_revision(policy: Optional[dict[str, Any]]) -> str:
    if policy is None:
        return ""
    return document_hash(json.dumps(policy, sort_keys=True))
