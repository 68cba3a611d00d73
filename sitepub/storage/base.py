# SITEPUB Storage Collaborators
# Abstract interfaces for object storage and CDN services

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from sitepub.publish.routing import ErrorRoute


@dataclass(frozen=True)
class RemoteObject:
    """Published counterpart of an asset as reported by the storage service."""

    key: str
    content_type: Optional[str] = None
    fingerprint: Optional[str] = None
    revision: Optional[str] = None
    size: int = 0


@dataclass(frozen=True)
class PublicAccessBlock:
    """Effective public-access toggles of a storage target."""

    block_public_acls: bool = False
    ignore_public_acls: bool = False
    block_public_policy: bool = False
    restrict_public_buckets: bool = False

    @classmethod
    def all_blocked(cls) -> PublicAccessBlock:
        return cls(True, True, True, True)

    @property
    def fully_blocked(self) -> bool:
        """True only when every toggle blocks public access."""
        return all(
            (
                self.block_public_acls,
                self.ignore_public_acls,
                self.block_public_policy,
                self.restrict_public_buckets,
            )
        )

    @property
    def open_toggles(self) -> list[str]:
        """Names of toggles that do not block public access."""
        return [name for name, value in self.to_dict().items() if not value]

    def to_dict(self) -> dict[str, bool]:
        return {
            "BlockPublicAcls": self.block_public_acls,
            "IgnorePublicAcls": self.ignore_public_acls,
            "BlockPublicPolicy": self.block_public_policy,
            "RestrictPublicBuckets": self.restrict_public_buckets,
        }


@dataclass(frozen=True)
class PolicyRecord:
    """Current access policy and the revision token used for conditional writes."""

    document: Optional[dict[str, Any]]
    revision: str = ""


class StorageService(ABC):
    """Object storage collaborator consumed by the publish engine."""

    @abstractmethod
    def list(self, prefix: str = "") -> list[RemoteObject]:
        """List all objects under *prefix* with their stored metadata."""

    @abstractmethod
    def put(self, key: str, body: bytes, content_type: str, fingerprint: str) -> RemoteObject:
        """Upload an object, storing the fingerprint alongside it."""

    @abstractmethod
    def set_public_access_block(self, all_blocked: bool) -> PublicAccessBlock:
        """Set the public-access toggles and return the effective configuration."""

    @abstractmethod
    def get_policy(self) -> PolicyRecord:
        """Return the current access policy and its revision."""

    @abstractmethod
    def put_policy(self, document: dict[str, Any], expected_revision: str) -> str:
        """
        Replace the access policy if its revision still matches.

        Raises:
            PolicyConflictError: If another writer changed the policy.

        Returns:
            New revision token.
        """

    @property
    def resource_name(self) -> str:
        """Identifier used to serialize policy writers within this process."""
        return f"{type(self).__name__}:{id(self)}"


class CdnService(ABC):
    """CDN collaborator consumed by the publish engine."""

    @abstractmethod
    def get_distribution_identifier(self) -> str:
        """Return the distribution identifier this service fronts."""

    @abstractmethod
    def invalidate(self, keys: Sequence[str]) -> str:
        """Trigger a cache invalidation for *keys*; returns the invalidation id."""

    def apply_error_routes(self, routes: Sequence[ErrorRoute]) -> bool:
        """
        Push error routes to the distribution.

        Returns:
            True if the CDN applied them, False if unsupported.
        """
        return False
