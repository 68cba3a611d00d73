# SITEPUB Access Binder
# Read-only access policy scoped to a single CDN distribution

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional

from sitepub.config.schema import StorageTarget
from sitepub.errors import BindError, ConfigError, PolicyConflictError, PrecheckError, StorageError
from sitepub.storage.base import StorageService

POLICY_VERSION = "2012-10-17"
STATEMENT_SID = "AllowCloudFrontServicePrincipalReadOnly"
CDN_SERVICE_PRINCIPAL = "cloudfront.amazonaws.com"
READ_ONLY_ACTIONS = ("s3:GetObject",)
CONDITION_OPERATOR = "StringEquals"
CONDITION_KEY = "AWS:SourceArn"

# One lock per storage resource; held across the read-modify-write of the policy
_resource_locks: dict[str, threading.Lock] = {}
_resource_locks_guard = threading.Lock()


def _lock_for(resource: str) -> threading.Lock:
    with _resource_locks_guard:
        return _resource_locks.setdefault(resource, threading.Lock())


@dataclass(frozen=True)
class AccessGrant:
    """
    Trust binding allowing one CDN distribution to read storage objects.
    """

    resource_pattern: str
    distribution_id: str
    condition_value: str
    actions: tuple[str, ...] = READ_ONLY_ACTIONS
    principal: dict[str, str] = field(default_factory=lambda: {"Service": CDN_SERVICE_PRINCIPAL})
    condition_operator: str = CONDITION_OPERATOR
    condition_key: str = CONDITION_KEY

    @property
    def condition(self) -> dict[str, dict[str, str]]:
        return {self.condition_operator: {self.condition_key: self.condition_value}}

    def to_statement(self) -> dict[str, Any]:
        """Render the grant as a single policy statement."""
        return {
            "Sid": STATEMENT_SID,
            "Effect": "Allow",
            "Principal": dict(self.principal),
            "Action": list(self.actions),
            "Resource": self.resource_pattern,
            "Condition": self.condition,
        }


def has_public_principal(document: dict[str, Any]) -> bool:
    """Check if any Allow statement grants access to everyone."""
    statements = document.get("Statement", [])
    if isinstance(statements, dict):
        statements = [statements]

    for statement in statements:
        if statement.get("Effect") != "Allow":
            continue
        principal = statement.get("Principal")
        if principal == "*":
            return True
        if isinstance(principal, dict):
            for value in principal.values():
                values = value if isinstance(value, list) else [value]
                if "*" in values:
                    return True
    return False


class AccessBinder:
    """
    Generates and installs the read-only access policy for a storage target.

    The policy is regenerated from scratch on every bind, so a condition
    naming a previous distribution never survives. Writes are conditional on
    the policy revision read just before, retried on conflict.
    """

    def __init__(
        self,
        storage: StorageService,
        *,
        max_attempts: int = 5,
        backoff_base: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize binder.

        Args:
            storage: Storage collaborator holding the policy.
            max_attempts: Conditional write attempts before raising BindError.
            backoff_base: Delay before the first conflict retry.
            sleep: Sleep function (replaceable in tests).
        """
        self.storage = storage
        self.max_attempts = max(1, max_attempts)
        self.backoff_base = backoff_base
        self.sleep = sleep
        self.replaced_public_policy = False

    def build_grant(self, target: StorageTarget, distribution_id: str) -> AccessGrant:
        """
        Build the grant for *distribution_id*.

        Raises:
            ConfigError: If the distribution id or account id is missing.
        """
        if not distribution_id:
            raise ConfigError("A distribution identifier is required to bind access")
        if not target.account_id:
            raise ConfigError("storage.account_id is required to scope access to a distribution")

        return AccessGrant(
            resource_pattern=target.objects_arn,
            distribution_id=distribution_id,
            condition_value=target.distribution_arn(distribution_id),
        )

    def policy_document(self, grant: AccessGrant) -> dict[str, Any]:
        """Fresh policy document holding exactly the grant's statement."""
        return {
            "Version": POLICY_VERSION,
            "Statement": [grant.to_statement()],
        }

    def precheck(self) -> None:
        """
        Block all public access on the storage target and verify it stuck.

        Raises:
            PrecheckError: If any toggle still allows public access.
        """
        try:
            block = self.storage.set_public_access_block(True)
        except StorageError as e:
            raise PrecheckError(f"Cannot block public access: {e.message}") from e
        except Exception as e:
            raise PrecheckError(f"Cannot block public access: {e}") from e

        if not block.fully_blocked:
            raise PrecheckError(f"Public access is not fully blocked: {', '.join(block.open_toggles)} disabled")

    def bind(self, target: StorageTarget, distribution_id: str, *, dry_run: bool = False) -> AccessGrant:
        """
        Install the access policy for *distribution_id*.

        Args:
            target: Storage target.
            distribution_id: CDN distribution allowed to read.
            dry_run: Build the grant without touching the storage service.

        Returns:
            The active AccessGrant.

        Raises:
            ConfigError: If the grant cannot be built.
            PrecheckError: If public access cannot be fully blocked.
            BindError: If the conditional write keeps conflicting or fails.
        """
        grant = self.build_grant(target, distribution_id)
        if dry_run:
            return grant

        document = self.policy_document(grant)
        with _lock_for(self.storage.resource_name):
            self.precheck()
            self._write(document)

        return grant

    def _write(self, document: dict[str, Any]) -> Optional[str]:
        last_conflict: Optional[PolicyConflictError] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                current = self.storage.get_policy()
                self.replaced_public_policy = bool(current.document) and has_public_principal(current.document)
                if current.document == document:
                    return current.revision
                return self.storage.put_policy(document, current.revision)
            except PolicyConflictError as e:
                last_conflict = e
                if attempt < self.max_attempts:
                    self.sleep(self.backoff_base * (2 ** (attempt - 1)))
            except StorageError as e:
                raise BindError(f"Cannot write access policy: {e.message}") from e
            except Exception as e:
                raise BindError(f"Cannot write access policy: {e}") from e

        raise BindError(
            f"Access policy changed concurrently {self.max_attempts} times; giving up"
        ) from last_conflict
