# SITEPUB Sync Actions
# Action types and planning for bringing remote objects in line with local assets

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from sitepub.errors import PlanError, StorageError
from sitepub.publish.asset import Asset
from sitepub.storage.base import RemoteObject, StorageService
from sitepub.utils.paths import normalize_prefix, object_key


class ActionType(str, Enum):
    """Types of sync actions."""

    # Upload actions
    CREATE = "create"  # No remote object with this key
    UPDATE = "update"  # Remote object differs in fingerprint or content type

    # No action needed
    SKIP = "skip"

    # Remote object without a local asset; reported, never applied automatically
    PRUNE = "prune"


@dataclass(frozen=True)
class SyncAction:
    """
    A synchronization action for one object key.

    CREATE carries only the asset, UPDATE and SKIP carry both sides, PRUNE
    carries only the remote object.
    """

    action_type: ActionType
    key: str
    asset: Optional[Asset] = None
    remote: Optional[RemoteObject] = None
    reason: str = ""

    @property
    def is_upload(self) -> bool:
        """Check if this action uploads the asset."""
        return self.action_type in (ActionType.CREATE, ActionType.UPDATE)

    @property
    def relative_path(self) -> str:
        """Asset relative path, or the remote key for prune candidates."""
        return self.asset.relative_path if self.asset is not None else self.key


@dataclass
class SyncPlan:
    """Ordered actions for one planning pass."""

    actions: list[SyncAction] = field(default_factory=list)
    prune_candidates: list[SyncAction] = field(default_factory=list)

    @property
    def uploads(self) -> list[SyncAction]:
        """Actions that require an upload."""
        return [a for a in self.actions if a.is_upload]

    def count(self, action_type: ActionType) -> int:
        """Number of actions of the given type."""
        if action_type == ActionType.PRUNE:
            return len(self.prune_candidates)
        return sum(1 for a in self.actions if a.action_type == action_type)

    @property
    def has_changes(self) -> bool:
        """Check if anything needs uploading."""
        return any(a.is_upload for a in self.actions)


def determine_action(asset: Asset, remote: Optional[RemoteObject], key: str) -> SyncAction:
    """
    Determine what action to take for an asset.

    Only the content fingerprint and the content type are compared;
    modification times and sizes never decide.

    Args:
        asset: The local asset.
        remote: Remote object sharing the key, if any.
        key: Object key of the asset.

    Returns:
        SyncAction describing what to do.
    """
    if remote is None:
        return SyncAction(
            action_type=ActionType.CREATE,
            key=key,
            asset=asset,
            reason="New object",
        )

    if remote.fingerprint != asset.fingerprint:
        reason = "Fingerprint changed" if remote.fingerprint else "No stored fingerprint"
        return SyncAction(
            action_type=ActionType.UPDATE,
            key=key,
            asset=asset,
            remote=remote,
            reason=reason,
        )

    if remote.content_type != asset.content_type:
        return SyncAction(
            action_type=ActionType.UPDATE,
            key=key,
            asset=asset,
            remote=remote,
            reason=f"Content type {remote.content_type} -> {asset.content_type}",
        )

    return SyncAction(
        action_type=ActionType.SKIP,
        key=key,
        asset=asset,
        remote=remote,
        reason="Content identical",
    )


def plan_sync(
    assets: Sequence[Asset],
    remote_objects: Sequence[RemoteObject],
    prefix: str = "",
) -> SyncPlan:
    """
    Compute the actions needed to bring remote objects in line with assets.

    Pure function over two snapshots: one action per asset in asset order,
    then one prune candidate per orphaned remote key in key order.

    Args:
        assets: Ordered local assets.
        remote_objects: Remote listing under the prefix.
        prefix: Key prefix of the storage target.

    Returns:
        SyncPlan.
    """
    prefix = normalize_prefix(prefix)
    remote_by_key = {obj.key: obj for obj in remote_objects}
    plan = SyncPlan()

    local_keys: set[str] = set()
    for asset in assets:
        key = object_key(asset.relative_path, prefix)
        local_keys.add(key)
        plan.actions.append(determine_action(asset, remote_by_key.get(key), key))

    for key in sorted(remote_by_key):
        if key in local_keys or not key.startswith(prefix):
            continue
        plan.prune_candidates.append(
            SyncAction(
                action_type=ActionType.PRUNE,
                key=key,
                remote=remote_by_key[key],
                reason="No local asset",
            )
        )

    return plan


class ObjectSyncPlanner:
    """Plans sync actions against the storage collaborator's listing."""

    def __init__(self, storage: StorageService, prefix: str = ""):
        """
        Initialize planner.

        Args:
            storage: Storage collaborator.
            prefix: Key prefix of the storage target.
        """
        self.storage = storage
        self.prefix = normalize_prefix(prefix)

    def plan(self, assets: Sequence[Asset]) -> SyncPlan:
        """
        Fetch the remote listing and plan actions.

        Raises:
            PlanError: If the listing fails. No partial plan is returned.
        """
        try:
            remote_objects = self.storage.list(self.prefix)
        except StorageError as e:
            raise PlanError(f"Cannot list remote objects under '{self.prefix}': {e.message}") from e
        except Exception as e:
            raise PlanError(f"Cannot list remote objects under '{self.prefix}': {e}") from e

        return plan_sync(assets, remote_objects, self.prefix)
