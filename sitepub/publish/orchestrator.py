# SITEPUB Publish Orchestrator
# Sequences scan, resolve, plan, apply, bind and invalidate for one publish run

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from sitepub.config.schema import PolicySettings, ScanSettings, StorageTarget, UploadSettings
from sitepub.errors import CdnError, ConfigError, InvalidationWarning, PublishCancelled, PublishError
from sitepub.publish.actions import ActionType, ObjectSyncPlanner, SyncAction
from sitepub.publish.apply import ActionResult, Uploader
from sitepub.publish.asset import build_assets
from sitepub.publish.binder import AccessBinder, AccessGrant
from sitepub.publish.content_types import ContentTypeResolver
from sitepub.publish.routing import DEFAULT_ERROR_ROUTES, ErrorRoute, ErrorRoutingTable, routes_from_config
from sitepub.publish.scanner import FileSetScanner, IgnorePredicate, ignore_patterns
from sitepub.storage.base import CdnService, StorageService

if TYPE_CHECKING:
    from sitepub.config.schema import PublisherConfig
    from sitepub.logger import PublishLogger


class PublishState(str, Enum):
    """States of a publish run."""

    IDLE = "idle"
    SCANNING = "scanning"
    RESOLVING = "resolving"
    PLANNING = "planning"
    APPLYING = "applying"
    BINDING = "binding"
    INVALIDATING = "invalidating"
    DONE = "done"
    FAILED = "failed"


_STATE_ORDER = [
    PublishState.IDLE,
    PublishState.SCANNING,
    PublishState.RESOLVING,
    PublishState.PLANNING,
    PublishState.APPLYING,
    PublishState.BINDING,
    PublishState.INVALIDATING,
    PublishState.DONE,
]
_TERMINAL = (PublishState.DONE, PublishState.FAILED)


def _error_message(error: Exception) -> str:
    return error.message if isinstance(error, PublishError) else str(error)


@dataclass(frozen=True)
class PublishIssue:
    """A failure or warning recorded during a run."""

    stage: str
    message: str
    error_type: str
    key: Optional[str] = None
    attempts: int = 0


@dataclass
class PublishResult:
    """Outcome record of one publish run."""

    state: PublishState = PublishState.IDLE
    state_history: list[PublishState] = field(default_factory=lambda: [PublishState.IDLE])
    dry_run: bool = False
    distribution_id: Optional[str] = None
    created: int = 0
    updated: int = 0
    skipped: int = 0
    actions: list[SyncAction] = field(default_factory=list)
    prune_candidates: list[SyncAction] = field(default_factory=list)
    uploaded: list[str] = field(default_factory=list)
    not_attempted: list[str] = field(default_factory=list)
    grant: Optional[AccessGrant] = None
    error_routes: list[ErrorRoute] = field(default_factory=list)
    error_routes_applied: bool = False
    failures: list[PublishIssue] = field(default_factory=list)
    warnings: list[PublishIssue] = field(default_factory=list)
    invalidation_id: Optional[str] = None
    cancelled: bool = False
    error: Optional[PublishError] = None

    @property
    def success(self) -> bool:
        """Run reached DONE."""
        return self.state == PublishState.DONE

    @property
    def failed(self) -> bool:
        """Run ended in FAILED."""
        return self.state == PublishState.FAILED

    @property
    def failed_keys(self) -> list[str]:
        """Keys whose upload failed."""
        return [issue.key for issue in self.failures if issue.key is not None]

    @property
    def has_issues(self) -> bool:
        """Check if there are any failures or warnings."""
        return bool(self.failures or self.warnings)

    def raise_for_failure(self) -> None:
        """Re-raise the fatal error of a failed run."""
        if self.error is not None:
            raise self.error


class PublishOrchestrator:
    """
    Runs one publish pass as a strictly forward state machine.

    IDLE → SCANNING → RESOLVING → PLANNING → APPLYING → BINDING →
    INVALIDATING → DONE, with FAILED reachable from every non-terminal state.
    Fatal errors end the run in FAILED and are kept on the result instead of
    propagating; per-object upload failures and invalidation problems are
    recorded without stopping the run.
    """

    def __init__(
        self,
        storage: StorageService,
        cdn: Optional[CdnService] = None,
        *,
        scan: Optional[ScanSettings] = None,
        upload: Optional[UploadSettings] = None,
        policy: Optional[PolicySettings] = None,
        content_types: Optional[dict[str, str]] = None,
        ignore: Optional[IgnorePredicate] = None,
        invalidate: bool = True,
        apply_error_routes: bool = False,
        logger: Optional[PublishLogger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize orchestrator.

        Args:
            storage: Storage collaborator.
            cdn: Optional CDN collaborator.
            scan: Scan settings (exclude patterns, hashing threads).
            upload: Upload concurrency and retry settings.
            policy: Policy write settings.
            content_types: Extension to MIME type overrides.
            ignore: Ignore predicate; replaces scan.exclude when given.
            invalidate: Trigger cache invalidation for changed keys.
            apply_error_routes: Push error routes to the CDN when it supports it.
            logger: Optional progress logger.
            sleep: Sleep function for backoff (replaceable in tests).
        """
        self.storage = storage
        self.cdn = cdn
        self.scan_settings = scan or ScanSettings()
        self.upload_settings = upload or UploadSettings()
        self.policy_settings = policy or PolicySettings()
        self.resolver = ContentTypeResolver(content_types)
        self.ignore = ignore if ignore is not None else ignore_patterns(self.scan_settings.exclude)
        self.invalidate = invalidate
        self.apply_error_routes = apply_error_routes
        self.logger = logger
        self.sleep = sleep

    @classmethod
    def from_config(
        cls,
        config: PublisherConfig,
        storage: StorageService,
        cdn: Optional[CdnService] = None,
        logger: Optional[PublishLogger] = None,
    ) -> PublishOrchestrator:
        """Build an orchestrator from a loaded configuration."""
        return cls(
            storage,
            cdn,
            scan=config.scan,
            upload=config.upload,
            policy=config.policy,
            content_types=config.content_types,
            invalidate=config.cdn.invalidate,
            apply_error_routes=config.cdn.apply_error_routes,
            logger=logger,
        )

    def publish(
        self,
        root_dir: Path,
        target: StorageTarget,
        distribution_id: Optional[str] = None,
        error_routes: Sequence[ErrorRoute] = DEFAULT_ERROR_ROUTES,
        *,
        dry_run: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> PublishResult:
        """
        Publish a local tree and bind read access to one distribution.

        Args:
            root_dir: Local asset tree.
            target: Storage target.
            distribution_id: Distribution allowed to read; asked from the CDN if None.
            error_routes: Error routes to validate and report.
            dry_run: Plan and report only; no uploads, policy write or invalidation.
            cancel_event: Set to stop uploads that have not started yet.
                A cancelled run ends FAILED before binding, so the previous
                access policy stays in place.

        Returns:
            PublishResult; check ``state`` or ``raise_for_failure()``.
        """
        result = PublishResult(dry_run=dry_run)

        try:
            self._enter(result, PublishState.SCANNING)
            paths = FileSetScanner(ignore=self.ignore).scan(Path(root_dir))
            self._debug(f"Found {len(paths)} files under {root_dir}")

            self._enter(result, PublishState.RESOLVING)
            assets = build_assets(Path(root_dir), paths, self.resolver, workers=self.scan_settings.workers)
            table = ErrorRoutingTable(error_routes, paths)
            result.error_routes = table.routes
            binder = AccessBinder(
                self.storage,
                max_attempts=self.policy_settings.max_attempts,
                backoff_base=self.policy_settings.backoff_base,
                sleep=self.sleep,
            )
            result.distribution_id = self._resolve_distribution(distribution_id)
            binder.build_grant(target, result.distribution_id)

            self._enter(result, PublishState.PLANNING)
            plan = ObjectSyncPlanner(self.storage, target.prefix).plan(assets)
            result.actions = plan.actions
            result.prune_candidates = plan.prune_candidates
            result.skipped = plan.count(ActionType.SKIP)
            if plan.prune_candidates:
                self._debug(f"{len(plan.prune_candidates)} remote objects have no local asset (not pruned)")

            self._enter(result, PublishState.APPLYING)
            self._apply(result, plan.uploads, dry_run=dry_run, cancel_event=cancel_event)

            self._enter(result, PublishState.BINDING)
            result.grant = binder.bind(target, result.distribution_id, dry_run=dry_run)
            if binder.replaced_public_policy:
                self._warn(result, PublishState.BINDING, "Replaced a bucket policy that granted public access")
            if not dry_run:
                self._push_error_routes(result, table)

            self._enter(result, PublishState.INVALIDATING)
            if not dry_run:
                self._invalidate(result)

            self._enter(result, PublishState.DONE)
        except PublishError as e:
            stage = result.state.value
            result.error = e
            result.failures.append(PublishIssue(stage=stage, message=e.message, error_type=type(e).__name__))
            self._enter(result, PublishState.FAILED)
            if self.logger:
                self.logger.error(f"Publish failed while {stage}: {e.message}")

        return result

    def _enter(self, result: PublishResult, state: PublishState) -> None:
        if result.state in _TERMINAL:
            raise RuntimeError(f"Publish run already finished in state {result.state.value}")
        if state != PublishState.FAILED:
            expected = _STATE_ORDER[_STATE_ORDER.index(result.state) + 1]
            if state != expected:
                raise RuntimeError(f"Illegal transition {result.state.value} -> {state.value}")

        result.state = state
        result.state_history.append(state)
        if self.logger:
            self.logger.state(state)

    def _resolve_distribution(self, distribution_id: Optional[str]) -> str:
        if distribution_id:
            return distribution_id
        if self.cdn is None:
            raise ConfigError("No distribution identifier given and no CDN configured to look it up")
        try:
            return self.cdn.get_distribution_identifier()
        except CdnError as e:
            raise ConfigError(f"Cannot determine distribution identifier: {e.message}") from e
        except Exception as e:
            raise ConfigError(f"Cannot determine distribution identifier: {e}") from e

    def _apply(
        self,
        result: PublishResult,
        uploads: list[SyncAction],
        *,
        dry_run: bool,
        cancel_event: Optional[threading.Event],
    ) -> None:
        if dry_run:
            result.created = sum(1 for a in uploads if a.action_type == ActionType.CREATE)
            result.updated = sum(1 for a in uploads if a.action_type == ActionType.UPDATE)
            return

        uploader = Uploader(
            self.storage,
            max_concurrency=self.upload_settings.max_concurrency,
            retry_ceiling=self.upload_settings.retry_ceiling,
            backoff_base=self.upload_settings.backoff_base,
            backoff_max=self.upload_settings.backoff_max,
            cancel_event=cancel_event,
            sleep=self.sleep,
        )
        on_result = self.logger.upload if self.logger else None
        action_results = uploader.apply(uploads, on_result=on_result)
        self._record_uploads(result, action_results)

        if result.not_attempted:
            result.cancelled = True
            raise PublishCancelled(
                f"Publish cancelled; {len(result.not_attempted)} of {len(uploads)} uploads were not started"
            )
        if uploads and not result.uploaded:
            raise PublishError(f"None of {len(uploads)} uploads succeeded")

    def _record_uploads(self, result: PublishResult, action_results: list[ActionResult]) -> None:
        for action_result in action_results:
            action = action_result.action
            if action_result.success:
                result.uploaded.append(action.key)
                if action.action_type == ActionType.CREATE:
                    result.created += 1
                else:
                    result.updated += 1
            elif action_result.cancelled:
                result.not_attempted.append(action.key)
            else:
                result.failures.append(
                    PublishIssue(
                        stage=PublishState.APPLYING.value,
                        message=action_result.error or "Upload failed",
                        error_type="ApplyError",
                        key=action.key,
                        attempts=action_result.attempts,
                    )
                )

    def _push_error_routes(self, result: PublishResult, table: ErrorRoutingTable) -> None:
        if not self.apply_error_routes or self.cdn is None or not len(table):
            return
        try:
            result.error_routes_applied = self.cdn.apply_error_routes(table.routes)
        except Exception as e:
            message = _error_message(e)
            result.warnings.append(
                PublishIssue(stage=PublishState.BINDING.value, message=message, error_type=type(e).__name__)
            )
            if self.logger:
                self.logger.warning(f"Error routes not applied: {message}")

    def _invalidate(self, result: PublishResult) -> None:
        if not self.invalidate or self.cdn is None or not result.uploaded:
            return
        try:
            result.invalidation_id = self.cdn.invalidate(sorted(result.uploaded))
        except Exception as e:
            warning = InvalidationWarning(f"Cache invalidation failed: {_error_message(e)}")
            result.warnings.append(
                PublishIssue(
                    stage=PublishState.INVALIDATING.value,
                    message=warning.message,
                    error_type=type(warning).__name__,
                )
            )
            if self.logger:
                self.logger.warning(warning.message)

    def _warn(self, result: PublishResult, stage: PublishState, message: str) -> None:
        result.warnings.append(PublishIssue(stage=stage.value, message=message, error_type="PolicyWarning"))
        if self.logger:
            self.logger.warning(message)

    def _debug(self, message: str) -> None:
        if self.logger:
            self.logger.debug(message)


def publish(
    root_dir: Path,
    storage_target: StorageTarget,
    distribution_identifier: Optional[str] = None,
    error_routes: Sequence[ErrorRoute] = DEFAULT_ERROR_ROUTES,
    *,
    storage: StorageService,
    cdn: Optional[CdnService] = None,
    dry_run: bool = False,
    cancel_event: Optional[threading.Event] = None,
    **options,
) -> PublishResult:
    """
    Publish a local tree in one call.

    Args:
        root_dir: Local asset tree.
        storage_target: Storage target.
        distribution_identifier: Distribution allowed to read.
        error_routes: Error routes to validate.
        storage: Storage collaborator.
        cdn: Optional CDN collaborator.
        dry_run: Plan and report only.
        cancel_event: Cancellation signal for uploads.
        **options: Forwarded to PublishOrchestrator.

    Returns:
        PublishResult.
    """
    orchestrator = PublishOrchestrator(storage, cdn, **options)
    return orchestrator.publish(
        root_dir,
        storage_target,
        distribution_identifier,
        error_routes,
        dry_run=dry_run,
        cancel_event=cancel_event,
    )


def publish_from_config(
    config: PublisherConfig,
    storage: StorageService,
    cdn: Optional[CdnService] = None,
    *,
    logger: Optional[PublishLogger] = None,
    root_dir: Optional[Path] = None,
    distribution_id: Optional[str] = None,
    dry_run: bool = False,
    cancel_event: Optional[threading.Event] = None,
) -> PublishResult:
    """
    Publish using every setting from a loaded configuration.

    *root_dir* and *distribution_id* override the configured values.
    """
    orchestrator = PublishOrchestrator.from_config(config, storage, cdn, logger=logger)
    return orchestrator.publish(
        Path(root_dir or config.site.root),
        config.storage,
        distribution_id or config.cdn.distribution_id,
        routes_from_config(config.error_routes),
        dry_run=dry_run,
        cancel_event=cancel_event,
    )
