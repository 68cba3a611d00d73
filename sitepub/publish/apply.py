# SITEPUB Apply
# Bounded, retrying upload of planned sync actions

import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from sitepub.errors import StorageError, ThrottledError
from sitepub.publish.actions import SyncAction
from sitepub.storage.base import RemoteObject, StorageService


@dataclass
class ActionResult:
    """Result of executing an upload action."""

    action: SyncAction
    success: bool
    error: Optional[str] = None
    attempts: int = 0
    cancelled: bool = False
    remote: Optional[RemoteObject] = None

    @property
    def key(self) -> str:
        """Get the object key."""
        return self.action.key


class Uploader:
    """
    Uploads CREATE/UPDATE actions through a bounded worker pool.

    Throttled uploads are retried with exponential backoff; any other storage
    error fails the object immediately. A set cancel event stops uploads that
    have not started yet, while running ones complete.
    """

    def __init__(
        self,
        storage: StorageService,
        *,
        max_concurrency: int = 8,
        retry_ceiling: int = 5,
        backoff_base: float = 0.5,
        backoff_max: float = 8.0,
        cancel_event: Optional[threading.Event] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize uploader.

        Args:
            storage: Storage collaborator.
            max_concurrency: Maximum in-flight uploads.
            retry_ceiling: Retries after the first throttled attempt.
            backoff_base: Delay before the first retry, in seconds.
            backoff_max: Upper bound for a single delay.
            cancel_event: Caller-owned cancellation signal.
            sleep: Sleep function (replaceable in tests).
        """
        self.storage = storage
        self.max_concurrency = max(1, max_concurrency)
        self.retry_ceiling = max(0, retry_ceiling)
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.cancel_event = cancel_event
        self.sleep = sleep

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def backoff(self, attempt: int) -> float:
        """Delay before retry number *attempt* (1-based)."""
        return min(self.backoff_max, self.backoff_base * (2 ** (attempt - 1)))

    def upload(self, action: SyncAction) -> ActionResult:
        """
        Upload a single action's asset.

        Args:
            action: A CREATE or UPDATE action.

        Returns:
            ActionResult with success status.
        """
        if not action.is_upload or action.asset is None:
            return ActionResult(action=action, success=False, error=f"Not an upload action: {action.action_type.value}")

        if self.cancelled:
            return ActionResult(action=action, success=False, cancelled=True, error="Cancelled before upload")

        asset = action.asset
        try:
            body = asset.read_bytes()
        except OSError as e:
            return ActionResult(action=action, success=False, error=f"Cannot read {asset.relative_path}: {e}")

        attempts = 0
        while True:
            attempts += 1
            try:
                remote = self.storage.put(action.key, body, asset.content_type, asset.fingerprint)
                return ActionResult(action=action, success=True, attempts=attempts, remote=remote)
            except ThrottledError as e:
                if attempts > self.retry_ceiling:
                    return ActionResult(
                        action=action,
                        success=False,
                        attempts=attempts,
                        error=f"Throttled after {attempts} attempts: {e.message}",
                    )
                self.sleep(self.backoff(attempts))
            except StorageError as e:
                return ActionResult(action=action, success=False, attempts=attempts, error=e.message)
            except Exception as e:
                return ActionResult(action=action, success=False, attempts=attempts, error=str(e))

    def apply(
        self,
        actions: Sequence[SyncAction],
        on_result: Optional[Callable[[ActionResult], None]] = None,
    ) -> list[ActionResult]:
        """
        Upload all upload actions concurrently.

        Args:
            actions: Planned actions; non-upload actions are ignored.
            on_result: Optional callback invoked as each upload finishes.

        Returns:
            Results in the same order as the upload actions.
        """
        uploads = [a for a in actions if a.is_upload]
        if not uploads:
            return []

        def run(action: SyncAction) -> ActionResult:
            result = self.upload(action)
            if on_result is not None:
                on_result(result)
            return result

        workers = min(self.max_concurrency, len(uploads))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sitepub-upload") as pool:
            return list(pool.map(run, uploads))
