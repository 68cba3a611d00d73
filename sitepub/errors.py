# SITEPUB Errors
# Exception taxonomy for publish runs and storage/CDN collaborators

from typing import Optional


class PublishError(Exception):
    """Base exception for all sitepub errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ScanError(PublishError):
    """Local asset tree could not be enumerated (unreadable root, symlink cycle)."""


class ConfigError(PublishError):
    """Invalid configuration, e.g. an error route pointing at a missing document."""


class PlanError(PublishError):
    """Remote listing failed; no partial plan is produced."""


class PrecheckError(PublishError):
    """Public access is not fully blocked on the storage target."""


class BindError(PublishError):
    """Access policy could not be written (conflicts exhausted or storage failure)."""


class ApplyError(PublishError):
    """A single object upload failed after retries."""

    def __init__(self, message: str, key: str, attempts: int = 1):
        self.key = key
        self.attempts = attempts
        super().__init__(message)


class InvalidationWarning(PublishError):
    """Cache invalidation could not be triggered. Non-fatal."""


class PublishCancelled(PublishError):
    """The caller cancelled the run while uploads were pending."""


# Collaborator errors


class StorageError(PublishError):
    """Storage collaborator failure."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.code = code
        super().__init__(message)


class ThrottledError(StorageError):
    """Storage collaborator rejected a request due to rate limiting. Retryable."""


class PolicyConflictError(StorageError):
    """Conditional policy write lost against a concurrent writer."""


class CdnError(PublishError):
    """CDN collaborator failure."""
