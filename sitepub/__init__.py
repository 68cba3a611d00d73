"""SITEPUB - Static Site Publisher.

Publishes a local directory of built site assets to object storage,
restricts read access to a single CDN distribution and invalidates
changed paths on the CDN.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "publish_from_config",
    "PublishOrchestrator",
    "PublishResult",
    "PublishState",
    "ErrorRoute",
    "PublisherConfig",
    "StorageTarget",
    "load_config",
    "create_storage",
    "create_cdn",
    "LocalDirectoryStorage",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("publish_from_config", "PublishOrchestrator", "PublishResult", "PublishState"):
        from sitepub.publish import orchestrator

        return getattr(orchestrator, name)
    if name == "ErrorRoute":
        from sitepub.publish.routing import ErrorRoute

        return ErrorRoute
    if name in ("PublisherConfig", "StorageTarget", "load_config"):
        from sitepub import config

        return getattr(config, name)
    if name in ("create_storage", "create_cdn", "LocalDirectoryStorage"):
        from sitepub import storage

        return getattr(storage, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
