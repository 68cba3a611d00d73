# SITEPUB Storage Module
# Object storage and CDN collaborators

from sitepub.storage.base import CdnService, PolicyRecord, PublicAccessBlock, RemoteObject, StorageService
from sitepub.storage.factory import create_cdn, create_storage
from sitepub.storage.local import LocalDirectoryStorage

__all__ = [
    "StorageService",
    "CdnService",
    "RemoteObject",
    "PublicAccessBlock",
    "PolicyRecord",
    "LocalDirectoryStorage",
    "create_storage",
    "create_cdn",
]
