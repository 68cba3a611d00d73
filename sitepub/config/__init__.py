# SITEPUB Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from sitepub.config.defaults import DEFAULT_CONFIG, generate_default_config
from sitepub.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_config,
    save_config,
    validate_config_file,
)
from sitepub.config.schema import (
    CdnBackend,
    CdnConfig,
    ErrorRouteConfig,
    OutputConfig,
    PolicySettings,
    PublisherConfig,
    ScanSettings,
    SiteConfig,
    StorageBackend,
    StorageTarget,
    UploadSettings,
)

__all__ = [
    # Schema
    "PublisherConfig",
    "SiteConfig",
    "StorageTarget",
    "StorageBackend",
    "CdnConfig",
    "CdnBackend",
    "ScanSettings",
    "UploadSettings",
    "PolicySettings",
    "ErrorRouteConfig",
    "OutputConfig",
    # Loader
    "load_config",
    "save_config",
    "get_config_path",
    "ensure_config_exists",
    "validate_config_file",
    # Defaults
    "DEFAULT_CONFIG",
    "generate_default_config",
]
