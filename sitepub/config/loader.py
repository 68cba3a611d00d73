# SITEPUB Configuration Loader
# Load, save, and validate YAML configuration files

import copy
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from sitepub.config.defaults import DEFAULT_CONFIG, MERGED_SECTIONS, generate_default_config
from sitepub.config.schema import CdnBackend, PublisherConfig
from sitepub.errors import ConfigError
from sitepub.utils.paths import atomic_write


def get_config_dir() -> Path:
    """Get the sitepub configuration directory."""
    return Path.home() / ".config" / "sitepub"


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    env_path = os.environ.get("SITEPUB_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / "config.yaml"


def format_validation_error(error: ValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into 'loc: message' lines."""
    messages = []
    for detail in error.errors():
        loc = " -> ".join(str(part) for part in detail["loc"])
        messages.append(f"{loc}: {detail['msg']}" if loc else detail["msg"])
    return messages


def _read_yaml(config_path: Path) -> dict:
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {config_path}")
    return data


def load_config(config_path: Optional[Path] = None) -> PublisherConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        PublisherConfig: Validated configuration object.

    Raises:
        ConfigError: If the file is missing, malformed, or invalid.
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}\nRun 'sitepub config init' to create one.")

    merged = _merge_with_defaults(_read_yaml(config_path))

    try:
        return PublisherConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError("Invalid configuration:\n" + "\n".join(format_validation_error(e))) from e


def save_config(config: PublisherConfig, config_path: Optional[Path] = None) -> Path:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration object to save.
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Path: Path where config was saved.
    """
    if config_path is None:
        config_path = get_config_path()

    # mode='json' serializes Enums as their string values
    data = config.model_dump(exclude_none=True, mode="json")
    atomic_write(config_path, yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True))
    return config_path


def ensure_config_exists(config_path: Optional[Path] = None, force: bool = False) -> tuple[Path, bool]:
    """
    Ensure configuration file exists, creating the default template if needed.

    Args:
        config_path: Optional path to config file.
        force: Overwrite an existing file.

    Returns:
        Tuple of (config_path, was_created).
    """
    if config_path is None:
        config_path = get_config_path()

    if config_path.exists() and not force:
        return config_path, False

    atomic_write(config_path, generate_default_config())
    return config_path, True


def validate_config_file(config_path: Optional[Path] = None) -> tuple[bool, list[str]]:
    """
    Validate a configuration file without using it.

    Args:
        config_path: Path to config file to validate.

    Returns:
        Tuple of (is_valid, messages). Messages may hold warnings for a valid file.
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        return False, [f"Configuration file not found: {config_path}"]

    try:
        data = _read_yaml(config_path)
    except ConfigError as e:
        return False, [e.message]

    if not data:
        return False, ["Configuration file is empty"]

    if "storage" not in data:
        return False, ["Missing 'storage' section"]

    try:
        config = PublisherConfig.model_validate(_merge_with_defaults(data))
    except ValidationError as e:
        return False, format_validation_error(e)

    warnings: list[str] = []
    if not config.storage.account_id:
        warnings.append("storage.account_id is not set; access cannot be bound to a distribution")
    if config.cdn.backend == CdnBackend.NONE and not config.cdn.distribution_id:
        warnings.append("No CDN configured; publish needs --distribution-id")

    return True, warnings


def _merge_with_defaults(data: dict) -> dict:
    """Merge loaded data with default values for missing keys."""
    result = copy.deepcopy(DEFAULT_CONFIG)

    for section in MERGED_SECTIONS:
        if isinstance(data.get(section), dict):
            result[section] = {**result[section], **data[section]}

    if isinstance(data.get("content_types"), dict):
        result["content_types"] = {**result["content_types"], **data["content_types"]}

    if "error_routes" in data:
        result["error_routes"] = data["error_routes"] or []

    return result
