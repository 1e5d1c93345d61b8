"""
Configuration settings management for encprops.

This module handles loading and validating configuration settings
from YAML files with support for environment variable overrides.

Configuration is loaded from ~/.encprops/config.yaml by default, with the
path overridable via the ENCPROPS_CONFIG environment variable or the
--config command-line option.
"""

import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

# Default configuration directory
DEFAULT_CONFIG_DIR = Path.home() / ".encprops"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
DEFAULT_SALT_FILE = DEFAULT_CONFIG_DIR / "salt"

# Absolute floor for passphrases, regardless of configuration
PASSPHRASE_LENGTH_FLOOR = 8


@dataclass
class Settings:
    """
    Complete encprops configuration settings.

    Settings are loaded from a YAML configuration file and can be overridden
    by environment variables prefixed with ENCPROPS_.

    Attributes:
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        salt_file: Path of the per-installation key derivation salt.
        min_passphrase_length: Shortest passphrase accepted when the salt
            file is first created.
        secure_permissions: Restrict written store files to the owner (0600).
    """

    log_level: str = "WARNING"
    salt_file: str = str(DEFAULT_SALT_FILE)
    min_passphrase_length: int = 12
    secure_permissions: bool = True

    @property
    def salt_path(self) -> Path:
        """Salt file location with ``~`` expanded."""
        return Path(self.salt_file).expanduser()


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


def get_config_path() -> Path:
    """
    Get the configuration file path.

    Returns the path from ENCPROPS_CONFIG environment variable if set,
    otherwise returns the default path (~/.encprops/config.yaml).
    """
    env_path = os.environ.get("ENCPROPS_CONFIG")
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_FILE


def load_config(config_path: Path | None = None) -> Settings:
    """
    Load configuration from YAML file.

    Reads configuration from the specified path (or default if not provided),
    applies environment variable overrides, and validates the configuration.
    A missing file is not an error: defaults are used.

    Args:
        config_path: Optional path to configuration file.

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If the configuration file cannot be read or
                          contains invalid settings.
    """
    if config_path is None:
        config_path = get_config_path()

    settings = Settings()

    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError("Config file must contain a mapping")

        settings = _apply_config_data(settings, config_data)

    settings = _apply_environment_overrides(settings)

    _validate_config(settings)

    return settings


def _apply_config_data(settings: Settings, data: dict[str, Any]) -> Settings:
    """Apply configuration data from parsed YAML to settings."""
    section = data.get("encprops") or {}

    if "log_level" in section:
        settings.log_level = str(section["log_level"]).upper()
    if "salt_file" in section:
        settings.salt_file = str(section["salt_file"])
    if "min_passphrase_length" in section:
        try:
            settings.min_passphrase_length = int(section["min_passphrase_length"])
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"min_passphrase_length must be an integer: {e}"
            ) from e
    if "secure_permissions" in section:
        settings.secure_permissions = bool(section["secure_permissions"])

    return settings


def _apply_environment_overrides(settings: Settings) -> Settings:
    """Apply environment variable overrides to settings."""
    env_map: dict[str, tuple[str, Callable[[str], Any]]] = {
        "ENCPROPS_LOG_LEVEL": ("log_level", lambda x: x.upper()),
        "ENCPROPS_SALT_FILE": ("salt_file", str),
        "ENCPROPS_MIN_PASSPHRASE_LENGTH": ("min_passphrase_length", int),
    }

    for env_var, (attr, converter) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            try:
                setattr(settings, attr, converter(value))
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for {env_var}: {e}") from e

    return settings


def _validate_config(settings: Settings) -> None:
    """
    Validate configuration settings.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if settings.log_level not in valid_log_levels:
        raise ConfigurationError(
            f"Invalid log_level: {settings.log_level}. "
            f"Must be one of: {', '.join(sorted(valid_log_levels))}"
        )

    if settings.min_passphrase_length < PASSPHRASE_LENGTH_FLOOR:
        raise ConfigurationError(
            f"min_passphrase_length must be at least {PASSPHRASE_LENGTH_FLOOR}"
        )

    if not settings.salt_file:
        raise ConfigurationError("salt_file must not be empty")
