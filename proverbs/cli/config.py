"""Configuration management for the CLI."""

import os
from pathlib import Path
from typing import Any

import yaml

from proverbs.core.exceptions import ConfigError
from proverbs.storage.config import StoreSettings

# Environment variable -> path of the configuration key it overrides
ENV_OVERRIDES: dict[str, tuple[str, ...]] = {
    "PROVERBS_BACKEND": ("backend",),
    "PROVERBS_DATA_DIR": ("data_dir",),
    "PROVERBS_SQLITE_PATH": ("sqlite", "path"),
    "PROVERBS_MONGODB_URI": ("mongodb", "uri"),
    "PROVERBS_MONGODB_DATABASE": ("mongodb", "database"),
    "PROVERBS_LMDB_PATH": ("lmdb", "path"),
}


class Config:
    """Configuration management for the CLI application."""

    @staticmethod
    def from_file(path: Path) -> dict[str, Any]:
        """Load configuration from a YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Error reading config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return data

    @staticmethod
    def get_config_paths() -> list[Path]:
        """Get the default configuration file paths to check."""
        paths = []

        # User config
        xdg_config_home = Path(
            os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
        )
        paths.append(xdg_config_home / "proverbs" / "config.yaml")

        # Project config
        paths.append(Path(".proverbs.yaml"))
        paths.append(Path("proverbs.yaml"))

        return paths

    @staticmethod
    def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
        """Merge multiple configuration dictionaries."""
        result = {}
        for config in configs:
            result = _deep_merge(result, config)
        return result


def get_config_paths() -> list[Path]:
    """Get configuration paths in precedence order."""
    return Config.get_config_paths()


def get_data_dir() -> Path:
    """Get the default directory for embedded databases."""
    if env_dir := os.environ.get("PROVERBS_DATA_DIR"):
        return Path(env_dir)

    xdg_data_home = Path(
        os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share")
    )
    return xdg_data_home / "proverbs"


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from files and environment variables.

    Default locations are read first (last one wins for conflicting keys),
    then the explicit ``path``, then environment overrides.
    """
    config: dict[str, Any] = {}

    for default_path in get_config_paths():
        if default_path.exists():
            config = Config.merge_configs(config, Config.from_file(default_path))

    if path is not None:
        config = Config.merge_configs(config, Config.from_file(path))

    return Config.merge_configs(config, _env_overrides())


def build_settings(
    config: dict[str, Any],
    backend: str | None = None,
    data_dir: Path | None = None,
) -> StoreSettings:
    """Validate configuration into backend settings.

    Command-line values take precedence over the configuration mapping.
    """
    overrides: dict[str, Any] = {}
    if backend:
        overrides["backend"] = backend
    if data_dir:
        overrides["data_dir"] = str(data_dir)
    elif not config.get("data_dir"):
        overrides["data_dir"] = str(get_data_dir())

    return StoreSettings.from_mapping(Config.merge_configs(config, overrides))


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name, keys in ENV_OVERRIDES.items():
        if value := os.environ.get(name):
            target = overrides
            for key in keys[:-1]:
                target = target.setdefault(key, {})
            target[keys[-1]] = value
    return overrides


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
