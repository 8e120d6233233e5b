"""
codeatlas.config - Configuration loading and defaults

Configuration is read from ``.codeatlas.toml`` (found by walking up from
the working directory, stopping at the git root), deep-merged with an
optional ``.codeatlas.local.toml`` next to it, then overridden by
``CODEATLAS_<SECTION>_<KEY>`` environment variables.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from codeatlas.config.defaults import DEFAULT_CONFIG

CONFIG_FILENAME = ".codeatlas.toml"
LOCAL_CONFIG_FILENAME = ".codeatlas.local.toml"
ENV_PREFIX = "CODEATLAS_"

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ConfigLoader",
    "DEFAULT_CONFIG",
    "find_config_file",
    "find_git_root",
    "load_config",
    "merge_configs",
    "parse_toml",
]


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or parsed."""


# -----------------------------------------------------------------------------
# TOML
# -----------------------------------------------------------------------------


def parse_toml_document(content: str) -> tomlkit.TOMLDocument:
    """Parse TOML text into a style-preserving tomlkit document.

    Raises:
        ConfigError: If the text is not valid TOML.
    """
    try:
        return tomlkit.parse(content)
    except TOMLKitError as e:
        raise ConfigError(f"Invalid TOML: {e}") from e


def parse_toml(content: str) -> dict[str, Any]:
    """Parse TOML text into plain Python dicts and lists."""
    return parse_toml_document(content).unwrap()


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    try:
        return parse_toml(content)
    except ConfigError as e:
        raise ConfigError(f"{path}: {e}") from e


# -----------------------------------------------------------------------------
# Loader
# -----------------------------------------------------------------------------


class ConfigLoader:
    """Read-only view over a merged configuration dict."""

    def __init__(self, data: dict[str, Any], path: Path | None = None) -> None:
        self._data = data
        self.path = path

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: Path | None = None) -> ConfigLoader:
        return cls(copy.deepcopy(data), path)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dotted key, e.g. ``get("scan.exclude")``."""
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def get_raw(self) -> dict[str, Any]:
        return self._data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Nested tables merge key by key; any other value in ``override``
    replaces the base value.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _try_parse_env_value(value: str) -> Any:
    """Parse an environment value into a typed value where it looks like one.

    JSON arrays and objects are decoded, ``true``/``false`` become
    booleans, anything else (including malformed JSON) stays a string.
    """
    stripped = value.strip()
    if stripped.startswith(("[", "{")):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    if stripped.lower() == "true":
        return True
    if stripped.lower() == "false":
        return False
    return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply ``CODEATLAS_<SECTION>_<KEY>`` overrides in place.

    The section is matched against existing top-level tables; the rest of
    the variable name, lowercased, is the key within that table.
    """
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        remainder = name[len(ENV_PREFIX) :].lower()
        for section in sorted(config, key=len, reverse=True):
            if not isinstance(config[section], dict):
                continue
            if remainder.startswith(section + "_"):
                key = remainder[len(section) + 1 :]
                if key:
                    config[section][key] = _try_parse_env_value(raw)
                break
    return config


def load_config(config_path: Path | None = None) -> ConfigLoader:
    """Load configuration merged over the defaults.

    Args:
        config_path: Path to a ``.codeatlas.toml`` file, or None to use
            defaults only (environment overrides still apply).

    Returns:
        ConfigLoader over the merged configuration.

    Raises:
        ConfigError: If a config file cannot be read or parsed.
    """
    data = copy.deepcopy(DEFAULT_CONFIG)

    if config_path is not None:
        data = merge_configs(data, _read_toml(config_path))
        local_path = config_path.parent / LOCAL_CONFIG_FILENAME
        if local_path.is_file():
            data = merge_configs(data, _read_toml(local_path))

    return ConfigLoader(_apply_env_overrides(data), config_path)


# -----------------------------------------------------------------------------
# Discovery
# -----------------------------------------------------------------------------


def find_git_root(start_path: Path | None = None) -> Path | None:
    """Find the enclosing git repository root.

    A directory counts as the root when it contains ``.git``, either a
    directory or a worktree pointer file.
    """
    current = (start_path or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        if (directory / ".git").exists():
            return directory
    return None


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find ``.codeatlas.toml`` by walking up from ``start_path``.

    The search stops at the git root (inclusive) when inside a repository.
    """
    current = (start_path or Path.cwd()).resolve()
    git_root = find_git_root(current)

    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if git_root is not None and directory == git_root:
            break
    return None
