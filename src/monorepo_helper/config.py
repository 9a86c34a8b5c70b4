"""Configuration loader for the monorepo helper.

Settings are merged from, lowest to highest priority: built-in defaults, an
optional settings file (JSON or YAML), the root manifest's
``extra.monorepo-helper`` object, and ``MONOREPO_HELPER_*`` environment
variables. Values are validated by hand rather than through a schema.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from collections.abc import Mapping

import yaml

CONFIG_PATH_ENV_VAR = "MONOREPO_HELPER_CONFIG"
EXTRA_KEY = "monorepo-helper"
ENV_PREFIX = "MONOREPO_HELPER_"
DEFAULT_MAX_DISCOVERY_DEPTH = 5

_TRUTHY = {"1", "true", "yes", "y", "on"}
_FALSY = {"0", "false", "no", "n", "off", ""}


class ConfigError(RuntimeError):
    """Raised when the configuration cannot be loaded or is invalid."""


def is_truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUTHY


@dataclass(slots=True, frozen=True)
class PluginConfiguration:
    """Read-only plugin settings."""

    enabled: bool = True
    offline_mode: bool = False
    max_discovery_depth: int = DEFAULT_MAX_DISCOVERY_DEPTH
    excluded_directories: tuple[str, ...] = ()
    forced_monorepo_root: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PluginConfiguration:
        """Create a configuration from kebab-case keys, validating each value."""
        enabled = data.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ConfigError("'enabled' must be a boolean")

        offline_mode = data.get("offline-mode", False)
        if not isinstance(offline_mode, bool):
            raise ConfigError("'offline-mode' must be a boolean")

        max_depth = data.get("max-discovery-depth", DEFAULT_MAX_DISCOVERY_DEPTH)
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 0:
            raise ConfigError("'max-discovery-depth' must be a non-negative integer")

        excluded = data.get("excluded-directories", [])
        if not isinstance(excluded, (list, tuple)) or any(
            not isinstance(item, str) or not item for item in excluded
        ):
            raise ConfigError("'excluded-directories' must be a list of non-empty strings")

        forced_root = data.get("forced-monorepo-root")
        if forced_root is not None and (not isinstance(forced_root, str) or not forced_root):
            raise ConfigError("'forced-monorepo-root' must be a non-empty string")

        return cls(
            enabled=enabled,
            offline_mode=offline_mode,
            max_discovery_depth=max_depth,
            excluded_directories=tuple(dict.fromkeys(excluded)),
            forced_monorepo_root=forced_root,
        )


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigError(f"{name} must be a boolean, got '{raw}'")


def _read_settings_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read configuration file: {exc}") from exc

    try:
        if path.suffix in {".yml", ".yaml"}:
            data = yaml.safe_load(content) or {}
        else:
            data = json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid configuration file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")
    return data


def _from_environment(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}

    for key in ("enabled", "offline-mode"):
        name = ENV_PREFIX + key.upper().replace("-", "_")
        if name in environ:
            overrides[key] = _parse_bool(name, environ[name])

    name = ENV_PREFIX + "MAX_DISCOVERY_DEPTH"
    if name in environ:
        try:
            overrides["max-discovery-depth"] = int(environ[name])
        except ValueError as exc:
            raise ConfigError(f"{name} must be an integer, got '{environ[name]}'") from exc

    name = ENV_PREFIX + "EXCLUDED_DIRECTORIES"
    if name in environ:
        overrides["excluded-directories"] = [
            item.strip() for item in environ[name].split(",") if item.strip()
        ]

    name = ENV_PREFIX + "FORCED_MONOREPO_ROOT"
    if environ.get(name):
        overrides["forced-monorepo-root"] = environ[name]

    if is_truthy(environ.get("COMPOSER_DISABLE_NETWORK")):
        overrides["offline-mode"] = True

    return overrides


def load_configuration(
    manifest: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    path: Path | str | None = None,
) -> PluginConfiguration:
    """Build the plugin configuration.

    Args:
        manifest: The root package manifest; its ``extra.monorepo-helper``
            object is applied on top of the settings file.
        environ: Environment mapping, defaults to ``os.environ``.
        path: Optional settings file. When omitted, the
            MONOREPO_HELPER_CONFIG environment variable is consulted.

    Raises:
        ConfigError: If any source contains invalid data.
    """
    environ = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    settings_path = path if path is not None else environ.get(CONFIG_PATH_ENV_VAR)
    if settings_path:
        data.update(_read_settings_file(Path(settings_path)))

    extra = (manifest or {}).get("extra") or {}
    section = extra.get(EXTRA_KEY) if isinstance(extra, dict) else None
    if section is not None:
        if not isinstance(section, dict):
            raise ConfigError(f"'extra.{EXTRA_KEY}' must be an object")
        data.update(section)

    data.update(_from_environment(environ))
    return PluginConfiguration.from_dict(data)
