"""YAML settings and instance spec file loaders."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
from pydantic import ValidationError
from ruamel.yaml import YAML

from tf_provisioner.config.schema import Config, PluginSettings
from tf_provisioner.engine.types import InstanceSpec

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised for configuration loading / validation errors."""


# Field name → environment variable.
_PLUGIN_ENV_MAP: dict[str, str] = {
    "directory": "TFP_DIRECTORY",
}


def _resolve_plugin(raw_plugin: dict[str, Any], config_dir: Path) -> dict[str, Any]:
    """Resolve plugin fields from YAML, env vars, and ``.env`` file.

    Priority (highest wins): YAML value > env var > ``.env`` file.
    """
    env_file = config_dir / ".env"
    dotenv_vals = dotenv_values(env_file, encoding="utf-8-sig") if env_file.is_file() else {}

    resolved: dict[str, Any] = {}
    for field, env_key in _PLUGIN_ENV_MAP.items():
        val = raw_plugin.get(field)
        if val is None:
            val = os.environ.get(env_key)
        if val is None:
            val = dotenv_vals.get(env_key)
        if val is not None:
            resolved[field] = val
    return resolved


def _read_yaml(path: Path) -> Any:
    try:
        return YAML(typ="safe").load(path)
    except Exception as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc


def load_settings(path: Path | str | None = None) -> Config:
    """Load the settings file, or settings from the environment alone.

    A relative ``plugin.directory`` is resolved against the file's directory.

    Raises:
        ConfigError: On YAML parse errors or validation failures.
    """
    if path is None:
        try:
            return Config(plugin=PluginSettings())
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc

    path = Path(path)
    raw = _read_yaml(path) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")

    try:
        raw["plugin"] = _resolve_plugin(raw.get("plugin") or {}, path.parent)
        config = Config.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc

    if not config.plugin.directory.is_absolute():
        config.plugin.directory = path.parent / config.plugin.directory

    logger.info("Loaded settings from %s (directory %s)", path, config.plugin.directory)
    return config


def load_instance_spec(path: Path | str) -> InstanceSpec:
    """Load an instance spec from a YAML or JSON file.

    ``properties`` may be given either as JSON text or as an inline mapping.

    Raises:
        ConfigError: On parse errors or validation failures.
    """
    path = Path(path)
    raw = _read_yaml(path)
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    try:
        spec = InstanceSpec.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
    logger.debug("Loaded instance spec from %s", path)
    return spec
