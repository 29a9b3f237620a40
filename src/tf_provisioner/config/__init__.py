"""Settings loading and a convenience API over the instance plugin."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tf_provisioner.config.loader import ConfigError, load_instance_spec, load_settings
from tf_provisioner.config.schema import Config, ImportOptions, PluginSettings
from tf_provisioner.core.store import FileSystemStore
from tf_provisioner.engine.reconciler import InstancePlugin

if TYPE_CHECKING:
    from pathlib import Path

    from tf_provisioner.engine.collaborator import TerraformCollaborator

__all__ = [
    "Config",
    "ConfigError",
    "ImportOptions",
    "PluginSettings",
    "load",
    "load_instance_spec",
    "load_settings",
    "plugin_from_config",
    "process_import",
]

logger = logging.getLogger(__name__)


def load(path: Path | str | None = None) -> Config:
    """Load a YAML settings file (or the environment when *path* is None)."""
    return load_settings(path)


def plugin_from_config(
    config: Config,
    *,
    directory: Path | None = None,
    collaborator: TerraformCollaborator | None = None,
) -> InstancePlugin:
    """Build an ``InstancePlugin`` over the configured document directory."""
    store = FileSystemStore(directory if directory is not None else config.plugin.directory)
    return InstancePlugin(store, collaborator)


def process_import(config: Config, plugin: InstancePlugin) -> str | None:
    """Run the import requested in *config*, if any, and return the instance ID."""
    options = config.import_
    if not options.requested:
        return None
    assert options.instance_spec is not None
    assert options.instance_id is not None
    instance_id = plugin.import_resource(options.instance_id, options.instance_spec)
    logger.info("Processed import of %s as %s", options.instance_id, instance_id)
    return instance_id
