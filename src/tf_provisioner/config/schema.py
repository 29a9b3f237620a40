"""Configuration models for the plugin settings file."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tf_provisioner.engine.types import InstanceSpec  # noqa: TC001 (needed at runtime)


class PluginSettings(BaseSettings):
    """Plugin settings.

    Fields can be set via YAML (constructor kwargs) or environment variables
    with the ``TFP_`` prefix.  Constructor kwargs take precedence.
    """

    model_config = SettingsConfigDict(env_prefix="TFP_")

    directory: Path = Path()


class ImportOptions(BaseModel):
    """Adopt an existing resource when the plugin starts.

    ``instance_spec`` and ``instance_id`` must be given together; an empty
    ID counts as absent.
    """

    instance_spec: InstanceSpec | None = None
    instance_id: str | None = None

    @model_validator(mode="after")
    def _check_pair(self) -> ImportOptions:
        if self.instance_spec is not None and not self.instance_id:
            raise ValueError("Import instance ID required with import instance spec")
        if self.instance_spec is None and self.instance_id:
            raise ValueError("Import instance spec required with import instance ID")
        return self

    @property
    def requested(self) -> bool:
        return self.instance_spec is not None


class Config(BaseModel):
    """Settings file: plugin settings plus optional import request."""

    model_config = ConfigDict(populate_by_name=True)

    plugin: PluginSettings = Field(default_factory=PluginSettings)
    import_: ImportOptions = Field(default_factory=ImportOptions, alias="import")
