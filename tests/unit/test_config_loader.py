"""Tests for the settings and instance spec loaders."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from tf_provisioner.config.loader import ConfigError, load_instance_spec, load_settings

if TYPE_CHECKING:
    from collections.abc import Callable

    from tf_provisioner.config.schema import Config


class TestLoadSettings:
    def test_relative_directory_resolved_against_config(
        self, make_config: Callable[..., Config], tmp_path: Path
    ) -> None:
        config = make_config("plugin:\n  directory: docs\n")
        assert config.plugin.directory == tmp_path / "docs"

    def test_absolute_directory_kept(
        self, make_config: Callable[..., Config], tmp_path: Path
    ) -> None:
        target = tmp_path / "abs"
        config = make_config(f"plugin:\n  directory: {target}\n")
        assert config.plugin.directory == target

    def test_env_used_when_yaml_silent(
        self,
        make_config: Callable[..., Config],
        monkeypatch: pytest.MonkeyPatch,
        tmp_path: Path,
    ) -> None:
        monkeypatch.setenv("TFP_DIRECTORY", str(tmp_path / "from-env"))
        config = make_config("plugin: {}\n")
        assert config.plugin.directory == tmp_path / "from-env"

    def test_yaml_beats_env(
        self,
        make_config: Callable[..., Config],
        monkeypatch: pytest.MonkeyPatch,
        tmp_path: Path,
    ) -> None:
        monkeypatch.setenv("TFP_DIRECTORY", "/elsewhere")
        config = make_config("plugin:\n  directory: docs\n")
        assert config.plugin.directory == tmp_path / "docs"

    def test_dotenv_used_last(self, make_config: Callable[..., Config], tmp_path: Path) -> None:
        config = make_config("{}\n", dotenv="TFP_DIRECTORY=dotenv-docs\n")
        assert config.plugin.directory == tmp_path / "dotenv-docs"

    def test_env_beats_dotenv(
        self,
        make_config: Callable[..., Config],
        monkeypatch: pytest.MonkeyPatch,
        tmp_path: Path,
    ) -> None:
        monkeypatch.setenv("TFP_DIRECTORY", "env-docs")
        config = make_config("{}\n", dotenv="TFP_DIRECTORY=dotenv-docs\n")
        assert config.plugin.directory == tmp_path / "env-docs"

    def test_without_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        assert load_settings().plugin.directory == Path()
        monkeypatch.setenv("TFP_DIRECTORY", "/srv/docs")
        assert load_settings().plugin.directory == Path("/srv/docs")

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Failed to read"):
            load_settings(tmp_path / "nope.yaml")

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="expected a mapping"):
            load_settings(path)


class TestImportOptions:
    def test_absent(self, make_config: Callable[..., Config]) -> None:
        assert not make_config("{}\n").import_.requested

    def test_spec_and_id(self, make_config: Callable[..., Config]) -> None:
        config = make_config(
            """\
import:
  instance_id: i-123
  instance_spec:
    tags:
      env: dev
    properties:
      resource:
        aws_instance:
          host:
            ami: ami-1
"""
        )
        options = config.import_
        assert options.requested
        assert options.instance_id == "i-123"
        assert options.instance_spec is not None
        assert json.loads(options.instance_spec.properties or "") == {
            "resource": {"aws_instance": {"host": {"ami": "ami-1"}}}
        }

    def test_spec_without_id(self, make_config: Callable[..., Config]) -> None:
        with pytest.raises(
            ConfigError, match="Import instance ID required with import instance spec"
        ):
            make_config("import:\n  instance_spec:\n    init: boot\n")

    def test_empty_id_counts_as_absent(self, make_config: Callable[..., Config]) -> None:
        with pytest.raises(
            ConfigError, match="Import instance ID required with import instance spec"
        ):
            make_config("import:\n  instance_id: ''\n  instance_spec:\n    init: boot\n")

    def test_id_without_spec(self, make_config: Callable[..., Config]) -> None:
        with pytest.raises(
            ConfigError, match="Import instance spec required with import instance ID"
        ):
            make_config("import:\n  instance_id: i-123\n")


class TestLoadInstanceSpec:
    def test_yaml_with_inline_properties(self, tmp_path: Path) -> None:
        path = tmp_path / "spec.yaml"
        path.write_text(
            """\
logical_id: lid-1
init: echo hi
tags:
  env: dev
attachments:
  - id: vol-1
    type: ebs
properties:
  resource:
    aws_instance:
      host:
        ami: ami-1
"""
        )
        spec = load_instance_spec(path)
        assert spec.logical_id == "lid-1"
        assert spec.init == "echo hi"
        assert spec.tags == {"env": "dev"}
        assert spec.attachments[0].id == "vol-1"
        assert json.loads(spec.properties or "") == {
            "resource": {"aws_instance": {"host": {"ami": "ami-1"}}}
        }

    def test_json_with_string_properties(self, tmp_path: Path) -> None:
        path = tmp_path / "spec.json"
        properties = json.dumps({"resource": {"aws_instance": {"host": {}}}})
        path.write_text(json.dumps({"properties": properties}))
        assert load_instance_spec(path).properties == properties

    def test_invalid_field(self, tmp_path: Path) -> None:
        path = tmp_path / "spec.yaml"
        path.write_text("tags: [a, b]\n")
        with pytest.raises(ConfigError):
            load_instance_spec(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "spec.yaml"
        path.write_text("just text\n")
        with pytest.raises(ConfigError, match="expected a mapping"):
            load_instance_spec(path)
