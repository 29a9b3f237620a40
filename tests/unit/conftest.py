"""Shared fixtures for unit tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tf_provisioner.config import load
from tf_provisioner.core.store import FileSystemStore, MemoryStore
from tf_provisioner.engine.reconciler import InstancePlugin

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from tf_provisioner.config.schema import Config

_TFP_ENV_VARS = ("TFP_DIRECTORY", "TFP_LOG", "NO_COLOR")


@pytest.fixture(autouse=True)
def _clean_tfp_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove TFP_* env vars so unit tests don't leak host config."""
    for var in _TFP_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """Deterministic instance IDs: instance-1, instance-2, ..."""
    counter = iter(range(1, 1000))
    return lambda: f"instance-{next(counter)}"


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def fs_store(tmp_path: Path) -> FileSystemStore:
    docs = tmp_path / "docs"
    docs.mkdir()
    return FileSystemStore(docs)


@pytest.fixture
def plugin(memory_store: MemoryStore, id_factory: Callable[[], str]) -> InstancePlugin:
    return InstancePlugin(memory_store, id_factory=id_factory)


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., Config]:
    """Factory fixture: write YAML + optional .env, return loaded Config."""

    def _make(yaml_str: str, *, dotenv: str | None = None) -> Config:
        (tmp_path / "config.yaml").write_text(yaml_str)
        if dotenv is not None:
            (tmp_path / ".env").write_text(dotenv)
        return load(tmp_path / "config.yaml")

    return _make
