"""Document stores: where persisted resource documents live."""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class DocumentStore:
    """A flat namespace of named text documents.

    Every reconciler operation takes its store explicitly, so the filesystem
    can be swapped for :class:`MemoryStore` in tests.
    """

    @property
    def location(self) -> str:
        raise NotImplementedError

    def names(self) -> list[str]:
        """Return every file name in the store, sorted."""
        raise NotImplementedError

    def read(self, name: str) -> str:
        raise NotImplementedError

    def write(self, name: str, text: str) -> None:
        raise NotImplementedError

    def remove(self, name: str) -> None:
        """Remove *name*; a missing file is not an error."""
        raise NotImplementedError

    def exists(self, name: str) -> bool:
        return name in self.names()


class FileSystemStore(DocumentStore):
    """Documents stored as files in one directory.

    The directory is never created; writing into a missing or read-only
    directory raises the underlying :class:`OSError`.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    @property
    def location(self) -> str:
        return str(self.directory)

    def names(self) -> list[str]:
        return sorted(p.name for p in self.directory.iterdir() if p.is_file())

    def read(self, name: str) -> str:
        return (self.directory / name).read_text(encoding="utf-8")

    def write(self, name: str, text: str) -> None:
        """Write atomically (temp file + fsync + rename)."""
        path = self.directory / name
        fd, tmp_path = tempfile.mkstemp(prefix=f".{name}.", dir=str(self.directory))
        tmp_file = Path(tmp_path)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            tmp_file.replace(path)
        finally:
            with contextlib.suppress(FileNotFoundError):
                tmp_file.unlink()
        logger.debug("Wrote %s", path)

    def remove(self, name: str) -> None:
        with contextlib.suppress(FileNotFoundError):
            (self.directory / name).unlink()
            logger.debug("Removed %s", self.directory / name)

    def exists(self, name: str) -> bool:
        return (self.directory / name).is_file()


class MemoryStore(DocumentStore):
    """In-memory store keyed by file name."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files: dict[str, str] = dict(files or {})

    @property
    def location(self) -> str:
        return "<memory>"

    def names(self) -> list[str]:
        return sorted(self.files)

    def read(self, name: str) -> str:
        try:
            return self.files[name]
        except KeyError as e:
            raise FileNotFoundError(name) from e

    def write(self, name: str, text: str) -> None:
        self.files[name] = text

    def remove(self, name: str) -> None:
        self.files.pop(name, None)

    def exists(self, name: str) -> bool:
        return name in self.files
