"""
Chain pointer persistence.

Layout under ``<base_dir>/<dir_name>/``::

    tracked_files                   one basename per line, first-insertion order
    files/<basename>/root_event_id  id of the file's first published version
    files/<basename>/HEAD           optional explicit head override

Each pointer record holds a single trimmed id followed by a newline. The
store is used from a single driver path; concurrent processes writing the
same directory are not guarded against.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path

from .canonical import is_event_id
from .errors import StorageError

ROOT_EVENT_ID_FILE = "root_event_id"
HEAD_FILE = "HEAD"
TRACKED_FILES = "tracked_files"
FILES_DIR = "files"


@dataclass(frozen=True)
class ChainPointers:
    """Snapshot of one file's pointers."""

    filename: str
    root: str | None
    head: str | None

    @property
    def published(self) -> bool:
        return self.root is not None


def normalize_filename(file: str | os.PathLike[str]) -> str:
    name = os.path.basename(os.fspath(file).rstrip("/\\"))
    if not name or name in (".", ".."):
        raise ValueError(f"not a file name: {file!r}")
    return name


def _read_record(path: Path) -> str | None:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise StorageError(
            f"cannot read {path}: {exc}", path=str(path), cause=exc
        ) from exc
    value = text.strip()
    return value or None


def _write_atomic(path: Path, text: str) -> None:
    temp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except OSError as exc:
        raise StorageError(
            f"cannot write {path}: {exc}", path=str(path), cause=exc
        ) from exc


class ChainStore:
    """Durable filename -> chain pointer mapping plus the tracked-file set."""

    def __init__(self, base_dir: str | Path, dir_name: str = ".orbi") -> None:
        self._root_dir = Path(base_dir) / dir_name

    @property
    def directory(self) -> Path:
        return self._root_dir

    def _file_dir(self, file: str | os.PathLike[str]) -> Path:
        return self._root_dir / FILES_DIR / normalize_filename(file)

    def root_path(self, file: str | os.PathLike[str]) -> Path:
        return self._file_dir(file) / ROOT_EVENT_ID_FILE

    def head_path(self, file: str | os.PathLike[str]) -> Path:
        return self._file_dir(file) / HEAD_FILE

    @property
    def tracked_path(self) -> Path:
        return self._root_dir / TRACKED_FILES

    async def read_root(self, file: str | os.PathLike[str]) -> str | None:
        """Root event id, or None when the file was never published."""
        return await asyncio.to_thread(_read_record, self.root_path(file))

    async def read_head(self, file: str | os.PathLike[str]) -> str | None:
        """Explicit head, or None meaning the latest commit is the head."""
        return await asyncio.to_thread(_read_record, self.head_path(file))

    async def pointers(self, file: str | os.PathLike[str]) -> ChainPointers:
        return ChainPointers(
            filename=normalize_filename(file),
            root=await self.read_root(file),
            head=await self.read_head(file),
        )

    async def write_root(self, file: str | os.PathLike[str], event_id: str) -> None:
        """Record the root id.

        Callers must check ``read_root`` first; an existing root is never
        meant to be replaced and this method does not guard against it.
        """
        _ensure_id(event_id)
        await asyncio.to_thread(_write_atomic, self.root_path(file), event_id + "\n")

    async def write_head(self, file: str | os.PathLike[str], event_id: str) -> None:
        _ensure_id(event_id)
        await asyncio.to_thread(_write_atomic, self.head_path(file), event_id + "\n")

    async def track_file(self, file: str | os.PathLike[str]) -> bool:
        """Append the basename to the tracked set; returns False if already there."""
        name = normalize_filename(file)
        return await asyncio.to_thread(self._append_tracked, name)

    async def list_tracked(self) -> list[str]:
        return await asyncio.to_thread(self._read_tracked)

    def _read_tracked(self) -> list[str]:
        try:
            text = self.tracked_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageError(
                f"cannot read {self.tracked_path}: {exc}",
                path=str(self.tracked_path),
                cause=exc,
            ) from exc
        seen: dict[str, None] = {}
        for line in text.split("\n"):
            # names are stored verbatim; only a CRLF ending is tolerated
            name = line.removesuffix("\r")
            if name:
                seen.setdefault(name, None)
        return list(seen)

    def _append_tracked(self, name: str) -> bool:
        if name in self._read_tracked():
            return False
        path = self.tracked_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            needs_newline = path.exists() and not path.read_bytes().endswith(b"\n")
            with open(path, "a", encoding="utf-8") as f:
                if needs_newline:
                    f.write("\n")
                f.write(name + "\n")
        except OSError as exc:
            raise StorageError(
                f"cannot write {path}: {exc}", path=str(path), cause=exc
            ) from exc
        return True


def _ensure_id(event_id: str) -> None:
    if not is_event_id(event_id):
        raise ValueError(f"not an event id: {event_id!r}")
