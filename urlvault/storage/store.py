"""Content store: the filesystem hierarchy behind ingest and search.

Writes report failures as WriteResult values instead of raising, so callers
decide what to surface. Listing failures raise StoreError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import os
import posixpath
from typing import Dict, Iterator, List, Optional, Set, Tuple

from urlvault.errors import StoreError


@dataclass(frozen=True)
class WriteResult:
    path: str
    ok: bool
    bytes_written: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class StoredFile:
    path: str
    absolute_path: str

    @property
    def name(self) -> str:
        return posixpath.basename(self.path)

    @property
    def extension(self) -> str:
        name = self.name
        return name.rsplit(".", 1)[1] if "." in name else ""


def normalize_path(path: str) -> Optional[str]:
    """Collapse "//" and "." segments; None if the path leaves the root."""
    if not path:
        return ""
    norm = posixpath.normpath(path.replace("\\", "/"))
    if norm == ".":
        return ""
    if norm.startswith("/") or norm == ".." or norm.startswith("../"):
        return None
    return norm


class ContentStore(ABC):
    """Store addressed by "/"-separated paths relative to its root."""

    @abstractmethod
    def ensure_dir(self, path: str) -> WriteResult:
        """Create path and missing parents; an existing directory is not an error."""

    @abstractmethod
    def put(self, path: str, data: bytes) -> WriteResult:
        """Write data to path, replacing any existing file. Parents must exist."""

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Return file bytes; raises StoreError if unreadable."""

    @abstractmethod
    def is_dir(self, path: str) -> bool: ...

    @abstractmethod
    def is_file(self, path: str) -> bool: ...

    @abstractmethod
    def absolute_path(self, path: str) -> str: ...

    @abstractmethod
    def _list_dir(self, path: str) -> List[Tuple[str, bool]]:
        """(name, is_dir) pairs for the entries of path; raises OSError."""

    def walk_files(self, root: str) -> Iterator[StoredFile]:
        """Depth-first, pre-order walk of every file under root.

        Entries are visited in name order. Lazy: a listing error surfaces as
        StoreError when the walk reaches the failing directory.
        """
        norm = normalize_path(root)
        if norm is None:
            raise StoreError(f"Path outside store: {root}")
        yield from self._walk(norm)

    def _walk(self, path: str) -> Iterator[StoredFile]:
        try:
            entries = sorted(self._list_dir(path))
        except OSError as e:
            raise StoreError(f"Cannot list {path or '.'}: {e}") from e
        for name, is_dir in entries:
            child = f"{path}/{name}" if path else name
            if is_dir:
                yield from self._walk(child)
            else:
                yield StoredFile(path=child, absolute_path=self.absolute_path(child))


class FilesystemStore(ContentStore):
    def __init__(self, root: str):
        self.root = os.path.abspath(root)

    def _resolve(self, path: str) -> Optional[str]:
        norm = normalize_path(path)
        if norm is None:
            return None
        return os.path.join(self.root, *norm.split("/")) if norm else self.root

    def ensure_dir(self, path: str) -> WriteResult:
        target = self._resolve(path)
        if target is None:
            return WriteResult(path=path, ok=False, error="path outside store")
        try:
            os.makedirs(target, exist_ok=True)
        except (OSError, ValueError) as e:
            return WriteResult(path=path, ok=False, error=str(e))
        return WriteResult(path=path, ok=True)

    def put(self, path: str, data: bytes) -> WriteResult:
        target = self._resolve(path)
        if target is None:
            return WriteResult(path=path, ok=False, error="path outside store")
        try:
            with open(target, "wb") as f:
                written = f.write(data)
        except (OSError, ValueError) as e:
            return WriteResult(path=path, ok=False, error=str(e))
        return WriteResult(path=path, ok=True, bytes_written=written)

    def read(self, path: str) -> bytes:
        target = self._resolve(path)
        if target is None:
            raise StoreError(f"Path outside store: {path}")
        try:
            with open(target, "rb") as f:
                return f.read()
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot read {path}: {e}") from e

    def is_dir(self, path: str) -> bool:
        target = self._resolve(path)
        return target is not None and os.path.isdir(target)

    def is_file(self, path: str) -> bool:
        target = self._resolve(path)
        return target is not None and os.path.isfile(target)

    def absolute_path(self, path: str) -> str:
        target = self._resolve(path)
        if target is None:
            raise StoreError(f"Path outside store: {path}")
        return target

    def _list_dir(self, path: str) -> List[Tuple[str, bool]]:
        target = self._resolve(path)
        if target is None:
            raise OSError(f"path outside store: {path}")
        with os.scandir(target) as it:
            return [(entry.name, entry.is_dir(follow_symlinks=False)) for entry in it]


class MemoryStore(ContentStore):
    """In-process store with filesystem semantics, for tests and dry runs."""

    def __init__(self):
        self.dirs: Set[str] = {""}
        self.files: Dict[str, bytes] = {}

    def ensure_dir(self, path: str) -> WriteResult:
        norm = normalize_path(path)
        if norm is None:
            return WriteResult(path=path, ok=False, error="path outside store")
        if norm in self.files:
            return WriteResult(path=path, ok=False, error="File exists")
        parts = norm.split("/") if norm else []
        for i in range(1, len(parts) + 1):
            ancestor = "/".join(parts[:i])
            if ancestor in self.files:
                return WriteResult(path=path, ok=False, error="Not a directory")
            self.dirs.add(ancestor)
        return WriteResult(path=path, ok=True)

    def put(self, path: str, data: bytes) -> WriteResult:
        norm = normalize_path(path)
        if not norm:
            return WriteResult(path=path, ok=False, error="invalid path")
        if posixpath.dirname(norm) not in self.dirs:
            return WriteResult(path=path, ok=False, error="No such file or directory")
        if norm in self.dirs:
            return WriteResult(path=path, ok=False, error="Is a directory")
        self.files[norm] = bytes(data)
        return WriteResult(path=path, ok=True, bytes_written=len(data))

    def read(self, path: str) -> bytes:
        norm = normalize_path(path)
        if norm not in self.files:
            raise StoreError(f"Cannot read {path}: no such file")
        return self.files[norm]

    def is_dir(self, path: str) -> bool:
        return normalize_path(path) in self.dirs

    def is_file(self, path: str) -> bool:
        return normalize_path(path) in self.files

    def absolute_path(self, path: str) -> str:
        norm = normalize_path(path)
        if norm is None:
            raise StoreError(f"Path outside store: {path}")
        return "/" + norm

    def _list_dir(self, path: str) -> List[Tuple[str, bool]]:
        if path not in self.dirs:
            raise FileNotFoundError(f"No such directory: {path}")
        prefix = f"{path}/" if path else ""
        entries = []
        for d in self.dirs:
            if d and d.startswith(prefix) and "/" not in d[len(prefix):]:
                entries.append((d[len(prefix):], True))
        for f in self.files:
            if f.startswith(prefix) and "/" not in f[len(prefix):]:
                entries.append((f[len(prefix):], False))
        return entries
