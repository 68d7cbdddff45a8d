"""Key-value storage backends for package content."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Protocol

from .errors import StorageError
from .keyspace import parse_key

if TYPE_CHECKING:
    from ..config import RegistrySettings

logger = logging.getLogger(__name__)

CONTENT_FILENAME = "init.txt"


class KeyValueStore(Protocol):
    """Single-key get/put plus full key enumeration. No transactions."""

    def get(self, key: str) -> Optional[str]: ...

    def put(self, key: str, content: str) -> None: ...

    def list(self) -> list[str]: ...


class MemoryStore:
    """Dict-backed store; enumerates keys in insertion order."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def put(self, key: str, content: str) -> None:
        self._data[key] = content

    def list(self) -> list[str]:
        return list(self._data.keys())

    def __len__(self) -> int:
        return len(self._data)


class FileStore:
    """Directory tree store: ``root/owner/name/version/init.txt``."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _path_for(self, key: str) -> Path:
        pkg = parse_key(key)
        root_r = self.root.resolve()
        target = (self.root / pkg.owner / pkg.name / pkg.version / CONTENT_FILENAME).resolve()
        if not target.is_relative_to(root_r):
            raise StorageError(f"Key escapes storage root: {key!r}")
        return target

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            if not path.is_file():
                return None
            return path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def put(self, key: str, content: str) -> None:
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content.encode("utf-8"))
        except (OSError, UnicodeEncodeError) as e:
            raise StorageError(f"Failed to write {key}: {e}") from e
        logger.debug("Wrote %d bytes to %s", len(content), path)

    def list(self) -> list[str]:
        if not self.root.exists():
            return []
        try:
            files = sorted(self.root.glob(f"*/*/*/{CONTENT_FILENAME}"))
        except OSError as e:
            raise StorageError(f"Failed to list {self.root}: {e}") from e
        keys = []
        for f in files:
            if not f.is_file():
                continue
            rel = f.parent.relative_to(self.root)
            keys.append("/".join(rel.parts))
        return keys


def create_store(settings: "RegistrySettings") -> KeyValueStore:
    """Build the backend named by ``settings.storage``."""
    if settings.storage == "memory":
        return MemoryStore()
    if settings.storage == "file":
        return FileStore(Path(settings.storage_path))
    raise ValueError(f"Unknown storage backend: {settings.storage!r}")
