# ABOUTME: Host-provided stores that hold the embedded database image between sessions.
# ABOUTME: A small string key-value store and a larger binary block store, in memory or on disk.

import json
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """Small string store (the browser's localStorage shape)."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


@runtime_checkable
class BlockStore(Protocol):
    """Larger origin-scoped binary store (the IndexedDB object store shape)."""

    def get(self, key: str) -> bytes | None: ...

    def put(self, key: str, data: bytes) -> None: ...


class MemoryKeyValueStore:
    """KeyValueStore kept in a dict. Useful for tests and throwaway sessions."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class MemoryBlockStore:
    """BlockStore kept in a dict."""

    def __init__(self) -> None:
        self._blocks: dict[str, bytes] = {}

    def get(self, key: str) -> bytes | None:
        return self._blocks.get(key)

    def put(self, key: str, data: bytes) -> None:
        self._blocks[key] = bytes(data)


class FileKeyValueStore:
    """KeyValueStore persisted as a single JSON object file.

    The whole file is rewritten on every set, via a temporary sibling that
    then replaces the original.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable key-value store %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, items: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(json.dumps(items), encoding="utf-8")
        tmp.replace(self._path)

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        self._write(items)

    def remove_item(self, key: str) -> None:
        items = self._read()
        if items.pop(key, None) is not None:
            self._write(items)


class DirectoryBlockStore:
    """BlockStore writing one file per key under a root directory."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def _path_for(self, key: str) -> Path:
        return self._root / f"{key}.bin"

    def get(self, key: str) -> bytes | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def put(self, key: str, data: bytes) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        path = self._path_for(key)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_bytes(data)
        tmp.replace(path)
