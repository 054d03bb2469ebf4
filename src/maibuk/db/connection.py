# ABOUTME: Owned, lazily initialized database handle for the Maibuk document store.
# ABOUTME: Picks a backend, applies the schema once per adapter lifetime, and tears it down.

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Literal

from maibuk.db.adapter import DatabaseAdapter
from maibuk.db.embedded import create_embedded_database
from maibuk.db.native import create_native_database
from maibuk.db.schema import initialize_schema
from maibuk.db.snapshots import (
    BlockStore,
    DirectoryBlockStore,
    FileKeyValueStore,
    KeyValueStore,
)

DEFAULT_DB_PATH = Path.home() / ".maibuk" / "maibuk.db"

Backend = Literal["native", "embedded"]
BACKENDS: tuple[str, ...] = ("native", "embedded")

AdapterFactory = Callable[[], Awaitable[DatabaseAdapter]]

# Tables in the order their rows must be deleted (chapters reference books).
_RESET_ORDER = ("chapters", "books", "cover_templates", "settings")


class Database:
    """Explicitly owned handle to one storage adapter.

    The adapter is created and the schema applied the first time
    get_adapter() is awaited; concurrent first calls share one
    initialization. close() tears the adapter down, after which the next
    get_adapter() starts over.
    """

    def __init__(self, factory: AdapterFactory) -> None:
        self._factory = factory
        self._adapter: DatabaseAdapter | None = None
        self._lock = asyncio.Lock()

    async def get_adapter(self) -> DatabaseAdapter:
        async with self._lock:
            if self._adapter is None:
                adapter = await self._factory()
                await initialize_schema(adapter)
                self._adapter = adapter
            return self._adapter

    async def close(self) -> None:
        async with self._lock:
            if self._adapter is not None:
                await self._adapter.close()
                self._adapter = None

    async def export_data(self) -> bytes:
        """Portable SQL dump of every table."""
        adapter = await self.get_adapter()
        return await adapter.export_data()

    async def reset(self) -> None:
        """Delete every row from every table, keeping the schema."""
        adapter = await self.get_adapter()
        for table in _RESET_ORDER:
            await adapter.execute(f"DELETE FROM {table}")


def open_database(
    path: Path | None = None,
    *,
    backend: Backend = "native",
    kv_store: KeyValueStore | None = None,
    block_store: BlockStore | None = None,
) -> Database:
    """Build a Database handle for the chosen backend.

    Nothing is opened until the handle's adapter is first requested.

    Args:
        path: Database file for the native backend. Defaults to
            ~/.maibuk/maibuk.db. For the embedded backend it locates the
            default on-disk stores when none are supplied.
        backend: "native" (file-backed) or "embedded" (in-memory image
            snapshotted into the key-value and block stores).
        kv_store: Small store for the embedded backend.
        block_store: Large store for the embedded backend.

    Returns:
        An unopened Database handle.

    Raises:
        ValueError: If backend is not a known backend name.
    """
    db_path = path or DEFAULT_DB_PATH

    if backend == "native":
        return Database(lambda: create_native_database(db_path))

    if backend == "embedded":
        store_dir = db_path.parent / f"{db_path.stem}-store"
        kv = kv_store or FileKeyValueStore(store_dir / "local-storage.json")
        blocks = block_store or DirectoryBlockStore(store_dir / "blocks")
        return Database(lambda: create_embedded_database(kv, blocks))

    raise ValueError(f"Unknown storage backend: {backend!r}")
