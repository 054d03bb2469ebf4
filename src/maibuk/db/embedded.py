# ABOUTME: In-memory SQLite storage adapter whose byte image is snapshotted after every write.
# ABOUTME: Small images go base64 into a key-value store, large ones into a block store.

import asyncio
import base64
import logging
import sqlite3
from typing import Literal

from maibuk.db.adapter import Params, Row
from maibuk.db.dump import render_sql_dump
from maibuk.db.snapshots import BlockStore, KeyValueStore

logger = logging.getLogger(__name__)

DB_STORAGE_KEY = "maibuk-database"
BLOCK_STORAGE_KEY = "main"
SMALL_STORE_LIMIT = 5 * 1024 * 1024  # 5 MiB

SnapshotTarget = Literal["key-value", "block"]


def persist_image(
    data: bytes, kv_store: KeyValueStore, block_store: BlockStore
) -> SnapshotTarget:
    """Write a serialized database image to the store its size calls for.

    Images under SMALL_STORE_LIMIT are base64-encoded into the key-value
    store. Larger images go to the block store, and any key-value copy is
    removed so that restore (which checks the key-value store first) cannot
    pick up an older image.

    Returns:
        Which store received the image.
    """
    if len(data) < SMALL_STORE_LIMIT:
        kv_store.set_item(DB_STORAGE_KEY, base64.b64encode(data).decode("ascii"))
        return "key-value"
    block_store.put(BLOCK_STORAGE_KEY, data)
    kv_store.remove_item(DB_STORAGE_KEY)
    return "block"


def _open_image(data: bytes | None) -> sqlite3.Connection:
    """Open an in-memory connection, loaded from data when given.

    sqlite only notices a bad image on first access, so the schema table is
    read once before the connection is handed out.
    """
    conn = sqlite3.connect(":memory:")
    try:
        if data is not None:
            conn.deserialize(data)
            conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
    except sqlite3.DatabaseError:
        conn.close()
        raise
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def restore_image(kv_store: KeyValueStore, block_store: BlockStore) -> sqlite3.Connection:
    """Restore the last persisted image, or start an empty database.

    Tries the key-value store first and the block store second. Any failure
    along the way is logged and the next source is tried; this never raises.
    """
    try:
        saved = kv_store.get_item(DB_STORAGE_KEY)
        if saved:
            return _open_image(base64.b64decode(saved, validate=True))
    except (OSError, ValueError, sqlite3.DatabaseError) as exc:
        logger.warning("Failed to restore from key-value store, trying block store: %s", exc)

    try:
        blob = block_store.get(BLOCK_STORAGE_KEY)
        if blob:
            return _open_image(blob)
    except (OSError, ValueError, sqlite3.DatabaseError) as exc:
        logger.warning("Failed to restore from block store: %s", exc)

    return _open_image(None)


class EmbeddedDatabaseAdapter:
    """DatabaseAdapter over an in-memory database that snapshots itself.

    The database image is a single process-wide resource: every mutating
    execute and the persistence of its resulting image happen under one lock,
    so a snapshot always reflects the last applied mutation.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        kv_store: KeyValueStore,
        block_store: BlockStore,
    ) -> None:
        self._conn = conn
        self._kv_store = kv_store
        self._block_store = block_store
        self._lock = asyncio.Lock()

    async def execute(self, sql: str, params: Params | None = None) -> int:
        async with self._lock:
            cursor = self._conn.execute(sql, tuple(params or ()))
            self._conn.commit()
            rowcount = cursor.rowcount
            await self._persist()
        return rowcount

    async def select(self, sql: str, params: Params | None = None) -> list[Row]:
        cursor = self._conn.execute(sql, tuple(params or ()))
        return [dict(row) for row in cursor.fetchall()]

    async def close(self) -> None:
        async with self._lock:
            await self._persist()
            self._conn.close()

    async def export_data(self) -> bytes:
        """Same SQL dump as the native adapter, for format parity."""
        return await render_sql_dump(self)

    async def _persist(self) -> None:
        """Snapshot the image into the host stores.

        A failed write is logged and swallowed: the in-memory database stays
        usable for the rest of the session.
        """
        try:
            data = self._conn.serialize()
            target = await asyncio.to_thread(
                persist_image, data, self._kv_store, self._block_store
            )
        except Exception as exc:  # host stores may fail in arbitrary ways
            logger.error("Failed to persist database: %s", exc)
            return
        logger.debug("Persisted %d byte database image to %s store", len(data), target)


async def create_embedded_database(
    kv_store: KeyValueStore, block_store: BlockStore
) -> EmbeddedDatabaseAdapter:
    """Create an embedded adapter, restoring any previously persisted image."""
    conn = restore_image(kv_store, block_store)
    return EmbeddedDatabaseAdapter(conn, kv_store, block_store)
