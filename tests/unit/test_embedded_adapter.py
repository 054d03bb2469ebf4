# ABOUTME: Unit tests for the embedded in-memory adapter and its snapshot stores.
# ABOUTME: Covers size-based store routing, restore fallbacks, and swallowed persist failures.

import asyncio
import base64
import logging
import sqlite3
from pathlib import Path

import pytest

from maibuk.db.embedded import (
    BLOCK_STORAGE_KEY,
    DB_STORAGE_KEY,
    EmbeddedDatabaseAdapter,
    create_embedded_database,
    persist_image,
    restore_image,
)
from maibuk.db.schema import initialize_schema
from maibuk.db.snapshots import (
    BlockStore,
    DirectoryBlockStore,
    FileKeyValueStore,
    KeyValueStore,
    MemoryBlockStore,
    MemoryKeyValueStore,
)

MIB = 1024 * 1024


class FailingKeyValueStore(MemoryKeyValueStore):
    """Key-value store whose writes always fail, like a full localStorage."""

    def set_item(self, key: str, value: str) -> None:
        raise OSError("quota exceeded")


def _image_with_marker(marker: str) -> bytes:
    conn = sqlite3.connect(":memory:")
    conn.execute("CREATE TABLE marker (value TEXT)")
    conn.execute("INSERT INTO marker VALUES (?)", (marker,))
    conn.commit()
    data = conn.serialize()
    conn.close()
    return data


def _marker(conn: sqlite3.Connection) -> str | None:
    tables = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'marker'"
    ).fetchall()
    if not tables:
        return None
    return conn.execute("SELECT value FROM marker").fetchone()[0]


@pytest.fixture()
def kv() -> MemoryKeyValueStore:
    """Empty in-memory key-value store."""
    return MemoryKeyValueStore()


@pytest.fixture()
def blocks() -> MemoryBlockStore:
    """Empty in-memory block store."""
    return MemoryBlockStore()


class TestPersistImage:
    """Tests for routing snapshots by size."""

    def test_small_image_goes_to_key_value_store(
        self, kv: MemoryKeyValueStore, blocks: MemoryBlockStore
    ) -> None:
        """A 2 MiB image is stored base64-encoded under the database key."""
        data = b"a" * (2 * MIB)
        assert persist_image(data, kv, blocks) == "key-value"
        stored = kv.get_item(DB_STORAGE_KEY)
        assert stored is not None
        assert base64.b64decode(stored) == data
        assert blocks.get(BLOCK_STORAGE_KEY) is None

    def test_large_image_goes_to_block_store(
        self, kv: MemoryKeyValueStore, blocks: MemoryBlockStore
    ) -> None:
        """A 6 MiB image is stored raw in the block store."""
        data = b"b" * (6 * MIB)
        assert persist_image(data, kv, blocks) == "block"
        assert blocks.get(BLOCK_STORAGE_KEY) == data

    def test_large_image_clears_stale_small_copy(
        self, kv: MemoryKeyValueStore, blocks: MemoryBlockStore
    ) -> None:
        """Growing past the limit removes the older key-value snapshot."""
        persist_image(b"small", kv, blocks)
        persist_image(b"c" * (6 * MIB), kv, blocks)
        assert kv.get_item(DB_STORAGE_KEY) is None

    def test_stores_satisfy_protocols(self, tmp_path: Path) -> None:
        """Memory and file-backed stores satisfy the store protocols."""
        assert isinstance(MemoryKeyValueStore(), KeyValueStore)
        assert isinstance(FileKeyValueStore(tmp_path / "kv.json"), KeyValueStore)
        assert isinstance(MemoryBlockStore(), BlockStore)
        assert isinstance(DirectoryBlockStore(tmp_path / "blocks"), BlockStore)


class TestRestoreImage:
    """Tests for restore priority and fallbacks."""

    def test_empty_stores_give_empty_database(
        self, kv: MemoryKeyValueStore, blocks: MemoryBlockStore
    ) -> None:
        """With nothing persisted, restore opens a fresh database."""
        conn = restore_image(kv, blocks)
        assert conn.execute("SELECT count(*) FROM sqlite_master").fetchone()[0] == 0

    def test_key_value_store_wins(
        self, kv: MemoryKeyValueStore, blocks: MemoryBlockStore
    ) -> None:
        """When both stores hold an image, the key-value one is used."""
        kv.set_item(DB_STORAGE_KEY, base64.b64encode(_image_with_marker("kv")).decode())
        blocks.put(BLOCK_STORAGE_KEY, _image_with_marker("block"))
        assert _marker(restore_image(kv, blocks)) == "kv"

    def test_corrupt_key_value_falls_back_to_block(
        self, kv: MemoryKeyValueStore, blocks: MemoryBlockStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Undecodable key-value data is logged and the block image is used."""
        kv.set_item(DB_STORAGE_KEY, "not base64 at all!")
        blocks.put(BLOCK_STORAGE_KEY, _image_with_marker("block"))
        with caplog.at_level(logging.WARNING, logger="maibuk.db.embedded"):
            conn = restore_image(kv, blocks)
        assert _marker(conn) == "block"
        assert "key-value store" in caplog.text

    def test_garbage_image_falls_back_to_empty(
        self, kv: MemoryKeyValueStore, blocks: MemoryBlockStore
    ) -> None:
        """Bytes that are not a database image never stop startup."""
        kv.set_item(DB_STORAGE_KEY, base64.b64encode(b"x" * 4096).decode())
        blocks.put(BLOCK_STORAGE_KEY, b"y" * 4096)
        conn = restore_image(kv, blocks)
        assert _marker(conn) is None


class TestEmbeddedAdapter:
    """Tests for EmbeddedDatabaseAdapter."""

    def test_writes_survive_reopen(
        self, kv: MemoryKeyValueStore, blocks: MemoryBlockStore
    ) -> None:
        """Every execute snapshots the image, so a new adapter sees the data."""

        async def scenario() -> list[dict]:
            first = await create_embedded_database(kv, blocks)
            await initialize_schema(first)
            await first.execute(
                "INSERT INTO settings (key, value, updated_at) VALUES ('app_font', '\"serif\"', 1)"
            )
            second = await create_embedded_database(kv, blocks)
            return await second.select("SELECT key, value FROM settings")

        assert asyncio.run(scenario()) == [{"key": "app_font", "value": '"serif"'}]

    def test_execute_returns_rowcount(
        self, kv: MemoryKeyValueStore, blocks: MemoryBlockStore
    ) -> None:
        """execute reports the number of affected rows."""

        async def scenario() -> int:
            adapter = await create_embedded_database(kv, blocks)
            await adapter.execute("CREATE TABLE t (n INTEGER)")
            for n in range(3):
                await adapter.execute("INSERT INTO t VALUES (?)", (n,))
            return await adapter.execute("DELETE FROM t WHERE n > ?", (0,))

        assert asyncio.run(scenario()) == 2

    def test_persist_failure_is_swallowed(
        self, blocks: MemoryBlockStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A failing host store is logged; the in-memory database keeps working."""
        failing = FailingKeyValueStore()

        async def scenario() -> list[dict]:
            conn = restore_image(MemoryKeyValueStore(), blocks)
            adapter = EmbeddedDatabaseAdapter(conn, failing, blocks)
            await adapter.execute("CREATE TABLE t (n INTEGER)")
            await adapter.execute("INSERT INTO t VALUES (7)")
            return await adapter.select("SELECT n FROM t")

        with caplog.at_level(logging.ERROR, logger="maibuk.db.embedded"):
            rows = asyncio.run(scenario())

        assert rows == [{"n": 7}]
        assert "Failed to persist database" in caplog.text

    def test_close_persists_final_image(self, tmp_path: Path) -> None:
        """File-backed stores hold the image after close."""
        kv = FileKeyValueStore(tmp_path / "store" / "local-storage.json")
        blocks = DirectoryBlockStore(tmp_path / "store" / "blocks")

        async def scenario() -> list[dict]:
            adapter = await create_embedded_database(kv, blocks)
            await initialize_schema(adapter)
            await adapter.close()
            reopened = await create_embedded_database(kv, blocks)
            return await reopened.select("SELECT name FROM sqlite_master WHERE name = 'books'")

        assert asyncio.run(scenario()) == [{"name": "books"}]
        assert (tmp_path / "store" / "local-storage.json").exists()

    def test_concurrent_writes_all_land(
        self, kv: MemoryKeyValueStore, blocks: MemoryBlockStore
    ) -> None:
        """Writes issued together are applied and the last snapshot holds all of them."""

        async def scenario() -> int:
            adapter = await create_embedded_database(kv, blocks)
            await adapter.execute("CREATE TABLE t (n INTEGER)")
            await asyncio.gather(
                *(adapter.execute("INSERT INTO t VALUES (?)", (n,)) for n in range(10))
            )
            reopened = await create_embedded_database(kv, blocks)
            rows = await reopened.select("SELECT count(*) AS total FROM t")
            return rows[0]["total"]

        assert asyncio.run(scenario()) == 10
