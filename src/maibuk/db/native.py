# ABOUTME: File-backed SQLite storage adapter for the native desktop backend.
# ABOUTME: Writes go straight to the database file; export renders a portable SQL dump.

import asyncio
import sqlite3
import threading
from pathlib import Path

from maibuk.db.adapter import Params, Row
from maibuk.db.dump import render_sql_dump


class NativeDatabaseAdapter:
    """DatabaseAdapter over a sqlite3 connection to a database file.

    No explicit persistence step is needed: every execute is committed to the
    file immediately. Statements run on a worker thread, one at a time.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._lock = threading.Lock()

    def _execute(self, sql: str, params: Params) -> int:
        with self._lock:
            cursor = self._conn.execute(sql, params)
            self._conn.commit()
            return cursor.rowcount

    def _select(self, sql: str, params: Params) -> list[Row]:
        with self._lock:
            cursor = self._conn.execute(sql, params)
            return [dict(row) for row in cursor.fetchall()]

    def _close(self) -> None:
        with self._lock:
            self._conn.close()

    async def execute(self, sql: str, params: Params | None = None) -> int:
        return await asyncio.to_thread(self._execute, sql, tuple(params or ()))

    async def select(self, sql: str, params: Params | None = None) -> list[Row]:
        return await asyncio.to_thread(self._select, sql, tuple(params or ()))

    async def close(self) -> None:
        await asyncio.to_thread(self._close)

    async def export_data(self) -> bytes:
        """Render a SQL dump rather than copying the database file.

        The host sandbox may not grant direct access to the file itself.
        """
        return await render_sql_dump(self)


def connect_native(path: Path) -> sqlite3.Connection:
    """Open or create the database file with the pragmas the schema relies on.

    Creates parent directories if they don't exist. Sets WAL journal mode,
    enables foreign keys (chapter cascade deletes depend on it), and uses the
    sqlite3.Row factory for dict-like column access. The connection may be
    used from worker threads.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


async def create_native_database(path: Path) -> NativeDatabaseAdapter:
    """Create a native adapter for the database file at path."""
    return NativeDatabaseAdapter(connect_native(path))
