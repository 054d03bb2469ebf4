# ABOUTME: SQL DDL and additive migrations for the Maibuk document database.
# ABOUTME: Applied idempotently on every startup through the storage adapter contract.

import logging
import sqlite3

from maibuk.db.adapter import DatabaseAdapter

logger = logging.getLogger(__name__)

CREATE_TABLES: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS books (
        id                TEXT PRIMARY KEY,
        title             TEXT NOT NULL,
        subtitle          TEXT,
        author_name       TEXT NOT NULL,
        description       TEXT,
        genre             TEXT,
        language          TEXT DEFAULT 'en',
        cover_image_path  TEXT,
        cover_data        TEXT,
        word_count        INTEGER DEFAULT 0,
        target_word_count INTEGER,
        status            TEXT DEFAULT 'draft',
        created_at        INTEGER NOT NULL,
        updated_at        INTEGER NOT NULL,
        last_opened_at    INTEGER,
        last_chapter_id   TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS chapters (
        id                    TEXT PRIMARY KEY,
        book_id               TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
        title                 TEXT NOT NULL,
        content               TEXT,
        synopsis              TEXT,
        "order"               INTEGER NOT NULL,
        parent_id             TEXT,
        chapter_type          TEXT DEFAULT 'chapter',
        word_count            INTEGER DEFAULT 0,
        status                TEXT DEFAULT 'draft',
        is_included_in_export INTEGER DEFAULT 1,
        created_at            INTEGER NOT NULL,
        updated_at            INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cover_templates (
        id             TEXT PRIMARY KEY,
        name           TEXT NOT NULL,
        category       TEXT,
        fabric_json    TEXT NOT NULL,
        thumbnail_path TEXT,
        is_built_in    INTEGER DEFAULT 0,
        created_at     INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS settings (
        key        TEXT PRIMARY KEY,
        value      TEXT NOT NULL,
        updated_at INTEGER NOT NULL
    )
    """,
)

CREATE_INDEXES: tuple[str, ...] = (
    "CREATE INDEX IF NOT EXISTS idx_chapters_book_id ON chapters(book_id)",
    'CREATE INDEX IF NOT EXISTS idx_chapters_order ON chapters(book_id, "order")',
)

# Additive column migrations. Each may already be applied (including on a
# freshly created schema), so "duplicate column" failures are expected.
ADDITIVE_MIGRATIONS: tuple[str, ...] = (
    "ALTER TABLE books ADD COLUMN last_chapter_id TEXT",
)


def _is_duplicate_column(exc: sqlite3.OperationalError) -> bool:
    return "duplicate column" in str(exc).lower()


async def apply_migrations(adapter: DatabaseAdapter) -> None:
    """Attempt every additive migration, discarding "already exists" failures.

    Raises:
        sqlite3.OperationalError: For any failure other than a duplicate column.
    """
    for sql in ADDITIVE_MIGRATIONS:
        try:
            await adapter.execute(sql)
        except sqlite3.OperationalError as exc:
            if not _is_duplicate_column(exc):
                raise
            logger.debug("Migration already applied: %s", sql)


async def initialize_schema(adapter: DatabaseAdapter) -> None:
    """Create tables and indexes if absent, then run additive migrations.

    Safe to run on every startup.
    """
    for sql in CREATE_TABLES:
        await adapter.execute(sql)
    await apply_migrations(adapter)
    for sql in CREATE_INDEXES:
        await adapter.execute(sql)
