# ABOUTME: Public API for the Maibuk storage layer.
# ABOUTME: Exports the database handle, adapters, repositories, and error types.

from maibuk.db.adapter import DatabaseAdapter
from maibuk.db.books import BookRepository
from maibuk.db.chapters import ChapterRepository
from maibuk.db.connection import DEFAULT_DB_PATH, Database, open_database
from maibuk.db.embedded import EmbeddedDatabaseAdapter
from maibuk.db.errors import BookNotFoundError, ChapterNotFoundError, NotFoundError
from maibuk.db.native import NativeDatabaseAdapter
from maibuk.db.settings import AppSettings, SettingsRepository

__all__ = [
    "DEFAULT_DB_PATH",
    "AppSettings",
    "BookNotFoundError",
    "BookRepository",
    "ChapterNotFoundError",
    "ChapterRepository",
    "Database",
    "DatabaseAdapter",
    "EmbeddedDatabaseAdapter",
    "NativeDatabaseAdapter",
    "NotFoundError",
    "SettingsRepository",
    "open_database",
]
