# ABOUTME: Portable SQL dump rendering shared by both storage adapters.
# ABOUTME: Emits header comments and ordered INSERT statements with escaped literals.

from datetime import datetime, timezone
from typing import Any

from maibuk.db.adapter import DatabaseAdapter, Row

DUMP_TABLES: tuple[tuple[str, str], ...] = (
    ("books", "Books"),
    ("chapters", "Chapters"),
    ("cover_templates", "Cover Templates"),
    ("settings", "Settings"),
)


def escape_sql(value: Any) -> str:
    """Render a Python value as a SQL literal.

    None becomes NULL, numbers pass through unquoted (booleans as 0/1),
    bytes become a hex blob literal, and everything else is quoted as a
    string with embedded single quotes doubled.
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"X'{bytes(value).hex()}'"
    text = value if isinstance(value, str) else str(value)
    return "'" + text.replace("'", "''") + "'"


def generate_insert_statements(table: str, rows: list[Row]) -> str:
    """One INSERT statement per row, columns quoted, in row order."""
    statements = []
    for row in rows:
        columns = ", ".join(f'"{column}"' for column in row)
        values = ", ".join(escape_sql(value) for value in row.values())
        statements.append(f'INSERT INTO "{table}" ({columns}) VALUES ({values});')
    return "\n".join(statements)


async def render_sql_dump(adapter: DatabaseAdapter, *, now: datetime | None = None) -> bytes:
    """Dump every application table through read-only SELECTs.

    The result is meant to be applied to a database that already has the
    schema created, so no DDL is emitted.

    Args:
        adapter: The adapter to read from.
        now: Timestamp for the header; defaults to the current UTC time.

    Returns:
        The UTF-8 encoded dump.
    """
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    lines = [
        "-- Maibuk Database Export (SQL Dump)",
        f"-- Exported at: {stamp}",
        "-- Import this file into a SQLite database after creating the schema",
    ]
    for table, label in DUMP_TABLES:
        rows = await adapter.select(f'SELECT * FROM "{table}" ORDER BY rowid')
        lines.append("")
        lines.append(f"-- {label}")
        lines.append(generate_insert_statements(table, rows))
    return "\n".join(lines).encode("utf-8")
