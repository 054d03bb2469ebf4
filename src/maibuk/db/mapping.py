# ABOUTME: Converts between Book/Chapter dataclasses and SQLite row dictionaries.
# ABOUTME: Handles Unix-second timestamps and integer-encoded booleans.

from datetime import datetime, timezone
from typing import Any

from maibuk.models.types import Book, Chapter


def to_timestamp(value: datetime) -> int:
    """Unix seconds, the storage format for every timestamp column."""
    return int(value.timestamp())


def from_timestamp(value: int | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _required_timestamp(value: int) -> datetime:
    stamp = from_timestamp(value)
    assert stamp is not None
    return stamp


def row_to_book(row: dict[str, Any]) -> Book:
    """Convert a books row to a Book."""
    return Book(
        id=row["id"],
        title=row["title"],
        subtitle=row["subtitle"],
        author_name=row["author_name"],
        description=row["description"],
        genre=row["genre"],
        language=row["language"] or "en",
        cover_image_path=row["cover_image_path"],
        cover_data=row["cover_data"],
        word_count=row["word_count"] or 0,
        target_word_count=row["target_word_count"],
        status=row["status"] or "draft",
        created_at=_required_timestamp(row["created_at"]),
        updated_at=_required_timestamp(row["updated_at"]),
        last_opened_at=from_timestamp(row["last_opened_at"]),
        last_chapter_id=row.get("last_chapter_id"),
    )


def row_to_chapter(row: dict[str, Any]) -> Chapter:
    """Convert a chapters row to a Chapter."""
    return Chapter(
        id=row["id"],
        book_id=row["book_id"],
        title=row["title"],
        content=row["content"],
        synopsis=row["synopsis"],
        order=row["order"],
        parent_id=row["parent_id"],
        chapter_type=row["chapter_type"] or "chapter",
        word_count=row["word_count"] or 0,
        status=row["status"] or "draft",
        is_included_in_export=bool(row["is_included_in_export"]),
        created_at=_required_timestamp(row["created_at"]),
        updated_at=_required_timestamp(row["updated_at"]),
    )
