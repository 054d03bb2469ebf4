# ABOUTME: CRUD operations for books in the Maibuk document store.
# ABOUTME: Sparse patch updates, open-time stamping, and the word-count aggregate sync.

import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from maibuk.db.adapter import DatabaseAdapter
from maibuk.db.errors import BookNotFoundError
from maibuk.db.mapping import row_to_book, to_timestamp
from maibuk.models.types import BOOK_STATUSES, Book, NewBook

Clock = Callable[[], datetime]

UPDATABLE_BOOK_FIELDS = frozenset(
    {
        "title",
        "subtitle",
        "author_name",
        "description",
        "genre",
        "language",
        "status",
        "target_word_count",
        "cover_image_path",
        "cover_data",
        "last_chapter_id",
    }
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BookRepository:
    """Typed CRUD for the books table over any DatabaseAdapter."""

    def __init__(self, adapter: DatabaseAdapter, *, clock: Clock = utc_now) -> None:
        self._adapter = adapter
        self._clock = clock

    def _now(self) -> int:
        return to_timestamp(self._clock())

    async def list_books(self) -> list[Book]:
        """All books, most recently opened first, then most recently updated."""
        rows = await self._adapter.select(
            "SELECT * FROM books ORDER BY last_opened_at DESC, updated_at DESC"
        )
        return [row_to_book(row) for row in rows]

    async def get_book(self, book_id: str) -> Book:
        """Read a book without side effects.

        Raises:
            BookNotFoundError: If the book_id does not exist.
        """
        rows = await self._adapter.select("SELECT * FROM books WHERE id = ?", (book_id,))
        if not rows:
            raise BookNotFoundError(book_id)
        return row_to_book(rows[0])

    async def load_book(self, book_id: str) -> Book:
        """Open a book for editing: read it and stamp last_opened_at.

        Raises:
            BookNotFoundError: If the book_id does not exist.
        """
        rowcount = await self._adapter.execute(
            "UPDATE books SET last_opened_at = ? WHERE id = ?", (self._now(), book_id)
        )
        if rowcount == 0:
            raise BookNotFoundError(book_id)
        return await self.get_book(book_id)

    async def create_book(self, new_book: NewBook) -> Book:
        """Create a draft book with zero words and return it."""
        book_id = str(uuid.uuid4())
        now = self._now()
        await self._adapter.execute(
            "INSERT INTO books (id, title, subtitle, author_name, description, genre, "
            "language, word_count, status, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, 'en', 0, 'draft', ?, ?)",
            (
                book_id,
                new_book.title,
                new_book.subtitle or None,
                new_book.author_name,
                new_book.description or None,
                new_book.genre or None,
                now,
                now,
            ),
        )
        return await self.get_book(book_id)

    async def update_book(self, book_id: str, **fields: Any) -> Book:
        """Apply a sparse patch: only the supplied fields change.

        Accepts keyword arguments matching updatable books columns. word_count
        is not accepted; use sync_word_count. updated_at is always bumped.

        Raises:
            ValueError: If a field is unknown or a status is invalid.
            BookNotFoundError: If the book_id does not exist.
        """
        unknown = set(fields) - UPDATABLE_BOOK_FIELDS
        if unknown:
            raise ValueError(f"Cannot update book fields: {', '.join(sorted(unknown))}")
        if "status" in fields and fields["status"] not in BOOK_STATUSES:
            raise ValueError(f"Invalid book status: {fields['status']!r}")

        set_clause = ", ".join(["updated_at = ?", *(f"{k} = ?" for k in fields)])
        values = [self._now(), *fields.values(), book_id]

        rowcount = await self._adapter.execute(
            f"UPDATE books SET {set_clause} WHERE id = ?", values
        )
        if rowcount == 0:
            raise BookNotFoundError(book_id)
        return await self.get_book(book_id)

    async def delete_book(self, book_id: str) -> None:
        """Delete a book. Its chapters go with it through the foreign-key cascade.

        Raises:
            BookNotFoundError: If the book_id does not exist.
        """
        rowcount = await self._adapter.execute("DELETE FROM books WHERE id = ?", (book_id,))
        if rowcount == 0:
            raise BookNotFoundError(book_id)

    async def sync_word_count(self, book_id: str) -> int:
        """Recompute the book's word count as the sum of its chapters' counts.

        Returns:
            The new book word count.

        Raises:
            BookNotFoundError: If the book_id does not exist.
        """
        rows = await self._adapter.select(
            "SELECT COALESCE(SUM(word_count), 0) AS total FROM chapters WHERE book_id = ?",
            (book_id,),
        )
        total = int(rows[0]["total"])
        rowcount = await self._adapter.execute(
            "UPDATE books SET word_count = ?, updated_at = ? WHERE id = ?",
            (total, self._now(), book_id),
        )
        if rowcount == 0:
            raise BookNotFoundError(book_id)
        return total
