# ABOUTME: CRUD and ordering operations for chapters in the Maibuk document store.
# ABOUTME: Keeps per-book orders dense and the owning book's word count in sync.

import uuid
from collections.abc import Sequence
from typing import Any

from maibuk.db.adapter import DatabaseAdapter
from maibuk.db.books import BookRepository, Clock, utc_now
from maibuk.db.errors import ChapterNotFoundError
from maibuk.db.mapping import row_to_chapter, to_timestamp
from maibuk.models.types import CHAPTER_STATUSES, CHAPTER_TYPES, Chapter, NewChapter
from maibuk.models.wordcount import count_words

UPDATABLE_CHAPTER_FIELDS = frozenset(
    {
        "title",
        "content",
        "synopsis",
        "chapter_type",
        "status",
        "is_included_in_export",
        "parent_id",
    }
)


class ChapterRepository:
    """Typed CRUD for the chapters table.

    Every operation that changes a book's chapter set or a chapter's content
    finishes by re-syncing the owning book's word count.
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        books: BookRepository | None = None,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._adapter = adapter
        self._books = books or BookRepository(adapter, clock=clock)
        self._clock = clock

    def _now(self) -> int:
        return to_timestamp(self._clock())

    async def list_chapters(self, book_id: str) -> list[Chapter]:
        """All chapters of a book in order."""
        rows = await self._adapter.select(
            'SELECT * FROM chapters WHERE book_id = ? ORDER BY "order" ASC', (book_id,)
        )
        return [row_to_chapter(row) for row in rows]

    async def get_chapter(self, chapter_id: str) -> Chapter:
        """Retrieve a chapter by id.

        Raises:
            ChapterNotFoundError: If the chapter_id does not exist.
        """
        rows = await self._adapter.select(
            "SELECT * FROM chapters WHERE id = ?", (chapter_id,)
        )
        if not rows:
            raise ChapterNotFoundError(chapter_id)
        return row_to_chapter(rows[0])

    async def create_chapter(self, new_chapter: NewChapter) -> Chapter:
        """Append an empty draft chapter after the book's last chapter.

        Raises:
            BookNotFoundError: If the owning book does not exist.
            ValueError: If the chapter type is invalid.
        """
        if new_chapter.chapter_type not in CHAPTER_TYPES:
            raise ValueError(f"Invalid chapter type: {new_chapter.chapter_type!r}")
        await self._books.get_book(new_chapter.book_id)

        rows = await self._adapter.select(
            'SELECT MAX("order") AS max_order FROM chapters WHERE book_id = ?',
            (new_chapter.book_id,),
        )
        max_order = rows[0]["max_order"] if rows else None
        next_order = 0 if max_order is None else max_order + 1

        chapter_id = str(uuid.uuid4())
        now = self._now()
        await self._adapter.execute(
            'INSERT INTO chapters (id, book_id, title, "order", parent_id, chapter_type, '
            "word_count, status, is_included_in_export, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, 0, 'draft', 1, ?, ?)",
            (
                chapter_id,
                new_chapter.book_id,
                new_chapter.title,
                next_order,
                new_chapter.parent_id or None,
                new_chapter.chapter_type,
                now,
                now,
            ),
        )
        await self._books.sync_word_count(new_chapter.book_id)
        return await self.get_chapter(chapter_id)

    async def update_chapter(self, chapter_id: str, **fields: Any) -> Chapter:
        """Apply a sparse patch to a chapter.

        A content change recomputes word_count in the same statement; the word
        count is never written on its own. updated_at is always bumped.

        Raises:
            ValueError: If a field is unknown or a status/type is invalid.
            ChapterNotFoundError: If the chapter_id does not exist.
        """
        unknown = set(fields) - UPDATABLE_CHAPTER_FIELDS
        if unknown:
            raise ValueError(f"Cannot update chapter fields: {', '.join(sorted(unknown))}")
        if "status" in fields and fields["status"] not in CHAPTER_STATUSES:
            raise ValueError(f"Invalid chapter status: {fields['status']!r}")
        if "chapter_type" in fields and fields["chapter_type"] not in CHAPTER_TYPES:
            raise ValueError(f"Invalid chapter type: {fields['chapter_type']!r}")

        chapter = await self.get_chapter(chapter_id)

        columns: dict[str, Any] = dict(fields)
        if "is_included_in_export" in columns:
            columns["is_included_in_export"] = 1 if columns["is_included_in_export"] else 0
        if "content" in columns:
            columns["word_count"] = count_words(columns["content"])

        set_clause = ", ".join(["updated_at = ?", *(f"{k} = ?" for k in columns)])
        values = [self._now(), *columns.values(), chapter_id]
        await self._adapter.execute(f"UPDATE chapters SET {set_clause} WHERE id = ?", values)

        if "content" in fields:
            await self._books.sync_word_count(chapter.book_id)
        return await self.get_chapter(chapter_id)

    async def delete_chapter(self, chapter_id: str) -> None:
        """Delete a chapter and close the gap it leaves in the book's ordering.

        Raises:
            ChapterNotFoundError: If the chapter_id does not exist.
        """
        chapter = await self.get_chapter(chapter_id)
        await self._adapter.execute("DELETE FROM chapters WHERE id = ?", (chapter_id,))
        await self._adapter.execute(
            'UPDATE chapters SET "order" = "order" - 1 WHERE book_id = ? AND "order" > ?',
            (chapter.book_id, chapter.order),
        )
        await self._books.sync_word_count(chapter.book_id)

    async def reorder_chapters(self, book_id: str, chapter_ids: Sequence[str]) -> list[Chapter]:
        """Rewrite every chapter's order to its index in chapter_ids.

        chapter_ids must be a full ordering of the book's chapters: each of
        them exactly once and nothing else. All orders are written in a
        single statement.

        Returns:
            The book's chapters in their new order.

        Raises:
            ValueError: If chapter_ids is not a permutation of the book's chapters.
        """
        existing = {chapter.id for chapter in await self.list_chapters(book_id)}
        if len(set(chapter_ids)) != len(chapter_ids):
            raise ValueError("Chapter ordering contains duplicate ids")
        if set(chapter_ids) != existing:
            missing = existing - set(chapter_ids)
            foreign = set(chapter_ids) - existing
            raise ValueError(
                f"Chapter ordering must list every chapter of book {book_id} exactly once "
                f"(missing: {sorted(missing)}, not in book: {sorted(foreign)})"
            )
        if not chapter_ids:
            return []

        cases = " ".join("WHEN ? THEN ?" for _ in chapter_ids)
        params: list[Any] = []
        for index, chapter_id in enumerate(chapter_ids):
            params.extend((chapter_id, index))
        params.extend((self._now(), book_id))

        await self._adapter.execute(
            f'UPDATE chapters SET "order" = CASE id {cases} END, updated_at = ? '
            "WHERE book_id = ?",
            params,
        )
        return await self.list_chapters(book_id)
