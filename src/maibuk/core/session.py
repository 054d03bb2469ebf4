# ABOUTME: Editing-session state for the active book and its chapters.
# ABOUTME: Guards chapter loads against stale results and reselects chapters after deletes.

import logging
import sqlite3
from dataclasses import dataclass
from typing import Any

from maibuk.core.autosave import AutoSaveBuffer
from maibuk.db.books import BookRepository
from maibuk.db.chapters import ChapterRepository
from maibuk.models.types import Book, Chapter, ChapterType, NewBook, NewChapter

logger = logging.getLogger(__name__)


class BookSession:
    """The book list and the currently open book."""

    def __init__(self, repository: BookRepository) -> None:
        self._repository = repository
        self.books: list[Book] = []
        self.current_book: Book | None = None

    async def load_books(self) -> list[Book]:
        self.books = await self._repository.list_books()
        return self.books

    async def open_book(self, book_id: str) -> Book:
        """Load a book as the current one (stamps its last-opened time).

        Raises:
            BookNotFoundError: If the book_id does not exist.
        """
        book = await self._repository.load_book(book_id)
        self.current_book = book
        self._replace(book)
        return book

    async def create_book(self, new_book: NewBook) -> Book:
        book = await self._repository.create_book(new_book)
        self.books.insert(0, book)
        return book

    async def update_book(self, book_id: str, **fields: Any) -> Book:
        book = await self._repository.update_book(book_id, **fields)
        self._replace(book)
        return book

    async def delete_book(self, book_id: str) -> None:
        await self._repository.delete_book(book_id)
        self.books = [book for book in self.books if book.id != book_id]
        if self.current_book is not None and self.current_book.id == book_id:
            self.current_book = None

    async def refresh(self, book_id: str) -> Book:
        """Re-read a book, e.g. after its word count was re-synced."""
        book = await self._repository.get_book(book_id)
        self._replace(book)
        return book

    def _replace(self, book: Book) -> None:
        self.books = [book if existing.id == book.id else existing for existing in self.books]
        if self.current_book is not None and self.current_book.id == book.id:
            self.current_book = book


class ChapterSession:
    """Chapters of the active book plus the chapter being edited.

    Every chapter-list load is tagged with the book id it was issued for. If
    the active book changed before the load resolved, its result (or error)
    is discarded rather than applied.
    """

    def __init__(self, repository: ChapterRepository) -> None:
        self._repository = repository
        self.chapters: list[Chapter] = []
        self.current_chapter: Chapter | None = None
        self.current_book_id: str | None = None
        self.is_loading = False
        self.error: str | None = None

    async def load_chapters(self, book_id: str) -> bool:
        """Load a book's chapters as the active chapter list.

        Returns:
            True if the result was applied, False if it was stale or failed.
        """
        self.current_book_id = book_id
        self.chapters = []
        self.current_chapter = None
        self.is_loading = True
        self.error = None

        try:
            chapters = await self._repository.list_chapters(book_id)
        except sqlite3.Error as exc:
            if self.current_book_id == book_id:
                self.error = str(exc)
                self.is_loading = False
            return False

        if self.current_book_id != book_id:
            logger.debug("Discarding stale chapter list for book %s", book_id)
            return False

        self.chapters = chapters
        self.is_loading = False
        return True

    def select_chapter(self, chapter_id: str | None) -> Chapter | None:
        """Make a loaded chapter current; None or an unknown id clears it."""
        self.current_chapter = next(
            (chapter for chapter in self.chapters if chapter.id == chapter_id), None
        )
        return self.current_chapter

    async def create_chapter(
        self, title: str, chapter_type: ChapterType = "chapter", parent_id: str | None = None
    ) -> Chapter:
        """Append a chapter to the active book.

        Raises:
            RuntimeError: If no book is active.
        """
        if self.current_book_id is None:
            raise RuntimeError("No active book to add a chapter to")
        chapter = await self._repository.create_chapter(
            NewChapter(
                book_id=self.current_book_id,
                title=title,
                chapter_type=chapter_type,
                parent_id=parent_id,
            )
        )
        self.chapters.append(chapter)
        return chapter

    async def update_chapter(self, chapter_id: str, **fields: Any) -> Chapter:
        chapter = await self._repository.update_chapter(chapter_id, **fields)
        self.chapters = [chapter if c.id == chapter.id else c for c in self.chapters]
        if self.current_chapter is not None and self.current_chapter.id == chapter.id:
            self.current_chapter = chapter
        return chapter

    async def delete_chapter(self, chapter_id: str) -> Chapter | None:
        """Delete a chapter and reselect a current chapter if it was current.

        The replacement is the chapter that took the deleted one's position,
        or the new last chapter, or nothing when the book is now empty.

        Returns:
            The current chapter after the delete.
        """
        index = next((i for i, c in enumerate(self.chapters) if c.id == chapter_id), None)
        await self._repository.delete_chapter(chapter_id)
        if index is None:
            return self.current_chapter

        deleted = self.chapters.pop(index)
        for chapter in self.chapters:
            if chapter.order > deleted.order:
                chapter.order -= 1

        if self.current_chapter is not None and self.current_chapter.id == chapter_id:
            if self.chapters:
                self.current_chapter = self.chapters[min(index, len(self.chapters) - 1)]
            else:
                self.current_chapter = None
        return self.current_chapter

    async def reorder_chapters(self, chapter_ids: list[str]) -> list[Chapter]:
        """Apply a full ordering of the active book's chapters.

        Raises:
            RuntimeError: If no book is active.
        """
        if self.current_book_id is None:
            raise RuntimeError("No active book to reorder")
        self.chapters = await self._repository.reorder_chapters(self.current_book_id, chapter_ids)
        if self.current_chapter is not None:
            self.select_chapter(self.current_chapter.id)
        return self.chapters


@dataclass(frozen=True)
class ContentDraft:
    """Unsaved chapter content waiting in the auto-save buffer."""

    book_id: str
    html: str


class EditorSession:
    """Book and chapter sessions wired together with debounced content saves.

    Opening a book loads its chapters and resumes at the last viewed chapter.
    Content edits are buffered per chapter and written after a quiet period,
    or right away on save_now(); each write re-syncs the book's word count.
    """

    def __init__(
        self,
        books: BookRepository,
        chapters: ChapterRepository,
        *,
        auto_save_delay: float = 1.0,
    ) -> None:
        self.books = BookSession(books)
        self.chapters = ChapterSession(chapters)
        self.autosave: AutoSaveBuffer[str, ContentDraft] = AutoSaveBuffer(
            self._write_draft, delay=auto_save_delay
        )

    async def open_book(self, book_id: str) -> Book:
        """Open a book, load its chapters, and resume at its last chapter."""
        await self.autosave.flush()
        book = await self.books.open_book(book_id)
        if await self.chapters.load_chapters(book_id):
            resumed = self.chapters.select_chapter(book.last_chapter_id)
            if resumed is None and self.chapters.chapters:
                self.chapters.select_chapter(self.chapters.chapters[0].id)
        return book

    async def select_chapter(self, chapter_id: str) -> Chapter | None:
        """Switch chapters, saving pending edits and remembering the choice."""
        await self.autosave.flush()
        chapter = self.chapters.select_chapter(chapter_id)
        if chapter is not None:
            await self.books.update_book(chapter.book_id, last_chapter_id=chapter.id)
        return chapter

    def edit_content(self, chapter_id: str, html: str) -> None:
        """Buffer new content for a chapter of the open book.

        Raises:
            RuntimeError: If no book is open.
        """
        book_id = self.chapters.current_book_id
        if book_id is None:
            raise RuntimeError("No open book to edit")
        self.autosave.schedule(chapter_id, ContentDraft(book_id=book_id, html=html))

    async def save_now(self) -> bool:
        """Manual save: flush all pending content immediately.

        Returns:
            True if everything pending was written.
        """
        return await self.autosave.flush() != "error"

    async def close(self) -> None:
        await self.autosave.close()

    async def _write_draft(self, chapter_id: str, draft: ContentDraft) -> None:
        await self.chapters.update_chapter(chapter_id, content=draft.html)
        await self.books.refresh(draft.book_id)
