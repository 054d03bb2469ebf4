# ABOUTME: Unit tests for ChapterRepository CRUD and ordering.
# ABOUTME: Validates dense ordering, reorder permutations, and book word-count sync.

import asyncio

import pytest

from maibuk.db.books import BookRepository
from maibuk.db.chapters import ChapterRepository
from maibuk.db.errors import BookNotFoundError, ChapterNotFoundError
from maibuk.models.types import Book, Chapter, NewBook, NewChapter
from maibuk.models.wordcount import count_words


@pytest.fixture()
def book(books: BookRepository) -> Book:
    """An empty book to hang chapters on."""
    return asyncio.run(books.create_book(NewBook(title="Tides", author_name="Ada Marsh")))


@pytest.fixture()
def three_chapters(chapters: ChapterRepository, book: Book) -> list[Chapter]:
    """Chapters A, B, and C created in that order."""

    async def create() -> list[Chapter]:
        return [
            await chapters.create_chapter(NewChapter(book_id=book.id, title=title))
            for title in ("A", "B", "C")
        ]

    return asyncio.run(create())


def _orders(chapters: ChapterRepository, book_id: str) -> dict[str, int]:
    listed = asyncio.run(chapters.list_chapters(book_id))
    return {chapter.title: chapter.order for chapter in listed}


class TestCreateChapter:
    """Tests for ChapterRepository.create_chapter."""

    def test_orders_start_at_zero_and_append(
        self, chapters: ChapterRepository, book: Book, three_chapters: list[Chapter]
    ) -> None:
        """Chapters are numbered 0..n-1 in creation order."""
        assert [c.order for c in three_chapters] == [0, 1, 2]
        assert _orders(chapters, book.id) == {"A": 0, "B": 1, "C": 2}

    def test_new_chapter_defaults(self, three_chapters: list[Chapter]) -> None:
        """New chapters are empty drafts included in export."""
        chapter = three_chapters[0]
        assert chapter.chapter_type == "chapter"
        assert chapter.status == "draft"
        assert chapter.word_count == 0
        assert chapter.is_included_in_export is True
        assert chapter.content is None

    def test_missing_book_raises(self, chapters: ChapterRepository) -> None:
        """Chapters cannot be added to an unknown book."""
        with pytest.raises(BookNotFoundError):
            asyncio.run(chapters.create_chapter(NewChapter(book_id="nope", title="X")))

    def test_invalid_type_raises(self, chapters: ChapterRepository, book: Book) -> None:
        """Chapter types must be one of the known kinds."""
        new_chapter = NewChapter(book_id=book.id, title="X")
        new_chapter.chapter_type = "appendix"  # type: ignore[assignment]
        with pytest.raises(ValueError, match="chapter type"):
            asyncio.run(chapters.create_chapter(new_chapter))


class TestUpdateChapter:
    """Tests for ChapterRepository.update_chapter."""

    def test_content_updates_word_counts(
        self,
        chapters: ChapterRepository,
        books: BookRepository,
        book: Book,
        three_chapters: list[Chapter],
    ) -> None:
        """Saving content recomputes the chapter and book word counts."""

        async def scenario() -> tuple[Chapter, Book]:
            first, second, _ = three_chapters
            await chapters.update_chapter(first.id, content="<p>one two three</p>")
            updated = await chapters.update_chapter(
                second.id, content="<h1>Title</h1><p>four five</p>"
            )
            return updated, await books.get_book(book.id)

        updated, refreshed = asyncio.run(scenario())
        assert updated.word_count == 3
        assert refreshed.word_count == 6

    def test_book_total_matches_chapter_sum(
        self,
        chapters: ChapterRepository,
        books: BookRepository,
        book: Book,
        three_chapters: list[Chapter],
    ) -> None:
        """After any sequence of edits the book total equals the chapter sum."""
        bodies = ["<p>alpha beta</p>", "<p>gamma</p><p>delta epsilon zeta</p>", ""]

        async def scenario() -> tuple[int, int]:
            for chapter, body in zip(three_chapters, bodies, strict=True):
                await chapters.update_chapter(chapter.id, content=body)
            await chapters.update_chapter(three_chapters[0].id, content="<p>shorter</p>")
            listed = await chapters.list_chapters(book.id)
            return (await books.get_book(book.id)).word_count, sum(c.word_count for c in listed)

        total, chapter_sum = asyncio.run(scenario())
        assert total == chapter_sum == 5

    def test_word_count_matches_counter(
        self, chapters: ChapterRepository, three_chapters: list[Chapter]
    ) -> None:
        """The stored count is exactly what count_words reports."""
        body = "<p>Hello,<em>world</em> again</p><ul><li>one</li><li>two</li></ul>"
        updated = asyncio.run(chapters.update_chapter(three_chapters[0].id, content=body))
        assert updated.word_count == count_words(body) == 5

    def test_sparse_patch_keeps_other_fields(
        self, chapters: ChapterRepository, three_chapters: list[Chapter]
    ) -> None:
        """Only supplied fields change."""
        chapter = three_chapters[1]
        updated = asyncio.run(
            chapters.update_chapter(chapter.id, status="revised", is_included_in_export=False)
        )
        assert updated.status == "revised"
        assert updated.is_included_in_export is False
        assert updated.title == "B"
        assert updated.order == 1

    def test_rejects_word_count_field(
        self, chapters: ChapterRepository, three_chapters: list[Chapter]
    ) -> None:
        """word_count is derived and cannot be written directly."""
        with pytest.raises(ValueError, match="word_count"):
            asyncio.run(chapters.update_chapter(three_chapters[0].id, word_count=99))

    def test_missing_chapter_raises(self, chapters: ChapterRepository) -> None:
        """Updating an unknown chapter raises ChapterNotFoundError."""
        with pytest.raises(ChapterNotFoundError):
            asyncio.run(chapters.update_chapter("nope", title="X"))


class TestDeleteChapter:
    """Tests for ChapterRepository.delete_chapter."""

    def test_orders_stay_dense(
        self, chapters: ChapterRepository, book: Book, three_chapters: list[Chapter]
    ) -> None:
        """Deleting a middle chapter closes the gap."""
        asyncio.run(chapters.delete_chapter(three_chapters[1].id))
        assert _orders(chapters, book.id) == {"A": 0, "C": 1}

    def test_delete_resyncs_word_count(
        self,
        chapters: ChapterRepository,
        books: BookRepository,
        book: Book,
        three_chapters: list[Chapter],
    ) -> None:
        """The deleted chapter's words leave the book total."""

        async def scenario() -> int:
            await chapters.update_chapter(three_chapters[0].id, content="<p>a b c</p>")
            await chapters.update_chapter(three_chapters[2].id, content="<p>d e</p>")
            await chapters.delete_chapter(three_chapters[0].id)
            return (await books.get_book(book.id)).word_count

        assert asyncio.run(scenario()) == 2

    def test_missing_chapter_raises(self, chapters: ChapterRepository) -> None:
        """Deleting an unknown chapter raises ChapterNotFoundError."""
        with pytest.raises(ChapterNotFoundError):
            asyncio.run(chapters.delete_chapter("nope"))


class TestReorderChapters:
    """Tests for ChapterRepository.reorder_chapters."""

    def test_applies_permutation(
        self, chapters: ChapterRepository, book: Book, three_chapters: list[Chapter]
    ) -> None:
        """Ordering [C, A, B] gives C=0, A=1, B=2."""
        a, b, c = three_chapters
        reordered = asyncio.run(chapters.reorder_chapters(book.id, [c.id, a.id, b.id]))
        assert [chapter.title for chapter in reordered] == ["C", "A", "B"]
        assert _orders(chapters, book.id) == {"C": 0, "A": 1, "B": 2}

    def test_rejects_partial_ordering(
        self, chapters: ChapterRepository, book: Book, three_chapters: list[Chapter]
    ) -> None:
        """Leaving a chapter out is an error and changes nothing."""
        a, b, _ = three_chapters
        with pytest.raises(ValueError, match="exactly once"):
            asyncio.run(chapters.reorder_chapters(book.id, [b.id, a.id]))
        assert _orders(chapters, book.id) == {"A": 0, "B": 1, "C": 2}

    def test_rejects_duplicates(
        self, chapters: ChapterRepository, book: Book, three_chapters: list[Chapter]
    ) -> None:
        """Listing a chapter twice is an error."""
        a, b, c = three_chapters
        with pytest.raises(ValueError, match="duplicate"):
            asyncio.run(chapters.reorder_chapters(book.id, [a.id, b.id, c.id, a.id]))

    def test_rejects_foreign_chapter(
        self,
        chapters: ChapterRepository,
        books: BookRepository,
        book: Book,
        three_chapters: list[Chapter],
    ) -> None:
        """Chapters from another book cannot be slipped into the ordering."""

        async def scenario() -> None:
            other = await books.create_book(NewBook(title="Other", author_name="X"))
            stray = await chapters.create_chapter(NewChapter(book_id=other.id, title="Stray"))
            a, b, _ = three_chapters
            await chapters.reorder_chapters(book.id, [a.id, b.id, stray.id])

        with pytest.raises(ValueError, match="not in book"):
            asyncio.run(scenario())

    def test_other_books_untouched(
        self,
        chapters: ChapterRepository,
        books: BookRepository,
        book: Book,
        three_chapters: list[Chapter],
    ) -> None:
        """Reordering one book leaves another book's orders alone."""

        async def scenario() -> list[int]:
            other = await books.create_book(NewBook(title="Other", author_name="X"))
            for title in ("X", "Y"):
                await chapters.create_chapter(NewChapter(book_id=other.id, title=title))
            a, b, c = three_chapters
            await chapters.reorder_chapters(book.id, [b.id, c.id, a.id])
            return [chapter.order for chapter in await chapters.list_chapters(other.id)]

        assert asyncio.run(scenario()) == [0, 1]
