# ABOUTME: Core document data structures: books, chapters, and their creation inputs.
# ABOUTME: Book and Chapter are the interchange format between storage, sessions, and export.

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

BookStatus = Literal["draft", "in-progress", "completed"]
ChapterStatus = Literal["draft", "revised", "final"]
ChapterType = Literal["chapter", "prologue", "epilogue", "part", "frontmatter", "backmatter"]

BOOK_STATUSES: tuple[str, ...] = ("draft", "in-progress", "completed")
CHAPTER_STATUSES: tuple[str, ...] = ("draft", "revised", "final")
CHAPTER_TYPES: tuple[str, ...] = (
    "chapter",
    "prologue",
    "epilogue",
    "part",
    "frontmatter",
    "backmatter",
)


@dataclass
class Book:
    """A book and its cached statistics.

    word_count is derived: it is always the sum of the book's chapter word
    counts and is only ever written by the repository's aggregate sync.
    """

    id: str
    title: str
    author_name: str
    created_at: datetime
    updated_at: datetime
    subtitle: str | None = None
    description: str | None = None
    genre: str | None = None
    language: str = "en"
    cover_image_path: str | None = None
    cover_data: str | None = None
    word_count: int = 0
    target_word_count: int | None = None
    status: BookStatus = "draft"
    last_opened_at: datetime | None = None
    last_chapter_id: str | None = None

    @property
    def has_cover(self) -> bool:
        """Whether a cover reference is present."""
        return bool(self.cover_image_path)


@dataclass
class Chapter:
    """One chapter of a book. Owned by exactly one Book."""

    id: str
    book_id: str
    title: str
    order: int
    created_at: datetime
    updated_at: datetime
    content: str | None = None
    synopsis: str | None = None
    parent_id: str | None = None
    chapter_type: ChapterType = "chapter"
    word_count: int = 0
    status: ChapterStatus = "draft"
    is_included_in_export: bool = True


@dataclass
class NewBook:
    """Fields a caller supplies when creating a book."""

    title: str
    author_name: str
    subtitle: str | None = None
    description: str | None = None
    genre: str | None = None


@dataclass
class NewChapter:
    """Fields a caller supplies when creating a chapter."""

    book_id: str
    title: str
    chapter_type: ChapterType = "chapter"
    parent_id: str | None = None
