# ABOUTME: Document model package for books, chapters, and derived word counts.
# ABOUTME: Exports the dataclasses and the canonical word-count function.

from maibuk.models.types import (
    BOOK_STATUSES,
    CHAPTER_STATUSES,
    CHAPTER_TYPES,
    Book,
    Chapter,
    NewBook,
    NewChapter,
)
from maibuk.models.wordcount import count_words, total_word_count

__all__ = [
    "BOOK_STATUSES",
    "CHAPTER_STATUSES",
    "CHAPTER_TYPES",
    "Book",
    "Chapter",
    "NewBook",
    "NewChapter",
    "count_words",
    "total_word_count",
]
