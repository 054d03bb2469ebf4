# ABOUTME: The single word-count function shared by chapter and book statistics.
# ABOUTME: Strips markup, splits on whitespace, and counts non-empty tokens.

import re
from collections.abc import Iterable
from typing import Protocol

_TAG_RE = re.compile(r"<[^>]*>")


class _Counted(Protocol):
    word_count: int


def count_words(html: str | None) -> int:
    """Count the words in a rich-HTML body.

    Every tag is replaced by a space so adjacent block elements never glue
    their words together, then whitespace-delimited tokens are counted.
    """
    if not html:
        return 0
    text = _TAG_RE.sub(" ", html)
    return len([token for token in text.split() if token])


def total_word_count(chapters: Iterable[_Counted]) -> int:
    """Sum the cached word counts of a set of chapters."""
    return sum(chapter.word_count for chapter in chapters)
