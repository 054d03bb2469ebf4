# ABOUTME: Selects and numbers the chapters that go into an export.
# ABOUTME: Only plain chapters are numbered; other chapter types keep their bare titles.

from collections.abc import Iterable

from maibuk.export.types import EmptyExportError
from maibuk.models.types import Chapter


def exportable_chapters(chapters: Iterable[Chapter]) -> list[Chapter]:
    """Chapters included in export, in reading order.

    Raises:
        EmptyExportError: If no chapter is included.
    """
    selected = sorted(
        (chapter for chapter in chapters if chapter.is_included_in_export),
        key=lambda chapter: chapter.order,
    )
    if not selected:
        raise EmptyExportError()
    return selected


def chapter_numbers(chapters: Iterable[Chapter]) -> dict[str, int]:
    """Map each plain chapter's id to its 1-based position among plain chapters."""
    numbers: dict[str, int] = {}
    for chapter in chapters:
        if chapter.chapter_type == "chapter":
            numbers[chapter.id] = len(numbers) + 1
    return numbers


def sanitize_filename(title: str, extension: str) -> str:
    """Build a download filename from a book title.

    Filesystem-invalid characters are removed, whitespace runs become
    underscores, and the stem is capped at 100 characters.
    """
    stem = "".join(ch for ch in title if ch not in '<>:"/\\|?*')
    stem = "_".join(stem.split())[:100]
    return f"{stem or 'untitled'}.{extension}"
