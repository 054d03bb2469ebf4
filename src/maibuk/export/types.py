# ABOUTME: Export option value objects, page-size presets, progress reporting, and errors.
# ABOUTME: Options are frozen with documented defaults and validated on construction.

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Literal


class ExportError(Exception):
    """Raised when an export cannot produce an artifact."""


class EmptyExportError(ExportError):
    """Raised when no chapter passes the export inclusion filter."""

    def __init__(self) -> None:
        super().__init__("No chapters selected for export")


@dataclass(frozen=True)
class PageFormat:
    """Physical dimensions of a print page, in CSS units and in points."""

    label: str
    css_size: str
    width_pt: float
    height_pt: float
    margin_block_pt: float
    margin_inline_pt: float

    @property
    def css_margin(self) -> str:
        return f"{self.margin_block_pt:g}pt {self.margin_inline_pt:g}pt"


class PageSize(str, Enum):
    """Print page-size presets."""

    A4 = "a4"
    A5 = "a5"
    LETTER = "letter"
    TRADE = "6x9"
    DIGEST = "5.5x8.5"
    POCKET = "5x8"

    @property
    def format(self) -> PageFormat:
        return PAGE_FORMATS[self]


PAGE_FORMATS: dict[PageSize, PageFormat] = {
    PageSize.A4: PageFormat("A4", "210mm 297mm", 595.28, 841.89, 72, 57),
    PageSize.A5: PageFormat("A5", "148mm 210mm", 419.53, 595.28, 57, 43),
    PageSize.LETTER: PageFormat('8.5" x 11"', "8.5in 11in", 612, 792, 72, 72),
    PageSize.TRADE: PageFormat('6" x 9"', "6in 9in", 432, 648, 63, 54),
    PageSize.DIGEST: PageFormat('5.5" x 8.5"', "5.5in 8.5in", 396, 612, 54, 45),
    PageSize.POCKET: PageFormat('5" x 8"', "5in 8in", 360, 576, 54, 45),
}


@dataclass(frozen=True)
class EpubExportOptions:
    """EPUB export switches.

    Attributes:
        include_table_of_contents: Put the navigation page in the reading order.
        number_chapters: Prefix plain chapters with "Chapter N:".
        prepend_chapter_titles: Render each chapter's title as a heading.
    """

    include_table_of_contents: bool = True
    number_chapters: bool = True
    prepend_chapter_titles: bool = True


@dataclass(frozen=True)
class PrintExportOptions:
    """Print document switches.

    Attributes:
        page_size: A PageSize member or its value (e.g. "a5", "6x9").
        include_table_of_contents: Emit a contents section after the cover.
        include_page_numbers: Number pages in the bottom margin.
        include_running_headers: Show the current chapter title at the top of pages.
    """

    page_size: PageSize = PageSize.A5
    include_table_of_contents: bool = True
    include_page_numbers: bool = True
    include_running_headers: bool = True

    def __post_init__(self) -> None:
        # Raises ValueError for an unknown preset instead of silently defaulting.
        object.__setattr__(self, "page_size", PageSize(self.page_size))


DEFAULT_EPUB_OPTIONS = EpubExportOptions()
DEFAULT_PRINT_OPTIONS = PrintExportOptions()

ExportStatus = Literal["idle", "preparing", "generating", "saving", "complete", "error"]


@dataclass(frozen=True)
class ExportProgress:
    """A coarse export stage with a human-readable message."""

    status: ExportStatus
    message: str


@dataclass
class ExportResult:
    """Outcome of an export: where it was written, or why it failed."""

    path: Path | None
    success: bool
    error: str | None = None
    warnings: list[str] = field(default_factory=list)
