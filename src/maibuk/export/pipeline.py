# ABOUTME: Runs EPUB and print exports end to end with progress reporting.
# ABOUTME: One export at a time; artifacts are written atomically or not at all.

import asyncio
import dataclasses
import logging
from collections.abc import Callable
from pathlib import Path

from ebooklib.epub import EpubException
from lxml.etree import LxmlError

from maibuk.export.covers import CoverFetchError, CoverImage, HttpClient, resolve_cover
from maibuk.export.epub import generate_epub, get_epub_filename
from maibuk.export.layout import generate_print_html, get_print_filename
from maibuk.export.ordering import exportable_chapters
from maibuk.export.types import (
    DEFAULT_EPUB_OPTIONS,
    DEFAULT_PRINT_OPTIONS,
    EpubExportOptions,
    ExportError,
    ExportProgress,
    ExportResult,
    ExportStatus,
    PrintExportOptions,
)
from maibuk.models.types import Book, Chapter

logger = logging.getLogger(__name__)

ProgressHandler = Callable[[ExportProgress], None]

_EXPORT_ERRORS = (ExportError, CoverFetchError, EpubException, LxmlError, OSError, ValueError)


def _cleanup(path: Path) -> None:
    """Remove a file if it exists."""
    if path.exists():
        path.unlink()


def write_atomic(destination: Path, data: bytes) -> None:
    """Write data so that destination is either fully replaced or untouched.

    The bytes go to a temporary sibling first, which then replaces the
    destination in one rename.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    tmp = destination.with_name(f".{destination.name}.tmp")
    try:
        tmp.write_bytes(data)
        tmp.replace(destination)
    except OSError:
        _cleanup(tmp)
        raise


def _resolve_destination(destination: Path, suggested_name: str) -> Path:
    if destination.is_dir():
        return destination / suggested_name
    return destination


class Exporter:
    """Produces export artifacts for a book, one request at a time.

    A request made while another is running waits for it to finish. Each
    request reports coarse stages (preparing, generating, saving, then
    complete or error) through on_progress and returns an ExportResult.
    Expected failures (empty export, cover, packaging, parse and I/O errors)
    come back as a failed result. Anything else is reported as an error
    and then re-raised.
    Args:
        on_progress: Receives an ExportProgress at each stage.
        cover_client: HTTP client used to download remote covers.
    """

    def __init__(
        self,
        *,
        on_progress: ProgressHandler | None = None,
        cover_client: HttpClient | None = None,
    ) -> None:
        self._on_progress = on_progress
        self._cover_client = cover_client
        self._lock = asyncio.Lock()
        self.progress = ExportProgress(status="idle", message="")

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def _report(self, status: ExportStatus, message: str) -> None:
        self.progress = ExportProgress(status=status, message=message)
        if self._on_progress is not None:
            self._on_progress(self.progress)

    async def _load_cover(self, book: Book) -> tuple[CoverImage | None, list[str]]:
        if not book.has_cover:
            return None, []
        return await asyncio.to_thread(resolve_cover, book, self._cover_client)

    async def export_epub(
        self,
        book: Book,
        chapters: list[Chapter],
        destination: Path,
        options: EpubExportOptions = DEFAULT_EPUB_OPTIONS,
    ) -> ExportResult:
        """Export a book as EPUB.

        Args:
            book: The book to export.
            chapters: All of the book's chapters.
            destination: Target file, or a directory to place the suggested filename in.
            options: EPUB switches.
        """
        async with self._lock:
            target = _resolve_destination(destination, get_epub_filename(book))
            warnings: list[str] = []
            try:
                self._report("preparing", "Preparing chapters...")
                exportable_chapters(chapters)
                cover, warnings = await self._load_cover(book)

                self._report("generating", "Generating EPUB...")
                data = await asyncio.to_thread(
                    generate_epub, book, chapters, options, None, lambda _book: cover
                )

                self._report("saving", f"Saving {target.name}...")
                await asyncio.to_thread(write_atomic, target, data)
            except _EXPORT_ERRORS as exc:
                return self._failed(exc, warnings)
            except Exception as exc:
                self._crashed(exc)
                raise

            return self._succeeded(target, warnings)

    async def export_print(
        self,
        book: Book,
        chapters: list[Chapter],
        destination: Path,
        options: PrintExportOptions = DEFAULT_PRINT_OPTIONS,
    ) -> ExportResult:
        """Export a book as a standalone print HTML document.

        The cover image is inlined as a data URI so the document has no
        external references. A cover that cannot be loaded is replaced by the
        generated title page and reported as a warning.
        """
        async with self._lock:
            target = _resolve_destination(destination, get_print_filename(book))
            warnings: list[str] = []
            try:
                self._report("preparing", "Preparing chapters...")
                exportable_chapters(chapters)
                cover, warnings = await self._load_cover(book)

                self._report("generating", "Generating print document...")
                if cover is None:
                    document = generate_print_html(
                        dataclasses.replace(book, cover_image_path=None), chapters, options
                    )
                else:
                    document = generate_print_html(book, chapters, options, cover.as_data_uri())

                self._report("saving", f"Saving {target.name}...")
                await asyncio.to_thread(write_atomic, target, document.encode("utf-8"))
            except _EXPORT_ERRORS as exc:
                return self._failed(exc, warnings)
            except Exception as exc:
                self._crashed(exc)
                raise

            return self._succeeded(target, warnings)

    def _succeeded(self, target: Path, warnings: list[str]) -> ExportResult:
        logger.info("Exported %s", target)
        self._report("complete", f"Exported to {target}")
        return ExportResult(path=target, success=True, warnings=warnings)

    def _failed(self, exc: Exception, warnings: list[str]) -> ExportResult:
        message = f"export failed: {exc}"
        logger.error("%s", message)
        self._report("error", message)
        return ExportResult(path=None, success=False, error=message, warnings=warnings)

    def _crashed(self, exc: Exception) -> None:
        message = f"export failed: {exc}"
        logger.exception("Unexpected export failure")
        self._report("error", message)
