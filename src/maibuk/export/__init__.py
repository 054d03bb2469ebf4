# ABOUTME: Public API for turning books into EPUB packages and print documents.
# ABOUTME: Re-exports the sanitizer, packagers, preview engine, and export pipeline.

from maibuk.export.covers import CoverFetchError, CoverHttpClient, CoverImage, resolve_cover
from maibuk.export.epub import generate_epub, get_epub_filename
from maibuk.export.layout import generate_print_html, get_print_filename
from maibuk.export.pipeline import Exporter
from maibuk.export.preview import PaginationPreview, PreviewDocument, PreviewPage
from maibuk.export.print_styles import generate_print_styles
from maibuk.export.sanitizer import (
    Footnote,
    SanitizeResult,
    generate_endnotes_html,
    process_chapter_html,
    sanitize_html,
)
from maibuk.export.types import (
    DEFAULT_EPUB_OPTIONS,
    DEFAULT_PRINT_OPTIONS,
    EmptyExportError,
    EpubExportOptions,
    ExportError,
    ExportProgress,
    ExportResult,
    PageSize,
    PrintExportOptions,
)

__all__ = [
    "DEFAULT_EPUB_OPTIONS",
    "DEFAULT_PRINT_OPTIONS",
    "CoverFetchError",
    "CoverHttpClient",
    "CoverImage",
    "EmptyExportError",
    "EpubExportOptions",
    "ExportError",
    "ExportProgress",
    "ExportResult",
    "Exporter",
    "Footnote",
    "PageSize",
    "PaginationPreview",
    "PreviewDocument",
    "PreviewPage",
    "PrintExportOptions",
    "SanitizeResult",
    "generate_endnotes_html",
    "generate_epub",
    "generate_print_html",
    "generate_print_styles",
    "get_epub_filename",
    "get_print_filename",
    "process_chapter_html",
    "resolve_cover",
    "sanitize_html",
]
