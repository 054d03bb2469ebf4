# ABOUTME: The `maibuk export` command group for producing EPUB, print, and preview files.
# ABOUTME: Streams export progress to the console and reports warnings and failures.

from pathlib import Path

import click
from rich.console import Console

from maibuk.cli.options import backend_option, db_option, open_store, resolve_book, run
from maibuk.db.books import BookRepository
from maibuk.db.chapters import ChapterRepository
from maibuk.db.connection import Backend
from maibuk.export.pipeline import Exporter
from maibuk.export.preview import PaginationPreview, PreviewDocument
from maibuk.export.types import (
    EpubExportOptions,
    ExportProgress,
    ExportResult,
    PageSize,
    PrintExportOptions,
)
from maibuk.models.types import Book, Chapter

console = Console()

output_option = click.option(
    "-o",
    "--output",
    "output",
    type=click.Path(path_type=Path),
    default=Path("."),
    show_default=True,
    help="Output file, or a directory to write the suggested filename into.",
)

page_size_option = click.option(
    "--page-size",
    type=click.Choice([size.value for size in PageSize]),
    default=PageSize.A5.value,
    show_default=True,
    help="Print page size preset.",
)


def _show_progress(progress: ExportProgress) -> None:
    if progress.status not in ("complete", "error"):
        console.print(f"[dim]{progress.message}[/dim]")


async def _load(
    book_ref: str, db_path: Path | None, backend: Backend
) -> tuple[Book, list[Chapter]]:
    async with open_store(db_path, backend) as adapter:
        book = await resolve_book(BookRepository(adapter), book_ref)
        return book, await ChapterRepository(adapter).list_chapters(book.id)


def _report(result: ExportResult) -> None:
    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    if not result.success:
        console.print(f"[red]{result.error}[/red]")
        raise SystemExit(1)
    console.print(f"[green]Exported:[/green] {result.path}")


@click.group("export")
def export() -> None:
    """Export a book as EPUB or print-ready HTML."""


@export.command("epub")
@click.argument("book_ref")
@output_option
@click.option("--toc/--no-toc", default=True, help="Include the table of contents page.")
@click.option("--numbering/--no-numbering", default=True, help="Prefix chapters with 'Chapter N:'.")
@click.option("--titles/--no-titles", default=True, help="Show chapter titles as headings.")
@db_option
@backend_option
def export_epub(
    book_ref: str,
    output: Path,
    toc: bool,
    numbering: bool,
    titles: bool,
    db_path: Path | None,
    backend: Backend,
) -> None:
    """Export a book as an EPUB file."""
    options = EpubExportOptions(
        include_table_of_contents=toc,
        number_chapters=numbering,
        prepend_chapter_titles=titles,
    )

    async def build() -> ExportResult:
        book, chapters = await _load(book_ref, db_path, backend)
        exporter = Exporter(on_progress=_show_progress)
        return await exporter.export_epub(book, chapters, output, options)

    _report(run(console, build()))


@export.command("print")
@click.argument("book_ref")
@output_option
@page_size_option
@click.option("--toc/--no-toc", default=True, help="Include a table of contents.")
@click.option("--page-numbers/--no-page-numbers", default=True, help="Number the pages.")
@click.option(
    "--running-headers/--no-running-headers",
    default=True,
    help="Show the chapter title at the top of each page.",
)
@db_option
@backend_option
def export_print(
    book_ref: str,
    output: Path,
    page_size: str,
    toc: bool,
    page_numbers: bool,
    running_headers: bool,
    db_path: Path | None,
    backend: Backend,
) -> None:
    """Export a book as a standalone print HTML document."""
    options = PrintExportOptions(
        page_size=PageSize(page_size),
        include_table_of_contents=toc,
        include_page_numbers=page_numbers,
        include_running_headers=running_headers,
    )

    async def build() -> ExportResult:
        book, chapters = await _load(book_ref, db_path, backend)
        exporter = Exporter(on_progress=_show_progress)
        return await exporter.export_print(book, chapters, output, options)

    _report(run(console, build()))


@export.command("preview")
@click.argument("book_ref")
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the paginated preview HTML to this file.",
)
@page_size_option
@click.option("--toc/--no-toc", default=True, help="Include a table of contents.")
@db_option
@backend_option
def export_preview(
    book_ref: str,
    output: Path | None,
    page_size: str,
    toc: bool,
    db_path: Path | None,
    backend: Backend,
) -> None:
    """Paginate the print document and summarize its pages."""
    options = PrintExportOptions(page_size=PageSize(page_size), include_table_of_contents=toc)

    async def render() -> PreviewDocument:
        book, chapters = await _load(book_ref, db_path, backend)
        return await PaginationPreview().render(book, chapters, options)

    preview = run(console, render())
    for page in preview.pages:
        header = f" [dim]{page.running_header}[/dim]" if page.running_header else ""
        console.print(f"  Page {page.number}: {len(page.blocks)} block(s){header}")
    console.print(f"\n[dim]{preview.page_count} page(s) at {options.page_size.format.label}[/dim]")

    if output is not None:
        output.write_text(preview.to_html(), encoding="utf-8")
        console.print(f"[green]Preview written:[/green] {output}")
