# ABOUTME: The `maibuk chapter` command group for managing a book's chapters.
# ABOUTME: Provides add, ls, show, write, rm, move, include, and exclude subcommands.

from pathlib import Path
from typing import TextIO

import click
from rich.console import Console
from rich.table import Table

from maibuk.cli.options import (
    backend_option,
    chapter_at,
    db_option,
    open_store,
    resolve_book,
    run,
)
from maibuk.core.session import EditorSession
from maibuk.db.books import BookRepository
from maibuk.db.chapters import ChapterRepository
from maibuk.db.connection import Backend
from maibuk.models.types import CHAPTER_TYPES, Book, Chapter

console = Console()


@click.group("chapter")
def chapter() -> None:
    """Manage a book's chapters. Chapters are addressed by position (1, 2, ...)."""


@chapter.command("ls")
@click.argument("book_ref")
@db_option
@backend_option
def chapter_ls(book_ref: str, db_path: Path | None, backend: Backend) -> None:
    """List a book's chapters in order."""

    async def load() -> tuple[Book, list[Chapter]]:
        async with open_store(db_path, backend) as adapter:
            book = await resolve_book(BookRepository(adapter), book_ref)
            return book, await ChapterRepository(adapter).list_chapters(book.id)

    book, chapters = run(console, load())
    if not chapters:
        console.print(f"[yellow]{book.title} has no chapters.[/yellow]")
        return

    table = Table(title=book.title)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Words", justify="right")
    table.add_column("Export")

    for position, item in enumerate(chapters, start=1):
        table.add_row(
            str(position),
            item.title,
            item.chapter_type,
            item.status,
            f"{item.word_count:,}",
            "yes" if item.is_included_in_export else "[dim]no[/dim]",
        )

    console.print(table)
    console.print(f"\n[dim]{book.word_count:,} words in {len(chapters)} chapter(s)[/dim]")


@chapter.command("add")
@click.argument("book_ref")
@click.argument("title")
@click.option(
    "--type",
    "chapter_type",
    type=click.Choice(CHAPTER_TYPES),
    default="chapter",
    show_default=True,
    help="Chapter type.",
)
@db_option
@backend_option
def chapter_add(
    book_ref: str, title: str, chapter_type: str, db_path: Path | None, backend: Backend
) -> None:
    """Append a chapter to a book."""

    async def create() -> tuple[Chapter, int]:
        async with open_store(db_path, backend) as adapter:
            books = BookRepository(adapter)
            book = await resolve_book(books, book_ref)
            editor = EditorSession(books, ChapterRepository(adapter, books))
            try:
                await editor.open_book(book.id)
                created = await editor.chapters.create_chapter(title, chapter_type)
                return created, len(editor.chapters.chapters)
            finally:
                await editor.close()

    created, position = run(console, create())
    console.print(f"Added #{position} [bold]{created.title}[/bold] ({created.chapter_type})")


@chapter.command("show")
@click.argument("book_ref")
@click.argument("position", type=int)
@db_option
@backend_option
def chapter_show(book_ref: str, position: int, db_path: Path | None, backend: Backend) -> None:
    """Print a chapter's HTML content."""

    async def load() -> Chapter:
        async with open_store(db_path, backend) as adapter:
            book = await resolve_book(BookRepository(adapter), book_ref)
            return chapter_at(await ChapterRepository(adapter).list_chapters(book.id), position)

    item = run(console, load())
    click.echo(item.content or "")


@chapter.command("write")
@click.argument("book_ref")
@click.argument("position", type=int)
@click.argument("source", type=click.File("r", encoding="utf-8"))
@db_option
@backend_option
def chapter_write(
    book_ref: str,
    position: int,
    source: TextIO,
    db_path: Path | None,
    backend: Backend,
) -> None:
    """Replace a chapter's content with HTML read from SOURCE ('-' for stdin)."""
    html = source.read()

    async def save() -> tuple[Chapter | None, Book | None, bool]:
        async with open_store(db_path, backend) as adapter:
            books = BookRepository(adapter)
            book = await resolve_book(books, book_ref)
            editor = EditorSession(books, ChapterRepository(adapter, books), auto_save_delay=0)
            try:
                await editor.open_book(book.id)
                target = chapter_at(editor.chapters.chapters, position)
                await editor.select_chapter(target.id)
                editor.edit_content(target.id, html)
                saved = await editor.save_now()
                return editor.chapters.current_chapter, editor.books.current_book, saved
            finally:
                await editor.close()

    item, book, saved = run(console, save())
    if not saved or item is None or book is None:
        console.print("[red]Could not save chapter content.[/red]")
        raise SystemExit(1)
    console.print(
        f"Saved [bold]{item.title}[/bold]: {item.word_count:,} words "
        f"[dim](book total {book.word_count:,})[/dim]"
    )


@chapter.command("rm")
@click.argument("book_ref")
@click.argument("position", type=int)
@db_option
@backend_option
def chapter_rm(book_ref: str, position: int, db_path: Path | None, backend: Backend) -> None:
    """Delete a chapter; later chapters move up."""

    async def delete() -> Chapter:
        async with open_store(db_path, backend) as adapter:
            books = BookRepository(adapter)
            chapters = ChapterRepository(adapter, books)
            book = await resolve_book(books, book_ref)
            target = chapter_at(await chapters.list_chapters(book.id), position)
            await chapters.delete_chapter(target.id)
            return target

    removed = run(console, delete())
    console.print(f"Deleted [bold]{removed.title}[/bold].")


@chapter.command("move")
@click.argument("book_ref")
@click.argument("position", type=int)
@click.argument("new_position", type=int)
@db_option
@backend_option
def chapter_move(
    book_ref: str, position: int, new_position: int, db_path: Path | None, backend: Backend
) -> None:
    """Move the chapter at POSITION to NEW_POSITION."""

    async def move() -> list[Chapter]:
        async with open_store(db_path, backend) as adapter:
            books = BookRepository(adapter)
            chapters = ChapterRepository(adapter, books)
            book = await resolve_book(books, book_ref)
            current = await chapters.list_chapters(book.id)
            moving = chapter_at(current, position)
            chapter_at(current, new_position)
            ids = [item.id for item in current if item.id != moving.id]
            ids.insert(new_position - 1, moving.id)
            return await chapters.reorder_chapters(book.id, ids)

    reordered = run(console, move())
    for index, item in enumerate(reordered, start=1):
        console.print(f"  {index}. {item.title}")


def _set_included(
    book_ref: str, position: int, included: bool, db_path: Path | None, backend: Backend
) -> Chapter:
    async def toggle() -> Chapter:
        async with open_store(db_path, backend) as adapter:
            books = BookRepository(adapter)
            chapters = ChapterRepository(adapter, books)
            book = await resolve_book(books, book_ref)
            target = chapter_at(await chapters.list_chapters(book.id), position)
            return await chapters.update_chapter(target.id, is_included_in_export=included)

    return run(console, toggle())


@chapter.command("include")
@click.argument("book_ref")
@click.argument("position", type=int)
@db_option
@backend_option
def chapter_include(book_ref: str, position: int, db_path: Path | None, backend: Backend) -> None:
    """Include a chapter in exports."""
    item = _set_included(book_ref, position, True, db_path, backend)
    console.print(f"[bold]{item.title}[/bold] will be exported.")


@chapter.command("exclude")
@click.argument("book_ref")
@click.argument("position", type=int)
@db_option
@backend_option
def chapter_exclude(book_ref: str, position: int, db_path: Path | None, backend: Backend) -> None:
    """Leave a chapter out of exports."""
    item = _set_included(book_ref, position, False, db_path, backend)
    console.print(f"[bold]{item.title}[/bold] will be left out of exports.")
