# ABOUTME: The `maibuk new`, `edit`, `open`, and `rm` commands for managing books.
# ABOUTME: Creates books, patches their fields, opens them for editing, and deletes them.

from pathlib import Path
from typing import Any

import click
from rich.console import Console

from maibuk.cli.options import backend_option, db_option, open_store, resolve_book, run
from maibuk.core.session import EditorSession
from maibuk.db.books import BookRepository
from maibuk.db.chapters import ChapterRepository
from maibuk.db.connection import Backend
from maibuk.models.types import BOOK_STATUSES, Book, Chapter, NewBook

console = Console()


@click.command("new")
@click.argument("title")
@click.option("--author", "author_name", required=True, help="Author name.")
@click.option("--subtitle", default=None, help="Subtitle.")
@click.option("--description", default=None, help="Short description.")
@click.option("--genre", default=None, help="Genre.")
@db_option
@backend_option
def new(
    title: str,
    author_name: str,
    subtitle: str | None,
    description: str | None,
    genre: str | None,
    db_path: Path | None,
    backend: Backend,
) -> None:
    """Create a new draft book."""

    async def create() -> Book:
        async with open_store(db_path, backend) as adapter:
            return await BookRepository(adapter).create_book(
                NewBook(
                    title=title,
                    author_name=author_name,
                    subtitle=subtitle,
                    description=description,
                    genre=genre,
                )
            )

    book = run(console, create())
    console.print(f"Created [bold]{book.title}[/bold] [dim]({book.id})[/dim]")


@click.command("edit")
@click.argument("book_ref")
@click.option("--title", default=None, help="New title.")
@click.option("--subtitle", default=None, help="New subtitle.")
@click.option("--author", "author_name", default=None, help="New author name.")
@click.option("--description", default=None, help="New description.")
@click.option("--genre", default=None, help="New genre.")
@click.option("--language", default=None, help="Language code, e.g. en.")
@click.option("--status", type=click.Choice(BOOK_STATUSES), default=None, help="Book status.")
@click.option("--target", "target_word_count", type=int, default=None, help="Target word count.")
@click.option(
    "--cover", "cover_image_path", default=None, help="Cover image path, URL, or data URI."
)
@db_option
@backend_option
def edit(book_ref: str, db_path: Path | None, backend: Backend, **changes: Any) -> None:
    """Change a book's fields; only the given options are touched."""
    fields = {key: value for key, value in changes.items() if value is not None}
    if not fields:
        console.print("[yellow]Nothing to change.[/yellow]")
        return

    async def apply() -> Book:
        async with open_store(db_path, backend) as adapter:
            books = BookRepository(adapter)
            book = await resolve_book(books, book_ref)
            return await books.update_book(book.id, **fields)

    book = run(console, apply())
    console.print(f"Updated [bold]{book.title}[/bold]: {', '.join(sorted(fields))}")


@click.command("open")
@click.argument("book_ref")
@db_option
@backend_option
def open_book(book_ref: str, db_path: Path | None, backend: Backend) -> None:
    """Open a book and show where editing resumes."""

    async def load() -> tuple[Book, Chapter | None, int]:
        async with open_store(db_path, backend) as adapter:
            books = BookRepository(adapter)
            book = await resolve_book(books, book_ref)
            editor = EditorSession(books, ChapterRepository(adapter, books))
            try:
                book = await editor.open_book(book.id)
                return book, editor.chapters.current_chapter, len(editor.chapters.chapters)
            finally:
                await editor.close()

    book, chapter, count = run(console, load())
    console.print(
        f"Opened [bold]{book.title}[/bold] ({count} chapter(s), {book.word_count:,} words)"
    )
    if chapter is not None:
        console.print(f"  Resuming at [cyan]{chapter.title}[/cyan]")


@click.command("rm")
@click.argument("book_ref")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@db_option
@backend_option
def rm(book_ref: str, yes: bool, db_path: Path | None, backend: Backend) -> None:
    """Delete a book and all of its chapters."""

    async def find() -> Book:
        async with open_store(db_path, backend) as adapter:
            return await resolve_book(BookRepository(adapter), book_ref)

    book = run(console, find())
    if not yes and not click.confirm(f"Delete '{book.title}' and all its chapters?"):
        console.print("[yellow]Aborted.[/yellow]")
        return

    async def delete() -> None:
        async with open_store(db_path, backend) as adapter:
            await BookRepository(adapter).delete_book(book.id)

    run(console, delete())
    console.print(f"Deleted [bold]{book.title}[/bold].")
