# ABOUTME: Builds the self-contained print HTML document for a book.
# ABOUTME: Cover, optional table of contents, and one page-broken section per chapter.

import html

from maibuk.export.ordering import chapter_numbers, exportable_chapters, sanitize_filename
from maibuk.export.print_styles import generate_print_styles
from maibuk.export.sanitizer import process_chapter_html
from maibuk.export.types import DEFAULT_PRINT_OPTIONS, PrintExportOptions
from maibuk.models.types import Book, Chapter

DOCUMENT_CLASS = "print-document"


def chapter_anchor(index: int) -> str:
    return f"chapter-{index}"


def _cover_html(book: Book, cover_src: str | None) -> str:
    src = cover_src or book.cover_image_path
    if src:
        return (
            '<section class="cover-page">'
            f'<img src="{html.escape(src)}" alt="Cover" />'
            "</section>"
        )

    subtitle = (
        f'<div class="subtitle">{html.escape(book.subtitle)}</div>' if book.subtitle else ""
    )
    return (
        '<section class="cover-page">'
        f'<div class="title">{html.escape(book.title)}</div>'
        f"{subtitle}"
        f'<div class="author">by {html.escape(book.author_name)}</div>'
        "</section>"
    )


def _toc_html(chapters: list[Chapter]) -> str:
    entries = "".join(
        '<div class="toc-entry">'
        f'<a href="#{chapter_anchor(index)}">{html.escape(chapter.title)}</a>'
        f'<span class="page-number" href="#{chapter_anchor(index)}"></span>'
        "</div>"
        for index, chapter in enumerate(chapters)
        if chapter.chapter_type != "frontmatter"
    )
    return f'<section class="toc"><h2>Table of Contents</h2>{entries}</section>'


def _chapter_html(index: int, chapter: Chapter, number: int | None) -> str:
    # Footnote ids are namespaced per chapter so the whole book shares one id space.
    content = process_chapter_html(chapter.content, id_prefix=f"{chapter_anchor(index)}-")
    number_html = (
        f'<div class="chapter-number">Chapter {number}</div>' if number is not None else ""
    )
    return (
        f'<section class="chapter" id="{chapter_anchor(index)}">'
        '<div class="chapter-header">'
        f"{number_html}"
        f'<h1 class="chapter-title">{html.escape(chapter.title)}</h1>'
        "</div>"
        f'<div class="chapter-content">{content or "<p></p>"}</div>'
        "</section>"
    )


def generate_print_html(
    book: Book,
    chapters: list[Chapter],
    options: PrintExportOptions = DEFAULT_PRINT_OPTIONS,
    cover_src: str | None = None,
) -> str:
    """Render a book as one standalone HTML document with paged-media CSS.

    Args:
        book: The book being printed.
        chapters: All of the book's chapters; excluded ones are skipped.
        options: Page size, contents, page number and running header switches.
        cover_src: Image source for the cover page, e.g. a data URI. Defaults
            to the book's cover_image_path; with neither, a text cover is built.

    Raises:
        EmptyExportError: If no chapter is included in export.
    """
    selected = exportable_chapters(chapters)
    numbers = chapter_numbers(selected)

    parts = [_cover_html(book, cover_src)]
    if options.include_table_of_contents:
        parts.append(_toc_html(selected))
    parts.extend(
        _chapter_html(index, chapter, numbers.get(chapter.id))
        for index, chapter in enumerate(selected)
    )

    # Sections must directly follow <body>; stray whitespace paginates as blank pages.
    return (
        "<!DOCTYPE html>\n"
        f'<html lang="{html.escape(book.language or "en")}">\n'
        "<head>\n"
        '<meta charset="UTF-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"<title>{html.escape(book.title)}</title>\n"
        f"<style>{generate_print_styles(options)}</style>\n"
        "</head>\n"
        f'<body class="{DOCUMENT_CLASS}">{"".join(parts)}</body>\n'
        "</html>"
    )


def get_print_filename(book: Book) -> str:
    """Suggested filename for a book's print document."""
    return sanitize_filename(book.title, "html")
