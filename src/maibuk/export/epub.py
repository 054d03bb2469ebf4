# ABOUTME: Packages a book and its chapters into an EPUB 3 file using ebooklib.
# ABOUTME: Handles chapter numbering, frontmatter placement, cover pages, and metadata.

import html
import logging
from collections.abc import Callable
from io import BytesIO

from ebooklib import epub

from maibuk.export.covers import CoverImage, resolve_cover
from maibuk.export.epub_styles import EPUB_STYLES
from maibuk.export.ordering import chapter_numbers, exportable_chapters, sanitize_filename
from maibuk.export.sanitizer import process_chapter_html
from maibuk.export.types import DEFAULT_EPUB_OPTIONS, EpubExportOptions
from maibuk.models.types import Book, Chapter

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]
CoverResolver = Callable[[Book], CoverImage | None]

DEFAULT_AUTHOR = "Unknown Author"
DEFAULT_LANGUAGE = "en"


def _resolve_cover_or_none(book: Book) -> CoverImage | None:
    cover, _ = resolve_cover(book)
    return cover


def epub_chapter_title(
    chapter: Chapter, numbers: dict[str, int], options: EpubExportOptions
) -> str:
    """Display title for a chapter: "Chapter N: title" for numbered plain chapters."""
    number = numbers.get(chapter.id)
    if options.number_chapters and number is not None:
        return f"Chapter {number}: {chapter.title}"
    return chapter.title


def _cover_page(cover: CoverImage, language: str) -> epub.EpubHtml:
    page = epub.EpubHtml(uid="cover-page", title="", file_name="cover.xhtml", lang=language)
    page.content = (
        '<div class="cover" style="text-align: center;">'
        f'<img class="cover-image" src="{cover.file_name}" alt="Cover" />'
        "</div>"
    )
    return page


def generate_epub(
    book: Book,
    chapters: list[Chapter],
    options: EpubExportOptions = DEFAULT_EPUB_OPTIONS,
    on_progress: ProgressCallback | None = None,
    cover_resolver: CoverResolver | None = None,
) -> bytes:
    """Build an EPUB 3 package for a book.

    Args:
        book: The book supplying package metadata and cover.
        chapters: All of the book's chapters; excluded ones are skipped.
        options: Numbering, title and table-of-contents switches.
        on_progress: Receives a short message at each packaging stage.
        cover_resolver: Loads the cover image. Defaults to resolve_cover,
            which logs and drops a cover that cannot be loaded.

    Returns:
        The EPUB file as bytes.

    Raises:
        EmptyExportError: If no chapter is included in export.
    """

    def progress(message: str) -> None:
        if on_progress is not None:
            on_progress(message)

    progress("Preparing chapters...")
    selected = exportable_chapters(chapters)
    numbers = chapter_numbers(selected)
    language = book.language or DEFAULT_LANGUAGE

    package = epub.EpubBook()
    package.set_identifier(book.id)
    package.set_title(book.title)
    package.set_language(language)
    package.add_author(book.author_name or DEFAULT_AUTHOR)
    if book.description:
        package.add_metadata("DC", "description", book.description)

    css = epub.EpubItem(
        uid="style",
        file_name="style/main.css",
        media_type="text/css",
        content=EPUB_STYLES.encode("utf-8"),
    )
    package.add_item(css)

    progress("Processing chapter content...")
    frontmatter: list[epub.EpubHtml] = []
    body: list[epub.EpubHtml] = []
    toc: list[epub.Link] = []
    for index, chapter in enumerate(selected, start=1):
        title = epub_chapter_title(chapter, numbers, options)
        content = process_chapter_html(chapter.content) or "<p></p>"
        if options.prepend_chapter_titles:
            content = f"<h1>{html.escape(title)}</h1>\n{content}"

        item = epub.EpubHtml(
            uid=f"chapter-{index}",
            title=title,
            file_name=f"chapter-{index}.xhtml",
            lang=language,
        )
        item.content = content
        item.add_item(css)
        package.add_item(item)
        toc.append(epub.Link(item.file_name, title, item.id))
        (frontmatter if chapter.chapter_type == "frontmatter" else body).append(item)

    progress("Building EPUB metadata...")
    spine: list[epub.EpubHtml | str] = []
    if book.has_cover:
        cover = (cover_resolver or _resolve_cover_or_none)(book)
        if cover is not None:
            package.set_cover(cover.file_name, cover.data, create_page=False)
            cover_page = _cover_page(cover, language)
            cover_page.add_item(css)
            package.add_item(cover_page)
            spine.append(cover_page)

    spine.extend(frontmatter)
    if options.include_table_of_contents:
        spine.append("nav")
    spine.extend(body)

    package.toc = toc
    package.spine = spine
    package.add_item(epub.EpubNcx())
    package.add_item(epub.EpubNav())

    progress("Generating EPUB file...")
    output = BytesIO()
    epub.write_epub(output, package)
    logger.info("Packaged %s: %d chapters", book.title, len(selected))
    progress("EPUB generated successfully!")
    return output.getvalue()


def get_epub_filename(book: Book) -> str:
    """Suggested filename for a book's EPUB export."""
    return sanitize_filename(book.title, "epub")
