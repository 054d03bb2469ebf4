# ABOUTME: Unit tests for EPUB packaging.
# ABOUTME: Reads generated packages back with ebooklib to check spine, titles, metadata, and covers.

import base64
from collections.abc import Callable
from pathlib import Path

import pytest
from ebooklib import epub

from maibuk.export.covers import CoverImage
from maibuk.export.epub import (
    DEFAULT_AUTHOR,
    epub_chapter_title,
    generate_epub,
    get_epub_filename,
)
from maibuk.export.ordering import chapter_numbers
from maibuk.export.types import EmptyExportError, EpubExportOptions
from maibuk.models.types import Book, Chapter

BookFactory = Callable[..., Book]
ChapterFactory = Callable[..., Chapter]

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()


def _read_back(data: bytes, tmp_path: Path) -> epub.EpubBook:
    path = tmp_path / "book.epub"
    path.write_bytes(data)
    return epub.read_epub(str(path))


def _spine_ids(package: epub.EpubBook) -> list[str]:
    return [entry[0] if isinstance(entry, tuple) else entry for entry in package.spine]


@pytest.fixture()
def mixed_chapters(make_chapter: ChapterFactory) -> list[Chapter]:
    """Prologue, two chapters, and an excluded scratch chapter."""
    return [
        make_chapter("P", 0, chapter_type="prologue"),
        make_chapter("One", 1),
        make_chapter("Scratch", 2, is_included_in_export=False),
        make_chapter("Two", 3),
    ]


class TestEpubChapterTitle:
    """Tests for epub_chapter_title."""

    def test_only_plain_chapters_get_numbers(self, mixed_chapters: list[Chapter]) -> None:
        """A prologue keeps its title; chapters are numbered among themselves."""
        included = [c for c in mixed_chapters if c.is_included_in_export]
        numbers = chapter_numbers(included)
        titles = [epub_chapter_title(c, numbers, EpubExportOptions()) for c in included]
        assert titles == ["P", "Chapter 1: One", "Chapter 2: Two"]

    def test_numbering_can_be_disabled(self, make_chapter: ChapterFactory) -> None:
        """Without numbering, bare titles are used."""
        chapter = make_chapter("One", 0)
        options = EpubExportOptions(number_chapters=False)
        assert epub_chapter_title(chapter, chapter_numbers([chapter]), options) == "One"


class TestGenerateEpub:
    """Tests for generate_epub."""

    def test_no_included_chapters_raises(
        self, make_book: BookFactory, make_chapter: ChapterFactory
    ) -> None:
        """Nothing to export fails with the empty-export error."""
        hidden = [make_chapter("Hidden", 0, is_included_in_export=False)]
        with pytest.raises(EmptyExportError):
            generate_epub(make_book(), hidden)

    def test_package_is_readable(
        self, make_book: BookFactory, mixed_chapters: list[Chapter], tmp_path: Path
    ) -> None:
        """The output is a valid EPUB that ebooklib can open."""
        package = _read_back(generate_epub(make_book(), mixed_chapters), tmp_path)
        assert package.get_metadata("DC", "title")[0][0] == "The Lighthouse Keeper"
        assert package.get_metadata("DC", "creator")[0][0] == "Ada Marsh"
        assert package.get_metadata("DC", "language")[0][0] == "en"

    def test_excluded_chapters_left_out(
        self, make_book: BookFactory, mixed_chapters: list[Chapter], tmp_path: Path
    ) -> None:
        """Only included chapters become documents, numbered from 1."""
        package = _read_back(generate_epub(make_book(), mixed_chapters), tmp_path)
        assert _spine_ids(package) == ["nav", "chapter-1", "chapter-2", "chapter-3"]
        contents = [
            package.get_item_with_id(f"chapter-{n}").get_content() for n in (1, 2, 3)
        ]
        assert all(b"Scratch" not in content for content in contents)
        assert b"Chapter 2: Two" in contents[2]

    def test_frontmatter_precedes_table_of_contents(
        self, make_book: BookFactory, make_chapter: ChapterFactory, tmp_path: Path
    ) -> None:
        """Frontmatter is placed before the navigation page in reading order."""
        chapters = [
            make_chapter("One", 0),
            make_chapter("Dedication", 1, chapter_type="frontmatter"),
            make_chapter("Two", 2),
        ]
        package = _read_back(generate_epub(make_book(), chapters), tmp_path)
        assert _spine_ids(package) == ["chapter-2", "nav", "chapter-1", "chapter-3"]

    def test_table_of_contents_optional(
        self, make_book: BookFactory, make_chapter: ChapterFactory, tmp_path: Path
    ) -> None:
        """Without the contents option the navigation page is not in the spine."""
        options = EpubExportOptions(include_table_of_contents=False)
        data = generate_epub(make_book(), [make_chapter("One", 0)], options)
        assert _spine_ids(_read_back(data, tmp_path)) == ["chapter-1"]

    def test_titles_escaped_and_optional(
        self, make_book: BookFactory, make_chapter: ChapterFactory, tmp_path: Path
    ) -> None:
        """Prepended headings are escaped, and can be turned off."""
        chapters = [make_chapter("Fish & Chips", 0)]
        with_titles = _read_back(generate_epub(make_book(), chapters), tmp_path)
        assert b"Chapter 1: Fish &amp; Chips</h1>" in with_titles.get_item_with_id(
            "chapter-1"
        ).get_content()

        options = EpubExportOptions(prepend_chapter_titles=False)
        without = _read_back(generate_epub(make_book(), chapters, options), tmp_path)
        assert b"<h1>" not in without.get_item_with_id("chapter-1").get_content()

    def test_missing_author_gets_default(
        self, make_book: BookFactory, make_chapter: ChapterFactory, tmp_path: Path
    ) -> None:
        """A blank author name is replaced with a placeholder."""
        data = generate_epub(make_book(author_name=""), [make_chapter("One", 0)])
        package = _read_back(data, tmp_path)
        assert package.get_metadata("DC", "creator")[0][0] == DEFAULT_AUTHOR

    def test_description_in_metadata(
        self, make_book: BookFactory, make_chapter: ChapterFactory, tmp_path: Path
    ) -> None:
        """The book description becomes DC description metadata."""
        book = make_book(description="A storm, a light, a keeper.")
        package = _read_back(generate_epub(book, [make_chapter("One", 0)]), tmp_path)
        assert package.get_metadata("DC", "description")[0][0] == "A storm, a light, a keeper."

    def test_footnotes_become_endnotes(
        self, make_book: BookFactory, make_chapter: ChapterFactory, tmp_path: Path
    ) -> None:
        """Chapter footnotes are rendered as a Notes section."""
        body = '<p>Light<span data-footnote-content="Fresnel lens">house</span></p>'
        data = generate_epub(make_book(), [make_chapter("One", 0, content=body)])
        content = _read_back(data, tmp_path).get_item_with_id("chapter-1").get_content()
        assert b"Fresnel lens" in content
        assert b'class="endnotes"' in content

    def test_cover_page_first(
        self, make_book: BookFactory, make_chapter: ChapterFactory, tmp_path: Path
    ) -> None:
        """A resolvable cover adds the image and a leading cover page."""
        book = make_book(cover_image_path=PNG_DATA_URI)
        data = generate_epub(book, [make_chapter("One", 0)])
        package = _read_back(data, tmp_path)
        assert _spine_ids(package)[0] == "cover-page"
        image = package.get_item_with_href("images/cover.png")
        assert image is not None
        assert image.get_content() == PNG_BYTES

    def test_unloadable_cover_skipped(
        self, make_book: BookFactory, make_chapter: ChapterFactory, tmp_path: Path
    ) -> None:
        """A cover that cannot be read does not stop the export."""
        book = make_book(cover_image_path=str(tmp_path / "missing.jpg"))
        package = _read_back(generate_epub(book, [make_chapter("One", 0)]), tmp_path)
        assert "cover-page" not in _spine_ids(package)

    def test_custom_cover_resolver(
        self, make_book: BookFactory, make_chapter: ChapterFactory, tmp_path: Path
    ) -> None:
        """A supplied resolver provides the cover bytes."""
        calls: list[str] = []

        def resolver(book: Book) -> CoverImage:
            calls.append(book.id)
            return CoverImage(data=b"\xff\xd8\xff fake jpeg", media_type="image/jpeg")

        book = make_book(cover_image_path="https://example.com/cover.jpg")
        data = generate_epub(book, [make_chapter("One", 0)], cover_resolver=resolver)
        package = _read_back(data, tmp_path)
        assert calls == ["book-1"]
        assert package.get_item_with_href("images/cover.jpg") is not None

    def test_progress_messages(
        self, make_book: BookFactory, make_chapter: ChapterFactory
    ) -> None:
        """Each packaging stage is reported in order."""
        messages: list[str] = []
        generate_epub(make_book(), [make_chapter("One", 0)], on_progress=messages.append)
        assert messages == [
            "Preparing chapters...",
            "Processing chapter content...",
            "Building EPUB metadata...",
            "Generating EPUB file...",
            "EPUB generated successfully!",
        ]


class TestEpubFilename:
    """Tests for get_epub_filename."""

    def test_uses_sanitized_title(self, make_book: BookFactory) -> None:
        """The suggested filename comes from the title."""
        assert get_epub_filename(make_book(title="Night: Falls")) == "Night_Falls.epub"
