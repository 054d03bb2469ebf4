# ABOUTME: On-screen pagination preview of the print document.
# ABOUTME: Splits the document into estimated pages and re-injects its styles on every render.

import asyncio
import html
import logging
import math
import re
from dataclasses import dataclass, field

import lxml.html
from lxml.html import HtmlElement

from maibuk.export.layout import generate_print_html
from maibuk.export.types import DEFAULT_PRINT_OPTIONS, PageFormat, PrintExportOptions
from maibuk.models.types import Book, Chapter

logger = logging.getLogger(__name__)

PREVIEW_MARKER = "data-maibuk-preview"

FONT_SIZE_PT = 12.0
LINE_HEIGHT = 1.6
AVERAGE_CHAR_WIDTH_EM = 0.5
ORPHANS = 3
WIDOWS = 3

_HEADING_SCALE = {"h1": 2.4, "h2": 2.0, "h3": 1.6, "h4": 1.3, "h5": 1.1, "h6": 1.0}
_CHAPTER_HEADER_PADDING_LINES = 6
_SCENE_BREAK_LINES = 3
_IMAGE_LINES = 10
_WORD_RE = re.compile(r"\S+")


@dataclass(frozen=True)
class PageMetrics:
    """How many text lines fit on a page, and how many characters per line."""

    lines_per_page: int
    chars_per_line: int

    @classmethod
    def for_format(cls, page_format: PageFormat) -> "PageMetrics":
        line_pt = FONT_SIZE_PT * LINE_HEIGHT
        content_height = page_format.height_pt - 2 * page_format.margin_block_pt
        content_width = page_format.width_pt - 2 * page_format.margin_inline_pt
        return cls(
            lines_per_page=max(1, int(content_height // line_pt)),
            chars_per_line=max(1, int(content_width // (FONT_SIZE_PT * AVERAGE_CHAR_WIDTH_EM))),
        )


@dataclass(frozen=True)
class _Piece:
    """An unbreakable run of a paragraph: one word, or one whole inline element."""

    html: str
    text: str
    space_before: bool


@dataclass
class _Block:
    html: str
    lines: int
    forced_break: bool = False
    keep_with_next: bool = False
    title: str | None = None
    pieces: list[_Piece] | None = None
    attrib: dict[str, str] = field(default_factory=dict)
    is_cover: bool = False


@dataclass
class PreviewPage:
    """One laid-out page of the preview."""

    number: int
    running_header: str | None
    blocks: list[str] = field(default_factory=list)
    lines_used: int = 0
    is_cover: bool = False


@dataclass
class PreviewDocument:
    """The paginated preview, ready to render as discrete page frames."""

    title: str
    options: PrintExportOptions
    pages: list[PreviewPage]
    styles: dict[str, str]

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def to_html(self) -> str:
        style_tags = "".join(
            f'<style {PREVIEW_MARKER}="{name}">{css}</style>\n'
            for name, css in self.styles.items()
        )
        frames = "".join(self.page_html(page) for page in self.pages)
        return (
            "<!DOCTYPE html>\n<html>\n<head>\n"
            '<meta charset="UTF-8">\n'
            f"<title>Preview: {html.escape(self.title)}</title>\n"
            f"{style_tags}"
            "</head>\n"
            '<body class="preview-body">'
            f'<div class="print-document preview-pages">{frames}</div></body>\n'
            "</html>"
        )

    def page_html(self, page: PreviewPage) -> str:
        header = ""
        if page.running_header:
            header = f'<div class="running-header">{html.escape(page.running_header)}</div>'
        footer = ""
        if self.options.include_page_numbers and not page.is_cover:
            footer = f'<div class="page-number">{page.number}</div>'
        return (
            f'<div class="preview-page" data-page="{page.number}">'
            f"{header}"
            f'<div class="page-body">{"".join(page.blocks)}</div>'
            f"{footer}"
            "</div>"
        )


def generate_preview_styles(options: PrintExportOptions) -> str:
    """Preview-only CSS: page frames sized to the chosen preset."""
    page_format = options.page_size.format
    return f""".preview-body {{
  background: #e5e5e5;
  margin: 0;
  padding: 1em 0;
}}

.preview-page {{
  position: relative;
  width: {page_format.width_pt:g}pt;
  height: {page_format.height_pt:g}pt;
  padding: {page_format.css_margin};
  margin: 0 auto 1.5em auto;
  background: #fff;
  box-shadow: 0 2px 8px rgba(0, 0, 0, 0.2);
  overflow: hidden;
}}

.preview-page .running-header {{
  position: absolute;
  top: {page_format.margin_block_pt / 2:g}pt;
  left: 0;
  right: 0;
  text-align: center;
  font-size: 9pt;
  font-style: italic;
  color: #555;
}}

.preview-page .page-number {{
  position: absolute;
  bottom: {page_format.margin_block_pt / 2:g}pt;
  left: 0;
  right: 0;
  text-align: center;
  font-size: 10pt;
}}

.preview-page .cover-page {{
  height: 100%;
}}

.preview-page p.continued {{
  text-indent: 0;
}}
"""


def _text_of(element: HtmlElement) -> str:
    return " ".join(element.text_content().split())


def _to_html(element: HtmlElement) -> str:
    return lxml.html.tostring(element, encoding="unicode", with_tail=False)


def _text_lines(text: str, chars_per_line: int) -> int:
    return max(1, math.ceil(len(text) / chars_per_line))


def _heading_lines(text: str, tag: str, metrics: PageMetrics) -> int:
    scale = _HEADING_SCALE.get(tag, 1.0)
    per_line = max(1, int(metrics.chars_per_line / scale))
    return math.ceil(_text_lines(text, per_line) * scale) + 1


def _estimate_lines(element: HtmlElement, metrics: PageMetrics) -> int:
    tag = element.tag
    if tag in _HEADING_SCALE:
        return _heading_lines(_text_of(element), tag, metrics)
    if tag == "hr":
        return _SCENE_BREAK_LINES
    if tag == "img" or tag == "figure":
        return _IMAGE_LINES
    if tag == "table":
        return len(element.xpath(".//tr")) + 1
    if tag in ("ul", "ol"):
        items = element.xpath("./li")
        return sum(_text_lines(_text_of(li), metrics.chars_per_line) for li in items) + 1
    return _text_lines(_text_of(element), metrics.chars_per_line)


def _split_pieces(paragraph: HtmlElement) -> list[_Piece]:
    """Break a paragraph into the runs a page break may fall between.

    Bare text splits into words. Inline children (emphasis, links, highlight
    marks, footnote references) stay whole with their markup.
    """
    pieces: list[_Piece] = []
    pending_space = False

    def add_text(text: str | None) -> None:
        nonlocal pending_space
        if not text:
            return
        for match in _WORD_RE.finditer(text):
            space_before = pending_space or match.start() > 0
            pieces.append(
                _Piece(html.escape(match.group(), quote=False), match.group(), space_before)
            )
            pending_space = False
        pending_space = pending_space or not text[-1:].strip()

    add_text(paragraph.text)
    for child in paragraph:
        if isinstance(child.tag, str):
            pieces.append(_Piece(_to_html(child), _text_of(child), pending_space))
            pending_space = False
        add_text(child.tail)
    return pieces


def _content_block(element: HtmlElement, metrics: PageMetrics) -> _Block:
    lines = _estimate_lines(element, metrics)
    return _Block(
        html=_to_html(element),
        lines=lines,
        keep_with_next=element.tag in _HEADING_SCALE,
        pieces=_split_pieces(element) if element.tag == "p" else None,
        attrib=dict(element.attrib),
    )


def _chapter_blocks(section: HtmlElement, metrics: PageMetrics) -> list[_Block]:
    blocks: list[_Block] = []
    for header in section.find_class("chapter-header"):
        title_el = header.find_class("chapter-title")
        title = _text_of(title_el[0]) if title_el else _text_of(header)
        lines = _heading_lines(title, "h1", metrics) + _CHAPTER_HEADER_PADDING_LINES
        if header.find_class("chapter-number"):
            lines += 1
        blocks.append(
            _Block(html=_to_html(header), lines=lines, keep_with_next=True, title=title)
        )

    for content in section.find_class("chapter-content"):
        for child in content:
            if not isinstance(child.tag, str):
                continue
            if "endnotes" in child.get("class", "").split():
                blocks.extend(_content_block(note, metrics) for note in child)
            else:
                blocks.append(_content_block(child, metrics))

    if blocks:
        blocks[0].forced_break = True
    return blocks


def extract_blocks(document_html: str, metrics: PageMetrics) -> list[_Block]:
    """Flatten a print document into layout blocks in reading order."""
    body = lxml.html.document_fromstring(document_html).body
    blocks: list[_Block] = []
    for section in body:
        classes = section.get("class", "").split()
        if "cover-page" in classes:
            blocks.append(
                _Block(
                    html=_to_html(section),
                    lines=metrics.lines_per_page,
                    forced_break=True,
                    is_cover=True,
                )
            )
        elif "toc" in classes:
            toc_blocks = [_content_block(child, metrics) for child in section]
            if toc_blocks:
                toc_blocks[0].forced_break = True
                blocks.extend(toc_blocks)
        elif "chapter" in classes:
            blocks.extend(_chapter_blocks(section, metrics))
    return blocks


class _Paginator:
    """Greedy line-budget layout with forced breaks, keep-with-next and orphan/widow control."""

    def __init__(self, metrics: PageMetrics, running_headers: bool) -> None:
        self.metrics = metrics
        self.running_headers = running_headers
        self.pages: list[PreviewPage] = []
        self._carried_title: str | None = None
        self._page = self._new_page()

    @property
    def _remaining(self) -> int:
        return self.metrics.lines_per_page - self._page.lines_used

    def _new_page(self) -> PreviewPage:
        return PreviewPage(number=len(self.pages) + 1, running_header=None)

    def _flush(self) -> None:
        if not self._page.blocks:
            return
        if self._page.running_header is None and not self._page.is_cover:
            self._page.running_header = self._carried_title
        if not self.running_headers or self._page.is_cover:
            self._page.running_header = None
        self.pages.append(self._page)
        self._page = self._new_page()

    def _place(self, block_html: str, lines: int, title: str | None = None) -> None:
        if title is not None:
            if self._page.running_header is None:
                self._page.running_header = title
            self._carried_title = title
        self._page.blocks.append(block_html)
        self._page.lines_used += lines

    def layout(self, blocks: list[_Block]) -> list[PreviewPage]:
        for index, block in enumerate(blocks):
            if block.forced_break:
                self._flush()
            if block.is_cover:
                self._page.is_cover = True
                self._place(block.html, block.lines)
                self._flush()
                continue

            if block.keep_with_next and self._page.blocks:
                following = blocks[index + 1] if index + 1 < len(blocks) else None
                needed = block.lines
                if following is not None and not following.forced_break:
                    needed += min(following.lines, ORPHANS)
                if needed > self._remaining:
                    self._flush()

            if block.pieces is not None and block.lines >= ORPHANS + WIDOWS:
                self._place_splittable(block)
            else:
                if block.lines > self._remaining:
                    self._flush()
                self._place(block.html, block.lines, block.title)

        self._flush()
        return self.pages

    def _place_splittable(self, block: _Block) -> None:
        pieces = block.pieces or []
        lines_left = block.lines
        start = 0
        fragment = 0
        while True:
            if lines_left <= self._remaining:
                self._place(self._fragment(block, start, None, fragment), lines_left)
                return
            take = min(self._remaining, lines_left - WIDOWS)
            if take >= ORPHANS:
                end = min(len(pieces), start + self._pieces_for(pieces, start, take))
                self._place(self._fragment(block, start, end, fragment), take)
                if end >= len(pieces):
                    return
                lines_left -= take
                start = end
                fragment += 1
                self._flush()
            elif self._page.blocks:
                self._flush()
            else:
                # Page too short for any legal split; let the rest overflow this page.
                self._place(self._fragment(block, start, None, fragment), lines_left)
                return

    def _pieces_for(self, pieces: list[_Piece], start: int, lines: int) -> int:
        budget = lines * self.metrics.chars_per_line
        used = 0
        count = 0
        for piece in pieces[start:]:
            if used + len(piece.text) > budget and count:
                break
            used += len(piece.text) + 1
            count += 1
        return count

    @staticmethod
    def _fragment(block: _Block, start: int, end: int | None, index: int) -> str:
        if index == 0 and end is None:
            return block.html
        attrib = dict(block.attrib)
        if index:
            attrib["class"] = " ".join([*attrib.get("class", "").split(), "continued"])
        attrs = "".join(f' {name}="{html.escape(value)}"' for name, value in attrib.items())
        inner = "".join(
            (" " if piece.space_before and offset else "") + piece.html
            for offset, piece in enumerate((block.pieces or [])[start:end])
        )
        return f"<p{attrs}>{inner}</p>"


def paginate(document_html: str, options: PrintExportOptions) -> list[PreviewPage]:
    """Lay a print document out into pages for the given options."""
    metrics = PageMetrics.for_format(options.page_size.format)
    blocks = extract_blocks(document_html, metrics)
    return _Paginator(metrics, options.include_running_headers).layout(blocks)


class PaginationPreview:
    """Renders print documents into page frames inside a host document.

    Each render removes every style element a previous render injected into
    the host's head before injecting the current print and preview styles,
    so switching page size or toggling the contents page never leaves rules
    from an earlier render behind. Overlapping renders run one at a time, in
    the order they were requested.
    """

    def __init__(self, host: HtmlElement | None = None) -> None:
        self.host = (
            host
            if host is not None
            else lxml.html.document_fromstring(
                "<html><head><title>Preview</title></head><body></body></html>"
            )
        )
        self._lock = asyncio.Lock()

    @property
    def injected_styles(self) -> list[HtmlElement]:
        return self.host.head.xpath(f"style[@{PREVIEW_MARKER}]")

    def teardown(self) -> None:
        """Remove every injected style and clear the rendered pages."""
        for style in self.injected_styles:
            style.drop_tree()
        for child in list(self.host.body):
            self.host.body.remove(child)

    async def render(
        self,
        book: Book,
        chapters: list[Chapter],
        options: PrintExportOptions = DEFAULT_PRINT_OPTIONS,
    ) -> PreviewDocument:
        """Regenerate the print document and paginate it for on-screen review.

        Raises:
            EmptyExportError: If no chapter is included in export.
        """
        async with self._lock:
            document_html = generate_print_html(book, chapters, options)
            pages = await asyncio.to_thread(paginate, document_html, options)
            return self._inject(book, document_html, pages, options)

    def _inject(
        self,
        book: Book,
        document_html: str,
        pages: list[PreviewPage],
        options: PrintExportOptions,
    ) -> PreviewDocument:
        self.teardown()
        document_root = lxml.html.document_fromstring(document_html)
        print_css = "".join(style.text or "" for style in document_root.head.iter("style"))
        styles = {"print": print_css, "preview": generate_preview_styles(options)}
        for name, css in styles.items():
            style = lxml.html.Element("style")
            style.set(PREVIEW_MARKER, name)
            style.text = css
            self.host.head.append(style)

        preview = PreviewDocument(title=book.title, options=options, pages=pages, styles=styles)
        frames = lxml.html.fragment_fromstring(
            "".join(preview.page_html(page) for page in pages), create_parent="div"
        )
        frames.set("class", "print-document preview-pages")
        self.host.body.append(frames)
        logger.debug("Rendered preview of %s: %d pages", book.title, len(pages))
        return preview
