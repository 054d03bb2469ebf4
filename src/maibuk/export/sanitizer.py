# ABOUTME: Converts editor rich-HTML into portable HTML for every export target.
# ABOUTME: Renumbers footnotes into endnotes, normalizes scene breaks, and strips editor markup.

import html
import re
from collections.abc import Callable
from dataclasses import dataclass, field

# Inline footnote marker:
#   <span data-footnote data-footnote-content=".." data-footnote-id="..">text</span>
# The two data attributes may come in either order.
_FOOTNOTE_RE = re.compile(
    r"<span\b(?P<attrs>[^>]*\bdata-footnote-content=\"[^\"]*\"[^>]*)>(?P<text>.*?)</span>",
    re.IGNORECASE | re.DOTALL,
)
_FOOTNOTE_CONTENT_RE = re.compile(r"\bdata-footnote-content=\"([^\"]*)\"", re.IGNORECASE)
_FOOTNOTE_ID_RE = re.compile(r"\bdata-footnote-id=\"([^\"]*)\"", re.IGNORECASE)

_SCENE_BREAK_RE = re.compile(
    r"<div\b[^>]*\bdata-scene-break\b[^>]*>.*?</div>", re.IGNORECASE | re.DOTALL
)
_OPEN_TAG_RE = re.compile(r"<(?P<tag>[a-zA-Z][\w:-]*)(?P<attrs>[^<>]*?)(?P<end>\s*/?)>")
# A whole name[=value] pair; a quoted value is consumed along with its name.
_ATTRIBUTE_RE = re.compile(
    r"""\s+(?P<name>[^\s"'=<>/]+)(?:\s*=\s*(?P<value>"[^"]*"|'[^']*'|[^\s"'=<>`]+))?"""
)
_MARK_RE = re.compile(
    r"<mark\b(?P<attrs>[^<>]*)>(?P<body>.*?)</mark>", re.IGNORECASE | re.DOTALL
)

EDITOR_CLASS_PREFIXES = ("editor-", "ProseMirror")
SCENE_BREAK_HTML = '<hr class="scene-break" />'


@dataclass(frozen=True)
class Footnote:
    """A footnote pulled out of chapter content, numbered in document order."""

    id: str
    content: str
    number: int


@dataclass
class SanitizeResult:
    html: str
    footnotes: list[Footnote] = field(default_factory=list)


def _footnote_ref(number: int, prefix: str) -> str:
    return (
        f'<sup class="footnote-ref"><a href="#{prefix}fn-{number}" '
        f'id="{prefix}fnref-{number}">[{number}]</a></sup>'
    )


def _extract_footnotes(content: str, prefix: str) -> tuple[str, list[Footnote]]:
    footnotes: list[Footnote] = []

    def replace(match: re.Match[str]) -> str:
        attrs = match.group("attrs")
        number = len(footnotes) + 1
        text_match = _FOOTNOTE_CONTENT_RE.search(attrs)
        id_match = _FOOTNOTE_ID_RE.search(attrs)
        footnotes.append(
            Footnote(
                id=(id_match.group(1) if id_match else "") or f"fn-{number}",
                content=html.unescape(text_match.group(1)) if text_match else "",
                number=number,
            )
        )
        return match.group("text") + _footnote_ref(number, prefix)

    return _FOOTNOTE_RE.sub(replace, content), footnotes


def _attribute_value(match: re.Match[str]) -> str:
    value = match.group("value") or ""
    return value[1:-1] if value[:1] in ("'", '"') else value


def _rewrite_attributes(tag: re.Match[str], rewrite: Callable[[re.Match[str]], str]) -> str:
    attrs = _ATTRIBUTE_RE.sub(rewrite, tag.group("attrs"))
    return f"<{tag.group('tag')}{attrs}{tag.group('end')}>"


def _clean_attribute(match: re.Match[str]) -> str:
    name = match.group("name").lower()
    if name.startswith("data-") and name != "data-color":
        return ""
    if name == "class":
        tokens = [
            token
            for token in _attribute_value(match).split()
            if not token.startswith(EDITOR_CLASS_PREFIXES)
        ]
        return f' class="{" ".join(tokens)}"' if tokens else ""
    return match.group(0)


def _drop_data_color(match: re.Match[str]) -> str:
    return "" if match.group("name").lower() == "data-color" else match.group(0)


def _color_mark(match: re.Match[str]) -> str:
    for attribute in _ATTRIBUTE_RE.finditer(match.group("attrs")):
        if attribute.group("name").lower() == "data-color":
            color = _attribute_value(attribute)
            return f'<mark style="background-color: {color}">{match.group("body")}</mark>'
    return match.group(0)



def sanitize_html(content: str | None, id_prefix: str = "") -> SanitizeResult:
    """Sanitize one chapter's editor HTML for export.

    Steps, in order:
        1. Footnote markers become their text plus a numbered superscript
           reference link; footnotes are collected numbered 1..k.
        2. Scene-break blocks become ``<hr class="scene-break" />``.
        3. Editor-only class tokens are stripped; the elements stay.
        4. Class attributes left empty are removed.
        5. data-* attributes are removed, except data-color.
        6. Highlight marks carry their color as an inline background style.

    Running it on its own output changes nothing.

    Args:
        content: The chapter's rich-HTML body.
        id_prefix: Prepended to footnote reference and endnote ids so several
            chapters can share one document.

    Returns:
        SanitizeResult with the portable HTML and the extracted footnotes.
    """
    if not content:
        return SanitizeResult(html="", footnotes=[])

    sanitized, footnotes = _extract_footnotes(content, id_prefix)
    sanitized = _SCENE_BREAK_RE.sub(SCENE_BREAK_HTML, sanitized)
    sanitized = _OPEN_TAG_RE.sub(lambda m: _rewrite_attributes(m, _clean_attribute), sanitized)
    sanitized = _MARK_RE.sub(_color_mark, sanitized)
    sanitized = _OPEN_TAG_RE.sub(lambda m: _rewrite_attributes(m, _drop_data_color), sanitized)
    return SanitizeResult(html=sanitized, footnotes=footnotes)


def generate_endnotes_html(footnotes: list[Footnote], id_prefix: str = "") -> str:
    """Render the endnotes section, or an empty string when there are none."""
    if not footnotes:
        return ""

    items = "\n".join(
        f'  <p class="endnote" id="{id_prefix}fn-{fn.number}">'
        f'<span class="endnote-number">{fn.number}.</span> {html.escape(fn.content)} '
        f'<a href="#{id_prefix}fnref-{fn.number}">↩</a></p>'
        for fn in footnotes
    )
    return f'\n<section class="endnotes">\n  <h2>Notes</h2>\n{items}\n</section>'


def process_chapter_html(content: str | None, id_prefix: str = "") -> str:
    """Sanitize a chapter and append its endnotes; what every export consumes."""
    result = sanitize_html(content, id_prefix)
    return result.html + generate_endnotes_html(result.footnotes, id_prefix)
