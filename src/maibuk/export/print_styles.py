# ABOUTME: Paged-media stylesheet for the print document.
# ABOUTME: Page size, margins, page numbers, running headers, and break control come from options.

from maibuk.export.types import DEFAULT_PRINT_OPTIONS, PrintExportOptions

SCOPE = ".print-document"


def _page_rules(options: PrintExportOptions) -> str:
    page_format = options.page_size.format
    margin_boxes = []
    if options.include_page_numbers:
        margin_boxes.append(
            "  @bottom-center {\n"
            "    content: counter(page);\n"
            "    font-family: Georgia, \"Times New Roman\", serif;\n"
            "    font-size: 10pt;\n"
            "  }"
        )
    if options.include_running_headers:
        margin_boxes.append(
            "  @top-center {\n"
            "    content: string(chapter-title);\n"
            "    font-family: Georgia, \"Times New Roman\", serif;\n"
            "    font-size: 9pt;\n"
            "    font-style: italic;\n"
            "    color: #555;\n"
            "  }"
        )

    boxes = "\n".join(margin_boxes)
    return f"""@page {{
  size: {page_format.css_size};
  margin: {page_format.css_margin};
{boxes}
}}

@page :first {{
  margin: 0;
  @top-center {{ content: none; }}
  @bottom-center {{ content: none; }}
}}
"""


def _toc_rules(options: PrintExportOptions) -> str:
    if not options.include_page_numbers:
        return ""
    return f"""
{SCOPE} .toc-entry .page-number::after {{
  content: target-counter(attr(href), page);
}}

{SCOPE} .toc-entry a::after {{
  content: leader(".");
}}
"""


def generate_print_styles(options: PrintExportOptions = DEFAULT_PRINT_OPTIONS) -> str:
    """Build the inline stylesheet for a print document.

    Every rule except the @page rules is scoped to the ``.print-document``
    body class so the stylesheet can be injected next to other content.
    """
    s = SCOPE
    running_header = (
        f"\n{s} .chapter-title {{\n  string-set: chapter-title content(text);\n}}\n"
        if options.include_running_headers
        else ""
    )
    return f"""{_page_rules(options)}
{s} {{
  font-family: Georgia, "Times New Roman", serif;
  font-size: 12pt;
  line-height: 1.6;
  color: #000;
  background: #fff;
  margin: 0;
  padding: 0;
}}

{s} * {{ box-sizing: border-box; }}

{s} .cover-page {{
  display: flex;
  flex-direction: column;
  align-items: center;
  justify-content: center;
  text-align: center;
  height: 100vh;
  break-after: page;
}}

{s} .cover-page img {{
  width: 100%;
  height: 100vh;
  object-fit: contain;
}}

{s} .cover-page .title {{
  font-size: 36pt;
  font-weight: bold;
  margin-bottom: 0.5em;
}}

{s} .cover-page .subtitle {{
  font-size: 18pt;
  font-style: italic;
  margin-bottom: 2em;
  color: #555;
}}

{s} .cover-page .author {{
  font-size: 18pt;
  color: #333;
  margin-top: 3em;
}}

{s} .toc {{
  break-after: page;
  padding: 2em 0;
}}

{s} .toc h2 {{
  text-align: center;
  font-size: 24pt;
  margin-bottom: 2em;
}}

{s} .toc-entry {{
  display: flex;
  margin-bottom: 0.75em;
  font-size: 14pt;
}}

{s} .toc-entry a {{
  flex: 1;
  color: #000;
  text-decoration: none;
}}
{_toc_rules(options)}
{s} .chapter {{
  break-before: page;
}}

{s} .cover-page + .chapter,
{s} .toc + .chapter {{
  break-before: auto;
}}

{s} .chapter-header {{
  text-align: center;
  margin-bottom: 3em;
  padding-top: 4em;
  break-after: avoid;
  break-inside: avoid;
}}

{s} .chapter-number {{
  font-size: 14pt;
  font-variant: small-caps;
  letter-spacing: 0.2em;
  color: #666;
  margin-bottom: 0.75em;
  display: block;
}}

{s} .chapter-title {{
  font-size: 28pt;
  font-weight: normal;
  margin: 0;
  line-height: 1.2;
}}
{running_header}
{s} h1, {s} h2, {s} h3, {s} h4, {s} h5, {s} h6 {{
  break-after: avoid;
  break-inside: avoid;
  margin-top: 1.5em;
  margin-bottom: 0.5em;
}}

{s} p {{
  margin: 0 0 0.75em 0;
  text-indent: 1.5em;
  text-align: justify;
  orphans: 3;
  widows: 3;
}}

{s} h1 + p, {s} h2 + p, {s} h3 + p, {s} h4 + p, {s} hr + p, {s} blockquote + p,
{s} .chapter-content > p:first-child {{
  text-indent: 0;
}}

{s} hr.scene-break {{
  border: none;
  text-align: center;
  margin: 2em 0;
  break-after: avoid;
}}

{s} hr.scene-break::before {{
  content: "* * *";
  letter-spacing: 0.5em;
  color: #666;
  font-size: 14pt;
}}

{s} ul, {s} ol {{
  margin: 1em 0;
  padding-left: 2em;
}}

{s} li {{
  margin-bottom: 0.25em;
}}

{s} blockquote {{
  margin: 1.5em 2em;
  font-style: italic;
  color: #333;
  border-left: 3px solid #ccc;
  padding-left: 1em;
}}

{s} .chapter img {{
  max-width: 100%;
  height: auto;
  display: block;
  margin: 1.5em auto;
  break-inside: avoid;
}}

{s} table {{
  width: 100%;
  border-collapse: collapse;
  margin: 1em 0;
  break-inside: avoid;
}}

{s} th, {s} td {{
  border: 1px solid #ccc;
  padding: 0.5em;
  text-align: left;
}}

{s} th {{
  background: #f5f5f5;
  font-weight: bold;
}}

{s} .footnote-ref {{
  font-size: 0.75em;
  vertical-align: super;
}}

{s} a {{
  color: #000;
  text-decoration: none;
}}

{s} .endnotes {{
  margin-top: 3em;
  border-top: 1px solid #ccc;
  padding-top: 1em;
  font-size: 10pt;
}}

{s} .endnotes h2 {{
  font-size: 14pt;
  margin-bottom: 1em;
}}

{s} .endnote {{
  margin-bottom: 0.5em;
  text-indent: 0;
}}
"""
