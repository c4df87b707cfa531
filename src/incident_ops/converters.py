from __future__ import annotations

import re

from bs4 import BeautifulSoup
from markdown_it import MarkdownIt
from markdownify import ATX, MarkdownConverter

_EMPTY_HTML = {"", "<p></p>", "<p><br></p>", "<p><br/></p>", "<p><br /></p>"}
_EXTRA_BLANK_LINES_RE = re.compile(r"\n{3,}")


class MarkdownHtmlConverter:
    def __init__(self) -> None:
        self._md = MarkdownIt("commonmark", {"breaks": True, "html": False})
        self._md.enable("strikethrough")
        # escape_misc keeps typed "#" and "1." as text.
        self._html_to_md = MarkdownConverter(
            heading_style=ATX,
            bullets="-",
            escape_asterisks=True,
            escape_underscores=True,
            escape_misc=True,
        )

    def to_native(self, markdown: str) -> str:
        if not markdown:
            return ""
        return self._md.render(markdown)

    def to_markdown(self, html: str) -> str:
        if not html or html.strip() in _EMPTY_HTML:
            return ""
        soup = BeautifulSoup(html, "html.parser")
        return _normalize(self._html_to_md.convert_soup(soup))


def _normalize(markdown: str) -> str:
    # Bare newlines already render as breaks; trailing hard-break spaces go.
    lines = [line.rstrip() for line in markdown.split("\n")]
    return _EXTRA_BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip("\n")


DEFAULT_CONVERTER = MarkdownHtmlConverter()
