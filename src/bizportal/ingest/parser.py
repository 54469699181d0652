"""HTML parsing for tenant website ingestion."""

from __future__ import annotations

import re
from pathlib import Path

from bs4 import BeautifulSoup

from bizportal.errors import SourceNotFoundError
from bizportal.types import ParsedDocument

_DOCTYPE = re.compile(r"^\s*<!doctype[^>]*>", flags=re.IGNORECASE)

# Subtrees whose text never reaches the knowledge base.
_DROPPED_TAGS = "script,style,meta,nav,footer,header"

# Elements that end a line of text.
_BLOCK_TAGS = (
    "p", "li", "ul", "ol", "h1", "h2", "h3", "h4", "h5", "h6",
    "section", "article", "div",
)


def html_to_text(html: str) -> str:
    """Convert raw HTML into whitespace-normalized plain text.

    Block-level elements are surrounded by newlines before extraction so
    paragraph and list boundaries survive as line breaks.
    """

    html = _DOCTYPE.sub("", html, count=1)
    soup = BeautifulSoup(html, "html.parser")

    for element in soup.select(_DROPPED_TAGS):
        element.decompose()

    for element in soup.find_all(list(_BLOCK_TAGS)):
        element.insert_before("\n")
        element.insert_after("\n")

    text = soup.get_text().replace("\u00a0", " ")
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ \t]{2,}", " ", text)
    return text.strip()


class HtmlParser:
    """Parses website HTML from a string or a file on disk."""

    def parse(self, html: str, *, doc_id: str, source: str = "inline") -> ParsedDocument:
        return ParsedDocument(doc_id=doc_id, text=html_to_text(html), source=source)

    def parse_path(self, path: str | Path, *, doc_id: str) -> ParsedDocument:
        file_path = Path(path)
        try:
            html = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceNotFoundError(f"Website source not found at {file_path}") from exc
        return self.parse(html, doc_id=doc_id, source=str(file_path))
