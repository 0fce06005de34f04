"""Flatten a scraped page into line-oriented text."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

_HTML_HINT = re.compile(r"<\s*(html|body|table|tr|div|p|br)\b", re.IGNORECASE)
_SPACES = re.compile(r"[ \t\xa0]+")


def looks_like_html(text: str) -> bool:
    return bool(text) and bool(_HTML_HINT.search(text))


def html_to_text(content: str) -> str:
    """Return one line per table row / block element.

    Cells of a ``<tr>`` are joined with single spaces so that an observation
    rendered as a table row ends up on one line. Non-HTML input (for example
    markdown returned by a scraping proxy) is returned with whitespace tidied.
    """
    if not content:
        return ""
    if not looks_like_html(content):
        return _tidy(content)

    soup = BeautifulSoup(content, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    for row in soup.find_all("tr"):
        cells = [cell.get_text(" ", strip=True) for cell in row.find_all(["td", "th"])]
        row.replace_with("\n" + " ".join(cell for cell in cells if cell) + "\n")

    for br in soup.find_all("br"):
        br.replace_with("\n")

    return _tidy(soup.get_text("\n"))


def _tidy(text: str) -> str:
    lines = (_SPACES.sub(" ", line).strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)
