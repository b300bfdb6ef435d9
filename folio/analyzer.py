"""Derived text analytics for rendered HTML.

``analyze`` never fails: malformed HTML is handled by BeautifulSoup's lenient
parser and every field has a sensible empty value.

Key classes:
- TextAnalysis: Word count, reading time, excerpt and table of contents.

Key functions:
- analyze: Compute a TextAnalysis from rendered HTML.
- reading_time: Minutes to read a number of words.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup

from .content import TocEntry
from .utils import slugify, unique_id

WORDS_PER_MINUTE = 238
TOC_LEVELS = ("h2", "h3", "h4")
MORE_MARKER_RE = re.compile(r"<!--\s*more\s*-->", re.IGNORECASE)


@dataclass(frozen=True)
class TextAnalysis:
    """Text-derived fields for one page."""

    word_count: int
    reading_time_minutes: int
    excerpt_html: str
    toc: tuple[TocEntry, ...]


def reading_time(word_count: int) -> int:
    """Minutes to read ``word_count`` words, never less than one."""
    return max(1, math.ceil(word_count / WORDS_PER_MINUTE))


def analyze(rendered_html: str) -> TextAnalysis:
    """Compute word count, reading time, excerpt and TOC from HTML.

    Args:
        rendered_html: HTML produced by the markdown renderer.

    Returns:
        TextAnalysis for the document.
    """
    soup = BeautifulSoup(rendered_html or "", "html.parser")
    word_count = len(soup.get_text(" ").split())
    return TextAnalysis(
        word_count=word_count,
        reading_time_minutes=reading_time(word_count),
        excerpt_html=extract_excerpt(rendered_html or "", soup),
        toc=build_toc(soup),
    )


def extract_excerpt(rendered_html: str, soup: BeautifulSoup | None = None) -> str:
    """HTML before a ``<!-- more -->`` marker, else the first paragraph."""
    marker = MORE_MARKER_RE.search(rendered_html)
    if marker:
        return rendered_html[: marker.start()].strip()
    if soup is None:
        soup = BeautifulSoup(rendered_html, "html.parser")
    paragraph = soup.find("p")
    return str(paragraph) if paragraph is not None else ""


def build_toc(soup: BeautifulSoup) -> tuple[TocEntry, ...]:
    """Collect h2-h4 headings in document order with unique ids.

    A heading keeps its existing ``id``; otherwise one is derived from its
    text. A taken id gets the first free ``-1``, ``-2``... suffix.
    """
    entries = []
    used: set[str] = set()
    for heading in soup.find_all(TOC_LEVELS):
        text = heading.get_text(" ", strip=True)
        heading_id = unique_id(heading.get("id") or slugify(text), used)
        entries.append(
            TocEntry(heading_id=heading_id, text=text, nesting_level=int(heading.name[1]))
        )
    return tuple(entries)
