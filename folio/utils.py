"""Utility functions for Folio.

String, date and path helpers shared across the build.

Key functions:
    slugify: Convert arbitrary text (tags, headings) to URL slugs.
    unique_id: Suffix an id until it is unused.
    titleize: Convert a path segment to a human-readable label.
    extract_date_from_name: Extract a date from a YYYY-MM-DD filename prefix.
    strip_date_prefix: Remove a YYYY-MM-DD- filename prefix.
    parse_date: Coerce front-matter values to dates.
    ensure_clean_dir: Ensure a directory exists and is empty.
    is_markdown: Check if a path is a Markdown file.
"""

from __future__ import annotations

import re
import shutil
import unicodedata
from datetime import date, datetime
from pathlib import Path

DATE_PREFIX_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})-")


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated slug.

    Used for tag URLs and heading anchors. Unicode letters are kept where
    they have no ASCII decomposition.

    Args:
        text: Text to convert.

    Returns:
        URL-friendly slug, never empty.

    Examples:
        >>> slugify("Hello, World!")
        'hello-world'
    """
    normalized = unicodedata.normalize("NFKD", text)
    cleaned = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    cleaned = cleaned.lower().strip()
    cleaned = re.sub(r"[^\w\s-]", "", cleaned)
    cleaned = re.sub(r"[-\s_]+", "-", cleaned)
    return cleaned.strip("-") or "section"


def unique_id(base: str, used: set[str]) -> str:
    """Return ``base``, or ``base-1``, ``base-2``... whichever is not in ``used``.

    The chosen id is added to ``used``.

    Examples:
        >>> used = {"foo", "foo-1"}
        >>> unique_id("foo", used)
        'foo-2'
    """
    candidate = base
    suffix = 0
    while candidate in used:
        suffix += 1
        candidate = f"{base}-{suffix}"
    used.add(candidate)
    return candidate


def titleize(segment: str) -> str:
    """Convert a directory or file name to a human-readable title.

    Examples:
        >>> titleize("getting-started")
        'Getting Started'
    """
    base = strip_date_prefix(Path(segment).stem if "." in segment else segment)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def extract_date_from_name(name: str) -> date | None:
    """Extract a date from a filename with YYYY-MM-DD prefix.

    Args:
        name: Filename stem (without extension).

    Returns:
        date object if a valid date prefix is found, None otherwise.

    Examples:
        >>> extract_date_from_name("2024-01-15-hello-world")
        datetime.date(2024, 1, 15)
    """
    match = DATE_PREFIX_RE.match(name)
    if not match:
        return None
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None


def strip_date_prefix(name: str) -> str:
    """Remove a ``YYYY-MM-DD-`` prefix when something follows it."""
    if len(name) > 11 and DATE_PREFIX_RE.match(name):
        return name[11:]
    return name


def parse_date(value: object) -> date | None:
    """Coerce a YAML value into a date.

    YAML already turns ``2024-01-15`` into a ``date``; quoted strings and
    full timestamps are accepted too.

    Raises:
        ValueError: If the value is not a recognisable date.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
    raise ValueError(f"expected a date (YYYY-MM-DD), got {value!r}")


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path), ignore_errors=True)
        if path.exists():
            # Fallback for stubborn directories
            for item in path.rglob("*"):
                if item.is_file():
                    item.unlink()
            for item in sorted(
                [p for p in path.rglob("*") if p.is_dir()], reverse=True
            ):
                item.rmdir()
            path.rmdir()
    path.mkdir(parents=True, exist_ok=True)


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .md extension (case-insensitive).
    """
    return path.suffix.lower() == ".md"


def is_hidden(path: Path) -> bool:
    """Check if any component of a relative path starts with ``.`` or ``_``."""
    return any(part.startswith((".", "_")) for part in path.parts)


def write_text(path: Path, text: str) -> None:
    """Write UTF-8 text, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
