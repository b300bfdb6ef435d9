"""Slug, URL and output path resolution.

Key functions:
- resolve_slug: Canonical, language-independent slug for a record.
- build_url: Compose a URL from a language prefix, collection prefix and slug.
- resolve: Fill in a record's slug and URL.
- check_collisions: Reject two records that claim the same URL.
- output_html_path / output_markdown_path: Where a URL is written on disk.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path

from .config import CollectionConfig, Languages
from .content import ContentRecord
from .errors import SlugCollisionError
from .utils import strip_date_prefix


def resolve_slug(record: ContentRecord, collection: CollectionConfig) -> str:
    """Derive the canonical slug for a record.

    An explicit slug wins. Otherwise the filename stem (language suffix
    already removed) is used, without its date prefix in date-ordered
    collections, and with its parent directories in nested collections.

    Args:
        record: Parsed record.
        collection: The record's collection.

    Returns:
        Slug without leading or trailing slashes.
    """
    if record.slug_override:
        return record.slug_override.strip("/")

    stem = record.base_stem
    if collection.has_date:
        stem = strip_date_prefix(stem)

    if collection.nested:
        parent = record.relative_path.parent.as_posix()
        if parent not in ("", "."):
            return f"{parent}/{stem}"
    return stem


def build_url(prefix: str, slug: str, lang_prefix: str = "") -> str:
    """Compose ``{lang_prefix}{prefix}/{slug}``.

    Examples:
        >>> build_url("/posts", "hello")
        '/posts/hello'
        >>> build_url("", "about", "/es")
        '/es/about'
    """
    prefix = prefix.rstrip("/")
    if prefix and not prefix.startswith("/"):
        prefix = f"/{prefix}"
    return f"{lang_prefix}{prefix}/{slug.strip('/')}"


def collection_base_url(collection: CollectionConfig, lang_prefix: str = "") -> str:
    """URL of a collection's index without the trailing slash."""
    return f"{lang_prefix}{collection.url_prefix.rstrip('/')}"


def resolve(
    record: ContentRecord, collection: CollectionConfig, languages: Languages
) -> ContentRecord:
    """Return a copy of ``record`` with its slug and URL filled in."""
    slug = resolve_slug(record, collection)
    url = build_url(collection.url_prefix, slug, languages.prefix(record.language_code))
    return replace(record, slug=slug, url=url)


def check_collisions(records: Iterable[ContentRecord]) -> dict[str, Path]:
    """Verify that no two records resolve to the same URL.

    Args:
        records: Every record of every collection and language, in traversal
            order.

    Returns:
        Mapping of URL to the source path that claimed it.

    Raises:
        SlugCollisionError: Naming the URL and both source paths.
    """
    claimed: dict[str, Path] = {}
    for record in records:
        key = record.url.rstrip("/") or "/"
        if key in claimed:
            raise SlugCollisionError(record.url, claimed[key], record.source_path)
        claimed[key] = record.source_path
    return claimed


def output_html_path(output_dir: Path, url: str) -> Path:
    """Output file for a page URL.

    Directory-style URLs (ending in ``/``) are written as ``index.html``.
    """
    if url.endswith("/"):
        return output_dir / url.strip("/") / "index.html"
    return output_dir / f"{url.strip('/')}.html"


def output_markdown_path(output_dir: Path, url: str) -> Path:
    """Output file for the raw markdown mirror of a page URL."""
    if url.endswith("/"):
        return output_dir / url.strip("/") / "index.md"
    return output_dir / f"{url.strip('/')}.md"


def lang_url(languages: Languages, code: str, path: str = "/") -> str:
    """Prefix a site-relative path with a language prefix."""
    return f"{languages.prefix(code)}{path}"
