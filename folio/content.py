"""Content parsing for Folio.

This module turns one content file into an immutable ContentRecord. Later
stages (path resolution, translation linking, text analysis) each return a new
record with more fields filled in.

Key classes:
- ContentRecord: One content file and everything derived from it.
- TocEntry: One heading in a table of contents.
- TranslationLink: A pointer to the same page in another language.
- FileContentLoader: Discovers content files for a collection.

Key functions:
- parse: Build a ContentRecord from file bytes.
- detect_language: Split a ``.{lang}`` suffix off a filename stem.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from .config import CollectionConfig, Languages
from .errors import FrontmatterError
from .frontmatter import parse_frontmatter
from .utils import DATE_PREFIX_RE, extract_date_from_name, is_hidden, is_markdown

logger = logging.getLogger(__name__)

LANGUAGE_LIKE_RE = re.compile(r"^[a-z]{2,3}(?:-[A-Za-z]{2,4})?$")


@dataclass(frozen=True)
class TocEntry:
    """A heading in a table of contents.

    Attributes:
        heading_id: Anchor id of the heading element.
        text: Heading text content.
        nesting_level: Heading level (2-4).
    """

    heading_id: str
    text: str
    nesting_level: int


@dataclass(frozen=True)
class TranslationLink:
    """The URL of a page in another language."""

    language_code: str
    url: str


@dataclass(frozen=True)
class ContentRecord:
    """One content file after parsing.

    Fields after ``language_code`` are filled in by later build stages.

    Attributes:
        title: Page title.
        source_path: Path to the source file.
        collection_name: Name of the owning collection.
        language_code: Language derived from the filename.
        raw_body: Body text exactly as authored, before shortcode expansion.
        relative_path: Source path relative to the collection directory.
        frontmatter: The header mapping as authored.
        slug: Canonical, language-independent identifier.
        url: Language-prefixed URL path.
        rendered_html: Markdown output for the expanded body.
        translations: The same page in other languages.
    """

    title: str
    source_path: Path
    collection_name: str
    language_code: str
    raw_body: str
    relative_path: Path
    date: date | None = None
    updated: date | None = None
    description: str | None = None
    image: str | None = None
    slug_override: str | None = None
    tags: tuple[str, ...] = ()
    is_draft: bool = False
    template_override: str | None = None
    robots_directive: str | None = None
    weight: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    frontmatter: dict[str, Any] = field(default_factory=dict)
    slug: str = ""
    url: str = ""
    rendered_html: str = ""
    highlight_classes: frozenset[str] = frozenset()
    word_count: int = 0
    reading_time_minutes: int = 1
    excerpt_html: str = ""
    toc: tuple[TocEntry, ...] = ()
    translations: tuple[TranslationLink, ...] = ()

    @property
    def base_stem(self) -> str:
        """Filename stem without the language suffix."""
        return self.relative_path.stem

    @property
    def is_index(self) -> bool:
        """True for a collection's ``index`` page."""
        return self.slug == "index"

    @property
    def redirect_to(self) -> str | None:
        target = self.extra.get("redirect_to")
        return str(target) if target else None

    @property
    def sort_date(self) -> date:
        return self.date or date.min


class FileContentLoader:
    """Discovers content files for collections.

    Attributes:
        content_dir: Root directory holding one subdirectory per collection.
    """

    def __init__(self, content_dir: Path):
        self.content_dir = content_dir

    def collection_dir(self, collection: CollectionConfig) -> Path:
        return self.content_dir / collection.directory

    def iter_files(self, collection: CollectionConfig) -> list[Path]:
        """List a collection's markdown files in traversal order.

        Nested collections include subdirectories. Files and directories
        starting with ``.`` or ``_`` are skipped.

        Args:
            collection: Collection to list.

        Returns:
            Sorted list of paths.
        """
        root = self.collection_dir(collection)
        if not root.is_dir():
            return []
        candidates = root.rglob("*.md") if collection.nested else root.glob("*.md")
        return sorted(
            path
            for path in candidates
            if path.is_file()
            and is_markdown(path)
            and not is_hidden(path.relative_to(root))
        )


def detect_language(stem: str, languages: Languages) -> tuple[str, str]:
    """Split a language suffix off a filename stem.

    ``post.es`` becomes ``("post", "es")`` when ``es`` is configured. A
    suffix that is not a configured language stays part of the name.

    Args:
        stem: Filename without its extension.
        languages: Configured languages.

    Returns:
        Tuple of (base stem, language code).
    """
    base, dot, suffix = stem.rpartition(".")
    if dot and base:
        if suffix in languages:
            return base, suffix
        if LANGUAGE_LIKE_RE.match(suffix):
            logger.warning(
                "'%s' looks like a language suffix but '%s' is not configured; "
                "treating it as part of the filename",
                stem,
                suffix,
            )
    return stem, languages.default


def parse(
    file_bytes: bytes,
    source_path: Path,
    collection: CollectionConfig,
    languages: Languages,
    relative_path: Path | None = None,
) -> ContentRecord:
    """Parse one content file.

    Args:
        file_bytes: Raw file content.
        source_path: Path of the file, for error messages.
        collection: Collection the file belongs to.
        languages: Configured languages, for suffix detection.
        relative_path: Path relative to the collection directory.

    Returns:
        A ContentRecord without slug, URL or derived text fields.

    Raises:
        FrontmatterError: If the file cannot be decoded or its header is invalid.
    """
    try:
        text = file_bytes.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FrontmatterError(source_path, "file is not valid UTF-8", original_error=exc) from exc

    frontmatter, raw_body = parse_frontmatter(text, source_path)

    relative = relative_path or Path(source_path.name)
    stem, language_code = detect_language(Path(relative.name).stem, languages)
    relative = relative.with_name(stem + relative.suffix)

    record_date = frontmatter.date
    if record_date is None and collection.has_date:
        record_date = extract_date_from_name(stem)
        if record_date is None and DATE_PREFIX_RE.match(stem):
            logger.warning("%s: filename date prefix is not a valid date", source_path)
    if record_date is None and collection.has_date:
        raise FrontmatterError(
            source_path,
            f"is required in the '{collection.name}' collection "
            "(or prefix the filename with YYYY-MM-DD-)",
            field="date",
        )

    return ContentRecord(
        title=frontmatter.title,
        source_path=source_path,
        collection_name=collection.name,
        language_code=language_code,
        raw_body=raw_body,
        relative_path=relative,
        date=record_date,
        updated=frontmatter.updated,
        description=frontmatter.description,
        image=frontmatter.image,
        slug_override=frontmatter.slug,
        tags=frontmatter.tags,
        is_draft=frontmatter.draft,
        template_override=frontmatter.template,
        robots_directive=frontmatter.robots,
        weight=frontmatter.weight,
        extra=frontmatter.extra,
        frontmatter=frontmatter.raw,
    )
