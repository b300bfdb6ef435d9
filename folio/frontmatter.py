"""Front-matter splitting, validation and serialization.

A content file starts with a YAML header between two ``---`` lines::

    ---
    title: Hello
    date: 2024-01-15
    tags: [intro]
    ---
    Body text.

Key classes:
- Frontmatter: Validated header fields with defaults.

Key functions:
- split_frontmatter: Separate the header block from the raw body.
- parse_frontmatter: Split and validate in one step.
- generate_frontmatter: Serialize a header mapping back to text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from .errors import FrontmatterError
from .utils import parse_date

FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?P<header>.*?)^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


@dataclass(frozen=True)
class Frontmatter:
    """Validated front-matter fields.

    Attributes:
        title: Page title (required).
        date: Publication date.
        updated: Last-modified date.
        description: Short summary for listings and meta tags.
        image: Social/preview image URL or path.
        slug: Explicit slug overriding the filename.
        tags: Tag names in author order.
        draft: Excluded from builds unless drafts are requested.
        template: Template overriding the collection default.
        robots: Robots meta directive.
        weight: Manual ordering key for undated collections.
        extra: Free-form values for templates.
        raw: The header mapping exactly as parsed.
    """

    title: str
    date: date | None = None
    updated: date | None = None
    description: str | None = None
    image: str | None = None
    slug: str | None = None
    tags: tuple[str, ...] = ()
    draft: bool = False
    template: str | None = None
    robots: str | None = None
    weight: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(
        cls, data: dict[str, Any], source_path: Path | None = None
    ) -> Frontmatter:
        """Validate a parsed header mapping.

        Raises:
            FrontmatterError: If a field is missing or has the wrong type.
        """
        title = data.get("title")
        if title is None or (isinstance(title, str) and not title.strip()):
            raise FrontmatterError(source_path, "is required", field="title")
        if not isinstance(title, (str, int, float)):
            raise FrontmatterError(source_path, "must be a string", field="title")

        return cls(
            title=str(title),
            date=_date_field(data, "date", source_path),
            updated=_date_field(data, "updated", source_path),
            description=_str_field(data, "description", source_path),
            image=_str_field(data, "image", source_path),
            slug=_slug_field(data, source_path),
            tags=_tags_field(data, source_path),
            draft=_bool_field(data, "draft", source_path),
            template=_str_field(data, "template", source_path),
            robots=_str_field(data, "robots", source_path),
            weight=_int_field(data, "weight", source_path),
            extra=_extra_field(data, source_path),
            raw=dict(data),
        )


def _str_field(data: dict[str, Any], name: str, source_path: Path | None) -> str | None:
    value = data.get(name)
    if value is None:
        return None
    if isinstance(value, (dict, list, bool)):
        raise FrontmatterError(source_path, "must be a string", field=name)
    return str(value)


def _slug_field(data: dict[str, Any], source_path: Path | None) -> str | None:
    slug = _str_field(data, "slug", source_path)
    if slug is None:
        return None
    slug = slug.strip().strip("/")
    if not slug:
        raise FrontmatterError(source_path, "must not be empty", field="slug")
    return slug


def _date_field(data: dict[str, Any], name: str, source_path: Path | None) -> date | None:
    try:
        return parse_date(data.get(name))
    except ValueError as exc:
        raise FrontmatterError(source_path, str(exc), field=name, original_error=exc) from exc


def _bool_field(data: dict[str, Any], name: str, source_path: Path | None) -> bool:
    value = data.get(name, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise FrontmatterError(source_path, "must be true or false", field=name)
    return value


def _int_field(data: dict[str, Any], name: str, source_path: Path | None) -> int | None:
    value = data.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise FrontmatterError(source_path, "must be an integer", field=name)
    return value


def _tags_field(data: dict[str, Any], source_path: Path | None) -> tuple[str, ...]:
    value = data.get("tags")
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or any(isinstance(t, (dict, list)) for t in value):
        raise FrontmatterError(source_path, "must be a list of strings", field="tags")
    tags: list[str] = []
    for tag in value:
        text = str(tag).strip()
        if text and text not in tags:
            tags.append(text)
    return tuple(tags)


def _extra_field(data: dict[str, Any], source_path: Path | None) -> dict[str, Any]:
    value = data.get("extra")
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise FrontmatterError(source_path, "must be a mapping", field="extra")
    return dict(value)


def split_frontmatter(text: str, source_path: Path | None = None) -> tuple[str, str]:
    """Split a content file into its header block and raw body.

    The raw body is everything after the closing ``---`` line, byte for byte.

    Args:
        text: Decoded file content.
        source_path: File being parsed, for error messages.

    Returns:
        Tuple of (header YAML text, raw body).

    Raises:
        FrontmatterError: If the delimiters are missing.
    """
    stripped = text.lstrip("\ufeff").lstrip()
    match = FRONTMATTER_RE.match(stripped)
    if not match:
        raise FrontmatterError(
            source_path,
            "missing front-matter delimiters. Files must start with a `---` "
            "line and close the header with another `---` line.",
        )
    return match.group("header"), stripped[match.end() :]


def parse_frontmatter(text: str, source_path: Path | None = None) -> tuple[Frontmatter, str]:
    """Split a content file and validate its header.

    Returns:
        Tuple of (Frontmatter, raw body).

    Raises:
        FrontmatterError: On missing delimiters, bad YAML or invalid fields.
    """
    header, body = split_frontmatter(text, source_path)
    try:
        data = yaml.safe_load(header) if header.strip() else {}
    except yaml.YAMLError as exc:
        raise FrontmatterError(source_path, f"invalid YAML: {exc}", original_error=exc) from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontmatterError(source_path, "front-matter must be a mapping of fields")
    return Frontmatter.from_mapping(data, source_path), body


def generate_frontmatter(data: dict[str, Any]) -> str:
    """Serialize a header mapping as a delimited YAML block.

    The result ends with the closing ``---`` line, so appending a raw body
    produces a file that splits back into the same body.
    """
    header = yaml.safe_dump(
        data, sort_keys=False, allow_unicode=True, default_flow_style=False
    )
    if not data:
        header = ""
    return f"---\n{header}---\n"
