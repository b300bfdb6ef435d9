"""Ordering, grouping and pagination of collections.

Key classes:
- CollectionView: One collection in one language, ready for rendering.
- PageBoundary: One page of a paginated collection index.
- NavGroup: Records sharing a source directory in a nested collection.
- TagIndex: Tag name to records, for tag pages.

Key functions:
- organize: Build a CollectionView from a collection's records.
- sort_records: Apply the collection's ordering rule.
- paginate: Compute page boundaries for a list length.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass

from .config import CollectionConfig
from .content import ContentRecord
from .utils import slugify, titleize


@dataclass(frozen=True)
class PageBoundary:
    """One page of a paginated listing.

    Attributes:
        page_number: 1-based page number.
        item_range: Indexes into the view's records.
        url: URL of this page.
        prev_url: URL of the previous page, None on the first.
        next_url: URL of the next page, None on the last.
    """

    page_number: int
    item_range: range
    url: str
    prev_url: str | None
    next_url: str | None


@dataclass(frozen=True)
class NavGroup:
    key: str
    label: str
    records: tuple[ContentRecord, ...]


@dataclass(frozen=True)
class CollectionView:
    """The ordered, grouped and paginated projection of one collection.

    Attributes:
        name: Collection name.
        label: Collection label.
        language_code: Language of every record in the view.
        records: Records in display order.
        groups: Directory groups for nested collections.
        pages: Page boundaries when pagination is configured.
        base_url: URL of the collection index without trailing slash.
    """

    name: str
    label: str
    language_code: str
    records: tuple[ContentRecord, ...]
    groups: tuple[NavGroup, ...] = ()
    pages: tuple[PageBoundary, ...] = ()
    base_url: str = ""

    def __iter__(self) -> Iterator[ContentRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def items_for(self, page: PageBoundary) -> tuple[ContentRecord, ...]:
        return tuple(self.records[i] for i in page.item_range)


def sort_records(
    records: Iterable[ContentRecord], collection: CollectionConfig
) -> list[ContentRecord]:
    """Sort records by the collection's ordering rule.

    Date-ordered collections: newest first, ties by slug. Otherwise
    weighted records first by ascending weight (ties by title), then
    unweighted records alphabetically by title.
    """
    if collection.has_date:
        return sorted(records, key=lambda r: (-r.sort_date.toordinal(), r.slug))

    def weight_key(record: ContentRecord):
        title = record.title.casefold()
        if record.weight is None:
            return (1, 0, title, record.slug)
        return (0, record.weight, title, record.slug)

    return sorted(records, key=weight_key)


def group_records(records: Sequence[ContentRecord]) -> tuple[NavGroup, ...]:
    """Group records by source directory, in order of first appearance."""
    groups: dict[str, list[ContentRecord]] = {}
    for record in records:
        key = record.relative_path.parent.as_posix()
        key = "" if key == "." else key
        groups.setdefault(key, []).append(record)
    return tuple(
        NavGroup(key=key, label=titleize(key.rsplit("/", 1)[-1]) if key else "", records=tuple(members))
        for key, members in groups.items()
    )


def page_url(base_url: str, page_number: int) -> str:
    """URL of a listing page: ``{base}/`` then ``{base}/page/N/``."""
    base = base_url.rstrip("/")
    if page_number == 1:
        return f"{base}/"
    return f"{base}/page/{page_number}/"


def paginate(count: int, page_size: int, base_url: str) -> tuple[PageBoundary, ...]:
    """Split ``count`` items into pages of ``page_size``.

    Args:
        count: Number of items.
        page_size: Items per page (the last page takes the remainder).
        base_url: Collection index URL.

    Returns:
        Page boundaries; empty when there are no items.
    """
    if page_size < 1:
        raise ValueError("page size must be at least 1")
    total = math.ceil(count / page_size)
    pages = []
    for number in range(1, total + 1):
        start = (number - 1) * page_size
        pages.append(
            PageBoundary(
                page_number=number,
                item_range=range(start, min(start + page_size, count)),
                url=page_url(base_url, number),
                prev_url=page_url(base_url, number - 1) if number > 1 else None,
                next_url=page_url(base_url, number + 1) if number < total else None,
            )
        )
    return tuple(pages)


def organize(
    records: Iterable[ContentRecord],
    collection: CollectionConfig,
    include_drafts: bool = False,
    base_url: str | None = None,
    language_code: str | None = None,
) -> CollectionView:
    """Build the view of one collection in one language.

    Args:
        records: The collection's records for one language.
        collection: Collection configuration.
        include_drafts: Keep draft records.
        base_url: Index URL (defaults to the collection's URL prefix).
        language_code: Language of the records.

    Returns:
        A CollectionView with sorted records, nested groups and pages.
    """
    visible = [r for r in records if include_drafts or not r.is_draft]
    ordered = tuple(sort_records(visible, collection))
    base = collection.url_prefix if base_url is None else base_url
    language = language_code or (ordered[0].language_code if ordered else "")
    return CollectionView(
        name=collection.name,
        label=collection.label,
        language_code=language,
        records=ordered,
        groups=group_records(ordered) if collection.nested else (),
        pages=paginate(len(ordered), collection.paginate, base) if collection.paginate else (),
        base_url=base.rstrip("/"),
    )


class TagIndex(Mapping[str, tuple]):
    """Mapping of tag slug to records, with the display name kept per slug."""

    def __init__(self, records: Iterable[ContentRecord]):
        self._records: dict[str, list[ContentRecord]] = {}
        self.names: dict[str, str] = {}
        for record in records:
            for tag in record.tags:
                key = slugify(tag)
                self.names.setdefault(key, tag)
                self._records.setdefault(key, []).append(record)

    def __getitem__(self, key: str) -> tuple:
        return tuple(self._records[key])

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._records))

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TagIndex({len(self._records)} tags)"
