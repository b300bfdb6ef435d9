from datetime import date
from pathlib import Path

import pytest

from folio.collections import TagIndex, group_records, organize, paginate, sort_records
from folio.config import CollectionConfig
from folio.content import ContentRecord

POSTS = CollectionConfig.preset("posts")
DOCS = CollectionConfig.preset("docs")


def record(slug: str, relative: str | None = None, **kwargs) -> ContentRecord:
    return ContentRecord(
        title=kwargs.pop("title", slug.title()),
        source_path=Path(f"{slug}.md"),
        collection_name=kwargs.pop("collection_name", "posts"),
        language_code="en",
        raw_body="",
        relative_path=Path(relative or f"{slug}.md"),
        slug=slug,
        url=f"/x/{slug}",
        **kwargs,
    )


def test_date_ordering_newest_first_ties_by_slug():
    records = [
        record("b", date=date(2024, 1, 1)),
        record("c", date=date(2024, 3, 1)),
        record("a", date=date(2024, 1, 1)),
    ]
    assert [r.slug for r in sort_records(records, POSTS)] == ["c", "a", "b"]


def test_weight_ordering_puts_unweighted_last_alphabetically():
    records = [
        record("zeta", title="Zeta"),
        record("intro", title="Intro", weight=2),
        record("alpha", title="alpha"),
        record("setup", title="Setup", weight=1),
        record("basics", title="Basics", weight=2),
    ]
    ordered = [r.slug for r in sort_records(records, DOCS)]
    assert ordered == ["setup", "basics", "intro", "alpha", "zeta"]


def test_sorting_is_idempotent():
    records = [record(s, date=date(2024, 1, i)) for i, s in enumerate("dcab", start=1)]
    once = sort_records(records, POSTS)
    assert sort_records(once, POSTS) == once


def test_pagination_boundaries():
    pages = paginate(25, 10, "/posts")
    assert [p.page_number for p in pages] == [1, 2, 3]
    assert [p.url for p in pages] == ["/posts/", "/posts/page/2/", "/posts/page/3/"]
    assert pages[0].prev_url is None
    assert pages[0].next_url == "/posts/page/2/"
    assert pages[1].prev_url == "/posts/"
    assert pages[2].next_url is None
    assert list(pages[2].item_range) == [20, 21, 22, 23, 24]


def test_pagination_of_nothing():
    assert paginate(0, 10, "/posts") == ()


def test_pagination_rejects_bad_page_size():
    with pytest.raises(ValueError):
        paginate(3, 0, "/posts")


def test_groups_follow_first_appearance():
    records = [
        record("intro", "intro.md"),
        record("setup", "getting-started/setup.md"),
        record("config", "reference/config.md"),
        record("install", "getting-started/install.md"),
    ]
    groups = group_records(records)
    assert [g.key for g in groups] == ["", "getting-started", "reference"]
    assert [g.label for g in groups] == ["", "Getting Started", "Reference"]
    assert [r.slug for r in groups[1].records] == ["setup", "install"]


def test_organize_excludes_drafts_unless_requested():
    records = [
        record("a", date=date(2024, 1, 1)),
        record("b", date=date(2024, 2, 1), is_draft=True),
    ]
    view = organize(records, POSTS, language_code="en")
    assert [r.slug for r in view] == ["a"]
    with_drafts = organize(records, POSTS, include_drafts=True)
    assert [r.slug for r in with_drafts] == ["b", "a"]
    assert view.base_url == "/posts"
    assert view.label == "Posts"


def test_organize_paginates_and_groups():
    paged = CollectionConfig.from_mapping(
        {"name": "notes", "directory": "notes", "url_prefix": "/notes", "nested": True, "paginate": 2}
    )
    records = [record(s, f"{d}/{s}.md", title=s) for d, s in [("b", "x"), ("a", "y"), ("a", "z")]]
    view = organize(records, paged, base_url="/es/notes", language_code="es")
    assert [r.slug for r in view] == ["x", "y", "z"]
    assert [g.key for g in view.groups] == ["b", "a"]
    assert [p.url for p in view.pages] == ["/es/notes/", "/es/notes/page/2/"]
    assert [r.slug for r in view.items_for(view.pages[1])] == ["z"]
    assert view.language_code == "es"


def test_tag_index_groups_by_slug():
    records = [
        record("a", tags=("Python", "web")),
        record("b", tags=("python",)),
        record("c"),
    ]
    tags = TagIndex(records)
    assert list(tags) == ["python", "web"]
    assert tags.names["python"] == "Python"
    assert [r.slug for r in tags["python"]] == ["a", "b"]
    assert len(tags) == 2
