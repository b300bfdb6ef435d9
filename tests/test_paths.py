from pathlib import Path

import pytest

from folio.config import CollectionConfig, LanguageConfig, Languages
from folio.content import ContentRecord
from folio.errors import SlugCollisionError
from folio.paths import (
    build_url,
    check_collisions,
    output_html_path,
    output_markdown_path,
    resolve,
    resolve_slug,
)

POSTS = CollectionConfig.preset("posts")
PAGES = CollectionConfig.preset("pages")
DOCS = CollectionConfig.preset("docs")
LANGS = Languages(default="en", configured={"es": LanguageConfig(code="es")})


def make_record(relative: str, collection: CollectionConfig, lang: str = "en", **kwargs) -> ContentRecord:
    return ContentRecord(
        title=kwargs.pop("title", "T"),
        source_path=Path("content") / collection.directory / relative,
        collection_name=collection.name,
        language_code=lang,
        raw_body="",
        relative_path=Path(relative),
        **kwargs,
    )


def test_slug_strips_date_prefix_in_dated_collections():
    assert resolve_slug(make_record("2024-01-15-hello-world.md", POSTS), POSTS) == "hello-world"
    assert resolve_slug(make_record("2024-01-15-.md", POSTS), POSTS) == "2024-01-15-"
    assert resolve_slug(make_record("2024-01-15-x.md", PAGES), PAGES) == "2024-01-15-x"


def test_slug_override_wins():
    record = make_record("2024-01-15-hello.md", POSTS, slug_override="/custom/")
    assert resolve_slug(record, POSTS) == "custom"


def test_nested_slug_keeps_directories():
    assert resolve_slug(make_record("guide/setup.md", DOCS), DOCS) == "guide/setup"
    assert resolve_slug(make_record("intro.md", DOCS), DOCS) == "intro"


def test_build_url_shapes():
    assert build_url("/posts", "hello") == "/posts/hello"
    assert build_url("", "about") == "/about"
    assert build_url("docs/", "guide/setup", "/es") == "/es/docs/guide/setup"


def test_resolve_applies_language_prefix():
    default = resolve(make_record("2024-01-15-hello.md", POSTS), POSTS, LANGS)
    spanish = resolve(make_record("2024-01-15-hello.md", POSTS, lang="es"), POSTS, LANGS)
    assert (default.slug, default.url) == ("hello", "/posts/hello")
    assert (spanish.slug, spanish.url) == ("hello", "/es/posts/hello")


def test_resolve_returns_new_record():
    record = make_record("about.md", PAGES)
    resolved = resolve(record, PAGES, LANGS)
    assert record.url == ""
    assert resolved.url == "/about"


def test_check_collisions_names_both_sources():
    first = resolve(make_record("2024-01-01-hello.md", POSTS), POSTS, LANGS)
    second = resolve(make_record("2024-02-01-hello.md", POSTS), POSTS, LANGS)
    other = resolve(make_record("2024-02-01-hello.md", POSTS, lang="es"), POSTS, LANGS)
    with pytest.raises(SlugCollisionError) as excinfo:
        check_collisions([first, other, second])
    error = excinfo.value
    assert error.url == "/posts/hello"
    assert error.first_path == first.source_path
    assert error.second_path == second.source_path
    assert "2024-01-01-hello.md" in str(error)
    assert "2024-02-01-hello.md" in str(error)


def test_check_collisions_across_collections():
    page = resolve(make_record("x.md", PAGES, slug_override="posts/hello"), PAGES, LANGS)
    post = resolve(make_record("2024-01-01-hello.md", POSTS), POSTS, LANGS)
    with pytest.raises(SlugCollisionError):
        check_collisions([page, post])


def test_check_collisions_returns_claims():
    records = [resolve(make_record(name, PAGES), PAGES, LANGS) for name in ("a.md", "b.md")]
    assert set(check_collisions(records)) == {"/a", "/b"}


def test_output_paths(tmp_path):
    assert output_html_path(tmp_path, "/posts/hello") == tmp_path / "posts" / "hello.html"
    assert output_html_path(tmp_path, "/es/") == tmp_path / "es" / "index.html"
    assert output_html_path(tmp_path, "/") == tmp_path / "index.html"
    assert output_markdown_path(tmp_path, "/docs/guide/setup") == tmp_path / "docs" / "guide" / "setup.md"
