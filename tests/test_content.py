from datetime import date
from pathlib import Path

import pytest

from folio.config import CollectionConfig, LanguageConfig, Languages
from folio.content import FileContentLoader, detect_language, parse
from folio.errors import FrontmatterError
from folio.frontmatter import generate_frontmatter, parse_frontmatter, split_frontmatter

POSTS = CollectionConfig.preset("posts")
PAGES = CollectionConfig.preset("pages")
DOCS = CollectionConfig.preset("docs")


def languages(*codes: str, default: str = "en") -> Languages:
    return Languages(default=default, configured={c: LanguageConfig(code=c) for c in codes})


def parse_text(text: str, name: str = "page.md", collection=PAGES, langs=None, relative=None):
    return parse(
        text.encode("utf-8"),
        Path(name),
        collection,
        langs or languages(),
        Path(relative) if relative else None,
    )


def test_parse_reads_all_fields():
    text = (
        "---\n"
        "title: Hello World\n"
        "date: 2024-01-15\n"
        "updated: '2024-02-01'\n"
        "description: A first post\n"
        "image: /img/cover.png\n"
        "slug: custom/path\n"
        "tags: [intro, Python]\n"
        "draft: true\n"
        "template: special.html\n"
        "robots: noindex\n"
        "weight: 3\n"
        "extra:\n"
        "  color: blue\n"
        "series: basics\n"
        "---\n"
        "Body text.\n"
    )
    record = parse_text(text, "hello.md", POSTS)
    assert record.title == "Hello World"
    assert record.date == date(2024, 1, 15)
    assert record.updated == date(2024, 2, 1)
    assert record.description == "A first post"
    assert record.image == "/img/cover.png"
    assert record.slug_override == "custom/path"
    assert record.tags == ("intro", "Python")
    assert record.is_draft is True
    assert record.template_override == "special.html"
    assert record.robots_directive == "noindex"
    assert record.weight == 3
    assert record.extra == {"color": "blue"}
    assert record.frontmatter["series"] == "basics"
    assert record.raw_body == "Body text.\n"
    assert record.collection_name == "posts"
    assert record.language_code == "en"


def test_raw_body_is_exact_text_after_delimiter():
    text = "---\ntitle: T\n---\n\n  indented {{< youtube(id=\"a\") >}}\n\n"
    record = parse_text(text)
    assert record.raw_body == "\n  indented {{< youtube(id=\"a\") >}}\n\n"


def test_markdown_mirror_reparses_to_same_body():
    text = "---\ntitle: Mirror\ndate: 2024-03-01\ntags: [a]\n---\nLine one\n\n```\ncode\n```\n"
    record = parse_text(text, "mirror.md", POSTS)
    mirror = generate_frontmatter(record.frontmatter) + record.raw_body
    frontmatter, body = parse_frontmatter(mirror)
    assert body == record.raw_body
    assert frontmatter.title == "Mirror"
    assert frontmatter.date == date(2024, 3, 1)


def test_bom_and_leading_whitespace_are_ignored():
    text = "\ufeff\n\n---\ntitle: BOM\n---\nbody"
    assert parse_text(text).title == "BOM"


def test_single_tag_string_becomes_list():
    record = parse_text("---\ntitle: T\ntags: solo\n---\n")
    assert record.tags == ("solo",)


def test_empty_header_reports_missing_title():
    header, body = split_frontmatter("---\n---\nbody")
    assert header == ""
    assert body == "body"
    with pytest.raises(FrontmatterError) as excinfo:
        parse_text("---\n---\nbody")
    assert excinfo.value.field == "title"


@pytest.mark.parametrize(
    "text",
    [
        "no header at all",
        "---\ntitle: Unclosed\n",
        "title: x\n---\n",
    ],
)
def test_missing_delimiters(text):
    with pytest.raises(FrontmatterError) as excinfo:
        parse_text(text)
    assert "delimiters" in str(excinfo.value)


def test_invalid_yaml_and_non_mapping_header():
    with pytest.raises(FrontmatterError) as excinfo:
        parse_text("---\ntitle: [unclosed\n---\n")
    assert "invalid YAML" in str(excinfo.value)
    with pytest.raises(FrontmatterError):
        parse_text("---\n- a\n- b\n---\n")


@pytest.mark.parametrize(
    "line, field",
    [
        ("draft: maybe", "draft"),
        ("weight: heavy", "weight"),
        ("weight: true", "weight"),
        ("tags: {a: 1}", "tags"),
        ("extra: [1, 2]", "extra"),
        ("date: soon", "date"),
        ("description: [a]", "description"),
    ],
)
def test_wrong_field_types_name_the_field(line, field):
    with pytest.raises(FrontmatterError) as excinfo:
        parse_text(f"---\ntitle: T\n{line}\n---\n")
    assert excinfo.value.field == field
    assert f"`{field}`" in str(excinfo.value)


def test_invalid_utf8_is_a_frontmatter_error():
    with pytest.raises(FrontmatterError) as excinfo:
        parse(b"---\ntitle: \xff\n---\n", Path("bad.md"), PAGES, languages())
    assert excinfo.value.source_path == Path("bad.md")


def test_date_collection_falls_back_to_filename():
    record = parse_text("---\ntitle: T\n---\n", "2024-05-06-launch.md", POSTS)
    assert record.date == date(2024, 5, 6)


def test_date_collection_requires_a_date():
    with pytest.raises(FrontmatterError) as excinfo:
        parse_text("---\ntitle: T\n---\n", "launch.md", POSTS)
    assert excinfo.value.field == "date"
    assert excinfo.value.source_path == Path("launch.md")


def test_undated_collection_does_not_require_a_date():
    assert parse_text("---\ntitle: About\n---\n", "about.md", PAGES).date is None


def test_language_suffix_detection():
    langs = languages("es", "pt-BR")
    assert detect_language("post.es", langs) == ("post", "es")
    assert detect_language("post.pt-BR", langs) == ("post", "pt-BR")
    assert detect_language("post", langs) == ("post", "en")
    assert detect_language("post.en", langs) == ("post", "en")
    assert detect_language("v1.2", langs) == ("v1.2", "en")


def test_unconfigured_language_suffix_stays_in_name(caplog):
    with caplog.at_level("WARNING"):
        stem, code = detect_language("post.fr", languages("es"))
    assert (stem, code) == ("post.fr", "en")
    assert "post.fr" in caplog.text


def test_parse_strips_language_suffix_from_relative_path():
    record = parse_text(
        "---\ntitle: Hola\n---\n",
        "docs/guide/setup.es.md",
        DOCS,
        languages("es"),
        relative="guide/setup.es.md",
    )
    assert record.language_code == "es"
    assert record.relative_path == Path("guide/setup.md")
    assert record.base_stem == "setup"


def test_loader_lists_files_in_traversal_order(tmp_path):
    posts = tmp_path / "posts"
    posts.mkdir()
    for name in ["b.md", "a.md", "_draft.md", ".hidden.md", "notes.txt"]:
        (posts / name).write_text("---\ntitle: x\n---\n", encoding="utf-8")
    (posts / "nested").mkdir()
    (posts / "nested" / "c.md").write_text("---\ntitle: x\n---\n", encoding="utf-8")

    loader = FileContentLoader(tmp_path)
    assert [p.name for p in loader.iter_files(POSTS)] == ["a.md", "b.md"]


def test_loader_recurses_for_nested_collections(tmp_path):
    docs = tmp_path / "docs"
    (docs / "guide").mkdir(parents=True)
    (docs / "_partials").mkdir()
    (docs / "intro.md").write_text("x", encoding="utf-8")
    (docs / "guide" / "setup.md").write_text("x", encoding="utf-8")
    (docs / "_partials" / "skip.md").write_text("x", encoding="utf-8")

    loader = FileContentLoader(tmp_path)
    files = [p.relative_to(docs).as_posix() for p in loader.iter_files(DOCS)]
    assert files == ["guide/setup.md", "intro.md"]


def test_loader_missing_collection_dir(tmp_path):
    assert FileContentLoader(tmp_path).iter_files(POSTS) == []


def test_generate_frontmatter_empty_mapping():
    assert generate_frontmatter({}) == "---\n---\n"
