from pathlib import Path

import pytest

from folio.config import Languages, SiteSection
from folio.content import ContentRecord, TocEntry, TranslationLink
from folio.errors import RenderError
from folio.i18n import ui_strings
from folio.templates import TemplateEngine, render_toc


def page(**kwargs) -> ContentRecord:
    defaults = dict(
        title="Hello <World>",
        source_path=Path("content/posts/hello.md"),
        collection_name="posts",
        language_code="en",
        raw_body="",
        relative_path=Path("hello.md"),
        slug="hello",
        url="/posts/hello",
        rendered_html="<p>Body</p>",
    )
    defaults.update(kwargs)
    return ContentRecord(**defaults)


def context(record: ContentRecord | None = None, **extra) -> dict:
    values = {
        "site": SiteSection(title="Site"),
        "lang": "en",
        "lang_prefix": "",
        "languages": ["en"],
        "alternates": [],
        "t": ui_strings("en", Languages()),
        "page": record,
    }
    values.update(extra)
    return values


def test_render_toc_nests_levels():
    record = page(
        toc=(
            TocEntry("a", "A", 2),
            TocEntry("b", "B & C", 3),
            TocEntry("c", "C", 2),
        )
    )
    html = str(render_toc(record))
    assert html == (
        '<ul><li><a href="#a">A</a>'
        '<ul><li><a href="#b">B &amp; C</a></li></ul>'
        '</li><li><a href="#c">C</a></li></ul>'
    )
    assert str(render_toc(page())) == ""


def test_default_post_template(tmp_path):
    engine = TemplateEngine(tmp_path / "templates", base_url="https://example.com/")
    record = page(tags=("Python",), toc=(TocEntry("intro", "Intro", 2),), reading_time_minutes=3)
    html = engine.render(["post.html"], context(record))
    assert "<title>Hello &lt;World&gt; | Site</title>" in html
    assert "<p>Body</p>" in html
    assert 'href="/tags/python/"' in html
    assert "3 min read" in html
    assert 'href="#intro"' in html
    assert '<link rel="canonical" href="https://example.com/posts/hello">' in html


def test_project_template_takes_precedence(tmp_path):
    template_dir = tmp_path / "templates"
    template_dir.mkdir()
    (template_dir / "page.html").write_text("custom {{ page.title }}", encoding="utf-8")
    engine = TemplateEngine(template_dir)
    assert engine.render(["page.html"], context(page(title="X"))) == "custom X"
    assert engine.has_template("post.html")
    assert not engine.has_template("missing.html")


def test_missing_templates_fall_back_to_page(tmp_path, caplog):
    engine = TemplateEngine(tmp_path / "templates")
    with caplog.at_level("WARNING"):
        html = engine.render(["special.html"], context(page()), Path("content/x.md"))
    assert "<article>" in html
    assert "special.html" in caplog.text


def test_template_errors_become_render_errors(tmp_path):
    template_dir = tmp_path / "templates"
    template_dir.mkdir()
    (template_dir / "broken.html").write_text("{{ page.title ", encoding="utf-8")
    (template_dir / "fails.html").write_text("{{ missing.attr.deeper }}", encoding="utf-8")
    engine = TemplateEngine(template_dir)
    source = Path("content/posts/hello.md")
    with pytest.raises(RenderError) as excinfo:
        engine.render(["broken.html"], context(page()), source)
    assert excinfo.value.source_path == source
    with pytest.raises(RenderError):
        engine.render(["fails.html"], context(page()), source)


def test_language_switcher_lists_alternates(tmp_path):
    engine = TemplateEngine(tmp_path / "templates")
    record = page(language_code="es", url="/es/posts/hello")
    alternates = [TranslationLink("en", "/posts/hello"), TranslationLink("es", "/es/posts/hello")]
    html = engine.render(
        ["page.html"],
        context(record, lang="es", lang_prefix="/es", languages=["en", "es"], alternates=alternates),
    )
    assert 'hreflang="en"' in html
    assert 'href="/posts/hello" hreflang="en"' in html
    assert 'aria-current="true">es</a>' in html


def test_absolute_url_helper(tmp_path):
    engine = TemplateEngine(tmp_path, base_url="https://example.com/docs/")
    assert engine.absolute_url("/a") == "https://example.com/docs/a"
    assert engine.absolute_url("https://cdn.test/x") == "https://cdn.test/x"


def test_extra_globals_are_available(tmp_path):
    template_dir = tmp_path / "templates"
    template_dir.mkdir()
    (template_dir / "data.html").write_text("{{ data.author }} {{ 'A B' | slugify }}", encoding="utf-8")
    engine = TemplateEngine(template_dir, extra_globals={"data": {"author": "Ada"}})
    assert engine.render(["data.html"], {}) == "Ada a-b"
