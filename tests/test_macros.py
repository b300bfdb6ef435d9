from pathlib import Path

import pytest

from folio.errors import MacroSyntaxError, RenderError, UnclosedBodyError, UnknownMacroError
from folio.macro_registry import BuiltinMacro, MacroRegistry, UserMacro
from folio.macros import MacroKind, expand, parse_args, parse_call, scan


def test_scan_finds_inline_and_body_invocations():
    text = (
        'Intro {{< youtube(id="abc") >}}\n'
        "\n"
        '{{% callout(type="warning") %}}\n'
        "Be **careful**.\n"
        "{{% end %}}\n"
    )
    found = scan(text)
    assert [i.name for i in found] == ["youtube", "callout"]
    inline, body = found
    assert inline.kind is MacroKind.INLINE
    assert inline.args == {"id": "abc"}
    assert inline.line == 1
    assert text[inline.span[0] : inline.span[1]] == '{{< youtube(id="abc") >}}'
    assert body.kind is MacroKind.BODY
    assert body.body == "Be **careful**."
    assert body.line == 3


def test_scan_ignores_fenced_blocks_and_code_spans():
    text = (
        "Use `{{< youtube(id=\"x\") >}}` inline.\n"
        "\n"
        "```markdown\n"
        '{{< youtube(id="y") >}}\n'
        "```\n"
        "\n"
        "~~~~\n"
        "{{% callout() %}}\n"
        "~~~\n"
        "still code\n"
        "~~~~\n"
        '{{< figure(src="/a.png") >}}\n'
    )
    found = scan(text)
    assert [i.name for i in found] == ["figure"]
    assert found[0].line == 12


def test_double_backtick_span_hides_single_backticks():
    text = '``a ` {{< gist(user="u", id="1") >}}`` after'
    assert scan(text) == []


def test_unmatched_backtick_is_plain_text():
    found = scan('A lone ` then {{< vimeo(id="9") >}}')
    assert [i.name for i in found] == ["vimeo"]


def test_stray_end_tag_passes_through():
    registry = MacroRegistry.load()
    text = "before {{% end %}} after"
    assert expand(text, registry) == text


def test_unclosed_body_reports_line():
    text = "line one\n\n{{% callout() %}}\nbody without end\n"
    with pytest.raises(UnclosedBodyError) as excinfo:
        scan(text, Path("post.md"))
    assert excinfo.value.line == 3
    assert excinfo.value.source_path == Path("post.md")
    assert "{{% end %}}" in str(excinfo.value)


def test_inline_must_close_on_same_line():
    with pytest.raises(MacroSyntaxError):
        scan('{{< youtube(id="a")\n>}}')


@pytest.mark.parametrize(
    "args, expected",
    [
        ('id="abc"', {"id": "abc"}),
        ('a=1, b=-2.5 c=true,d=false', {"a": 1, "b": -2.5, "c": True, "d": False}),
        (r'q="say \"hi\" \\ bye"', {"q": 'say "hi" \\ bye'}),
        ("", {}),
    ],
)
def test_parse_args_literals(args, expected):
    assert parse_args(args) == expected


@pytest.mark.parametrize(
    "inner",
    [
        "youtube",
        'you tube(id="a")',
        'youtube(id="a"',
        "youtube(abc)",
        "youtube(id=)",
        "youtube(id=abc)",
        'youtube(id="a)',
        "youtube(n=1.2.3)",
    ],
)
def test_parse_call_rejects_malformed(inner):
    with pytest.raises(MacroSyntaxError):
        parse_call(inner)


def test_parse_call_accepts_dashes_and_underscores():
    name, args = parse_call('contact_form(submit-label="Go")')
    assert name == "contact_form"
    assert args == {"submit-label": "Go"}


def test_expand_renders_builtins():
    registry = MacroRegistry.load()
    text = 'Watch: {{< youtube(id="dQw4w9WgXcQ") >}}\n'
    html = expand(text, registry)
    assert "youtube.com/embed/dQw4w9WgXcQ" in html
    assert html.startswith("Watch: <div")
    assert "{{<" not in html


def test_expand_escapes_builtin_arguments():
    registry = MacroRegistry.load()
    html = expand('{{< figure(src="/a.png", caption="<b>x</b>") >}}', registry)
    assert "&lt;b&gt;x&lt;/b&gt;" in html
    assert 'alt="&lt;b&gt;x&lt;/b&gt;"' in html


def test_body_macro_keeps_markdown_for_renderer():
    registry = MacroRegistry.load()
    html = expand('{{% callout(type="warning") %}}\nBe **careful**.\n{{% end %}}', registry)
    assert 'class="callout callout-warning"' in html
    assert "Be **careful**." in html


def test_unknown_macro_reports_suggestions_and_line(tmp_path):
    macros_dir = tmp_path / "macros"
    macros_dir.mkdir()
    (macros_dir / "counter.html").write_text("counted", encoding="utf-8")
    registry = MacroRegistry.load(macros_dir)

    text = "{{< counter() >}}\n{{< youtub(id=\"a\") >}}\n"
    with pytest.raises(UnknownMacroError) as excinfo:
        expand(text, registry, source_path=Path("page.md"))
    error = excinfo.value
    assert error.name == "youtub"
    assert "youtube" in error.suggestions
    assert "counter" in error.available
    assert error.line == 2


def test_user_macros_shadow_builtins_and_ignore_other_files(tmp_path):
    macros_dir = tmp_path / "macros"
    macros_dir.mkdir()
    (macros_dir / "youtube.html").write_text("custom {{ id }}", encoding="utf-8")
    (macros_dir / "notes.txt").write_text("ignored", encoding="utf-8")
    registry = MacroRegistry.load(macros_dir)

    assert isinstance(registry.get("youtube"), UserMacro)
    assert isinstance(registry.get("vimeo"), BuiltinMacro)
    assert "notes" not in registry
    assert expand('{{< youtube(id="7") >}}', registry) == "custom 7"


def test_macro_context_exposes_page_and_site(tmp_path):
    macros_dir = tmp_path / "macros"
    macros_dir.mkdir()
    (macros_dir / "byline.html").write_text(
        "{{ page.title }} on {{ site.title }} ({{ size }})", encoding="utf-8"
    )
    registry = MacroRegistry.load(macros_dir)
    context = {"page": {"title": "Hello"}, "site": {"title": "Folio"}}
    assert expand("{{< byline(size=3) >}}", registry, context) == "Hello on Folio (3)"


def test_broken_user_macro_fails_at_load(tmp_path):
    macros_dir = tmp_path / "macros"
    macros_dir.mkdir()
    (macros_dir / "broken.html").write_text("{% if %}", encoding="utf-8")
    with pytest.raises(RenderError) as excinfo:
        MacroRegistry.load(macros_dir)
    assert excinfo.value.source_path == macros_dir / "broken.html"
