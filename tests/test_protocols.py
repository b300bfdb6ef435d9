from pathlib import Path

from folio.assets import AssetProcessorRegistry, JSProcessor, StaticAssetProcessor
from folio.build import Builder
from folio.config import load_config
from folio.macro_registry import MacroRegistry
from folio.protocols import AssetProcessor, ContentRenderer, MacroResolver, PageRenderer
from folio.renderers import MarkdownRenderer, RenderedDocument
from folio.templates import TemplateEngine


def test_default_collaborators_satisfy_protocols(tmp_path):
    assert isinstance(MarkdownRenderer(), ContentRenderer)
    assert isinstance(TemplateEngine(tmp_path), PageRenderer)
    assert isinstance(MacroRegistry.load(None), MacroResolver)
    assert isinstance(JSProcessor(), AssetProcessor)
    assert isinstance(StaticAssetProcessor(), AssetProcessor)


class UpperRenderer:
    def render(self, text: str) -> RenderedDocument:
        return RenderedDocument(html=f"<p>{text.strip().upper()}</p>")


class TxtProcessor:
    priority = 50

    def can_process(self, path: Path) -> bool:
        return path.suffix == ".txt"

    def process(self, source: Path, dest: Path) -> bool:
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(source.read_text(encoding="utf-8").upper(), encoding="utf-8")
        return True


def test_builder_accepts_a_custom_renderer(tmp_path):
    project = tmp_path / "site"
    pages = project / "content" / "pages"
    pages.mkdir(parents=True)
    (pages / "about.md").write_text("---\ntitle: About\n---\nquiet words\n", encoding="utf-8")

    report = Builder(load_config(project), project, renderer=UpperRenderer()).run()

    assert report.success, report.failure
    assert "<p>QUIET WORDS</p>" in (project / "dist" / "about.html").read_text(encoding="utf-8")


def test_registry_accepts_structural_processors(tmp_path):
    source = tmp_path / "note.txt"
    source.write_text("hi", encoding="utf-8")
    registry = AssetProcessorRegistry()
    registry.register(StaticAssetProcessor())
    registry.register(TxtProcessor())

    assert registry.process(source, tmp_path / "out" / "note.txt")
    assert (tmp_path / "out" / "note.txt").read_text(encoding="utf-8") == "HI"


class TitleOnlyRenderer:
    def __init__(self):
        self.calls = []

    def render(self, template_names, context, source_path=None) -> str:
        self.calls.append(template_names[0])
        page = context.get("page")
        return f"<title>{page.title if page else template_names[0]}</title>"


def test_builder_accepts_a_custom_page_renderer(tmp_path):
    project = tmp_path / "site"
    pages = project / "content" / "pages"
    pages.mkdir(parents=True)
    (pages / "about.md").write_text("---\ntitle: About\n---\nwords\n", encoding="utf-8")
    page_renderer = TitleOnlyRenderer()
    assert isinstance(page_renderer, PageRenderer)

    report = Builder(load_config(project), project, page_renderer=page_renderer).run()

    assert report.success, report.failure
    assert (project / "dist" / "about.html").read_text(encoding="utf-8") == "<title>About</title>"
    assert "404.html" in page_renderer.calls
    assert "home.html" in page_renderer.calls
