"""Site building for Folio.

This module runs the build stages declared in ``folio.pipeline.STAGES``:
it loads configuration, templates and data, turns every content file into a
resolved record, links translations, organizes collections, and writes pages,
indexes, feeds, discovery files, markdown mirrors and assets.

Per-item work (parsing and rendering content, writing pages and mirrors) runs
on a thread pool. Results are collected in traversal order, so the first
failing item in that order is the one reported.

Key classes:
- BuildState: Everything the stages produce.
- Builder: Runs the stages and reports the outcome.

Key functions:
- build_site: Load the configuration and build a project.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .analyzer import analyze
from .assets import (
    AssetPipeline,
    ImageOptimizer,
    ProcessedImage,
    ResponsiveImageGenerator,
    create_default_registry,
)
from .collections import CollectionView, TagIndex, organize
from .config import CollectionConfig, SiteConfig, load_config
from .content import ContentRecord, FileContentLoader, TranslationLink, parse
from .data import load_data
from .errors import BuildError, StageError
from .feeds import (
    FeedContext,
    RSSGenerator,
    SearchIndexGenerator,
    SitemapEntry,
    SitemapGenerator,
    collect_alternates,
    create_discovery_registry,
)
from .frontmatter import generate_frontmatter
from .html_utils import absolutize_image, base_path, prefix_base_path
from .i18n import TranslationSet, attach_translations, find_missing_targets, link, ui_strings
from .macro_registry import MACROS_DIRNAME, MacroRegistry
from .macros import expand
from .paths import (
    check_collisions,
    collection_base_url,
    lang_url,
    output_html_path,
    output_markdown_path,
    resolve,
)
from .pipeline import STAGES, BuildReport, StageFailure, StageTiming
from .postprocess import broken_links, inject_code_copy, rewrite_images, valid_urls
from .protocols import ContentRenderer, PageRenderer
from .renderers import MarkdownRenderer
from .templates import TemplateEngine
from .utils import ensure_clean_dir, write_text

logger = logging.getLogger(__name__)

HOME_ITEM_LIMIT = 10


@dataclass
class BuildState:
    """Values produced by the build stages.

    Attributes:
        engine: Page renderer (the template engine unless one was supplied).
        macros: Shortcode registry.
        data: Contents of the data directory.
        records: Item records of every collection and language, in traversal order.
        index_records: Records with slug ``index``, keyed by (collection, language).
        translation_sets: Translation sets keyed by (collection, slug).
        views: Collection views keyed by (collection, language).
        tags: Tag index per language.
        sitemap_entries: Index and tag pages for the sitemap.
        images: Processed static images keyed by URL.
        notices: Non-fatal notices.
        pages_written: Number of HTML documents written.
    """

    engine: PageRenderer | None = None
    macros: MacroRegistry | None = None
    data: dict[str, Any] = field(default_factory=dict)
    records: list[ContentRecord] = field(default_factory=list)
    index_records: dict[tuple[str, str], ContentRecord] = field(default_factory=dict)
    translation_sets: dict[tuple[str, str], TranslationSet] = field(default_factory=dict)
    views: dict[tuple[str, str], CollectionView] = field(default_factory=dict)
    tags: dict[str, TagIndex] = field(default_factory=dict)
    sitemap_entries: list[SitemapEntry] = field(default_factory=list)
    images: dict[str, ProcessedImage] = field(default_factory=dict)
    notices: list = field(default_factory=list)
    pages_written: int = 0


class Builder:
    """Builds one project.

    Attributes:
        config: Site configuration.
        project_root: Project directory; other directories are relative to it.
        include_drafts: Build draft records too.
        output_dir: Where the site is written.
        state: Values produced so far.
    """

    def __init__(
        self,
        config: SiteConfig,
        project_root: Path,
        include_drafts: bool = False,
        output_dir: Path | None = None,
        renderer: ContentRenderer | None = None,
        page_renderer: PageRenderer | None = None,
    ):
        """Initialize the builder.

        Args:
            config: Loaded site configuration.
            project_root: Root directory of the project.
            include_drafts: Whether drafts are built (``build.drafts`` also enables this).
            output_dir: Output directory, overriding ``build.output_dir``.
            renderer: Markdown renderer; defaults to MarkdownRenderer.
            page_renderer: Template renderer; defaults to a TemplateEngine over
                the project templates.
        """
        self.config = config
        self.project_root = project_root
        self.include_drafts = include_drafts or config.build.drafts
        self.output_dir = output_dir or project_root / config.build.output_dir
        self.renderer = renderer or MarkdownRenderer()
        self.page_renderer = page_renderer
        self.workers = config.build.workers or os.cpu_count() or 1
        self.state = BuildState()
        self._output_owned = False

    # Paths -----------------------------------------------------------------

    def _project_dir(self, name: str) -> Path:
        return self.project_root / name

    @property
    def content_dir(self) -> Path:
        return self._project_dir(self.config.build.content_dir)

    @property
    def template_dir(self) -> Path:
        return self._project_dir(self.config.build.template_dir)

    # Running ---------------------------------------------------------------

    def run(self) -> BuildReport:
        """Run every stage in order.

        Returns:
            BuildReport. On failure the output directory is left empty and
            ``failure`` names the stage, the file and the cause.
        """
        report = BuildReport(success=True, output_dir=self.output_dir)
        for stage in STAGES:
            started = time.perf_counter()
            try:
                logger.debug("Running stage %s", stage.name)
                getattr(self, stage.run)()
            except Exception as exc:
                report.timings.append(StageTiming(stage.name, time.perf_counter() - started))
                report.success = False
                report.failure = _failure(stage.name, exc)
                logger.debug("Stage %s failed", stage.name, exc_info=exc)
                if self._output_owned:
                    ensure_clean_dir(self.output_dir)
                break
            report.timings.append(StageTiming(stage.name, time.perf_counter() - started))
        report.notices = list(self.state.notices)
        report.pages_written = self.state.pages_written
        return report

    def _map(self, func: Callable, items: Iterable) -> list:
        """Apply ``func`` on the worker pool, keeping input order."""
        items = list(items)
        if self.workers <= 1 or len(items) <= 1:
            return [func(item) for item in items]
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            return list(executor.map(func, items))

    # Stages ----------------------------------------------------------------

    def stage_clean(self) -> None:
        output = self.output_dir.resolve()
        root = self.project_root.resolve()
        if output == root or output in root.parents:
            raise StageError(
                self.output_dir, "output directory must not contain the project"
            )
        ensure_clean_dir(self.output_dir)
        self._output_owned = True

    def stage_load_templates(self) -> None:
        self.state.engine = self.page_renderer or TemplateEngine(
            self.template_dir, base_url=self.config.base_url
        )
        self.state.macros = MacroRegistry.load(self.template_dir / MACROS_DIRNAME)
        logger.debug("Shortcodes: %s", ", ".join(self.state.macros.names))

    def stage_load_data(self) -> None:
        self.state.data = load_data(self._project_dir(self.config.build.data_dir))

    def stage_process_collections(self) -> None:
        loader = FileContentLoader(self.content_dir)
        jobs = []
        for collection in self.config.collections:
            root = loader.collection_dir(collection)
            for path in loader.iter_files(collection):
                jobs.append((collection, path, path.relative_to(root)))
        logger.debug("Processing %d content files", len(jobs))

        for record in self._map(self._process_item, jobs):
            if record is None:
                continue
            if record.is_index:
                self.state.index_records[(record.collection_name, record.language_code)] = record
            else:
                self.state.records.append(record)

    def _process_item(self, job: tuple[CollectionConfig, Path, Path]) -> ContentRecord | None:
        collection, path, relative = job
        try:
            file_bytes = path.read_bytes()
        except OSError as exc:
            raise BuildError(path, f"could not read file: {exc}", exc) from exc

        languages = self.config.languages
        record = parse(file_bytes, path, collection, languages, relative)
        if record.is_draft and not self.include_drafts:
            logger.debug("Skipping draft %s", path)
            return None
        record = resolve(record, collection, languages)
        if record.is_index:
            base = collection_base_url(collection, languages.prefix(record.language_code))
            record = replace(record, url=f"{base}/")

        expanded = expand(record.raw_body, self.state.macros, self._macro_context(record), path)
        document = self.renderer.render(expanded)
        analysis = analyze(document.html)
        return replace(
            record,
            rendered_html=document.html,
            highlight_classes=document.highlight_classes,
            word_count=analysis.word_count,
            reading_time_minutes=analysis.reading_time_minutes,
            excerpt_html=analysis.excerpt_html,
            toc=analysis.toc,
            image=absolutize_image(record.image, self.config.base_url),
        )

    def _macro_context(self, record: ContentRecord) -> dict[str, Any]:
        return {
            "page": {
                "title": record.title,
                "collection": record.collection_name,
                "language": record.language_code,
                "tags": list(record.tags),
                "source_path": str(record.source_path),
                "url": record.url,
            },
            "site": {
                "title": self.config.site.title,
                "base_url": self.config.base_url,
                "language": self.config.languages.default,
            },
        }

    def stage_check_urls(self) -> None:
        check_collisions([*self.state.records, *self.state.index_records.values()])

    def stage_link_translations(self) -> None:
        languages = self.config.languages
        everything = [*self.state.records, *self.state.index_records.values()]
        sets = link(everything, languages)
        self.state.translation_sets = sets
        self.state.records = attach_translations(self.state.records, sets)
        self.state.index_records = {
            key: attach_translations([record], sets)[0]
            for key, record in self.state.index_records.items()
        }
        self.state.notices.extend(find_missing_targets(everything, languages))

    def stage_organize(self) -> None:
        languages = self.config.languages
        for language_code in languages.all:
            in_language = [r for r in self.state.records if r.language_code == language_code]
            for collection in self.config.collections:
                members = [r for r in in_language if r.collection_name == collection.name]
                self.state.views[(collection.name, language_code)] = organize(
                    members,
                    collection,
                    include_drafts=self.include_drafts,
                    base_url=collection_base_url(collection, languages.prefix(language_code)),
                    language_code=language_code,
                )
            self.state.tags[language_code] = TagIndex(
                record
                for collection in self.config.collections
                for record in self.state.views[(collection.name, language_code)]
            )

    def _view_records(self, language_code: str | None = None) -> list[ContentRecord]:
        """Records of every view in collection order, optionally for one language."""
        return [
            record
            for (_, code), view in self.state.views.items()
            if language_code is None or code == language_code
            for record in view
        ]

    def _base_context(self, language_code: str) -> dict[str, Any]:
        languages = self.config.languages
        overrides = self.state.data.get("i18n")
        return {
            "site": self.config.site,
            "config": self.config,
            "lang": language_code,
            "lang_prefix": languages.prefix(language_code),
            "languages": list(languages.all),
            "has_feed": any(c.has_rss for c in self.config.collections),
            "data": self.state.data,
            "t": ui_strings(
                language_code, languages, overrides if isinstance(overrides, dict) else None
            ),
            "collections": {
                name: view for (name, code), view in self.state.views.items() if code == language_code
            },
            "tags": self.state.tags.get(language_code, TagIndex(())),
            "alternates": [
                TranslationLink(code, lang_url(languages, code)) for code in languages.all
            ],
        }

    def _alternates(self, record: ContentRecord) -> list[TranslationLink]:
        translation_set = self.state.translation_sets.get((record.collection_name, record.slug))
        if translation_set is None:
            return [TranslationLink(record.language_code, record.url)]
        return list(translation_set.links())

    def _write_html(self, url: str, html: str) -> Path:
        path = output_html_path(self.output_dir, url)
        write_text(path, html)
        return path

    def stage_render_pages(self) -> None:
        records = self._view_records()
        written = self._map(self._render_record, records)
        self.state.pages_written += len(written)

        for language_code in self.config.languages.all:
            context = self._base_context(language_code)
            html = self.state.engine.render(["404.html"], context)
            prefix = self.config.languages.prefix(language_code).strip("/")
            write_text(self.output_dir / prefix / "404.html", html)
            self.state.pages_written += 1

    def _render_record(self, record: ContentRecord) -> Path:
        collection = self.config.collection(record.collection_name)
        view = self.state.views[(record.collection_name, record.language_code)]
        context = self._base_context(record.language_code)
        context.update(
            page=record,
            view=view,
            nav=view.groups,
            translations=record.translations,
            alternates=self._alternates(record),
        )
        if record.redirect_to:
            context["target"] = record.redirect_to
            template_names = ["redirect.html"]
        else:
            template_names = [collection.default_template, "page.html"]
            if record.template_override:
                template_names.insert(0, record.template_override)
        html = self.state.engine.render(template_names, context, record.source_path)
        return self._write_html(record.url, html)

    def stage_render_indexes(self) -> None:
        languages = self.config.languages
        index_urls: dict[str, dict[str, str]] = {}

        for language_code in languages.all:
            lang_prefix = languages.prefix(language_code)
            home_url = lang_url(languages, language_code)
            self._render_home(language_code, home_url)
            index_urls.setdefault("home", {})[language_code] = home_url

            for collection in self.config.collections:
                if not collection.url_prefix:
                    continue
                url = self._render_collection_index(collection, language_code)
                if url:
                    index_urls.setdefault(f"collection:{collection.name}", {})[language_code] = url

            tags = self.state.tags[language_code]
            if tags:
                tags_url = f"{lang_prefix}/tags/"
                self._render_index_page(["tags.html"], language_code, tags_url)
                index_urls.setdefault("tags", {})[language_code] = tags_url
                for slug in tags:
                    self._render_index_page(
                        ["tag.html"],
                        language_code,
                        f"{tags_url}{slug}/",
                        items=tags[slug],
                        tag_name=tags.names[slug],
                    )

        for urls in index_urls.values():
            alternates = urls if len(urls) > 1 else {}
            for url in urls.values():
                self.state.sitemap_entries.append(SitemapEntry(url=url, alternates=alternates))

    def _render_index_page(
        self, template_names: list[str], language_code: str, url: str, **extra: Any
    ) -> None:
        context = self._base_context(language_code)
        context.update(extra)
        html = self.state.engine.render(template_names, context, extra.get("source_path"))
        self._write_html(url, html)
        self.state.pages_written += 1

    def _home_index(self, language_code: str) -> ContentRecord | None:
        for collection in self.config.collections:
            if not collection.url_prefix:
                record = self.state.index_records.get((collection.name, language_code))
                if record is not None:
                    return record
        return None

    def _render_home(self, language_code: str, url: str) -> None:
        dated = [
            record
            for collection in self.config.collections
            if collection.has_date and collection.listed
            for record in self.state.views[(collection.name, language_code)]
        ]
        dated.sort(key=lambda r: (-r.sort_date.toordinal(), r.slug))
        index = self._home_index(language_code)
        extra: dict[str, Any] = {"index": index, "items": dated[:HOME_ITEM_LIMIT], "view": None}
        if index is not None:
            extra.update(page=index, source_path=index.source_path, alternates=self._alternates(index))
        self._render_index_page(["home.html", "index.html"], language_code, url, **extra)

    def _render_collection_index(
        self, collection: CollectionConfig, language_code: str
    ) -> str | None:
        view = self.state.views[(collection.name, language_code)]
        index = self.state.index_records.get((collection.name, language_code))
        if not view.records and index is None:
            return None

        template_names = [f"{collection.name}/index.html", "index.html"]
        alternates = []
        for code in self.config.languages.all:
            other = self.state.views[(collection.name, code)]
            if other.records or (collection.name, code) in self.state.index_records:
                alternates.append(TranslationLink(code, f"{other.base_url}/"))
        extra: dict[str, Any] = {
            "view": view,
            "index": index,
            "nav": view.groups,
            "alternates": alternates,
        }
        if index is not None:
            extra["source_path"] = index.source_path

        if not view.pages:
            url = f"{view.base_url}/"
            self._render_index_page(template_names, language_code, url, items=view.records, **extra)
            return url
        for page in view.pages:
            self._render_index_page(
                template_names,
                language_code,
                page.url,
                items=view.items_for(page),
                pagination=page,
                total_pages=len(view.pages),
                **extra,
            )
        return view.pages[0].url

    def stage_feeds(self) -> None:
        if not any(c.has_rss for c in self.config.collections):
            return
        generator = RSSGenerator()
        for language_code in self.config.languages.all:
            context = FeedContext(self.config, language_code, self._view_records(language_code))
            prefix = self.config.languages.prefix(language_code).strip("/")
            generator.write(self.output_dir / prefix, context)

    def stage_sitemap(self) -> None:
        context = FeedContext(
            self.config,
            None,
            self._view_records(),
            alternates=collect_alternates(self.state.translation_sets.values()),
            extra_entries=self.state.sitemap_entries,
        )
        SitemapGenerator().write(self.output_dir, context)

    def stage_discovery(self) -> None:
        default = self.config.languages.default
        context = FeedContext(self.config, default, self._view_records(default))
        written = create_discovery_registry().generate_all(self.output_dir, context)
        logger.debug("Discovery files: %s", ", ".join(written))

    def stage_markdown_mirrors(self) -> None:
        self._map(self._write_mirror, self._view_records())
        for (name, language_code), view in self.state.views.items():
            collection = self.config.collection(name)
            index = self.state.index_records.get((name, language_code))
            parts = []
            if index is not None:
                parts.append(generate_frontmatter(index.frontmatter) + index.raw_body)
            if collection.url_prefix and collection.listed and view.records:
                parts.append(_index_markdown(view))
            if parts:
                url = index.url if index is not None else f"{view.base_url}/"
                write_text(output_markdown_path(self.output_dir, url), "\n".join(parts))

    def _write_mirror(self, record: ContentRecord) -> Path:
        path = output_markdown_path(self.output_dir, record.url)
        write_text(path, generate_frontmatter(record.frontmatter) + record.raw_body)
        return path

    def stage_search_index(self) -> None:
        generator = SearchIndexGenerator()
        for language_code in self.config.languages.all:
            context = FeedContext(self.config, language_code, self._view_records(language_code))
            prefix = self.config.languages.prefix(language_code).strip("/")
            generator.write(self.output_dir / prefix, context)

    def stage_static_copy(self) -> None:
        pipeline = AssetPipeline(
            self._project_dir(self.config.build.static_dir),
            self._project_dir(self.config.build.public_dir),
            self.output_dir,
            create_default_registry(minify=self.config.build.minify),
        )
        logger.debug("Copied %d asset files", pipeline.run())

    def stage_images(self) -> None:
        count = ImageOptimizer(self.config.images).run(self.output_dir)
        logger.debug("Optimized %d images", count)
        self.state.images = ResponsiveImageGenerator(self.config.images).run(self.output_dir)
        logger.debug("Created variants of %d images", len(self.state.images))

    def stage_html_postprocess(self) -> None:
        lazy_loading = self.config.images.lazy_loading
        prefix = base_path(self.config.site.base_url)
        known = valid_urls(self.output_dir)
        for path in sorted(self.output_dir.rglob("*.html")):
            original = path.read_text(encoding="utf-8")
            html = inject_code_copy(rewrite_images(original, self.state.images, lazy_loading))
            source = path.relative_to(self.output_dir).as_posix()
            self.state.notices.extend(broken_links(html, source, known))
            if prefix:
                html = prefix_base_path(html, prefix)
            if html != original:
                path.write_text(html, encoding="utf-8")


def _index_markdown(view: CollectionView) -> str:
    lines = [f"# {view.label}", ""]
    for record in view:
        entry = f"- [{record.title}]({record.url})"
        if record.date:
            entry += f" ({record.date.isoformat()})"
        lines.append(entry)
        if record.description:
            lines.append(f"  {record.description}")
    return "\n".join(lines) + "\n"


def _failure(stage: str, exc: Exception) -> StageFailure:
    if isinstance(exc, BuildError):
        return StageFailure(stage, exc.source_path, exc.message, exc)
    return StageFailure(stage, getattr(exc, "filename", None), _format_error_message(exc), exc)


def _format_error_message(exc: Exception) -> str:
    """Format an unexpected exception into a user-friendly error message."""
    error_type = type(exc).__name__
    if error_type == "UndefinedError":
        return f"Undefined variable: {exc}"
    return f"{error_type}: {exc}"


def build_site(
    project_root: Path,
    include_drafts: bool = False,
    output_dir: Path | None = None,
    config: SiteConfig | None = None,
) -> BuildReport:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        include_drafts: Whether to include draft records.
        output_dir: Output directory, overriding the configured one.
        config: Configuration to use instead of loading ``folio.yaml``.

    Returns:
        BuildReport with timings and, on failure, the stage that failed.
    """
    if config is None:
        try:
            config = load_config(project_root)
        except BuildError as exc:
            target = output_dir or project_root / "dist"
            return BuildReport(
                success=False,
                output_dir=target,
                failure=StageFailure("load_config", exc.source_path, exc.message, exc),
            )
    return Builder(config, project_root, include_drafts, output_dir).run()
