"""Feed and discovery file generation for Folio.

Every generator turns a FeedContext (the resolved records of one language, or
of the whole site for the sitemap) into one output file.

Classes:
    FeedContext: Records and configuration handed to generators.
    FeedGenerator: Base class for generators.
    RSSGenerator: RSS 2.0 feed of dated collections.
    SitemapGenerator: sitemap.xml with hreflang alternates.
    RobotsGenerator: robots.txt pointing at the sitemap and llms files.
    LlmsGenerator: llms.txt index of markdown mirrors.
    LlmsFullGenerator: llms-full.txt with every raw body.
    SearchIndexGenerator: search-index.json for client-side search.
    FeedRegistry: Runs a set of generators.

Functions:
    create_discovery_registry: Registry with the discovery generators.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from pathlib import Path

from .config import SiteConfig
from .content import ContentRecord
from .html_utils import absolutize_html_urls, escape_html

RSS_ITEM_LIMIT = 20


@dataclass(frozen=True)
class SitemapEntry:
    """A URL in the sitemap that is not a content record (indexes, tag pages)."""

    url: str
    alternates: dict[str, str] = field(default_factory=dict)
    lastmod: date | None = None


@dataclass(frozen=True)
class FeedContext:
    """Input for feed generators.

    Attributes:
        config: Site configuration.
        language_code: Language of the records, or None for site-wide output.
        records: Resolved, non-draft records in display order.
        alternates: (collection, slug) to language-to-URL maps with more than one entry.
        extra_entries: Non-record URLs for the sitemap.
    """

    config: SiteConfig
    language_code: str | None
    records: Sequence[ContentRecord]
    alternates: dict[tuple[str, str], dict[str, str]] = field(default_factory=dict)
    extra_entries: Sequence[SitemapEntry] = ()

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def language(self) -> str:
        return self.language_code or self.config.languages.default

    @property
    def lang_prefix(self) -> str:
        return self.config.languages.prefix(self.language)

    @property
    def title(self) -> str:
        return self.config.languages.title_for(self.language, self.config.site.title)

    @property
    def description(self) -> str:
        return self.config.languages.description_for(
            self.language, self.config.site.description
        )

    def records_in(self, collection_name: str) -> list[ContentRecord]:
        return [r for r in self.records if r.collection_name == collection_name]


class FeedGenerator(ABC):
    """Abstract base class for feed generators."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Output filename relative to the language root."""
        ...

    @abstractmethod
    def generate(self, context: FeedContext) -> str | None:
        """Generate feed content.

        Args:
            context: Records and configuration.

        Returns:
            Feed content, or None if there is nothing to write.
        """
        ...

    def write(self, output_dir: Path, context: FeedContext) -> bool:
        """Generate and write the feed under ``output_dir``.

        Returns:
            True if the feed was written, False if skipped.
        """
        content = self.generate(context)
        if content is None:
            return False
        output_path = output_dir / self.filename
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
        return True


def _rfc822(value: date) -> str:
    moment = datetime.combine(value, time(0, 0), tzinfo=timezone.utc)
    return moment.strftime("%a, %d %b %Y %H:%M:%S +0000")


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of the newest items in RSS-enabled collections."""

    def __init__(self, limit: int = RSS_ITEM_LIMIT):
        self.limit = limit

    @property
    def filename(self) -> str:
        return "feed.xml"

    def generate(self, context: FeedContext) -> str | None:
        rss_collections = {c.name for c in context.config.collections if c.has_rss}
        records = [
            r for r in context.records if r.collection_name in rss_collections and r.date
        ]
        records.sort(key=lambda r: (-r.sort_date.toordinal(), r.slug))

        base_url = context.base_url
        home = f"{base_url}{context.lang_prefix}/"
        items = []
        for record in records[: self.limit]:
            link = f"{base_url}{record.url}"
            if record.description:
                description = record.description
            elif record.excerpt_html:
                description = absolutize_html_urls(record.excerpt_html, base_url)
            else:
                description = record.title
            categories = "".join(
                f"<category>{escape_html(tag)}</category>" for tag in record.tags
            )
            items.append(
                f"<item><title>{escape_html(record.title)}</title>"
                f"<link>{escape_html(link)}</link>"
                f'<guid isPermaLink="true">{escape_html(link)}</guid>'
                f"<description>{escape_html(description)}</description>"
                f"<pubDate>{_rfc822(record.date)}</pubDate>{categories}</item>"
            )

        build_date = datetime.now(timezone.utc).strftime("%a, %d %b %Y %H:%M:%S +0000")
        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom"><channel>',
            f"<title>{escape_html(context.title)}</title>",
            f"<link>{escape_html(home)}</link>",
            f"<description>{escape_html(context.description or context.title)}</description>",
            f"<language>{escape_html(context.language)}</language>",
            f'<atom:link href="{escape_html(base_url + context.lang_prefix)}/feed.xml" rel="self" type="application/rss+xml"/>',
            f"<lastBuildDate>{build_date}</lastBuildDate>",
        ]
        rss.extend(items)
        rss.append("</channel></rss>")
        return "\n".join(rss) + "\n"


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml for every language, with hreflang alternates."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def _alternate_links(self, alternates: dict[str, str], base_url: str, default: str) -> list[str]:
        links = [
            f'    <xhtml:link rel="alternate" hreflang="{escape_html(code)}" href="{escape_html(base_url + url)}"/>'
            for code, url in alternates.items()
        ]
        if default in alternates:
            links.append(
                f'    <xhtml:link rel="alternate" hreflang="x-default" href="{escape_html(base_url + alternates[default])}"/>'
            )
        return links

    def _url_entry(
        self, url: str, lastmod: date | None, alternates: dict[str, str], context: FeedContext
    ) -> list[str]:
        lines = ["  <url>", f"    <loc>{escape_html(context.base_url + url)}</loc>"]
        if lastmod:
            lines.append(f"    <lastmod>{lastmod.isoformat()}</lastmod>")
        if len(alternates) > 1:
            lines.extend(
                self._alternate_links(alternates, context.base_url, context.config.languages.default)
            )
        lines.append("  </url>")
        return lines

    def generate(self, context: FeedContext) -> str | None:
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9" '
            'xmlns:xhtml="http://www.w3.org/1999/xhtml">',
        ]
        for entry in context.extra_entries:
            lines.extend(self._url_entry(entry.url, entry.lastmod, entry.alternates, context))
        for record in context.records:
            if record.redirect_to or "noindex" in (record.robots_directive or ""):
                continue
            alternates = context.alternates.get((record.collection_name, record.slug), {})
            lines.extend(
                self._url_entry(record.url, record.updated or record.date, alternates, context)
            )
        lines.append("</urlset>")
        return "\n".join(lines) + "\n"


class RobotsGenerator(FeedGenerator):
    @property
    def filename(self) -> str:
        return "robots.txt"

    def generate(self, context: FeedContext) -> str | None:
        base = context.base_url
        return (
            "User-agent: *\n"
            "Allow: /\n"
            "\n"
            f"Sitemap: {base}/sitemap.xml\n"
            "\n"
            "# LLM-friendly content\n"
            f"# LLMs-txt: {base}/llms.txt\n"
            f"# LLMs-full-txt: {base}/llms-full.txt\n"
        )


def _listed(context: FeedContext):
    for collection in context.config.collections:
        if not collection.listed:
            continue
        records = context.records_in(collection.name)
        if records:
            yield collection, records


def _header(context: FeedContext) -> list[str]:
    lines = [f"# {context.title}", ""]
    if context.description:
        lines.extend([f"> {context.description}", ""])
    return lines


class LlmsGenerator(FeedGenerator):
    """Generates llms.txt, an index of the markdown mirrors of listed collections."""

    @property
    def filename(self) -> str:
        return "llms.txt"

    def generate(self, context: FeedContext) -> str | None:
        lines = _header(context)
        for collection, records in _listed(context):
            lines.extend([f"## {collection.label}", ""])
            for record in records:
                entry = f"- [{record.title}]({context.base_url}{record.url}.md)"
                if record.description:
                    entry += f": {record.description}"
                lines.append(entry)
            lines.append("")
        return "\n".join(lines)


class LlmsFullGenerator(FeedGenerator):
    """Generates llms-full.txt with the unexpanded body of every listed record."""

    @property
    def filename(self) -> str:
        return "llms-full.txt"

    def generate(self, context: FeedContext) -> str | None:
        parts = ["\n".join(_header(context)), "---\n\n"]
        for collection, records in _listed(context):
            parts.append(f"## {collection.label}\n\n")
            for record in records:
                parts.append(f"### {record.title}\n\n")
                if record.description:
                    parts.append(f"*{record.description}*\n\n")
                parts.append(record.raw_body.strip("\n"))
                parts.append("\n\n---\n\n")
        return "".join(parts)


class SearchIndexGenerator(FeedGenerator):
    """Generates search-index.json for the records of listed collections."""

    @property
    def filename(self) -> str:
        return "search-index.json"

    def entries(self, context: FeedContext) -> list[dict]:
        return [
            {
                "title": record.title,
                "description": record.description or "",
                "url": record.url,
                "collection": record.collection_name,
                "tags": list(record.tags),
                "date": record.date.isoformat() if record.date else None,
                "lang": record.language_code,
            }
            for _, records in _listed(context)
            for record in records
        ]

    def generate(self, context: FeedContext) -> str | None:
        return json.dumps(self.entries(context), ensure_ascii=False, indent=2) + "\n"


class FeedRegistry:
    """Runs a set of feed generators against one context."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    @property
    def filenames(self) -> list[str]:
        return [g.filename for g in self._generators]

    def generate_all(self, output_dir: Path, context: FeedContext) -> list[str]:
        """Generate every registered feed.

        Returns:
            Filenames that were written.
        """
        generated = []
        for generator in self._generators:
            if generator.write(output_dir, context):
                generated.append(generator.filename)
        return generated


def create_discovery_registry() -> FeedRegistry:
    """Registry with robots.txt, llms.txt and llms-full.txt generators."""
    registry = FeedRegistry()
    registry.register(RobotsGenerator())
    registry.register(LlmsGenerator())
    registry.register(LlmsFullGenerator())
    return registry


def collect_alternates(
    sets: Iterable,
) -> dict[tuple[str, str], dict[str, str]]:
    """Language-to-URL maps of translation sets with more than one language."""
    return {
        (s.collection_name, s.canonical_slug): dict(s.urls)
        for s in sets
        if len(s.urls) > 1
    }
