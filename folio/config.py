"""Site configuration for Folio.

Configuration lives in ``folio.yaml`` at the project root and is merged over
built-in defaults. The loaded value is passed explicitly to every component
that needs it; nothing reads configuration from global state.

Key classes:
- SiteConfig: The whole configuration.
- CollectionConfig: One content collection (directory, URL prefix, ordering).
- Languages: Default language plus configured translations.

Key functions:
- load_config: Load ``folio.yaml`` from a project root.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

CONFIG_FILENAMES = ("folio.yaml", "folio.yml")

DEFAULT_BASE_URL = "http://localhost:3000"


@dataclass(frozen=True)
class CollectionConfig:
    """Configuration for one content collection.

    Attributes:
        name: Collection identifier, used in templates and the search index.
        label: Human-readable name.
        directory: Directory under the content dir holding the files.
        has_date: Items are date-ordered and must carry a date.
        has_rss: Items appear in the RSS feed.
        listed: Items appear in llms.txt and the search index.
        url_prefix: URL path prefix ("" puts items at the site root).
        nested: Subdirectories are preserved in slugs and grouped for navigation.
        default_template: Template used when an item sets none.
        paginate: Page size for the collection index, or None.
    """

    name: str
    label: str
    directory: str
    has_date: bool = False
    has_rss: bool = False
    listed: bool = True
    url_prefix: str = ""
    nested: bool = False
    default_template: str = "page.html"
    paginate: int | None = None

    @classmethod
    def preset(cls, name: str) -> CollectionConfig | None:
        """Return a preset collection by name, or None."""
        preset = COLLECTION_PRESETS.get(name)
        return replace(preset) if preset else None

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> CollectionConfig:
        """Build a collection from a config mapping, starting from a preset of the same name.

        Raises:
            ConfigError: If the mapping has no name or unknown keys.
        """
        name = data.get("name")
        if not name or not isinstance(name, str):
            raise ConfigError(None, "every collection needs a `name`")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(
                None, f"collection '{name}': unknown keys {', '.join(unknown)}"
            )
        base = cls.preset(name) or cls(
            name=name, label=name.replace("_", " ").title(), directory=name
        )
        values = {k: v for k, v in data.items() if k != "name"}
        paginate = values.get("paginate")
        if paginate is not None and (not isinstance(paginate, int) or paginate < 1):
            raise ConfigError(
                None, f"collection '{name}': `paginate` must be a positive integer"
            )
        collection = replace(base, **values)
        return replace(collection, url_prefix=normalize_prefix(collection.url_prefix))


COLLECTION_PRESETS: dict[str, CollectionConfig] = {
    "posts": CollectionConfig(
        name="posts",
        label="Posts",
        directory="posts",
        has_date=True,
        has_rss=True,
        url_prefix="/posts",
        default_template="post.html",
    ),
    "docs": CollectionConfig(
        name="docs",
        label="Documentation",
        directory="docs",
        url_prefix="/docs",
        nested=True,
        default_template="doc.html",
    ),
    "pages": CollectionConfig(
        name="pages",
        label="Pages",
        directory="pages",
        listed=False,
        default_template="page.html",
    ),
    "changelog": CollectionConfig(
        name="changelog",
        label="Changelog",
        directory="changelog",
        has_date=True,
        has_rss=True,
        url_prefix="/changelog",
        default_template="post.html",
    ),
}


def normalize_prefix(prefix: str) -> str:
    """Normalize a URL prefix to ``/segment`` form ("" for the root)."""
    cleaned = (prefix or "").strip().strip("/")
    return f"/{cleaned}" if cleaned else ""


@dataclass(frozen=True)
class LanguageConfig:
    """Per-language site metadata overrides."""

    code: str
    title: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class Languages:
    """The site's default language plus any configured translations.

    Attributes:
        default: Code of the base language (no URL prefix).
        configured: Extra languages keyed by code.
    """

    default: str = "en"
    configured: dict[str, LanguageConfig] = field(default_factory=dict)

    @property
    def all(self) -> tuple[str, ...]:
        """All language codes, default first, the rest sorted."""
        others = sorted(code for code in self.configured if code != self.default)
        return (self.default, *others)

    @property
    def is_multilingual(self) -> bool:
        return len(self.all) > 1

    def __contains__(self, code: object) -> bool:
        return code in self.all

    def prefix(self, code: str) -> str:
        """URL prefix for a language: empty for the default language."""
        return "" if code == self.default else f"/{code}"

    def title_for(self, code: str, fallback: str) -> str:
        lang = self.configured.get(code)
        return lang.title if lang and lang.title else fallback

    def description_for(self, code: str, fallback: str) -> str:
        lang = self.configured.get(code)
        return lang.description if lang and lang.description else fallback


@dataclass(frozen=True)
class SiteSection:
    title: str = "Folio Site"
    description: str = ""
    base_url: str = DEFAULT_BASE_URL
    language: str = "en"
    author: str = ""


@dataclass(frozen=True)
class BuildSection:
    output_dir: str = "dist"
    content_dir: str = "content"
    template_dir: str = "templates"
    static_dir: str = "static"
    data_dir: str = "data"
    public_dir: str = "public"
    drafts: bool = False
    minify: bool = True
    workers: int | None = None


@dataclass(frozen=True)
class ImageSection:
    """Image post-processing options.

    Attributes:
        optimize: Re-encode output images in place.
        max_width: Scale down wider images before anything else.
        quality: JPEG and WebP encoder quality.
        widths: Widths of the resized copies made for ``static/`` images.
        webp: Also write a WebP copy of every size.
        lazy_loading: Add ``loading="lazy"`` to ``<img>`` tags.
    """

    optimize: bool = True
    max_width: int | None = None
    quality: int = 85
    widths: tuple[int, ...] = (480, 800, 1200)
    webp: bool = True
    lazy_loading: bool = True

    def __post_init__(self):
        widths = self.widths
        if not isinstance(widths, (list, tuple)) or not all(
            isinstance(w, int) and not isinstance(w, bool) and w > 0 for w in widths
        ):
            raise ConfigError(None, "`images.widths` must be a list of positive integers")
        object.__setattr__(self, "widths", tuple(sorted(set(widths))))


@dataclass(frozen=True)
class SiteConfig:
    """Fully loaded site configuration.

    Attributes:
        site: Site metadata.
        collections: Ordered collection configurations.
        languages: Default and configured languages.
        build: Directory layout and build switches.
        images: Image post-processing options.
    """

    site: SiteSection = field(default_factory=SiteSection)
    collections: tuple[CollectionConfig, ...] = ()
    languages: Languages = field(default_factory=Languages)
    build: BuildSection = field(default_factory=BuildSection)
    images: ImageSection = field(default_factory=ImageSection)

    @property
    def base_url(self) -> str:
        return self.site.base_url.rstrip("/")

    def collection(self, name: str) -> CollectionConfig | None:
        for collection in self.collections:
            if collection.name == name:
                return collection
        return None


DEFAULT_COLLECTIONS = ("posts", "pages")


def _section(cls, data: Any, name: str):
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(None, f"`{name}` must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(None, f"`{name}`: unknown keys {', '.join(unknown)}")
    return cls(**data)


def _parse_collections(data: Any) -> tuple[CollectionConfig, ...]:
    if data is None:
        return tuple(CollectionConfig.preset(name) for name in DEFAULT_COLLECTIONS)
    if not isinstance(data, list):
        raise ConfigError(None, "`collections` must be a list")
    collections = []
    for entry in data:
        if isinstance(entry, str):
            preset = CollectionConfig.preset(entry)
            if preset is None:
                raise ConfigError(
                    None,
                    f"unknown collection preset '{entry}'. "
                    f"Available: {', '.join(sorted(COLLECTION_PRESETS))}",
                )
            collections.append(preset)
        elif isinstance(entry, dict):
            collections.append(CollectionConfig.from_mapping(entry))
        else:
            raise ConfigError(None, "collection entries must be names or mappings")
    names = [c.name for c in collections]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigError(None, f"duplicate collections: {', '.join(duplicates)}")
    return tuple(collections)


def _parse_languages(data: Any, default: str) -> Languages:
    if data is None:
        return Languages(default=default)
    if not isinstance(data, dict):
        raise ConfigError(None, "`languages` must be a mapping of code to settings")
    configured = {}
    for code, settings in data.items():
        settings = settings or {}
        if not isinstance(settings, dict):
            raise ConfigError(None, f"language '{code}' settings must be a mapping")
        configured[str(code)] = LanguageConfig(
            code=str(code),
            title=settings.get("title"),
            description=settings.get("description"),
        )
    return Languages(default=default, configured=configured)


def config_from_mapping(data: dict[str, Any]) -> SiteConfig:
    """Build a SiteConfig from an already-parsed mapping.

    Raises:
        ConfigError: If any section has the wrong shape.
    """
    site = _section(SiteSection, data.get("site"), "site")
    return SiteConfig(
        site=site,
        collections=_parse_collections(data.get("collections")),
        languages=_parse_languages(data.get("languages"), site.language),
        build=_section(BuildSection, data.get("build"), "build"),
        images=_section(ImageSection, data.get("images"), "images"),
    )


def load_config(project_root: Path) -> SiteConfig:
    """Load site configuration from folio.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        SiteConfig with defaults applied. A missing file yields the defaults.

    Raises:
        ConfigError: If the file is not valid YAML or has the wrong shape.
    """
    for filename in CONFIG_FILENAMES:
        path = project_root / filename
        if path.exists():
            break
    else:
        return config_from_mapping({})

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(path, f"invalid YAML: {exc}", exc) from exc
    if not isinstance(data, dict):
        raise ConfigError(path, "configuration must be a mapping")
    try:
        return config_from_mapping(data)
    except ConfigError as exc:
        raise ConfigError(path, exc.message) from exc
    except TypeError as exc:
        raise ConfigError(path, str(exc), exc) from exc
