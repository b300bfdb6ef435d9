"""Translation linking and UI strings.

Records that share a collection and canonical slug are translations of one
another. This module groups them into TranslationSets, gives every member the
URLs of the others, and builds the per-language table of interface strings.

Key classes:
- TranslationSet: One page across languages.

Key functions:
- link: Group records into TranslationSets.
- attach_translations: Give each record its alternates.
- find_missing_targets: Translations without a base-language page.
- ui_strings: Layered UI-string table for one language.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from .config import Languages
from .content import ContentRecord, TranslationLink
from .errors import MissingTranslationTarget

logger = logging.getLogger(__name__)

TranslationKey = tuple[str, str]


@dataclass(frozen=True)
class TranslationSet:
    """Records in several languages sharing one canonical slug.

    Attributes:
        collection_name: Owning collection.
        canonical_slug: Slug shared by every member.
        urls: Language code to URL, default language first.
    """

    collection_name: str
    canonical_slug: str
    urls: dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.urls)

    def links(self, exclude: str | None = None) -> tuple[TranslationLink, ...]:
        return tuple(
            TranslationLink(code, url) for code, url in self.urls.items() if code != exclude
        )


def link(
    records: Iterable[ContentRecord], languages: Languages
) -> dict[TranslationKey, TranslationSet]:
    """Group resolved records by ``(collection, slug)`` across languages.

    Args:
        records: Resolved records of every collection and language.
        languages: Configured languages, used to order each set.

    Returns:
        Mapping of ``(collection, slug)`` to TranslationSet, including
        single-language sets.
    """
    grouped: dict[TranslationKey, dict[str, str]] = {}
    for record in records:
        key = (record.collection_name, record.slug)
        grouped.setdefault(key, {})[record.language_code] = record.url

    order = {code: index for index, code in enumerate(languages.all)}
    sets = {}
    for (collection_name, slug), urls in grouped.items():
        ordered = dict(sorted(urls.items(), key=lambda item: (order.get(item[0], len(order)), item[0])))
        sets[(collection_name, slug)] = TranslationSet(collection_name, slug, ordered)
    return sets


def attach_translations(
    records: Iterable[ContentRecord], sets: Mapping[TranslationKey, TranslationSet]
) -> list[ContentRecord]:
    """Return copies of ``records`` carrying links to their other languages.

    Records without translations are returned unchanged.
    """
    linked = []
    for record in records:
        translation_set = sets.get((record.collection_name, record.slug))
        if translation_set is not None and len(translation_set) > 1:
            record = replace(
                record, translations=translation_set.links(exclude=record.language_code)
            )
        linked.append(record)
    return linked


def find_missing_targets(
    records: Iterable[ContentRecord], languages: Languages
) -> list[MissingTranslationTarget]:
    """Find translated records that have no base-language page.

    Each one is logged as a warning; the record still builds on its own.
    """
    records = list(records)
    base_keys = {
        (r.collection_name, r.slug) for r in records if r.language_code == languages.default
    }
    missing = []
    for record in records:
        if record.language_code == languages.default:
            continue
        if (record.collection_name, record.slug) not in base_keys:
            notice = MissingTranslationTarget(
                source_path=record.source_path,
                collection_name=record.collection_name,
                slug=record.slug,
                language_code=record.language_code,
            )
            logger.warning("%s", notice)
            missing.append(notice)
    return missing


DEFAULT_UI_STRINGS: dict[str, dict[str, str]] = {
    "en": {
        "search_placeholder": "Search...",
        "skip_to_content": "Skip to content",
        "no_results": "No results found",
        "newer": "Newer",
        "older": "Older",
        "page_n_of_total": "Page {n} of {total}",
        "min_read": "min read",
        "contents": "Contents",
        "on_this_page": "On this page",
        "tags": "Tags",
        "all_tags": "All tags",
        "tagged": "Tagged",
        "previous": "Previous",
        "next": "Next",
        "rss": "RSS",
        "language": "Language",
        "published": "Published",
        "updated": "Updated",
        "read_more": "Read more",
        "not_found_title": "Page Not Found",
        "not_found_message": "The page you're looking for doesn't exist or has been moved.",
        "go_home": "Go to homepage",
        "redirecting": "Redirecting",
    },
    "es": {
        "search_placeholder": "Buscar...",
        "skip_to_content": "Saltar al contenido",
        "no_results": "No se encontraron resultados",
        "newer": "Más recientes",
        "older": "Más antiguos",
        "page_n_of_total": "Página {n} de {total}",
        "min_read": "min de lectura",
        "contents": "Contenido",
        "on_this_page": "En esta página",
        "tags": "Etiquetas",
        "all_tags": "Todas las etiquetas",
        "tagged": "Etiquetado",
        "previous": "Anterior",
        "next": "Siguiente",
        "language": "Idioma",
        "published": "Publicado",
        "updated": "Actualizado",
        "read_more": "Leer más",
        "not_found_title": "Página no encontrada",
        "not_found_message": "La página que buscas no existe o ha sido movida.",
        "go_home": "Ir al inicio",
        "redirecting": "Redirigiendo",
    },
    "fr": {
        "search_placeholder": "Rechercher...",
        "skip_to_content": "Aller au contenu",
        "no_results": "Aucun résultat",
        "newer": "Plus récents",
        "older": "Plus anciens",
        "page_n_of_total": "Page {n} sur {total}",
        "min_read": "min de lecture",
        "contents": "Sommaire",
        "on_this_page": "Sur cette page",
        "tags": "Étiquettes",
        "all_tags": "Toutes les étiquettes",
        "tagged": "Étiqueté",
        "previous": "Précédent",
        "next": "Suivant",
        "language": "Langue",
        "published": "Publié",
        "updated": "Mis à jour",
        "read_more": "Lire la suite",
        "not_found_title": "Page introuvable",
        "not_found_message": "La page que vous cherchez n'existe pas ou a été déplacée.",
        "go_home": "Retour à l'accueil",
        "redirecting": "Redirection",
    },
    "de": {
        "search_placeholder": "Suchen...",
        "skip_to_content": "Zum Inhalt springen",
        "no_results": "Keine Ergebnisse",
        "newer": "Neuer",
        "older": "Älter",
        "page_n_of_total": "Seite {n} von {total}",
        "min_read": "Min. Lesezeit",
        "contents": "Inhalt",
        "on_this_page": "Auf dieser Seite",
        "tags": "Schlagwörter",
        "all_tags": "Alle Schlagwörter",
        "tagged": "Verschlagwortet",
        "previous": "Zurück",
        "next": "Weiter",
        "language": "Sprache",
        "published": "Veröffentlicht",
        "updated": "Aktualisiert",
        "read_more": "Weiterlesen",
        "not_found_title": "Seite nicht gefunden",
        "not_found_message": "Die gesuchte Seite existiert nicht oder wurde verschoben.",
        "go_home": "Zur Startseite",
        "redirecting": "Weiterleitung",
    },
}


def ui_strings(
    language_code: str,
    languages: Languages,
    overrides: Mapping[str, Any] | None = None,
) -> dict[str, str]:
    """Build the UI-string table for one language.

    Layers, lowest first: the built-in strings of the site's base language
    (English when there are none), the built-in strings of the requested
    language, and the project's override file for that language
    (``data/i18n/<code>.yaml``).

    Args:
        language_code: Language to build the table for.
        languages: Configured languages.
        overrides: ``data["i18n"]``, a mapping of language code to strings.

    Returns:
        A complete string table.
    """
    table = dict(DEFAULT_UI_STRINGS["en"])
    table.update(DEFAULT_UI_STRINGS.get(languages.default, {}))
    table.update(DEFAULT_UI_STRINGS.get(language_code, {}))
    project = (overrides or {}).get(language_code) or {}
    if isinstance(project, Mapping):
        table.update({str(key): str(value) for key, value in project.items()})
    else:
        logger.warning("i18n overrides for '%s' must be a mapping; ignoring", language_code)
    return table
