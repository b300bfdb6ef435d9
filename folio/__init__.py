"""Folio static site builder.

This package turns a directory of markdown content with YAML front-matter and a
set of Jinja2 templates into a fully resolved, optionally multi-language static
site: item pages, collection indexes, feeds, sitemaps and discovery files.

The build is a fixed sequence of stages (see ``folio.pipeline``):
- Content files are parsed and their shortcodes expanded before markdown rendering.
- Slugs, URLs and translation links are resolved across every collection.
- Word counts, reading times, excerpts and tables of contents are derived from HTML.
- Collections are sorted, grouped and paginated before the output stages run.

The main entry point is the CLI module; ``folio.build.build_site`` is the
programmatic one.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
