"""Template rendering engine for Folio.

This module uses Jinja2 to turn resolved records and collection views into
output documents. Project templates live in ``templates/``; any name a project
does not define falls back to the built-in defaults.

Key class:
- TemplateEngine: Template lookup, globals and rendering.

Key functions:
- render_toc: Nested ``<ul>`` table of contents for a record.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from jinja2 import (
    ChoiceLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    TemplateError,
    TemplatesNotFound,
    select_autoescape,
)
from markupsafe import Markup, escape

from .content import ContentRecord, TocEntry
from .default_templates import DEFAULT_TEMPLATES
from .errors import RenderError
from .html_utils import join_root_url
from .renderers import pygments_css
from .utils import slugify

logger = logging.getLogger(__name__)

FALLBACK_TEMPLATE = "page.html"


def render_toc(page: ContentRecord) -> Markup:
    """Render a table of contents as nested HTML from a record's TOC.

    Args:
        page: Record whose ``toc`` to render.

    Returns:
        Markup-safe HTML string of the nested TOC, or empty Markup if no headings.
    """
    if not page.toc:
        return Markup("")
    return _render_toc_entries(page.toc)


def _render_toc_entries(entries: Iterable[TocEntry]) -> Markup:
    html_parts: list[str] = []
    level_stack: list[int] = []

    for entry in entries:
        level = entry.nesting_level

        # Close nested lists if going to a shallower level
        while level_stack and level_stack[-1] > level:
            level_stack.pop()
            html_parts.append("</li></ul>")

        if level_stack and level_stack[-1] == level:
            html_parts.append("</li>")
        else:
            html_parts.append("<ul>")
            level_stack.append(level)

        html_parts.append(f'<li><a href="#{escape(entry.heading_id)}">{escape(entry.text)}</a>')

    while level_stack:
        level_stack.pop()
        html_parts.append("</li></ul>")

    return Markup("".join(html_parts))


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        template_dir: Project template directory (may not exist).
        base_url: Site base URL, used by ``absolute_url``.
        env: Jinja2 environment.
    """

    def __init__(
        self,
        template_dir: Path | None,
        base_url: str = "",
        extra_globals: dict[str, Any] | None = None,
    ):
        """Initialize the template engine.

        Args:
            template_dir: Directory with project templates.
            base_url: Absolute site URL.
            extra_globals: Extra template globals (for example ``data``).
        """
        self.template_dir = template_dir
        self.base_url = base_url.rstrip("/")
        loaders = []
        if template_dir is not None and template_dir.is_dir():
            loaders.append(FileSystemLoader(str(template_dir)))
        loaders.append(DictLoader(DEFAULT_TEMPLATES))
        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(["html", "xml"]),
            enable_async=False,
        )
        self._install_globals(extra_globals or {})

    def _install_globals(self, extra: dict[str, Any]) -> None:
        """Install global variables and functions in the Jinja environment."""
        self.env.globals["render_toc"] = render_toc
        self.env.globals["pygments_css"] = pygments_css
        self.env.globals["absolute_url"] = self.absolute_url
        self.env.filters["slugify"] = slugify
        self.env.filters["absolute_url"] = self.absolute_url
        self.env.globals.update(extra)

    def absolute_url(self, path: str) -> str:
        """Join a site path onto the base URL; full URLs pass through."""
        if path.startswith(("http://", "https://", "//")):
            return path
        return join_root_url(self.base_url, path)

    def has_template(self, name: str) -> bool:
        try:
            self.env.get_template(name)
        except TemplateError:
            return False
        return True

    def render(
        self,
        template_names: list[str],
        context: dict[str, Any],
        source_path: Path | None = None,
    ) -> str:
        """Render the first template that exists.

        Falls back to ``page.html`` with a warning when none of the names
        is found.

        Args:
            template_names: Candidates, most specific first.
            context: Template variables.
            source_path: Source file, for error messages.

        Returns:
            Rendered document.

        Raises:
            RenderError: If the template fails to compile or render.
        """
        try:
            try:
                template = self.env.select_template(template_names)
            except TemplatesNotFound:
                logger.warning(
                    "%s: none of the templates %s exist; using %s",
                    source_path or "page",
                    ", ".join(template_names),
                    FALLBACK_TEMPLATE,
                )
                template = self.env.get_template(FALLBACK_TEMPLATE)
            return template.render(context)
        except TemplateError as exc:
            raise RenderError(source_path, f"template error: {exc}", exc) from exc
