"""Markdown rendering for Folio.

Rendering is a pure function from macro-expanded markdown to HTML. Fenced code
blocks are highlighted with Pygments and headings get anchor ids that the
table of contents reuses.

Key classes:
- RenderedDocument: HTML plus side-channel metadata.
- MarkdownRenderer: mistune-based renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import mistune
from bs4 import BeautifulSoup
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .utils import slugify, unique_id

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]
HIGHLIGHT_CSS_CLASS = "highlight"


@dataclass(frozen=True)
class RenderedDocument:
    """Output of the markdown renderer.

    Attributes:
        html: Rendered HTML fragment.
        highlight_classes: CSS classes emitted for highlighted code blocks.
    """

    html: str
    highlight_classes: frozenset[str] = field(default_factory=frozenset)


def heading_id(text: str) -> str:
    """Generate a URL-friendly anchor id from heading text."""
    return slugify(text)


class _HighlightRenderer(mistune.HTMLRenderer):
    """HTML renderer with heading anchors and Pygments code blocks.

    Attributes:
        highlight_classes: Classes used by highlighted blocks in this document.
    """

    def __init__(self):
        super().__init__(escape=False)
        self.highlight_classes: set[str] = set()
        self._used_ids: set[str] = set()

    def heading(self, text: str, level: int, **attrs) -> str:
        """Render a heading with a unique id.

        Args:
            text: Heading HTML content.
            level: Heading level (1-6).
            **attrs: Additional attributes.

        Returns:
            HTML heading tag with id attribute.
        """
        anchor = unique_id(heading_id(_strip_tags(text)), self._used_ids)
        return f'<h{level} id="{anchor}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block with Pygments syntax highlighting.

        Args:
            code: The code content.
            info: Language identifier (e.g., 'python', 'javascript').

        Returns:
            HTML string with highlighted code.
        """
        language = info.split()[0] if info and info.strip() else None
        if language:
            try:
                lexer = get_lexer_by_name(language, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                self.highlight_classes.update(
                    {HIGHLIGHT_CSS_CLASS, f"language-{language}"}
                )
                formatter = HtmlFormatter(nowrap=False, cssclass=HIGHLIGHT_CSS_CLASS)
                return highlight(code, lexer, formatter)
        escaped = mistune.escape(code)
        lang_class = f' class="language-{mistune.escape(language)}"' if language else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


def _strip_tags(html: str) -> str:
    return BeautifulSoup(html, "html.parser").get_text()


class MarkdownRenderer:
    """Renders macro-expanded markdown to HTML.

    A new mistune instance is created per call, so one renderer can be
    shared by worker threads.
    """

    def render(self, text: str) -> RenderedDocument:
        """Render markdown to HTML.

        Args:
            text: Markdown source with shortcodes already expanded.

        Returns:
            RenderedDocument with HTML and highlight classes.
        """
        renderer = _HighlightRenderer()
        markdown = mistune.create_markdown(renderer=renderer, plugins=MARKDOWN_PLUGINS)
        html = markdown(text)
        return RenderedDocument(html=html, highlight_classes=frozenset(renderer.highlight_classes))


def pygments_css(style: str = "default") -> str:
    """Stylesheet for highlighted code blocks."""
    return HtmlFormatter(style=style, cssclass=HIGHLIGHT_CSS_CLASS).get_style_defs(
        f".{HIGHLIGHT_CSS_CLASS}"
    )
