"""Protocol definitions for Folio.

The build orchestrator talks to its collaborators through these interfaces,
so a different markdown renderer or template engine can be substituted
(tests use small fakes).
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .macros import MacroInvocation
    from .renderers import RenderedDocument


@runtime_checkable
class ContentRenderer(Protocol):
    """Renders macro-expanded markdown to HTML.

    Implementations must be pure and safe to call from worker threads.
    """

    @abstractmethod
    def render(self, text: str) -> RenderedDocument:
        """Render markdown text.

        Args:
            text: Markdown with shortcodes already expanded.

        Returns:
            RenderedDocument with the HTML and side-channel metadata.
        """
        ...


@runtime_checkable
class PageRenderer(Protocol):
    """Turns a resolved record or collection view plus context into a document."""

    @abstractmethod
    def render(
        self,
        template_names: list[str],
        context: dict[str, Any],
        source_path: Path | None = None,
    ) -> str:
        """Render the first available template.

        Args:
            template_names: Candidate templates, most specific first.
            context: Template variables.
            source_path: Source file the output belongs to, for errors.

        Returns:
            The rendered document.
        """
        ...


@runtime_checkable
class MacroResolver(Protocol):
    """Validates and renders shortcode invocations."""

    @abstractmethod
    def require(self, name: str, source_path: Path | None = None, line: int | None = None) -> None:
        ...

    @abstractmethod
    def render(
        self,
        invocation: MacroInvocation,
        context: dict[str, Any],
        source_path: Path | None = None,
    ) -> str:
        ...


@runtime_checkable
class AssetProcessor(Protocol):
    """Processes one static asset into the output directory."""

    @property
    @abstractmethod
    def priority(self) -> int:
        """Higher priority processors are tried first."""
        ...

    @abstractmethod
    def can_process(self, path: Path) -> bool:
        ...

    @abstractmethod
    def process(self, source: Path, dest: Path) -> bool:
        ...
