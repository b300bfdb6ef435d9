"""Error types raised while building a site.

Every fatal condition derives from BuildError, which carries the source file
that caused it. Stage failures are reported to the CLI as a single structured
value (see ``folio.pipeline.StageFailure``).

Key classes:
- BuildError: Base class with file context.
- FrontmatterError: Malformed or missing front-matter field.
- MacroError: Shortcode problems (unknown name, unclosed body, bad syntax).
- SlugCollisionError: Two records claim the same URL.
- RenderError: Markdown or template rendering failed for one record.
- StageError: A stage cannot run against the project layout.
- MissingTranslationTarget: Non-fatal notice for orphaned translations.
- BrokenLink: Non-fatal notice for an internal link with no target.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error, if any.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path | None,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        if source_path is None:
            super().__init__(message)
        else:
            super().__init__(f"{source_path}: {message}")


class ConfigError(BuildError):
    """The site configuration file is missing required structure."""


class DataError(BuildError):
    """A data file could not be loaded or merged."""


class FrontmatterError(BuildError):
    """Front-matter is malformed or a required field is missing.

    Attributes:
        field: Name of the offending field, or None for structural problems.
    """

    def __init__(
        self,
        source_path: Path | None,
        message: str,
        field: str | None = None,
        original_error: Exception | None = None,
    ):
        self.field = field
        if field:
            message = f"front-matter field `{field}`: {message}"
        super().__init__(source_path, message, original_error)


class MacroError(BuildError):
    """Base class for shortcode errors.

    Attributes:
        line: 1-based line of the invocation in the raw body, if known.
    """

    def __init__(
        self,
        source_path: Path | None,
        message: str,
        line: int | None = None,
        original_error: Exception | None = None,
    ):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(source_path, message, original_error)


class UnknownMacroError(MacroError):
    """A shortcode name is absent from both the built-in and project registries."""

    def __init__(
        self,
        name: str,
        available: list[str],
        suggestions: list[str] | None = None,
        source_path: Path | None = None,
        line: int | None = None,
    ):
        self.name = name
        self.available = list(available)
        self.suggestions = list(suggestions or [])
        message = f"unknown shortcode `{name}`."
        if self.suggestions:
            message += " Did you mean: " + ", ".join(self.suggestions) + "?"
        message += " Available: " + ", ".join(self.available)
        super().__init__(source_path, message, line)


class UnclosedBodyError(MacroError):
    """A body shortcode has no matching ``{{% end %}}``."""

    def __init__(self, name: str, source_path: Path | None = None, line: int | None = None):
        self.name = name
        super().__init__(
            source_path,
            f"unclosed body shortcode `{name}`. Expected `{{{{% end %}}}}`.",
            line,
        )


class MacroSyntaxError(MacroError):
    """A shortcode invocation could not be parsed."""


class SlugCollisionError(BuildError):
    """Two records resolve to the same URL.

    Attributes:
        url: The contested URL.
        first_path: Source file that claimed the URL first.
        second_path: Source file that claimed it second.
    """

    def __init__(self, url: str, first_path: Path, second_path: Path):
        self.url = url
        self.first_path = first_path
        self.second_path = second_path
        super().__init__(
            second_path,
            f"URL collision: '{url}' is claimed by both '{first_path}' and '{second_path}'",
        )


class RenderError(BuildError):
    """The markdown renderer or template engine failed for one record."""


class StageError(BuildError):
    """A build stage cannot run in the current project layout."""


@dataclass(frozen=True)
class MissingTranslationTarget:
    """A language-suffixed file has no base-language counterpart.

    The record still builds on its own; this is reported as a warning.
    """

    source_path: Path
    collection_name: str
    slug: str
    language_code: str

    def __str__(self) -> str:
        return (
            f"{self.source_path}: translation '{self.language_code}' of "
            f"{self.collection_name}/{self.slug} has no base-language page"
        )


@dataclass(frozen=True)
class BrokenLink:
    """A root-relative link in the output that points at no generated file.

    Reported as a warning; the build still succeeds.
    """

    source_file: str
    href: str

    def __str__(self) -> str:
        return f"{self.source_file}: broken internal link {self.href}"
