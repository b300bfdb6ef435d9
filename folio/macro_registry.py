"""Closed registry of shortcodes.

The registry is built once per build. Each name maps to one of two variants:
a built-in template shipped with Folio, or a project template found in
``templates/macros/``. Project templates shadow built-ins of the same name.

Key classes:
- BuiltinMacro / UserMacro: The two kinds of registry entry.
- MacroRegistry: Name lookup, validation and rendering.
"""

from __future__ import annotations

import difflib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import DictLoader, Environment, Template, TemplateError

from .builtin_macros import BUILTIN_MACROS
from .errors import RenderError, UnknownMacroError
from .macros import MacroInvocation, MacroKind

logger = logging.getLogger(__name__)

MACROS_DIRNAME = "macros"


@dataclass(frozen=True)
class BuiltinMacro:
    """A shortcode shipped with Folio."""

    name: str
    template_id: str


@dataclass(frozen=True)
class UserMacro:
    """A shortcode defined by a template file in the project."""

    name: str
    template_path: Path


MacroDefinition = BuiltinMacro | UserMacro


class MacroRegistry:
    """Resolves shortcode names to compiled templates.

    Attributes:
        definitions: Name to definition mapping.
    """

    def __init__(self, definitions: dict[str, MacroDefinition], sources: dict[str, str]):
        """Compile every definition.

        Args:
            definitions: Name to definition mapping.
            sources: Template id to template source.

        Raises:
            RenderError: If a template does not compile.
        """
        self.definitions = dict(definitions)
        self._env = Environment(loader=DictLoader(sources), autoescape=False)
        self._templates: dict[str, Template] = {}
        for name, definition in self.definitions.items():
            template_id = _template_id(definition)
            try:
                self._templates[name] = self._env.get_template(template_id)
            except TemplateError as exc:
                path = definition.template_path if isinstance(definition, UserMacro) else None
                raise RenderError(
                    path, f"invalid template for shortcode `{name}`: {exc}", exc
                ) from exc

    @classmethod
    def load(cls, macros_dir: Path | None = None) -> MacroRegistry:
        """Build a registry from the built-ins plus a project macro directory.

        Args:
            macros_dir: Directory of ``<name>.html`` templates; may be missing.

        Returns:
            A compiled registry.
        """
        definitions: dict[str, MacroDefinition] = {}
        sources: dict[str, str] = {}
        for name, source in BUILTIN_MACROS.items():
            definition = BuiltinMacro(name=name, template_id=f"builtin/{name}.html")
            definitions[name] = definition
            sources[definition.template_id] = source

        if macros_dir is not None and macros_dir.is_dir():
            for path in sorted(macros_dir.iterdir()):
                if not path.is_file() or path.suffix != ".html":
                    continue
                name = path.stem
                if name in definitions:
                    logger.debug("Project shortcode %s shadows the built-in", name)
                definitions[name] = UserMacro(name=name, template_path=path)
                sources[f"user/{path.name}"] = path.read_text(encoding="utf-8")

        return cls(definitions, sources)

    @property
    def names(self) -> list[str]:
        return sorted(self.definitions)

    def __contains__(self, name: object) -> bool:
        return name in self.definitions

    def get(self, name: str) -> MacroDefinition | None:
        return self.definitions.get(name)

    def suggestions(self, name: str) -> list[str]:
        """Closest registered names to ``name``."""
        return difflib.get_close_matches(name, self.names, n=3, cutoff=0.5)

    def require(self, name: str, source_path: Path | None = None, line: int | None = None) -> None:
        """Raise UnknownMacroError unless ``name`` is registered."""
        if name not in self.definitions:
            raise UnknownMacroError(
                name,
                self.names,
                self.suggestions(name),
                source_path=source_path,
                line=line,
            )

    def render(
        self,
        invocation: MacroInvocation,
        context: dict[str, Any],
        source_path: Path | None = None,
    ) -> str:
        """Render one invocation.

        Args:
            invocation: Parsed shortcode.
            context: Shared variables (``page``, ``site``).
            source_path: Content file, for error messages.

        Returns:
            Rendered fragment.

        Raises:
            UnknownMacroError: If the name is not registered.
            RenderError: If the template fails.
        """
        self.require(invocation.name, source_path, invocation.line)
        variables = dict(context)
        variables.update(invocation.args)
        if invocation.kind is MacroKind.BODY:
            variables["body"] = invocation.body or ""
        try:
            return self._templates[invocation.name].render(variables)
        except TemplateError as exc:
            raise RenderError(
                source_path,
                f"line {invocation.line}: shortcode `{invocation.name}` failed: {exc}",
                exc,
            ) from exc


def _template_id(definition: MacroDefinition) -> str:
    if isinstance(definition, BuiltinMacro):
        return definition.template_id
    return f"user/{definition.template_path.name}"
