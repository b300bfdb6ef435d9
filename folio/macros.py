"""Shortcode scanning and expansion.

Shortcodes are author-facing macros embedded in markdown bodies::

    {{< youtube(id="dQw4w9WgXcQ") >}}
    {{% callout(type="warning") %}}Be **careful**.{{% end %}}

Inline shortcodes render to an HTML fragment that is spliced in as-is. Body
shortcodes capture everything up to the next ``{{% end %}}`` and hand it to
their template as ``body``. Expansion happens before markdown rendering; the
raw body kept on a content record is always the unexpanded text.

The scanner is a single left-to-right pass that knows about fenced code blocks
and inline code spans, and never recognises a shortcode inside either.

Key classes:
- MacroKind: Inline or body invocation.
- MacroInvocation: One parsed occurrence with its span and line.

Key functions:
- scan: Find every invocation in a text.
- parse_call: Parse ``name(key=value, ...)``.
- expand: Replace every invocation using a registry.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .errors import MacroSyntaxError, UnclosedBodyError
from .protocols import MacroResolver

INLINE_OPEN = "{{<"
INLINE_CLOSE = ">}}"
BODY_OPEN = "{{%"
BODY_CLOSE = "%}}"

_OPEN_FENCE_RE = re.compile(r"[ ]{0,3}(`{3,}|~{3,})")
_CLOSE_FENCE_RE = re.compile(r"[ ]{0,3}(`{3,}|~{3,})[ \t]*(?:\n|$)")
_BACKTICK_RUN_RE = re.compile(r"`+")
_END_TAG_RE = re.compile(r"\{\{%\s*end\s*%\}\}")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")

ArgValue = str | int | float | bool


class MacroKind(Enum):
    INLINE = "inline"
    BODY = "body"


@dataclass(frozen=True)
class MacroInvocation:
    """A parsed shortcode occurrence.

    Attributes:
        name: Shortcode name.
        args: Keyword arguments with typed literal values.
        kind: Inline or body.
        span: (start, end) offsets of the whole invocation in the source text.
        line: 1-based line where the invocation starts.
        body: Captured body text for body shortcodes.
    """

    name: str
    args: dict[str, ArgValue] = field(default_factory=dict)
    kind: MacroKind = MacroKind.INLINE
    span: tuple[int, int] = (0, 0)
    line: int = 1
    body: str | None = None


def scan(text: str, source_path: Path | None = None) -> list[MacroInvocation]:
    """Find every shortcode invocation in a text, in order.

    Args:
        text: Raw markdown body.
        source_path: File being scanned, for error messages.

    Returns:
        Invocations in source order, non-overlapping.

    Raises:
        MacroSyntaxError: If an invocation is malformed.
        UnclosedBodyError: If a body shortcode has no ``{{% end %}}``.
    """
    invocations: list[MacroInvocation] = []
    pos = 0
    line = 1
    length = len(text)
    at_line_start = True

    while pos < length:
        if at_line_start:
            fence = _OPEN_FENCE_RE.match(text, pos)
            if fence:
                run = fence.group(1)
                pos, line = _skip_fenced_block(text, pos, run[0], len(run), line)
                continue

        char = text[pos]
        if char == "\n":
            line += 1
            pos += 1
            at_line_start = True
            continue
        at_line_start = False

        if char == "`":
            pos, line = _skip_code_span(text, pos, line)
            continue

        if text.startswith(INLINE_OPEN, pos):
            invocation = _parse_inline(text, pos, line, source_path)
            invocations.append(invocation)
            pos = invocation.span[1]
            continue

        if text.startswith(BODY_OPEN, pos):
            invocation, end = _parse_body(text, pos, line, source_path)
            if invocation is not None:
                invocations.append(invocation)
            line += text.count("\n", pos, end)
            pos = end
            continue

        pos += 1

    return invocations


def _skip_fenced_block(
    text: str, pos: int, fence_char: str, fence_len: int, line: int
) -> tuple[int, int]:
    """Skip from an opening fence line past its closing fence (or to EOF)."""
    newline = text.find("\n", pos)
    if newline == -1:
        return len(text), line
    pos = newline + 1
    line += 1
    while pos < len(text):
        closing = _CLOSE_FENCE_RE.match(text, pos)
        if closing:
            run = closing.group(1)
            if run[0] == fence_char and len(run) >= fence_len:
                end = closing.end()
                if text[end - 1 : end] == "\n":
                    line += 1
                return end, line
        newline = text.find("\n", pos)
        if newline == -1:
            return len(text), line
        pos = newline + 1
        line += 1
    return pos, line


def _skip_code_span(text: str, pos: int, line: int) -> tuple[int, int]:
    """Skip an inline code span opened by the backtick run at ``pos``.

    The span closes at the next run of exactly the same length within the
    paragraph. An unmatched run is ordinary text.
    """
    opening = _BACKTICK_RUN_RE.match(text, pos)
    run_length = len(opening.group(0))
    limit = text.find("\n\n", pos)
    if limit == -1:
        limit = len(text)
    for candidate in _BACKTICK_RUN_RE.finditer(text, opening.end(), limit):
        if len(candidate.group(0)) == run_length:
            end = candidate.end()
            return end, line + text.count("\n", pos, end)
    return opening.end(), line


def _parse_inline(
    text: str, pos: int, line: int, source_path: Path | None
) -> MacroInvocation:
    end_of_line = _end_of_line(text, pos)
    close = text.find(INLINE_CLOSE, pos + len(INLINE_OPEN), end_of_line)
    if close == -1:
        raise MacroSyntaxError(
            source_path,
            "unclosed inline shortcode. Expected `>}}` on the same line.",
            line,
        )
    inner = text[pos + len(INLINE_OPEN) : close].strip()
    name, args = parse_call(inner, source_path, line)
    return MacroInvocation(
        name=name,
        args=args,
        kind=MacroKind.INLINE,
        span=(pos, close + len(INLINE_CLOSE)),
        line=line,
    )


def _parse_body(
    text: str, pos: int, line: int, source_path: Path | None
) -> tuple[MacroInvocation | None, int]:
    """Parse a body shortcode starting at ``pos``.

    Returns the invocation (None for a stray end tag) and the offset where
    scanning resumes.
    """
    end_of_line = _end_of_line(text, pos)
    close = text.find(BODY_CLOSE, pos + len(BODY_OPEN), end_of_line)
    if close == -1:
        raise MacroSyntaxError(
            source_path,
            "unclosed body shortcode tag. Expected `%}}` on the same line.",
            line,
        )
    inner = text[pos + len(BODY_OPEN) : close].strip()
    open_end = close + len(BODY_CLOSE)
    if inner == "end":
        return None, open_end

    name, args = parse_call(inner, source_path, line)
    end_tag = _END_TAG_RE.search(text, open_end)
    if end_tag is None:
        raise UnclosedBodyError(name, source_path, line)
    invocation = MacroInvocation(
        name=name,
        args=args,
        kind=MacroKind.BODY,
        span=(pos, end_tag.end()),
        line=line,
        body=text[open_end : end_tag.start()].strip(),
    )
    return invocation, end_tag.end()


def _end_of_line(text: str, pos: int) -> int:
    newline = text.find("\n", pos)
    return len(text) if newline == -1 else newline


def _is_name_char(char: str) -> bool:
    return char.isalnum() or char in "_-"


def parse_call(
    inner: str, source_path: Path | None = None, line: int | None = None
) -> tuple[str, dict[str, ArgValue]]:
    """Parse the ``name(key=value, ...)`` part of a shortcode tag.

    Args:
        inner: Text between the delimiters, already stripped.
        source_path: File being parsed, for error messages.
        line: Line of the invocation, for error messages.

    Returns:
        Tuple of (name, arguments).

    Raises:
        MacroSyntaxError: If the call is malformed.
    """
    paren = inner.find("(")
    if paren == -1:
        raise MacroSyntaxError(
            source_path,
            f"invalid shortcode syntax `{inner}`. Expected `name(key=value, ...)`.",
            line,
        )
    name = inner[:paren].strip()
    if not name:
        raise MacroSyntaxError(source_path, "shortcode name is empty", line)
    if not all(_is_name_char(char) for char in name):
        raise MacroSyntaxError(
            source_path,
            f"invalid shortcode name `{name}`. Use letters, digits, `_` or `-`.",
            line,
        )
    if not inner.endswith(")"):
        raise MacroSyntaxError(
            source_path, f"unclosed parenthesis in shortcode `{name}`", line
        )
    args = parse_args(inner[paren + 1 : -1], source_path, line)
    return name, args


def parse_args(
    text: str, source_path: Path | None = None, line: int | None = None
) -> dict[str, ArgValue]:
    """Parse ``key=value`` pairs separated by commas or whitespace.

    Raises:
        MacroSyntaxError: If a pair is malformed or a value is not a literal.
    """
    args: dict[str, ArgValue] = {}
    pos = 0
    length = len(text)

    while True:
        while pos < length and (text[pos].isspace() or text[pos] == ","):
            pos += 1
        if pos >= length:
            return args

        start = pos
        while pos < length and _is_name_char(text[pos]):
            pos += 1
        key = text[start:pos]
        if not key:
            raise MacroSyntaxError(
                source_path,
                f"expected an argument name, found `{text[pos]}`. "
                "Positional arguments are not supported.",
                line,
            )

        while pos < length and text[pos].isspace():
            pos += 1
        if pos >= length or text[pos] != "=":
            raise MacroSyntaxError(
                source_path, f"expected `=` after argument `{key}`", line
            )
        pos += 1
        while pos < length and text[pos].isspace():
            pos += 1
        if pos >= length:
            raise MacroSyntaxError(
                source_path, f"missing value for argument `{key}`", line
            )

        value, pos = _parse_value(text, pos, key, source_path, line)
        if pos < length and not (text[pos].isspace() or text[pos] == ","):
            raise MacroSyntaxError(
                source_path,
                f"unexpected `{text[pos]}` after the value of argument `{key}`",
                line,
            )
        args[key] = value


def _parse_value(
    text: str, pos: int, key: str, source_path: Path | None, line: int | None
) -> tuple[ArgValue, int]:
    if text[pos] == '"':
        return _parse_string(text, pos, key, source_path, line)

    for literal, value in (("true", True), ("false", False)):
        end = pos + len(literal)
        if text.startswith(literal, pos) and not (
            end < len(text) and _is_name_char(text[end])
        ):
            return value, end

    number = _NUMBER_RE.match(text, pos)
    if number and not (
        number.end() < len(text) and _is_name_char(text[number.end()])
    ):
        raw = number.group(0)
        return (float(raw) if "." in raw else int(raw)), number.end()

    raise MacroSyntaxError(
        source_path,
        f"invalid value for argument `{key}`. "
        "Expected a quoted string, number, or boolean.",
        line,
    )


def _parse_string(
    text: str, pos: int, key: str, source_path: Path | None, line: int | None
) -> tuple[str, int]:
    chars: list[str] = []
    pos += 1
    while pos < len(text):
        char = text[pos]
        if char == "\\" and pos + 1 < len(text) and text[pos + 1] in '"\\':
            chars.append(text[pos + 1])
            pos += 2
            continue
        if char == '"':
            return "".join(chars), pos + 1
        chars.append(char)
        pos += 1
    raise MacroSyntaxError(
        source_path, f"unterminated string for argument `{key}`", line
    )


def expand(
    text: str,
    registry: MacroResolver,
    context: dict[str, Any] | None = None,
    source_path: Path | None = None,
) -> str:
    """Expand every shortcode in a text.

    All names are checked against the registry before anything is rendered,
    so an unknown shortcode fails the whole text.

    Args:
        text: Raw markdown body.
        registry: Shortcode registry, usually a MacroRegistry.
        context: Extra template variables (``page``, ``site``).
        source_path: File being expanded, for error messages.

    Returns:
        The text with every invocation replaced by its rendered output.

    Raises:
        MacroError: On unknown names, malformed syntax or unclosed bodies.
    """
    invocations = scan(text, source_path)
    if not invocations:
        return text

    for invocation in invocations:
        registry.require(invocation.name, source_path, invocation.line)

    pieces: list[str] = []
    last = 0
    for invocation in invocations:
        start, end = invocation.span
        pieces.append(text[last:start])
        pieces.append(registry.render(invocation, context or {}, source_path))
        last = end
    pieces.append(text[last:])
    return "".join(pieces)
