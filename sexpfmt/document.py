"""Layout documents and their rendering to text.

A document is a tree of layout instructions. Soft line breaks (`Line`) render
as a space or a newline depending on the nearest enclosing `Flatten` or
`Break` node; outside of both they render as newlines.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Line:
    """Soft line break: a space when flattened, a newline when broken."""


@dataclass(frozen=True)
class Sequence:
    children: tuple[Document, ...]


@dataclass(frozen=True)
class Indent:
    """Indent lines started inside `child` by one more level."""

    child: Document


@dataclass(frozen=True)
class Flatten:
    """Render soft breaks in `child` as spaces, unless a nested `Break` overrides it."""

    child: Document


@dataclass(frozen=True)
class Break:
    """Render soft breaks in `child` as newlines, even inside a `Flatten`."""

    child: Document


@dataclass(frozen=True)
class LineSuffix:
    """Text emitted at the end of the current output line."""

    value: str


Document = Union[Text, Line, Sequence, Indent, Flatten, Break, LineSuffix]

EMPTY = Sequence(())


def text(value: str) -> Text:
    return Text(value)


def line() -> Line:
    return Line()


def sequence(*children: Document | str) -> Sequence:
    """Concatenate documents; plain strings are wrapped in `Text`."""
    return Sequence(tuple(Text(child) if isinstance(child, str) else child for child in children))


def indent(child: Document) -> Indent:
    return Indent(child)


def flatten(child: Document) -> Flatten:
    return Flatten(child)


def force_break(child: Document) -> Break:
    return Break(child)


def hard_line() -> Break:
    """Newline that renders as such regardless of any enclosing `Flatten`."""
    return Break(Line())


def line_suffix(value: str) -> LineSuffix:
    return LineSuffix(value)


def render(document: Document, indent_unit: str = "  ") -> str:
    """Render a document to text.

    Args:
        document: Layout tree to render.
        indent_unit: Whitespace written once per indentation level.

    Returns:
        str: Rendered text. Line suffixes are written just before the next
            newline, or at the very end. A text containing newlines starts on
            a new line when suffixes are pending. Indentation is only written
            in front of text, so blank lines carry no trailing whitespace.

    Examples:
        render(flatten(sequence("(", "foo", line(), "bar", ")")))  # "(foo bar)"
        render(sequence("(foo", force_break(indent(sequence(line(), "bar"))), ")"))
        # "(foo\\n  bar)"
    """
    output: list[str] = []
    suffixes: list[str] = []
    pending_indent: int | None = None
    # Frames of (node, indentation level, breaking)
    stack: list[tuple[Document, int, bool]] = [(document, 0, True)]

    while stack:
        node, level, breaking = stack.pop()

        if isinstance(node, Text):
            if suffixes and "\n" in node.value:
                # Text spanning lines would push pending suffixes past its end.
                output.extend(suffixes)
                suffixes.clear()
                output.append("\n")
                pending_indent = level
            if node.value:
                if pending_indent:
                    output.append(indent_unit * pending_indent)
                pending_indent = None
                output.append(node.value)
        elif isinstance(node, Line):
            if breaking:
                output.extend(suffixes)
                suffixes.clear()
                output.append("\n")
                pending_indent = level
            else:
                stack.append((Text(" "), level, breaking))
        elif isinstance(node, Sequence):
            stack.extend((child, level, breaking) for child in reversed(node.children))
        elif isinstance(node, Indent):
            stack.append((node.child, level + 1, breaking))
        elif isinstance(node, Flatten):
            stack.append((node.child, level, False))
        elif isinstance(node, Break):
            stack.append((node.child, level, True))
        elif isinstance(node, LineSuffix):
            suffixes.append(node.value)
        else:
            raise TypeError(f"unsupported document node: {type(node).__name__}")

    output.extend(suffixes)
    return "".join(output)
