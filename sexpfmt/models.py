"""Data models for sexpfmt."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .position import Position, PositionMap


@dataclass(frozen=True)
class Symbol:
    """Bare token such as ``define``, ``+`` or ``#t``."""

    value: str
    position: Position


@dataclass(frozen=True)
class String:
    """String literal.

    Attributes:
        value: Contents between the quotes, escapes left as written.
        position: Span including both quotes.
    """

    value: str
    position: Position


@dataclass(frozen=True)
class Quote:
    """Expression prefixed by a quote sign.

    Attributes:
        inner: Quoted expression.
        position: Span from the sign through the end of `inner`.
        sign: Prefix as written: a quote, a backquote, ``,``, ``,@`` or ``#``.
    """

    inner: Expression
    position: Position
    sign: str = "'"


@dataclass(frozen=True)
class List:
    """Delimited list of expressions.

    Attributes:
        children: Elements in source order.
        position: Span from the opening through the closing delimiter.
        open: Opening delimiter: ``(``, ``[`` or ``{``.
        close: Closing delimiter matching `open`.
    """

    children: tuple[Expression, ...]
    position: Position
    open: str = "("
    close: str = ")"


Expression = Union[List, Quote, String, Symbol]


@dataclass(frozen=True)
class Comment:
    """Line comment.

    Attributes:
        value: Text following ``;`` up to the end of the line, not trimmed.
        position: Span from ``;`` to the end of `value`.
    """

    value: str
    position: Position

    @property
    def text(self) -> str:
        return ";" + self.value.rstrip()


@dataclass(frozen=True)
class BlockComment:
    """Block comment such as ``#| note |#``, possibly spanning several lines.

    Attributes:
        value: Text between the outermost ``#|`` and ``|#``, nested markers
            included.
        position: Span from ``#|`` through ``|#``.
    """

    value: str
    position: Position

    @property
    def text(self) -> str:
        return "#|" + self.value + "|#"


AnyComment = Union[Comment, BlockComment]


@dataclass(frozen=True)
class HashDirective:
    """Header line such as a shebang or ``#lang racket``."""

    value: str
    position: Position


@dataclass
class Module:
    """Structured result of parsing one source text.

    Attributes:
        source: Text that was parsed.
        expressions: Top-level expressions in source order.
        comments: Line and block comments in source order.
        hash_directives: Header directives in source order.
        position_map: Line index built from `source`.
    """

    source: str
    expressions: list[Expression]
    comments: list[AnyComment]
    hash_directives: list[HashDirective]
    position_map: PositionMap
