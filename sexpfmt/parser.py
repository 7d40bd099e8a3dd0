"""S-expression parsing utilities."""

from __future__ import annotations

from .constants import (
    BLOCK_COMMENT_END,
    BLOCK_COMMENT_START,
    COMMENT_MARKER,
    HASH_DIRECTIVE_PREFIXES,
    HASH_QUOTE_TARGETS,
    LIST_DELIMITERS,
    QUOTE_SIGNS,
    STRING_ESCAPES,
    SYMBOL_ESCAPE,
    SYMBOL_SIGNS,
)
from .exceptions import ParseError
from .models import (
    AnyComment,
    BlockComment,
    Comment,
    Expression,
    HashDirective,
    List,
    Module,
    Quote,
    String,
    Symbol,
)
from .position import Position, PositionMap


def is_symbol_character(character: str) -> bool:
    """Check whether a character may appear unescaped in a symbol.

    Any character may still appear in a symbol after a backslash, as in
    ``#\\(`` or ``\\#foo``.

    Examples:
        is_symbol_character("a")  # True
        is_symbol_character("(")  # False
    """
    return character.isalnum() or (len(character) == 1 and character in SYMBOL_SIGNS)


class _Parser:
    """Recursive-descent parser holding a cursor into the source.

    Every production skips leading whitespace and comments before recording
    the start of its token, and records the end right after the token.
    """

    def __init__(self, source: str):
        self.source = source
        self.offset = 0

    def module(self) -> list[Expression]:
        self.hash_directives()
        expressions: list[Expression] = []

        while True:
            self._skip_blank()
            if self._at_end():
                return expressions
            if not self._starts_expression():
                raise ParseError(
                    f"unexpected character {self._peek()!r}", self.offset, context="module"
                )
            expressions.append(self.expression())

    def hash_directives(self) -> list[HashDirective]:
        """Consume header lines such as ``#!/bin/sh`` at the start of the source."""
        directives: list[HashDirective] = []

        while True:
            start = self.offset
            while start < len(self.source) and self.source[start].isspace():
                start += 1
            if not self.source.startswith(HASH_DIRECTIVE_PREFIXES, start):
                return directives

            end = self.source.find("\n", start)
            if end < 0:
                end = len(self.source)
            value = self.source[start:end].rstrip()
            directives.append(HashDirective(value, Position(start, start + len(value))))
            self.offset = end

    def expression(self) -> Expression:
        self._skip_blank()

        sign = self._quote_sign()
        if sign is not None:
            return self._quote(sign)

        character = self._peek()
        if character == '"':
            return self._string()
        if character in LIST_DELIMITERS:
            return self._list()
        if is_symbol_character(character) or self._at_symbol_escape():
            return self._symbol()

        if self._at_end():
            raise ParseError("unexpected end of input", self._end_offset(), context="expression")
        raise ParseError(f"unexpected character {character!r}", self.offset, context="expression")

    def _symbol(self) -> Symbol:
        start = self.offset
        while not self._at_end() and not self._at_block_comment():
            if self._peek() == SYMBOL_ESCAPE:
                if self.offset + 1 >= len(self.source):
                    raise ParseError(
                        "unterminated escape", self._end_offset(), context="symbol"
                    )
                self.offset += 2
            elif is_symbol_character(self._peek()):
                self.offset += 1
            else:
                break
        return Symbol(self.source[start : self.offset], Position(start, self.offset))

    def _quote(self, sign: str) -> Quote:
        start = self.offset
        self.offset += len(sign)

        self._skip_blank()
        if not self._starts_expression():
            raise ParseError("failed to parse", self._error_offset(), context="quote")

        inner = self.expression()
        return Quote(inner, Position(start, inner.position.end), sign)

    def _string(self) -> String:
        start = self.offset
        self.offset += 1

        while True:
            character = self._peek()
            if character == "":
                raise ParseError(
                    "unterminated string", self._end_offset(), expected='"', context="string"
                )
            if character == "\\":
                escaped = self.source[self.offset + 1 : self.offset + 2]
                if escaped == "" or escaped not in STRING_ESCAPES:
                    raise ParseError(
                        "invalid escape sequence", self._error_offset(), context="string"
                    )
                self.offset += 2
                continue

            self.offset += 1
            if character == '"':
                return String(self.source[start + 1 : self.offset - 1], Position(start, self.offset))

    def _list(self) -> List:
        start = self.offset
        opening = self._peek()
        closing = LIST_DELIMITERS[opening]
        self.offset += 1
        children: list[Expression] = []

        # Past the opening delimiter, a missing or mismatched closing one is fatal.
        while True:
            self._skip_blank()
            if self._peek() == closing:
                self.offset += 1
                return List(tuple(children), Position(start, self.offset), opening, closing)
            if not self._starts_expression():
                raise ParseError(
                    "failed to parse", self._error_offset(), expected=closing, context="list"
                )
            children.append(self.expression())

    def _quote_sign(self) -> str | None:
        for sign in QUOTE_SIGNS:
            if self.source.startswith(sign, self.offset):
                return sign

        following = self.source[self.offset + 1 : self.offset + 2]
        if self._peek() == "#" and following and following in HASH_QUOTE_TARGETS:
            return "#"
        return None

    def _starts_expression(self) -> bool:
        character = self._peek()
        return (
            character == '"'
            or character in LIST_DELIMITERS
            or is_symbol_character(character)
            or self._at_symbol_escape()
            or self._quote_sign() is not None
        )

    def _at_symbol_escape(self) -> bool:
        return self._peek() == SYMBOL_ESCAPE and self.offset + 1 < len(self.source)

    def _at_block_comment(self) -> bool:
        return self.source.startswith(BLOCK_COMMENT_START, self.offset)

    def _skip_blank(self):
        while not self._at_end():
            character = self._peek()
            if character == COMMENT_MARKER:
                end = self.source.find("\n", self.offset)
                self.offset = len(self.source) if end < 0 else end
            elif self._at_block_comment():
                end = _block_comment_end(self.source, self.offset)
                if end is None:
                    raise ParseError(
                        "unterminated block comment",
                        self._end_offset(),
                        expected=BLOCK_COMMENT_END,
                        context="comment",
                    )
                self.offset = end
            elif character.isspace():
                self.offset += 1
            else:
                return

    def _peek(self) -> str:
        return self.source[self.offset : self.offset + 1]

    def _at_end(self) -> bool:
        return self.offset >= len(self.source)

    def _end_offset(self) -> int:
        return max(len(self.source) - 1, 0)

    def _error_offset(self) -> int:
        return min(self.offset, self._end_offset())


def _block_comment_end(source: str, offset: int) -> int | None:
    """Return the offset just past the block comment opened at `offset`.

    Block comments nest, so ``#| a #| b |# c |#`` is a single comment.
    Returns None when the comment is never closed.
    """
    depth = 0
    while offset < len(source):
        if source.startswith(BLOCK_COMMENT_START, offset):
            depth += 1
            offset += len(BLOCK_COMMENT_START)
        elif source.startswith(BLOCK_COMMENT_END, offset):
            depth -= 1
            offset += len(BLOCK_COMMENT_END)
            if depth == 0:
                return offset
        else:
            offset += 1
    return None


def parse(source: str) -> list[Expression]:
    """Parse source text into top-level expressions.

    Args:
        source: Complete source text.

    Returns:
        list[Expression]: Top-level expressions in source order. Header
            directives and comments are not part of the result.

    Raises:
        ParseError: If the text does not match the grammar. Parsing stops at
            the first failure.

    Examples:
        parse("(foo bar)")  # [List((Symbol("foo", ...), Symbol("bar", ...)), ...)]
    """
    return _Parser(source).module()


def parse_comments(source: str) -> list[AnyComment]:
    """Extract line and block comments in source order.

    The scan only tells comments, string literals, escaped symbol characters
    and other characters apart, so a ``;`` inside a string literal, after a
    backslash, or in a header directive is never taken for a comment. It does
    not validate the rest of the grammar; an unclosed block comment runs to
    the end of the source.

    Args:
        source: Complete source text.

    Returns:
        list[AnyComment]: Comments ordered by position.

    Examples:
        parse_comments(";foo\\n")  # [Comment("foo", Position(0, 4))]
    """
    scanner = _Parser(source)
    scanner.hash_directives()
    offset = scanner.offset
    comments: list[AnyComment] = []

    while offset < len(source):
        character = source[offset]
        if character == COMMENT_MARKER:
            end = source.find("\n", offset)
            if end < 0:
                end = len(source)
            comments.append(Comment(source[offset + 1 : end], Position(offset, end)))
            offset = end
        elif source.startswith(BLOCK_COMMENT_START, offset):
            end = _block_comment_end(source, offset)
            if end is None:
                end = len(source)
                value = source[offset + len(BLOCK_COMMENT_START) :]
            else:
                value = source[offset + len(BLOCK_COMMENT_START) : end - len(BLOCK_COMMENT_END)]
            comments.append(BlockComment(value, Position(offset, end)))
            offset = end
        elif character == '"':
            offset = _skip_string(source, offset)
        elif character == SYMBOL_ESCAPE:
            offset += 2
        else:
            offset += 1

    return comments


def _skip_string(source: str, offset: int) -> int:
    offset += 1
    while offset < len(source):
        character = source[offset]
        if character == "\\":
            offset += 2
        elif character == '"':
            return offset + 1
        else:
            offset += 1
    return len(source)


def parse_hash_directives(source: str) -> list[HashDirective]:
    """Extract ``#!`` and ``#lang`` header lines from the start of the source."""
    return _Parser(source).hash_directives()


def parse_source(source: str) -> Module:
    """Parse expressions, comments and header directives in one call.

    Args:
        source: Complete source text.

    Returns:
        Module: Everything the formatter needs, including the position map.

    Raises:
        ParseError: If the text does not match the grammar.
    """
    return Module(
        source=source,
        expressions=parse(source),
        comments=parse_comments(source),
        hash_directives=parse_hash_directives(source),
        position_map=PositionMap(source),
    )
