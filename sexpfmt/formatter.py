"""Compile parsed modules into layout documents and format source files.

Layout follows the line structure of the original source rather than a target
width. A list stays on one line while all of its elements start on the line of
its opening parenthesis; from the first element on a later line onwards,
elements are placed one per line, one level deeper. Blank lines between
neighbouring items collapse to a single blank line.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from itertools import takewhile
from pathlib import Path

from .config import FormatterConfig, normalize_config, validate_config
from .context import Context
from .document import (
    EMPTY,
    Document,
    flatten,
    force_break,
    hard_line,
    indent,
    line,
    line_suffix,
    render,
    sequence,
    text,
)
from .exceptions import ParseError
from .filesystem import (
    collect_file_stat,
    enforce_file_size,
    get_max_file_size,
    safe_read,
    write_atomically,
)
from .models import AnyComment, Expression, HashDirective, List, Quote, String
from .parser import parse_source
from .position import Position, PositionMap


def compile_module(
    expressions: Sequence[Expression],
    comments: Sequence[AnyComment],
    position_map: PositionMap,
    hash_directives: Sequence[HashDirective] = (),
) -> Document:
    """Compile a module into a layout document.

    Args:
        expressions: Top-level expressions in source order.
        comments: Comments in source order, as returned by `parse_comments`.
        position_map: Line index of the parsed source.
        hash_directives: Header lines reproduced verbatim before everything else.

    Returns:
        Document: Layout tree ending with a newline, or an empty document when
            the module holds nothing.
    """
    context = Context(comments, position_map)
    documents: list[Document] = []

    if hash_directives:
        documents.append(
            _compile_lines(
                [(directive.value, directive.position) for directive in hash_directives],
                _first_item_line(expressions, context),
                context,
            )
        )

    if expressions:
        documents.extend([compile_expressions(expressions, context), hard_line()])

    remaining = context.drain_remaining()
    if remaining:
        if expressions:
            documents.append(hard_line())
        documents.append(_compile_block_comments(remaining, None, context))

    return sequence(*documents)


def compile_expressions(expressions: Sequence[Expression], context: Context) -> Document:
    """Lay out sibling expressions separated by soft line breaks.

    One extra break is inserted where the source had at least one blank line
    between two siblings, or between a sibling and the comments leading the
    next one.
    """
    documents: list[Document] = []

    for index, expression in enumerate(expressions):
        if index > 0:
            documents.append(line())
            if _has_blank_line(expressions[index - 1], expression, context):
                documents.append(line())
        documents.append(compile_expression(expression, context))

    return sequence(*documents)


def compile_expression(expression: Expression, context: Context) -> Document:
    """Compile an expression with the comments attached to it.

    Comments on lines before the expression become a block above it; comments
    on its first line become line suffixes.
    """
    line_index = context.start_line(expression.position)

    leading = _compile_block_comments(
        context.drain_comments_before(line_index), line_index, context
    )
    body = _compile_body(expression, context)
    trailing = _compile_suffix_comments(context.drain_current_comment(line_index))

    return sequence(leading, body, trailing)


def _compile_body(expression: Expression, context: Context) -> Document:
    if isinstance(expression, List):
        return _compile_list(expression, context)
    if isinstance(expression, Quote):
        return _compile_quote(expression, context)
    if isinstance(expression, String):
        return text(f'"{expression.value}"')
    return text(expression.value)


def _compile_quote(expression: Quote, context: Context) -> Document:
    sign_line = context.start_line(expression.position)
    inner_line = context.start_line(expression.inner.position)

    if inner_line != sign_line and context.peek_comments_before(inner_line):
        # Comments between a sign and its expression keep their own lines.
        return sequence(
            expression.sign,
            _compile_suffix_comments(context.drain_current_comment(sign_line)),
            hard_line(),
            compile_expression(expression.inner, context),
        )
    if inner_line == sign_line and isinstance(expression.inner, String):
        # One text, so a multi-line string never separates from its sign.
        return text(f'{expression.sign}"{expression.inner.value}"')
    return sequence(expression.sign, compile_expression(expression.inner, context))


def _compile_list(expression: List, context: Context) -> Document:
    first_line = context.start_line(expression.position)
    head = list(
        takewhile(
            lambda child: context.start_line(child.position) == first_line,
            expression.children,
        )
    )
    tail = expression.children[len(head) :]

    documents: list[Document] = [text(expression.open), compile_expressions(head, context)]

    if tail:
        separator: list[Document] = [line()]
        if head and _has_blank_line(head[-1], tail[0], context):
            separator.append(line())
        documents.append(
            force_break(indent(sequence(*separator, compile_expressions(tail, context))))
        )

    documents.append(text(expression.close))
    return flatten(sequence(*documents))


def _compile_block_comments(
    comments: Sequence[AnyComment], boundary_line: int | None, context: Context
) -> Document:
    return _compile_lines(
        [(comment.text, comment.position) for comment in comments],
        boundary_line,
        context,
    )


def _compile_lines(
    lines: Sequence[tuple[str, Position]], boundary_line: int | None, context: Context
) -> Document:
    """Emit each line followed by a newline, keeping one blank line where the source had any.

    Args:
        lines: Text of each line with the source position it came from.
        boundary_line: Line of the item following the block, or None at the
            end of the output.
        context: Compilation context used to resolve line indices.
    """
    if not lines:
        return EMPTY

    documents: list[Document] = []

    for index, (value, position) in enumerate(lines):
        documents.extend([text(value), hard_line()])

        if index + 1 < len(lines):
            next_line: int | None = context.start_line(lines[index + 1][1])
        else:
            next_line = boundary_line

        if next_line is not None and next_line - context.end_line(position) > 1:
            documents.append(hard_line())

    return sequence(*documents)


def _compile_suffix_comments(comments: Sequence[AnyComment]) -> Document:
    if not comments:
        return EMPTY
    return sequence(*(line_suffix(" " + comment.text) for comment in comments))


def _has_blank_line(previous: Expression, following: Expression, context: Context) -> bool:
    # A multi-line block comment after `previous` extends its last line.
    end_line = context.end_line(previous.position)
    drained_line = context.last_drained_line()
    if drained_line is not None:
        end_line = max(end_line, drained_line)
    return _leading_line(following, context) - end_line > 1


def _leading_line(expression: Expression, context: Context) -> int:
    """Return the first line of an expression including the comments that will lead it."""
    line_index = context.start_line(expression.position)
    pending = context.peek_comments_before(line_index)
    if pending:
        return context.start_line(pending[0].position)
    return line_index


def _first_item_line(expressions: Sequence[Expression], context: Context) -> int | None:
    if expressions:
        return _leading_line(expressions[0], context)

    pending = context.peek_comments_before(len(context.position_map.lines))
    if pending:
        return context.start_line(pending[0].position)
    return None


def format_module(
    expressions: Sequence[Expression],
    comments: Sequence[AnyComment],
    position_map: PositionMap,
    *,
    hash_directives: Sequence[HashDirective] = (),
    config: FormatterConfig | None = None,
) -> str:
    """Format parsed expressions and their comments into canonical text.

    Args:
        expressions: Top-level expressions in source order.
        comments: Comments in source order.
        position_map: Line index of the parsed source.
        hash_directives: Header lines reproduced verbatim at the top.
        config: Formatting options. Defaults to a new `FormatterConfig`.

    Returns:
        str: Formatted text.

    Raises:
        ConfigError: If the configuration fails validation.

    Examples:
        module = parse_source("(foo\\nbar)")
        format_module(module.expressions, module.comments, module.position_map)
        # "(foo\\n  bar)\\n"
    """
    config = normalize_config(config or FormatterConfig())
    validate_config(config)

    document = compile_module(expressions, comments, position_map, hash_directives)
    return render(document, " " * config.indent_width)


def format_source(source: str, config: FormatterConfig | None = None) -> str:
    """Parse and format source text.

    Raises:
        ParseError: If the source does not match the grammar.
        ConfigError: If the configuration fails validation.

    Examples:
        format_source("(foo bar) ;baz")  # "(foo bar) ;baz\\n"
    """
    module = parse_source(source)
    return format_module(
        module.expressions,
        module.comments,
        module.position_map,
        hash_directives=module.hash_directives,
        config=config,
    )


class FormatFileError(Exception):
    """Raised when formatting a source file fails."""


def check_file(filepath: Path, config: FormatterConfig | None = None) -> bool:
    """Check whether a file is already formatted.

    Args:
        filepath: Path to the source file.
        config: Formatting options; defaults to a new `FormatterConfig`.

    Returns:
        bool: True when formatting would not change the file.

    Raises:
        FormatFileError: If the file cannot be read or parsed.
    """
    config = config or FormatterConfig()
    source, _ = _read_source(filepath, config)
    return _format_text(filepath, source, config) == source


def format_file(filepath: Path, config: FormatterConfig | None = None) -> bool:
    """Format a file in place.

    Files that are already formatted are left untouched.

    Args:
        filepath: Path to the source file.
        config: Formatting options; defaults to a new `FormatterConfig`.

    Returns:
        bool: True when the file was rewritten.

    Raises:
        FormatFileError: If the file cannot be read, parsed, or written, or if
            it changed while being formatted.

    Examples:
        format_file(Path("main.scm"), FormatterConfig(indent_width=4))
    """
    config = config or FormatterConfig()
    source, initial_stat = _read_source(filepath, config)
    formatted = _format_text(filepath, source, config)

    if formatted == source:
        return False

    try:
        write_atomically(filepath, formatted, initial_stat)
    except IOError as error:
        raise FormatFileError(str(error)) from error
    return True


def _read_source(filepath: Path, config: FormatterConfig) -> tuple[str, os.stat_result]:
    try:
        max_file_size = get_max_file_size(default=config.max_file_size)
    except ValueError as error:
        raise FormatFileError(str(error)) from error

    try:
        initial_stat = collect_file_stat(filepath)
        enforce_file_size(initial_stat, max_file_size, filepath)
        with safe_read(filepath) as file:
            source = file.read()
    except UnicodeDecodeError as error:
        error_message = f"Invalid UTF-8 sequence in {filepath}: {error}"
        raise FormatFileError(error_message) from error
    except IOError as error:
        raise FormatFileError(str(error)) from error

    return source, initial_stat


def _format_text(filepath: Path, source: str, config: FormatterConfig) -> str:
    try:
        return format_source(source, config)
    except ParseError as error:
        raise FormatFileError(f"{filepath}: {error.describe(source)}") from error
