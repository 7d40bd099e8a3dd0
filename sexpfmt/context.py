"""Ordered, one-shot comment buffer used while compiling a module."""

from __future__ import annotations

from collections.abc import Sequence

from .models import AnyComment
from .position import Position, PositionMap


class Context:
    """Hand out buffered comments by line, each exactly once.

    Comments must be supplied in source order, as `parse_comments` returns
    them. Callers must query non-decreasing line indices, which holds when the
    syntax tree is walked left to right; out-of-order queries attach comments
    to the wrong expression but never fail.

    Args:
        comments: Comments ordered by position.
        position_map: Line index of the source the comments come from.
    """

    def __init__(self, comments: Sequence[AnyComment], position_map: PositionMap):
        self._comments = tuple(comments)
        self._position_map = position_map
        self._cursor = 0

    @property
    def position_map(self) -> PositionMap:
        return self._position_map

    def start_line(self, position: Position) -> int:
        """Return the line of the first character of `position`."""
        return self._line(position.start)

    def end_line(self, position: Position) -> int:
        """Return the line of the last character of `position`."""
        return self._line(max(position.start, position.end - 1))

    def drain_comments_before(self, line_index: int) -> list[AnyComment]:
        """Remove and return the buffered comments starting before `line_index`."""
        end = self._scan(line_index)
        comments = list(self._comments[self._cursor : end])
        self._cursor = end
        return comments

    def drain_current_comment(self, line_index: int) -> list[AnyComment]:
        """Remove and return the buffered comments starting on or before `line_index`."""
        return self.drain_comments_before(line_index + 1)

    def peek_comments_before(self, line_index: int) -> list[AnyComment]:
        return list(self._comments[self._cursor : self._scan(line_index)])

    def last_drained_line(self) -> int | None:
        """Return the last line of the most recently drained comment, if any."""
        if self._cursor == 0:
            return None
        return self.end_line(self._comments[self._cursor - 1].position)

    def drain_remaining(self) -> list[AnyComment]:
        comments = list(self._comments[self._cursor :])
        self._cursor = len(self._comments)
        return comments

    def _scan(self, line_index: int) -> int:
        end = self._cursor
        while end < len(self._comments) and (
            self.start_line(self._comments[end].position) < line_index
        ):
            end += 1
        return end

    def _line(self, offset: int) -> int:
        line = self._position_map.line_index(offset)
        # Token offsets always fall inside a line; the sentinel guards the end.
        return len(self._position_map.lines) - 1 if line is None else line
