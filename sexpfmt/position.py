"""Source positions and offset-to-line mapping."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
    """Half-open span ``[start, end)`` of offsets into a source string.

    Attributes:
        start: Offset of the first character of the token.
        end: Offset just past the last character of the token.
    """

    start: int
    end: int


class PositionMap:
    """Map source offsets to 0-based line and column indices.

    Line starts are recorded once when the map is built. When the source does
    not end with a newline, the source length is appended as a sentinel so the
    last line has an upper bound.

    Examples:
        PositionMap("foo\\nbar\\n").line_index(5)  # 1
        PositionMap("foo").line_index(3)  # None
    """

    def __init__(self, source: str):
        lines = [0]
        for index, character in enumerate(source):
            if character == "\n":
                lines.append(index + 1)

        if len(source) > lines[-1]:
            lines.append(len(source))

        self._lines = tuple(lines)

    @property
    def lines(self) -> tuple[int, ...]:
        return self._lines

    def line_index(self, offset: int) -> int | None:
        """Return the index of the line containing `offset`.

        Args:
            offset: Zero-based offset into the source.

        Returns:
            int | None: Line index, or None when no line covers the offset.
        """
        line = bisect_right(self._lines, offset) - 1

        if line < 0 or line >= len(self._lines) - 1:
            return None
        return line

    def column_index(self, offset: int) -> int | None:
        line = self.line_index(offset)
        if line is None:
            return None
        return offset - self._lines[line]

    def line_range(self, offset: int) -> range | None:
        """Return the half-open offset range of the line containing `offset`."""
        line = self.line_index(offset)
        if line is None:
            return None
        return range(self._lines[line], self._lines[line + 1])

    def line_text(self, source: str, offset: int) -> str:
        """Return the text of the line containing `offset` without trailing whitespace."""
        line_range = self.line_range(offset)
        if line_range is None:
            return ""
        return source[line_range.start : line_range.stop].rstrip()
