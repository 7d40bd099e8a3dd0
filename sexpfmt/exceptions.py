"""Package-specific exception types."""

from __future__ import annotations

from .position import PositionMap


class ParseError(ValueError):
    """Raised when source text does not match the grammar.

    Args:
        message: Human-readable description of the failure.
        offset: Zero-based offset of the first conflicting character.
        expected: Literal character the grammar expected, if any.
        context: Grammar production being parsed (``"list"``, ``"string"``...).
    """

    def __init__(
        self,
        message: str,
        offset: int,
        expected: str | None = None,
        context: str | None = None,
    ):
        self.message = message
        self.offset = offset
        self.expected = expected
        self.context = context
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        message = self.message
        if self.expected is not None:
            message += f": expected {self.expected!r}"
        if self.context is not None:
            message += f" in {self.context}"
        return message

    def describe(self, source: str, position_map: PositionMap | None = None) -> str:
        """Render the error with a 1-based line, column, and the offending line.

        Args:
            source: Source text the error was raised for.
            position_map: Index built from `source`; created when omitted.

        Returns:
            str: Message such as ``"failed to parse at line 1 and column 5: (foo"``.
        """
        position_map = position_map or PositionMap(source)
        line = position_map.line_index(self.offset)
        column = position_map.column_index(self.offset)

        if line is None or column is None:
            return str(self)

        return (
            f"{self} at line {line + 1} and column {column + 1}: "
            f"{position_map.line_text(source, self.offset)}"
        )
