"""Live text buffer interface and an in-memory implementation.

The engine edits open documents through the ``Editor`` protocol: read the
text and cursor, replace a line/column range, or (as a last resort) replace
everything. ``TextBuffer`` implements it over a list of lines and records each
mutation, which is what undo history in a real editor would see.
"""

from dataclasses import dataclass, field
from typing import Protocol

from tocsmith.models.block import Cursor


class Editor(Protocol):
    """Capabilities the engine needs from a host editor."""

    def get_value(self) -> str: ...

    def set_value(self, text: str) -> None: ...

    def get_cursor(self) -> Cursor: ...

    def set_cursor(self, cursor: Cursor) -> None: ...

    def get_line(self, line: int) -> str: ...

    def line_count(self) -> int: ...

    def replace_range(self, text: str, start: Cursor, end: Cursor) -> None: ...


@dataclass
class EditOperation:
    """One recorded buffer mutation."""

    kind: str  # "replace_range" or "set_value"
    start: Cursor | None = None
    end: Cursor | None = None
    text: str = ""


@dataclass
class TextBuffer:
    """
    In-memory editor buffer.

    Example:
        >>> buffer = TextBuffer("# Title\\nbody")
        >>> buffer.replace_range("Heading", Cursor(0, 2), Cursor(0, 7))
        >>> buffer.get_value()
        '# Heading\\nbody'
    """

    text: str = ""
    cursor: Cursor = field(default_factory=lambda: Cursor(0, 0))
    operations: list[EditOperation] = field(default_factory=list)

    def get_value(self) -> str:
        return self.text

    def set_value(self, text: str) -> None:
        self.text = text
        self.cursor = Cursor(0, 0)
        self.operations.append(EditOperation(kind="set_value", text=text))

    def get_cursor(self) -> Cursor:
        return self.cursor

    def set_cursor(self, cursor: Cursor) -> None:
        last = self.line_count() - 1
        line = max(0, min(cursor.line, last))
        ch = max(0, min(cursor.ch, len(self.get_line(line))))
        self.cursor = Cursor(line, ch)

    def get_line(self, line: int) -> str:
        lines = self.text.split("\n")
        if 0 <= line < len(lines):
            return lines[line]
        return ""

    def line_count(self) -> int:
        return self.text.count("\n") + 1

    def last_line(self) -> int:
        return self.line_count() - 1

    def _offset(self, position: Cursor) -> int:
        lines = self.text.split("\n")
        if position.line >= len(lines):
            return len(self.text)
        offset = sum(len(line) + 1 for line in lines[:position.line])
        return offset + min(position.ch, len(lines[position.line]))

    def replace_range(self, text: str, start: Cursor, end: Cursor) -> None:
        begin, finish = self._offset(start), self._offset(end)
        if finish < begin:
            raise ValueError(f"Range end {end} precedes start {start}")
        self.text = self.text[:begin] + text + self.text[finish:]
        self.operations.append(EditOperation(kind="replace_range", start=start, end=end, text=text))
