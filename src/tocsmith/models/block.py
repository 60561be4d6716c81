"""Line range and cursor value types."""

from dataclasses import dataclass


@dataclass(frozen=True)
class OutlineBlock:
    """Inclusive line range of an outline block (heading plus list lines)."""

    start: int
    end: int

    @property
    def line_count(self) -> int:
        return self.end - self.start + 1

    def contains(self, line: int) -> bool:
        return self.start <= line <= self.end


@dataclass(frozen=True)
class Cursor:
    """Editor cursor position (zero-based line and column)."""

    line: int
    ch: int = 0
