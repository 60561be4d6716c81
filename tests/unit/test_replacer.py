"""Unit tests for TextBuffer and in-place outline replacement."""

from datetime import datetime, timezone

import pytest

from tocsmith.editor.buffer import TextBuffer
from tocsmith.models.block import Cursor, OutlineBlock
from tocsmith.models.config import OutlineSettings
from tocsmith.outline.engine import locator_hints
from tocsmith.outline.replacer import apply_to_editor, repair_cursor, replace_outline_in_editor
from tocsmith.outline.scanner import MarkdownHeadingScanner
from tocsmith.services.exceptions import StructuralReplacementFailed


SAMPLE_NOTE = "# Title\n\n## Intro\n\ntext\n\n## Usage\n\n### Linux\n"
LATER = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)


def hints_for(content):
    return locator_hints(MarkdownHeadingScanner().headings(content), OutlineSettings())


class TestTextBuffer:
    """Test the in-memory editor buffer."""

    def test_replace_range_within_line(self):
        """Test a single-line replacement."""
        buffer = TextBuffer("# Title\nbody")
        buffer.replace_range("Heading", Cursor(0, 2), Cursor(0, 7))
        assert buffer.get_value() == "# Heading\nbody"

    def test_replace_range_across_lines(self):
        """Test a multi-line replacement."""
        buffer = TextBuffer("a\nb\nc\nd")
        buffer.replace_range("X", Cursor(1, 0), Cursor(2, 1))
        assert buffer.get_value() == "a\nX\nd"

    def test_reversed_range_rejected(self):
        """Test that end before start is an error."""
        buffer = TextBuffer("a\nb")
        with pytest.raises(ValueError):
            buffer.replace_range("X", Cursor(1, 0), Cursor(0, 0))

    def test_set_cursor_clamps(self):
        """Test cursor clamping to existing lines and columns."""
        buffer = TextBuffer("ab\ncdef")
        buffer.set_cursor(Cursor(9, 9))
        assert buffer.get_cursor() == Cursor(1, 4)

    def test_operations_recorded(self):
        """Test mutation history."""
        buffer = TextBuffer("a")
        buffer.replace_range("b", Cursor(0, 0), Cursor(0, 1))
        buffer.set_value("c")
        assert [op.kind for op in buffer.operations] == ["replace_range", "set_value"]

    def test_line_access(self):
        """Test line helpers."""
        buffer = TextBuffer("a\nb\n")
        assert buffer.line_count() == 3
        assert buffer.last_line() == 2
        assert buffer.get_line(1) == "b"
        assert buffer.get_line(7) == ""


class TestRepairCursor:
    """Test cursor mapping from old to new document."""

    def test_after_block_shifted(self):
        """Test shift by block size change."""
        cursor = repair_cursor(Cursor(20, 3), OutlineBlock(5, 9), OutlineBlock(5, 11), header_span=3)
        assert cursor == Cursor(22, 3)

    def test_inside_block_moves_to_start(self):
        """Test a cursor inside the old block lands on the new block start."""
        cursor = repair_cursor(Cursor(7, 4), OutlineBlock(5, 9), OutlineBlock(5, 6), header_span=3)
        assert cursor == Cursor(5, 0)

    def test_before_block_unchanged(self):
        """Test a cursor above the block stays put."""
        cursor = repair_cursor(Cursor(4, 1), OutlineBlock(5, 9), OutlineBlock(5, 9), header_span=3)
        assert cursor == Cursor(4, 1)

    def test_header_growth_shifts_body_lines(self):
        """Test a header size change moves body cursors but not header cursors."""
        old, new = OutlineBlock(5, 9), OutlineBlock(5, 9)
        assert repair_cursor(Cursor(4, 1), old, new, header_span=3, header_delta=1) == Cursor(5, 1)
        assert repair_cursor(Cursor(1, 1), old, new, header_span=3, header_delta=1) == Cursor(1, 1)


class TestReplaceOutlineInEditor:
    """Test surgical replacement."""

    def test_timestamp_refresh_is_two_range_edits(self, build):
        """Test that only the block and header ranges are replaced."""
        original = build(SAMPLE_NOTE).content
        updated = build(original, now=LATER).content
        buffer = TextBuffer(original, cursor=Cursor(14, 2))

        replace_outline_in_editor(buffer, original, updated, buffer.get_cursor(), **hints_for(original))

        assert buffer.get_value() == updated
        assert [op.kind for op in buffer.operations] == ["replace_range", "replace_range"]
        assert buffer.get_cursor() == Cursor(14, 2)

    def test_new_heading_shifts_cursor(self, build):
        """Test the cursor below a grown outline stays on the same text."""
        original = build(SAMPLE_NOTE).content + "\n## Extra\n"
        updated = build(original, now=LATER).content
        buffer = TextBuffer(original, cursor=Cursor(14, 2))
        assert buffer.get_line(14) == "text"

        replace_outline_in_editor(buffer, original, updated, buffer.get_cursor(), **hints_for(original))

        assert buffer.get_value() == updated
        assert buffer.get_line(buffer.get_cursor().line) == "text"
        assert buffer.get_cursor() == Cursor(15, 2)

    def test_cursor_inside_block(self, build):
        """Test a cursor on an outline item moves to the block start."""
        original = build(SAMPLE_NOTE).content
        updated = build(original, now=LATER).content
        buffer = TextBuffer(original, cursor=Cursor(7, 3))

        replace_outline_in_editor(buffer, original, updated, buffer.get_cursor(), **hints_for(original))

        assert buffer.get_cursor() == Cursor(5, 0)

    def test_missing_old_block_fails(self, build):
        """Test that a first generation cannot be done surgically."""
        updated = build(SAMPLE_NOTE).content
        buffer = TextBuffer(SAMPLE_NOTE)
        with pytest.raises(StructuralReplacementFailed):
            replace_outline_in_editor(buffer, SAMPLE_NOTE, updated, Cursor(0, 0), **hints_for(SAMPLE_NOTE))

    def test_change_outside_block_fails(self, build):
        """Test that differing text outside the block is refused."""
        original = build(SAMPLE_NOTE).content
        updated = build(original, now=LATER).content.replace("text", "changed")
        buffer = TextBuffer(original)
        with pytest.raises(StructuralReplacementFailed):
            replace_outline_in_editor(buffer, original, updated, Cursor(0, 0), **hints_for(original))
        assert buffer.get_value() == original


class TestApplyToEditor:
    """Test apply_to_editor with fallback."""

    def test_surgical_path(self, build):
        """Test that an existing outline is replaced in place."""
        original = build(SAMPLE_NOTE).content
        updated = build(original, now=LATER).content
        buffer = TextBuffer(original)

        assert apply_to_editor(buffer, updated, **hints_for(original))
        assert buffer.get_value() == updated
        assert all(op.kind == "replace_range" for op in buffer.operations)

    def test_fallback_replaces_everything(self, build):
        """Test full replacement when no previous outline exists."""
        updated = build(SAMPLE_NOTE).content
        buffer = TextBuffer(SAMPLE_NOTE, cursor=Cursor(2, 50))

        assert not apply_to_editor(buffer, updated, **hints_for(SAMPLE_NOTE))
        assert buffer.get_value() == updated
        assert [op.kind for op in buffer.operations] == ["set_value"]
        assert buffer.get_cursor() == Cursor(2, len(buffer.get_line(2)))

    def test_identical_text_untouched(self):
        """Test no edit when nothing changed."""
        buffer = TextBuffer("same")
        assert apply_to_editor(buffer, "same")
        assert buffer.operations == []
