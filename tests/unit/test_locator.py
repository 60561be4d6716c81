"""Unit tests for outline block detection, removal and placement."""

from tocsmith.models.block import OutlineBlock
from tocsmith.outline.locator import (
    find_block_in_content,
    find_outline_block,
    is_link_item,
    is_outline_line,
    is_plain_item,
    remove_outline_block,
)
from tocsmith.outline.placement import choose_position, insert_outline


class TestLineShapes:
    """Test outline line classification."""

    def test_link_items(self):
        """Test wiki and markdown link items at both indents."""
        assert is_link_item("- [[#Intro|Intro]]")
        assert is_link_item("  - [[#Intro|Intro]]")
        assert is_link_item("- [Intro](#intro)")
        assert is_link_item("  - [Intro](#intro)")
        assert not is_link_item("    - [[#Intro|Intro]]")
        assert not is_link_item("- [[Other Page]]")

    def test_plain_items(self):
        """Test plain text items."""
        assert is_plain_item("- Intro")
        assert is_plain_item("  - Intro")
        assert not is_plain_item("-Intro")
        assert not is_plain_item("- [[#Intro|Intro]]")

    def test_short_and_escaped_plain_items(self):
        """Test one-character labels and escaped leading brackets."""
        assert is_plain_item("- A")
        assert is_plain_item("- \\[x] Done")
        assert not is_plain_item("- [x] Done")

    def test_placeholder_is_outline_line(self):
        """Test the empty outline placeholder counts as outline content."""
        assert is_outline_line("*No headings found*")


class TestFindOutlineBlock:
    """Test find_outline_block."""

    def test_finds_block_with_title(self):
        """Test a standard generated block."""
        lines = ["# T", "", "## Table of Contents", "", "- [[#A|A]]", "  - [[#B|B]]", "", "## A"]
        assert find_outline_block(lines, titles=["Table of Contents"]) == OutlineBlock(2, 5)

    def test_block_ends_at_blank_line(self):
        """Test that a list after a blank line is not swallowed."""
        lines = ["## Table of Contents", "", "- [[#A|A]]", "", "- unrelated", "paragraph"]
        assert find_outline_block(lines) == OutlineBlock(0, 2)

    def test_block_ends_at_heading(self):
        """Test that a following heading ends the block."""
        lines = ["## Contents", "- [[#A|A]]", "## A", "- item"]
        assert find_outline_block(lines) == OutlineBlock(0, 1)

    def test_renamed_title_found_by_links(self):
        """Test that same-document links identify a block after a title change."""
        lines = ["## My Map", "", "- [[#A|A]]", "- [[#B|B]]"]
        block = find_outline_block(lines, titles=["Table of Contents"], heading_texts=["A", "B"])
        assert block == OutlineBlock(0, 3)

    def test_plain_items_matching_headings(self):
        """Test plain outlines qualify when most items name headings."""
        lines = ["## Sections", "", "- Intro", "- Usage", "", "## Intro", "", "## Usage"]
        block = find_outline_block(
            lines,
            titles=["Table of Contents"],
            heading_texts=["Sections", "Intro", "Usage"],
        )
        assert block == OutlineBlock(0, 3)

    def test_unrelated_list_section_ignored(self):
        """Test that an ordinary section with a bullet list is left alone."""
        lines = ["## Shopping", "", "- eggs", "- milk", "", "## Notes"]
        block = find_outline_block(
            lines,
            titles=["Table of Contents"],
            heading_texts=["Shopping", "Notes"],
        )
        assert block is None

    def test_structural_mode_accepts_any_confirmed_candidate(self):
        """Test that without hints any list-shaped section is a block."""
        lines = ["## Shopping", "", "- eggs", "- milk"]
        assert find_outline_block(lines) == OutlineBlock(0, 3)

    def test_placeholder_block(self):
        """Test a block holding only the placeholder."""
        lines = ["## Contents", "", "*No headings found*", "", "text"]
        assert find_outline_block(lines, titles=["Contents"]) == OutlineBlock(0, 2)

    def test_paragraph_before_list_is_not_a_block(self):
        """Test that prose right after the heading ends the lookahead."""
        lines = ["## Table of Contents", "Some prose", "- [[#A|A]]"]
        assert find_outline_block(lines) is None

    def test_list_beyond_lookahead_window(self):
        """Test the lookahead limit."""
        lines = ["## Table of Contents"] + [""] * 10 + ["- [[#A|A]]"]
        assert find_outline_block(lines) is None

    def test_start_index(self):
        """Test that scanning begins at start_index."""
        lines = ["## Contents", "- [[#A|A]]", "", "## Contents", "- [[#B|B]]"]
        assert find_outline_block(lines, start_index=1) == OutlineBlock(3, 4)

    def test_level_three_heading_is_not_a_candidate(self):
        """Test that only level 2 headings start blocks."""
        assert find_outline_block(["### Contents", "- [[#A|A]]"]) is None

    def test_find_block_in_content(self):
        """Test locating in full text."""
        content = "---\na: 1\n---\n## Contents\n\n- [[#A|A]]\n"
        assert find_block_in_content(content, start_index=3) == OutlineBlock(3, 5)


class TestRemoveOutlineBlock:
    """Test remove_outline_block."""

    def test_removes_one_separator_each_side(self):
        """Test that exactly one blank line on each side goes with the block."""
        lines = ["# T", "", "", "## Contents", "- [[#A|A]]", "", "", "## A"]
        remaining, removed = remove_outline_block(lines, OutlineBlock(3, 4))
        assert remaining == ["# T", "", "", "## A"]
        assert removed == OutlineBlock(2, 5)

    def test_block_at_document_edges(self):
        """Test removal at the very start and end."""
        remaining, removed = remove_outline_block(["## Contents", "- [[#A|A]]"], OutlineBlock(0, 1))
        assert remaining == []
        assert removed == OutlineBlock(0, 1)


class TestPlacement:
    """Test choose_position and insert_outline."""

    def test_no_title_heading_inserts_first(self):
        """Test insertion at the top of the body without a level 1 heading."""
        assert choose_position(["## A", "text"], 0, []) == 0

    def test_after_last_title_heading(self):
        """Test insertion right after the last level 1 heading."""
        body = ["# A", "x", "# B", "y"]
        assert choose_position(body, 0, [0, 2]) == 3

    def test_header_span_subtracted(self):
        """Test document line numbers are mapped into the body."""
        body = ["# A", "x"]
        assert choose_position(body, 3, [3]) == 1

    def test_removed_block_above_title_shifts_position(self):
        """Test that removing an old outline above the title moves the target up."""
        body = ["", "x", "", "", "", "# Title", "after"]
        # Title was at line 10 before the five-line block at 0-4 was removed
        assert choose_position(body, 0, [10], OutlineBlock(0, 4)) == 6

    def test_removed_block_below_title_does_not_shift(self):
        """Test that a block below the title leaves the position alone."""
        body = ["# Title", "", "## A"]
        assert choose_position(body, 0, [0], OutlineBlock(1, 5)) == 1

    def test_position_clamped_to_body(self):
        """Test clamping when heading lines are stale."""
        assert choose_position(["# A", "x"], 0, [10]) == 2

    def test_insert_outline_separators(self):
        """Test the outline is spliced with blank lines on both sides."""
        result = insert_outline(["# T", "## A"], 1, "## Contents\n\n- [[#A|A]]")
        assert result == ["# T", "", "## Contents", "", "- [[#A|A]]", "", "## A"]
