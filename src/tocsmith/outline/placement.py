"""Choosing where the outline goes in the document body."""

from typing import Optional

import structlog

from tocsmith.models.block import OutlineBlock

logger = structlog.get_logger()


def choose_position(
    body_lines: list[str],
    header_line_span: int,
    level1_lines: list[int],
    removed: Optional[OutlineBlock] = None,
) -> int:
    """
    Pick the body line the outline is inserted at.

    Without a level 1 heading the outline goes first in the body. Otherwise
    it goes right after the last level 1 heading, so a document's title stays
    visually first.

    Args:
        body_lines: Header-stripped body lines, old outline already removed
        header_line_span: Lines occupied by the metadata header
        level1_lines: Document line numbers of level 1 headings (header included)
        removed: Body range of the old outline that was removed, if any

    Returns:
        Insertion index into body_lines
    """
    if not level1_lines:
        return 0

    last_title = max(level1_lines) - header_line_span
    if removed is not None and removed.end < last_title:
        # The heading moved up when the old outline above it was removed
        last_title -= removed.line_count

    position = last_title + 1
    clamped = max(0, min(position, len(body_lines)))
    if clamped != position:
        logger.debug("insert_position_clamped", requested=position, clamped=clamped)
    return clamped


def insert_outline(body_lines: list[str], position: int, outline: str) -> list[str]:
    """Splice the outline with a blank separator line on each side."""
    return body_lines[:position] + ["", *outline.split("\n"), ""] + body_lines[position:]
