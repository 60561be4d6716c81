"""Minimal in-place replacement of the outline in a live editor buffer.

Rewriting a whole buffer disturbs editor state (undo history, scroll
position, external-change prompts). When the old and new documents differ
only in the outline block and the header, only those line ranges are
replaced and the cursor is repaired to match.
"""

from typing import Iterable, Optional

import structlog

from tocsmith.editor.buffer import Editor
from tocsmith.models.block import Cursor, OutlineBlock
from tocsmith.outline.header import header_line_span
from tocsmith.outline.locator import find_outline_block
from tocsmith.services.exceptions import StructuralReplacementFailed

logger = structlog.get_logger()


def repair_cursor(
    cursor: Cursor,
    old: OutlineBlock,
    new: OutlineBlock,
    header_span: int,
    header_delta: int = 0,
) -> Cursor:
    """
    Map a cursor from the old document onto the new one.

    After the old block: shifted by the change in block (and header) size.
    Inside the old block: moved to the start of the new block.
    Before it: left alone, apart from a header size change above it.
    """
    if cursor.line > old.end:
        return Cursor(cursor.line + (new.line_count - old.line_count) + header_delta, cursor.ch)
    if cursor.line >= old.start:
        return Cursor(old.start + header_delta, 0)
    if cursor.line >= header_span:
        return Cursor(cursor.line + header_delta, cursor.ch)
    return cursor


def replace_outline_in_editor(
    editor: Editor,
    original: str,
    updated: str,
    cursor: Cursor,
    titles: Iterable[str] = (),
    heading_texts: Optional[Iterable[str]] = None,
) -> None:
    """
    Swap the old outline block for the new one with range replacements.

    Args:
        editor: Buffer currently holding ``original``
        original: Buffer text before regeneration
        updated: Fully assembled replacement text
        cursor: Cursor position in ``original``
        titles: Outline titles for block detection
        heading_texts: Heading labels for block detection

    Raises:
        StructuralReplacementFailed: If the blocks cannot be located, or the
            documents differ outside the outline block and header
    """
    heading_texts = list(heading_texts) if heading_texts is not None else None
    original_lines = original.split("\n")
    updated_lines = updated.split("\n")
    original_span = header_line_span(original)
    updated_span = header_line_span(updated)

    old = find_outline_block(original_lines, original_span, titles, heading_texts)
    new = find_outline_block(updated_lines, updated_span, titles, heading_texts)
    if old is None or new is None:
        raise StructuralReplacementFailed(
            f"Outline block not found (old={old is not None}, new={new is not None})"
        )

    same_prefix = original_lines[original_span:old.start] == updated_lines[updated_span:new.start]
    same_suffix = original_lines[old.end + 1:] == updated_lines[new.end + 1:]
    if not (same_prefix and same_suffix):
        raise StructuralReplacementFailed("Document changed outside the outline block")

    block_text = "\n".join(updated_lines[new.start:new.end + 1])
    editor.replace_range(
        block_text,
        Cursor(old.start, 0),
        Cursor(old.end, len(original_lines[old.end])),
    )

    # Header sits above the block, so block coordinates were still valid above
    original_header = original_lines[:original_span]
    updated_header = updated_lines[:updated_span]
    if original_header != updated_header:
        editor.replace_range(
            "".join(f"{line}\n" for line in updated_header),
            Cursor(0, 0),
            Cursor(original_span, 0),
        )

    repaired = repair_cursor(cursor, old, new, original_span, updated_span - original_span)
    editor.set_cursor(repaired)

    logger.debug(
        "outline_replaced_in_place",
        old_start=old.start,
        old_end=old.end,
        new_lines=new.line_count,
        cursor_line=repaired.line,
    )


def apply_to_editor(
    editor: Editor,
    updated: str,
    titles: Iterable[str] = (),
    heading_texts: Optional[Iterable[str]] = None,
) -> bool:
    """
    Bring the editor buffer to ``updated`` with as small an edit as possible.

    Falls back to replacing the entire buffer, keeping the cursor on the same
    line and column when that line still exists.

    Returns:
        True if the outline was replaced in place, False on fallback
    """
    original = editor.get_value()
    if original == updated:
        return True

    cursor = editor.get_cursor()
    try:
        replace_outline_in_editor(editor, original, updated, cursor, titles, heading_texts)
        return True
    except StructuralReplacementFailed as e:
        logger.info("surgical_replacement_fallback", reason=str(e))

    editor.set_value(updated)
    if cursor.line < editor.line_count():
        line_length = len(editor.get_line(cursor.line))
        editor.set_cursor(Cursor(cursor.line, min(cursor.ch, line_length)))
    return False
