"""Structural detection of a previously generated outline block.

There is no hidden marker tying a block to the engine. A block is found by
shape: a level-2 heading followed, within a short lookahead window, by
outline-shaped list lines. Detection is deliberately conservative so that
ordinary sections with bullet lists are left alone, while the engine's own
output is still found after the outline title was renamed.

Accepted trade-off: a hand-written list that happens to have exactly the
outline's shape is treated as a managed outline and will be replaced.
"""

import re
from typing import Iterable, Optional

import structlog

from tocsmith.models.block import OutlineBlock
from tocsmith.outline.filter import OUTLINE_TITLES
from tocsmith.outline.renderer import EMPTY_OUTLINE_PLACEHOLDER

logger = structlog.get_logger()

LOOKAHEAD_LINES = 10

# Same-document link items, unindented or indented two spaces
LINK_ITEM_PATTERNS = (
    re.compile(r"^-\s+\[\[#.*\|.*\]\]$"),       # wiki links
    re.compile(r"^ {2}-\s+\[\[#.*\|.*\]\]$"),
    re.compile(r"^-\s+\[.*\]\(#.*\)$"),         # markdown links
    re.compile(r"^ {2}-\s+\[.*\]\(#.*\)$"),
)

# Plain text items
PLAIN_ITEM_PATTERNS = (
    re.compile(r"^-\s+[^[].*$"),
    re.compile(r"^ {2}-\s+[^[].*$"),
)

HEADING_LINE = re.compile(r"^\s{0,3}#{1,6}(\s|$)")
BULLET_LINE = re.compile(r"^\s*-(\s|$)")


def is_link_item(line: str) -> bool:
    line = line.rstrip()
    return any(pattern.match(line) for pattern in LINK_ITEM_PATTERNS)


def is_plain_item(line: str) -> bool:
    line = line.rstrip()
    return any(pattern.match(line) for pattern in PLAIN_ITEM_PATTERNS)


def is_placeholder(line: str) -> bool:
    return line.strip() == EMPTY_OUTLINE_PLACEHOLDER


def is_outline_line(line: str) -> bool:
    """Whether a line has one of the fixed outline item shapes."""
    return is_link_item(line) or is_plain_item(line) or is_placeholder(line)


def is_candidate_heading(line: str) -> bool:
    """Level-2 heading with a non-empty title."""
    stripped = line.strip()
    return stripped.startswith("## ") and len(stripped) > 3


def _confirming_line(lines: list[str], index: int) -> Optional[int]:
    """Index of the first outline-shaped line in the lookahead window."""
    limit = min(index + LOOKAHEAD_LINES, len(lines))

    for j in range(index + 1, limit):
        line = lines[j]
        if not line.strip():
            continue

        if is_outline_line(line):
            return j

        # Significant non-outline content ends the search
        stripped = line.strip()
        if stripped.startswith("#") or (not stripped.startswith("-") and not line.startswith(" ")):
            return None

    return None


def _run_end(lines: list[str], index: int) -> Optional[int]:
    """Last line of the contiguous list run below the heading at index."""
    k = index + 1
    while k < len(lines) and not lines[k].strip():
        k += 1

    end = None
    while k < len(lines):
        line = lines[k]
        if not line.strip() or HEADING_LINE.match(line):
            break
        if BULLET_LINE.match(line) or line.startswith(" ") or is_placeholder(line):
            end = k
            k += 1
        else:
            break

    return end


def _item_text(line: str) -> str:
    stripped = line.strip()
    text = stripped[1:].strip() if stripped.startswith("-") else stripped
    # Renderer escapes a leading bracket in plain labels
    return text[1:] if text.startswith("\\[") else text


def find_outline_block(
    lines: list[str],
    start_index: int = 0,
    titles: Iterable[str] = (),
    heading_texts: Optional[Iterable[str]] = None,
) -> Optional[OutlineBlock]:
    """
    Find the first outline block at or after start_index.

    With neither ``titles`` nor ``heading_texts`` every structurally
    confirmed candidate is accepted. Otherwise a confirmed candidate must
    also qualify: its title is one of ``titles`` or a common outline title;
    or it lists same-document links (or the empty placeholder); or, for
    plain items, at least half of its items name a heading in
    ``heading_texts``.

    Args:
        lines: Document lines
        start_index: First line to consider
        titles: Outline titles to recognize (e.g. the configured title)
        heading_texts: Labels of the document's headings

    Returns:
        Inclusive block range, or None
    """
    titles = {title.strip().casefold() for title in titles}
    known_headings = set(heading_texts) if heading_texts is not None else None
    structural_only = not titles and known_headings is None
    titles |= OUTLINE_TITLES

    for i in range(start_index, len(lines)):
        if not is_candidate_heading(lines[i]):
            continue

        confirming = _confirming_line(lines, i)
        if confirming is None:
            continue

        end = _run_end(lines, i)
        if end is None or confirming > end:
            continue

        block = OutlineBlock(start=i, end=end)
        if structural_only:
            return block

        title = lines[i].strip()[3:].strip()
        if title.casefold() in titles:
            return block

        confirming_line = lines[confirming]
        if is_link_item(confirming_line) or is_placeholder(confirming_line):
            return block

        if known_headings:
            items = [_item_text(line) for line in lines[i + 1:end + 1] if BULLET_LINE.match(line)]
            matched = sum(1 for item in items if item in known_headings)
            if items and matched * 2 >= len(items):
                return block

        logger.debug("outline_candidate_rejected", line=i, title=title)

    return None


def remove_outline_block(lines: list[str], block: OutlineBlock) -> tuple[list[str], OutlineBlock]:
    """
    Remove a block together with one blank separator line on each side.

    Args:
        lines: Document lines
        block: Block to remove

    Returns:
        (remaining lines, range actually removed)
    """
    start, end = block.start, block.end
    if start > 0 and not lines[start - 1].strip():
        start -= 1
    if end + 1 < len(lines) and not lines[end + 1].strip():
        end += 1

    return lines[:start] + lines[end + 1:], OutlineBlock(start=start, end=end)


def find_block_in_content(
    content: str,
    start_index: int = 0,
    titles: Iterable[str] = (),
    heading_texts: Optional[Iterable[str]] = None,
) -> Optional[OutlineBlock]:
    """Locate the outline block in full document text (line coordinates)."""
    return find_outline_block(content.split("\n"), start_index, titles, heading_texts)
