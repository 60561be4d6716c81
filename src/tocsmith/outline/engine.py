"""Outline engine: assemble the updated document text.

Pipeline for one call (no I/O, no state kept between calls):

    content  -> split header/body -> find old outline
    headings -> drop those inside the old outline -> filter -> render
    body     -> remove old outline -> choose position -> insert outline
             -> stamp marker -> serialize
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import structlog

from tocsmith.models.block import OutlineBlock
from tocsmith.models.config import OutlineSettings
from tocsmith.models.heading import Heading
from tocsmith.models.marker import MARKER_KEY, OutlineMarker, has_marker
from tocsmith.outline.filter import filter_headings
from tocsmith.outline.header import merge_marker, parse_header, serialize_header
from tocsmith.outline.locator import find_outline_block, remove_outline_block
from tocsmith.outline.placement import choose_position, insert_outline
from tocsmith.outline.renderer import render_outline
from tocsmith.outline.slug import link_label, strip_heading_for_link

logger = structlog.get_logger()


@dataclass
class EngineResult:
    """Outcome of one engine pass.

    Attributes:
        content: Full updated document text
        outline: Rendered outline block
        headings: Headings listed in the outline
        removed_block: Body range of the previous outline, if one was found
    """

    content: str
    outline: str
    headings: list[Heading]
    removed_block: Optional[OutlineBlock] = None


def locator_hints(headings: list[Heading], settings: OutlineSettings) -> dict:
    """Keyword arguments that make block detection recognize our own output."""
    return {
        "titles": [settings.title],
        "heading_texts": [link_label(heading.text) for heading in headings],
    }


def document_has_marker(content: str) -> bool:
    """Whether the document's header carries the outline marker."""
    header, _ = parse_header(content)
    return has_marker(header.get(MARKER_KEY))


class OutlineEngine:
    """
    Stateless outline synthesis and placement.

    Example:
        >>> engine = OutlineEngine()
        >>> result = engine.build(text, headings, OutlineSettings())
        >>> result.content  # document with a fresh outline and marker
    """

    def __init__(self, slugify: Callable[[str], str] = strip_heading_for_link):
        self.slugify = slugify

    def build(
        self,
        content: str,
        headings: list[Heading],
        settings: OutlineSettings,
        header_span: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> EngineResult:
        """
        Produce the document text with an up-to-date outline.

        Args:
            content: Current document text
            headings: All document headings (whole-document line numbers)
            settings: Outline settings
            header_span: Header line span if the host already knows it
            now: Timestamp for the marker (defaults to the current time)

        Returns:
            EngineResult with the assembled text
        """
        header, body = parse_header(content)
        if header_span is None:
            header_span = header.line_span

        body_lines = body.split("\n")
        block = find_outline_block(body_lines, **locator_hints(headings, settings))

        candidates = headings
        removed = None
        if block is not None:
            # The old outline's own heading is never listed, whatever its title
            candidates = [h for h in headings if not block.contains(h.line - header_span)]
            body_lines, removed = remove_outline_block(body_lines, block)
            logger.debug(
                "previous_outline_removed",
                start=block.start + header_span,
                end=block.end + header_span,
            )

        selected = filter_headings(candidates, settings)
        outline = render_outline(selected, settings, self.slugify)

        level1_lines = [heading.line for heading in headings if heading.level == 1]
        position = choose_position(body_lines, header_span, level1_lines, removed)
        body_lines = insert_outline(body_lines, position, outline)

        fields = merge_marker(header.fields, OutlineMarker.stamp(now))
        new_content = serialize_header(fields, "\n".join(body_lines), header.preamble)

        logger.debug(
            "outline_assembled",
            items=len(selected),
            position=position + header_span,
            replaced=block is not None,
        )

        return EngineResult(
            content=new_content,
            outline=outline,
            headings=selected,
            removed_block=removed,
        )
