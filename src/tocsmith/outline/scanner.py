"""Heading providers.

Editors usually keep a structural cache of a document's headings; the engine
takes headings from such a provider instead of re-parsing the text. When no
host cache exists, ``MarkdownHeadingScanner`` fills the role with a line
scanner.
"""

import re
from typing import Optional, Protocol

from tocsmith.models.heading import Heading
from tocsmith.outline.header import header_line_span

ATX_HEADING = re.compile(r"^ {0,3}(#{1,6})[ \t]+(.+?)[ \t]*$")
EMPTY_ATX_HEADING = re.compile(r"^ {0,3}#{1,6}[ \t]*$")
CLOSING_HASHES = re.compile(r"[ \t]+#+$")
FENCE = re.compile(r"^ {0,3}(`{3,}|~{3,})")


class HeadingProvider(Protocol):
    """Read-only source of a document's heading structure."""

    def headings(self, content: str) -> list[Heading]:
        """All headings in document order, with whole-document line numbers."""
        ...

    def header_line_span(self, content: str) -> Optional[int]:
        """Lines occupied by the metadata header, or None if unknown."""
        ...


class MarkdownHeadingScanner:
    """
    Extract ATX headings from markdown text.

    Skips the metadata header and fenced code blocks. Setext headings are
    not recognized.

    Example:
        >>> scanner = MarkdownHeadingScanner()
        >>> [h.text for h in scanner.headings("# Title\\n## Part")]
        ['Title', 'Part']
    """

    def header_line_span(self, content: str) -> Optional[int]:
        return header_line_span(content)

    def headings(self, content: str) -> list[Heading]:
        lines = content.split("\n")
        start = self.header_line_span(content) or 0

        headings = []
        fence: Optional[str] = None

        for index in range(start, len(lines)):
            line = lines[index]

            fence_match = FENCE.match(line)
            if fence_match:
                marker = fence_match.group(1)
                if fence is None:
                    fence = marker
                elif marker[0] == fence[0] and len(marker) >= len(fence):
                    fence = None
                continue
            if fence is not None:
                continue

            match = ATX_HEADING.match(line)
            if not match or EMPTY_ATX_HEADING.match(line):
                continue

            text = CLOSING_HASHES.sub("", match.group(2)).strip()
            if not text:
                continue

            headings.append(Heading(level=len(match.group(1)), text=text, line=index))

        return headings
