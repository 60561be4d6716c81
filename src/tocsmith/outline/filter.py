"""Heading selection for the outline."""

from tocsmith.models.config import OutlineSettings
from tocsmith.models.heading import Heading
from tocsmith.outline.patterns import compile_exclusions

# Titles an outline heading is commonly given; never indexed themselves
OUTLINE_TITLES = frozenset({
    "table of contents",
    "toc",
    "contents",
    "index",
    "outline",
})


def is_outline_title(text: str, configured_title: str) -> bool:
    """Whether heading text looks like the title of an outline block."""
    return text.strip().casefold() in OUTLINE_TITLES or text == configured_title


def filter_headings(headings: list[Heading], settings: OutlineSettings) -> list[Heading]:
    """
    Select the headings that belong in the outline.

    Purely subtractive: surviving headings keep document order.

    Args:
        headings: All headings of the document, in document order
        settings: Outline settings

    Returns:
        Headings to render
    """
    exclusions = compile_exclusions(settings.exclude_patterns)

    def keep(heading: Heading) -> bool:
        # The outline's own heading (current or previous title)
        if heading.level == 2 and is_outline_title(heading.text, settings.title):
            return False

        if settings.exclude_top_level and heading.level == 1:
            return False
        if heading.level > settings.max_depth:
            return False

        return not any(pattern.search(heading.text) for pattern in exclusions)

    return [heading for heading in headings if keep(heading)]
