"""Outline rendering.

Produces the outline block text:

    ## Table of Contents

    - [[#Install|Install]]
      - [[#Linux|Linux]]
    - [[#Install 1|Install]]

Indentation is two spaces per level relative to the shallowest rendered
heading, so excluding level 1 never leaves a spurious leading indent.
"""

from typing import Callable

from tocsmith.models.config import OutlineSettings
from tocsmith.models.heading import Heading
from tocsmith.outline.slug import link_label, strip_heading_for_link

EMPTY_OUTLINE_PLACEHOLDER = "*No headings found*"
INDENT = "  "


def outline_heading(title: str) -> str:
    """Heading line of the outline block."""
    return f"## {title}"


def plain_item_label(label: str) -> str:
    r"""
    Label of a plain-text outline item.

    A leading ``[`` is escaped so the item is never read back as a link or a
    task checkbox.

    Examples:
        >>> plain_item_label("[x] Done")
        '\\[x] Done'
    """
    return "\\" + label if label.startswith("[") else label


def unique_slugs(slugs: list[str]) -> list[str]:
    """
    Disambiguate repeated slugs within one outline.

    The first occurrence stays bare, repeats get " 1", " 2", ... A suffixed
    slug that would collide with one already emitted keeps counting.

    Examples:
        >>> unique_slugs(["Notes", "Notes", "Notes"])
        ['Notes', 'Notes 1', 'Notes 2']
    """
    counts: dict[str, int] = {}
    used: set[str] = set()
    result = []

    for slug in slugs:
        count = counts.get(slug, 0)
        candidate = slug if count == 0 else f"{slug} {count}"
        while candidate in used:
            count += 1
            candidate = f"{slug} {count}"
        counts[slug] = count + 1
        used.add(candidate)
        result.append(candidate)

    return result


def render_outline(
    headings: list[Heading],
    settings: OutlineSettings,
    slugify: Callable[[str], str] = strip_heading_for_link,
) -> str:
    """
    Render the outline block for already-filtered headings.

    Args:
        headings: Headings to list, in document order
        settings: Outline settings (title, links)
        slugify: Heading text to link target transform

    Returns:
        Outline text without a trailing newline
    """
    lines = [outline_heading(settings.title), ""]

    if not headings:
        lines.append(EMPTY_OUTLINE_PLACEHOLDER)
        return "\n".join(lines)

    min_level = min(heading.level for heading in headings)
    slugs = unique_slugs([slugify(heading.text) for heading in headings])

    for heading, slug in zip(headings, slugs):
        indent = INDENT * (heading.level - min_level)
        label = link_label(heading.text)
        if settings.include_links:
            lines.append(f"{indent}- [[#{slug}|{label}]]")
        else:
            lines.append(f"{indent}- {plain_item_label(label)}")

    return "\n".join(lines)
