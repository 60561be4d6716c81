"""Heading text to link target conversion."""

import re

# Characters that break a same-document link target
_LINK_UNSAFE = re.compile(r"[#|^:%\[\]\\]")
_WHITESPACE = re.compile(r"\s+")

_WIKI_LINK = re.compile(r"\[\[([^\]|]*)(?:\|([^\]]*))?\]\]")
_MARKDOWN_LINK = re.compile(r"\[([^\]]*)\]\([^)]*\)")


def strip_heading_for_link(text: str) -> str:
    """
    Derive a link-safe slug from heading text.

    Examples:
        >>> strip_heading_for_link("Step 1: Setup")
        'Step 1 Setup'
        >>> strip_heading_for_link("C# | F#")
        'C F'
    """
    return _WHITESPACE.sub(" ", _LINK_UNSAFE.sub(" ", text)).strip()


def link_label(text: str) -> str:
    """
    Reduce wiki links and markdown links in heading text to their visible text.

    Keeps an outline item a single well-formed link when the heading itself
    contains link syntax.

    Examples:
        >>> link_label("See [[Other Page|the page]]")
        'See the page'
        >>> link_label("Read [docs](https://example.com)")
        'Read docs'
    """
    text = _WIKI_LINK.sub(lambda m: m.group(2) if m.group(2) is not None else m.group(1), text)
    text = _MARKDOWN_LINK.sub(lambda m: m.group(1), text)
    return text.replace("|", " ").strip()
