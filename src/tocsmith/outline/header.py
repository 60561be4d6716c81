"""Metadata header parsing and merging.

The header is the ``---`` delimited block at the very start of a document:

    ---
    title: Project notes
    tags:
      - work
    toc: {generated: true, lastUpdate: "2025-01-15T09:30:00.000Z"}
    ---

IMPORTANT: Fields the engine does not own are written back exactly as they
were read (same lines, same order). Only the ``toc`` marker field is ever
rendered by this module.
"""

import json
import re
from dataclasses import dataclass, field, replace
from typing import Any, Optional

import structlog
import yaml

from tocsmith.models.marker import MARKER_KEY, OutlineMarker

logger = structlog.get_logger()

HEADER_DELIMITER = "---"
HEADER_PATTERN = re.compile(r"\A---[ \t]*\n(?:(.*?)\n)?---[ \t]*(?:\n|\Z)", re.DOTALL)
_INTEGER = re.compile(r"^\d+$")


@dataclass
class HeaderField:
    """One top-level header field.

    Attributes:
        key: Field name
        value: Parsed value
        raw_lines: Source lines of the field (first line plus continuation
                   lines). None for fields created or replaced by the engine,
                   which are rendered from ``value``.
    """

    key: str
    value: Any
    raw_lines: Optional[list[str]] = None


@dataclass
class DocumentHeader:
    """Parsed metadata header.

    Attributes:
        fields: Fields in source order
        preamble: Lines before the first field (comments, blank lines)
        line_span: Number of document lines the header occupies (0 if absent)
    """

    fields: list[HeaderField] = field(default_factory=list)
    preamble: list[str] = field(default_factory=list)
    line_span: int = 0

    @property
    def present(self) -> bool:
        return self.line_span > 0

    def get(self, key: str, default: Any = None) -> Any:
        for header_field in self.fields:
            if header_field.key == key:
                return header_field.value
        return default


def parse_value(text: str) -> Any:
    """
    Parse a scalar or flow-literal header value.

    Examples:
        >>> parse_value("true")
        True
        >>> parse_value('"a: b"')
        'a: b'
        >>> parse_value('{generated: true, lastUpdate: "x"}')
        {'generated': True, 'lastUpdate': 'x'}
    """
    if text == "true":
        return True
    if text == "false":
        return False
    if _INTEGER.match(text):
        return int(text)
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        try:
            return json.loads(text)
        except ValueError:
            return text[1:-1]
    if text.startswith("{") or text.startswith("["):
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError:
            logger.debug("header_value_unparsed", value=text)
            return text
    return text


def _line_span(block: str) -> int:
    if not block:
        return 0
    return block.count("\n") + (0 if block.endswith("\n") else 1)


def _starts_field(line: str) -> bool:
    if not line or line[0].isspace() or line.startswith(("-", "#")):
        return False
    return line.find(":") > 0


def parse_header(content: str) -> tuple[DocumentHeader, str]:
    """
    Split a document into its metadata header and body.

    Args:
        content: Full document text

    Returns:
        (header, body). Without a header, the header is empty and the body
        is the whole document.
    """
    match = HEADER_PATTERN.match(content)
    if not match:
        return DocumentHeader(), content

    line_span = _line_span(match.group(0))
    inner = match.group(1)

    header = DocumentHeader(line_span=line_span)
    current: Optional[HeaderField] = None

    for line in inner.split("\n") if inner is not None else []:
        if _starts_field(line):
            colon = line.index(":")
            key = line[:colon].strip()
            current = HeaderField(
                key=key,
                value=parse_value(line[colon + 1:].strip()),
                raw_lines=[line],
            )
            header.fields.append(current)
        elif current is not None:
            # Continuation (nested list, indented mapping, comment)
            current.raw_lines.append(line)
        else:
            header.preamble.append(line)

    for header_field in header.fields:
        if header_field.value == "" and len(header_field.raw_lines) > 1:
            header_field.value = _parse_block_value(header_field)

    return header, content[match.end():]


def _parse_block_value(header_field: HeaderField) -> Any:
    """Value of a field written in block style (``key:`` then indented lines)."""
    try:
        loaded = yaml.safe_load("\n".join(header_field.raw_lines))
    except yaml.YAMLError:
        logger.debug("header_block_unparsed", key=header_field.key)
        return ""
    if not isinstance(loaded, dict):
        return ""
    value = loaded.get(header_field.key)
    return "" if value is None else value


def merge_marker(fields: list[HeaderField], marker: OutlineMarker) -> list[HeaderField]:
    """
    Set the outline marker field, leaving every other field untouched.

    An existing marker field keeps its position; a new one is appended.
    The input list is not modified.

    Args:
        fields: Existing header fields
        marker: Marker to store

    Returns:
        New field list
    """
    value = marker.to_header_value()
    merged = []
    replaced = False

    for header_field in fields:
        if header_field.key == MARKER_KEY and not replaced:
            merged.append(replace(header_field, value=value, raw_lines=None))
            replaced = True
        else:
            merged.append(header_field)

    if not replaced:
        merged.append(HeaderField(key=MARKER_KEY, value=value))

    return merged


def _render_flow(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, dict):
        return "{" + ", ".join(f"{k}: {_render_flow(v)}" for k, v in value.items()) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_render_flow(v) for v in value) + "]"
    return json.dumps(str(value), ensure_ascii=False)


def render_value(value: Any) -> str:
    """
    Render a header value for a ``key: value`` line.

    Examples:
        >>> render_value({"generated": True, "lastUpdate": "x"})
        '{generated: true, lastUpdate: "x"}'
        >>> render_value("two words")
        '"two words"'
        >>> render_value(3)
        '3'
    """
    if isinstance(value, (dict, list, tuple)):
        return _render_flow(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, str) and (":" in value or " " in value):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def serialize_header(
    fields: list[HeaderField],
    body: str,
    preamble: Optional[list[str]] = None,
) -> str:
    """
    Join header fields and body into full document text.

    With no fields the body is returned unchanged: an empty header is never
    introduced.

    Args:
        fields: Header fields in output order
        body: Document body (everything after the header)
        preamble: Lines to keep above the first field

    Returns:
        Full document text
    """
    if not fields:
        return body

    lines = [HEADER_DELIMITER]
    lines.extend(preamble or [])
    for header_field in fields:
        if header_field.raw_lines is not None:
            lines.extend(header_field.raw_lines)
        else:
            lines.append(f"{header_field.key}: {render_value(header_field.value)}")
    lines.append(HEADER_DELIMITER)

    return "\n".join(lines) + "\n" + body


def header_text(content: str) -> str:
    """Exact header text of a document (empty string when absent)."""
    match = HEADER_PATTERN.match(content)
    return match.group(0) if match else ""


def header_line_span(content: str) -> int:
    """Number of lines the metadata header occupies (0 when absent)."""
    return _line_span(header_text(content))
