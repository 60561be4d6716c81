"""Data models for tocsmith."""

from tocsmith.models.block import Cursor, OutlineBlock
from tocsmith.models.config import Config, OutlineSettings, WatchSettings
from tocsmith.models.heading import Heading
from tocsmith.models.marker import MARKER_KEY, OutlineMarker

__all__ = [
    "Config",
    "Cursor",
    "Heading",
    "MARKER_KEY",
    "OutlineBlock",
    "OutlineMarker",
    "OutlineSettings",
    "WatchSettings",
]
