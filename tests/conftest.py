"""Shared test fixtures for all test modules."""

from datetime import datetime, timezone

import pytest

from tocsmith.models.config import OutlineSettings
from tocsmith.outline.engine import OutlineEngine
from tocsmith.outline.scanner import MarkdownHeadingScanner


FIXED_NOW = datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory, monkeypatch):
    """Keep log files and default config lookups out of the real home directory."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    for name in (
        "TOCSMITH_LOG_LEVEL",
        "TOCSMITH_OUTLINE_TITLE",
        "TOCSMITH_OUTLINE_MAX_DEPTH",
        "TOCSMITH_OUTLINE_EXCLUDE_TOP_LEVEL",
        "TOCSMITH_OUTLINE_INCLUDE_LINKS",
        "TOCSMITH_OUTLINE_AUTO_REFRESH",
        "TOCSMITH_WATCH_DEBOUNCE_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def scanner():
    return MarkdownHeadingScanner()


@pytest.fixture
def build(scanner):
    """Run the engine over text the way the service does."""
    engine = OutlineEngine()

    def _build(content, settings=None, now=FIXED_NOW):
        return engine.build(
            content,
            scanner.headings(content),
            settings or OutlineSettings(),
            header_span=scanner.header_line_span(content),
            now=now,
        )

    return _build
