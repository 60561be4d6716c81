"""Configuration models for tocsmith."""

from pydantic import BaseModel, Field, field_validator
from pathlib import Path
from typing import Any, Dict, Optional
import yaml
import os


DEFAULT_TITLE = "Table of Contents"
DEFAULT_MAX_DEPTH = 4
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "tocsmith" / "config.yaml"


class OutlineSettings(BaseModel):
    """Settings that shape the generated outline.

    Immutable: a settings change produces a new value that is passed into
    the next generation call.
    """

    title: str = Field(
        default=DEFAULT_TITLE,
        description="Title of the outline heading"
    )

    exclude_top_level: bool = Field(
        default=True,
        description="Skip level 1 headings"
    )

    max_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        description="Deepest heading level included (clamped to 1-6)"
    )

    include_links: bool = Field(
        default=True,
        description="Render outline items as same-document links"
    )

    exclude_patterns: list[str] = Field(
        default_factory=list,
        description="Regular expressions; matching headings are left out"
    )

    auto_refresh: bool = Field(
        default=False,
        description="Refresh an existing outline when the document changes"
    )

    @field_validator("title", mode="before")
    @classmethod
    def default_blank_title(cls, v: Any) -> str:
        """Fall back to the default title when blank."""
        if v is None:
            return DEFAULT_TITLE
        return str(v).strip() or DEFAULT_TITLE

    @field_validator("max_depth", mode="before")
    @classmethod
    def clamp_max_depth(cls, v: Any) -> int:
        """Clamp depth into 1-6 instead of rejecting it."""
        if v is None:
            return DEFAULT_MAX_DEPTH
        return max(1, min(6, int(v)))

    @field_validator("exclude_patterns", mode="before")
    @classmethod
    def split_patterns(cls, v: Any) -> list[str]:
        """Accept one pattern per line and drop empty entries."""
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split("\n")
        return [str(p).strip() for p in v if str(p).strip()]

    model_config = {"frozen": True}


class WatchSettings(BaseModel):
    """Settings for the file watcher used by auto-refresh."""

    debounce_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Quiescence window before a modified document is refreshed"
    )

    poll_interval: float = Field(
        default=0.5,
        gt=0,
        description="Seconds between modification checks"
    )

    model_config = {"frozen": True}


class Config(BaseModel):
    """Root configuration for tocsmith."""

    outline: OutlineSettings = Field(default_factory=OutlineSettings, description="Outline settings")
    watch: WatchSettings = Field(default_factory=WatchSettings, description="Watcher settings")

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """
        Load configuration from YAML file with environment variable overrides.

        A missing file is not an error: every setting has a default.

        Args:
            path: Path to config.yaml (default: ~/.config/tocsmith/config.yaml)

        Returns:
            Validated Config instance

        Raises:
            ValueError: If YAML is invalid or validation fails
        """
        if path is None:
            path = DEFAULT_CONFIG_PATH

        data: Dict[str, Any] = {}
        if path.exists():
            with open(path) as f:
                loaded = yaml.safe_load(f) or {}
            if not isinstance(loaded, dict):
                raise ValueError(f"Configuration file must contain a mapping: {path}")
            data = loaded

        data = _apply_env_overrides(data)

        return cls(**data)

    model_config = {"frozen": True}


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply TOCSMITH_SECTION_KEY environment variables to configuration data.

    For example: TOCSMITH_OUTLINE_TITLE sets data['outline']['title']

    Args:
        data: Base configuration dictionary from YAML

    Returns:
        Configuration dictionary with environment overrides applied
    """
    data = dict(data)
    outline = dict(data.get("outline") or {})
    watch = dict(data.get("watch") or {})

    if env_title := os.getenv("TOCSMITH_OUTLINE_TITLE"):
        outline["title"] = env_title

    if env_depth := os.getenv("TOCSMITH_OUTLINE_MAX_DEPTH"):
        try:
            outline["max_depth"] = int(env_depth)
        except ValueError:
            pass  # Invalid value, ignore

    for key in ("exclude_top_level", "include_links", "auto_refresh"):
        env_value = os.getenv(f"TOCSMITH_OUTLINE_{key.upper()}")
        if env_value:
            outline[key] = env_value.strip().lower() in ("1", "true", "yes", "on")

    if env_debounce := os.getenv("TOCSMITH_WATCH_DEBOUNCE_SECONDS"):
        try:
            watch["debounce_seconds"] = float(env_debounce)
        except ValueError:
            pass

    if outline:
        data["outline"] = outline
    if watch:
        data["watch"] = watch
    return data
