"""Heading model supplied by the host's structural cache."""

from pydantic import BaseModel, Field


class Heading(BaseModel):
    """One heading occurrence in a document.

    Attributes:
        level: Heading level (1 = title level)
        text: Heading text without the leading markers
        line: Zero-based line number in the whole document (header included)
    """

    level: int = Field(..., ge=1, le=6, description="Heading level (1-6)")
    text: str = Field(..., description="Heading text")
    line: int = Field(..., ge=0, description="Zero-based document line")

    model_config = {"frozen": True}
