"""Outline generation service.

Wraps the stateless engine with the rules of a generation request:

- manual requests always run; automatic refreshes only touch documents that
  already carry the outline marker
- one generation per document at a time (a second request is rejected, not
  queued)
- failures are logged in full; only manual requests get a user message
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterator, Optional

import structlog

from tocsmith.editor.buffer import Editor
from tocsmith.models.config import OutlineSettings
from tocsmith.outline.engine import EngineResult, OutlineEngine, document_has_marker, locator_hints
from tocsmith.outline.replacer import apply_to_editor
from tocsmith.outline.scanner import HeadingProvider, MarkdownHeadingScanner
from tocsmith.services.exceptions import (
    ConcurrentGenerationInProgress,
    EmptyDocument,
    InvalidInput,
    NoHeadingsMatched,
    OutlineError,
)

logger = structlog.get_logger()

UPDATED_MESSAGE = "Table of contents updated"


class Trigger(str, Enum):
    """What started a generation."""

    MANUAL = "manual"
    AUTO = "auto"


class GenerationStatus(str, Enum):
    """Outcome of a generation request."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class GenerationResult:
    """Result of one generation request.

    Attributes:
        status: Outcome
        content: Document text after the request (the input text unless updated)
        message: Notice for the user; None when nothing should be shown
        error: The failure, when status is FAILED
        item_count: Number of headings listed in the outline
        in_place: For editor requests, whether the outline was replaced in place
    """

    status: GenerationStatus
    content: str
    message: Optional[str] = None
    error: Optional[Exception] = None
    item_count: int = 0
    in_place: Optional[bool] = None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OutlineService:
    """
    Generate outlines for documents, one request per document at a time.

    Example:
        >>> service = OutlineService(OutlineSettings(title="Contents"))
        >>> result = service.generate("notes/a.md", text)
        >>> result.status
        <GenerationStatus.UPDATED: 'updated'>
    """

    def __init__(
        self,
        settings: Optional[OutlineSettings] = None,
        provider: Optional[HeadingProvider] = None,
        engine: Optional[OutlineEngine] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.settings = settings or OutlineSettings()
        self.provider = provider or MarkdownHeadingScanner()
        self.engine = engine or OutlineEngine()
        self.clock = clock
        self._in_flight: set[str] = set()
        self._lock = threading.Lock()

    def update_settings(self, settings: OutlineSettings) -> None:
        """Use a new settings value for subsequent requests."""
        self.settings = settings

    def is_generating(self, doc_id: str) -> bool:
        with self._lock:
            return doc_id in self._in_flight

    @contextmanager
    def generating(self, doc_id: str) -> Iterator[None]:
        """
        Hold the in-flight guard for a document.

        Raises:
            ConcurrentGenerationInProgress: If the document is already being generated
        """
        with self._lock:
            if doc_id in self._in_flight:
                raise ConcurrentGenerationInProgress()
            self._in_flight.add(doc_id)
        try:
            yield
        finally:
            with self._lock:
                self._in_flight.discard(doc_id)

    def build(self, content: Optional[str], trigger: Trigger = Trigger.MANUAL) -> EngineResult:
        """
        Compute the updated document text without side effects.

        Raises:
            InvalidInput: If there is no document text
            EmptyDocument: If the document is empty or whitespace
            NoHeadingsMatched: On manual requests, if the document has headings
                but the filters removed all of them
        """
        if content is None:
            raise InvalidInput()
        if not content.strip():
            raise EmptyDocument()

        headings = self.provider.headings(content)
        result = self.engine.build(
            content,
            headings,
            self.settings,
            header_span=self.provider.header_line_span(content),
            now=self.clock(),
        )

        if trigger is Trigger.MANUAL and headings and not result.headings:
            raise NoHeadingsMatched()

        return result

    def generate(
        self,
        doc_id: str,
        content: Optional[str],
        trigger: Trigger = Trigger.MANUAL,
    ) -> GenerationResult:
        """
        Regenerate the outline of document text (batch path).

        Args:
            doc_id: Document identity for the in-flight guard
            content: Current document text
            trigger: Manual or automatic refresh

        Returns:
            GenerationResult; nothing is raised for expected failures
        """
        if trigger is Trigger.AUTO and not (content and document_has_marker(content)):
            return GenerationResult(GenerationStatus.SKIPPED, content or "")

        try:
            with self.generating(doc_id):
                result = self.build(content, trigger)
        except Exception as e:
            return self._failure(doc_id, content, trigger, e)

        return self._success(doc_id, content, trigger, result)

    def generate_in_editor(
        self,
        doc_id: str,
        editor: Optional[Editor],
        trigger: Trigger = Trigger.MANUAL,
    ) -> GenerationResult:
        """
        Regenerate the outline of a live editor buffer.

        The outline block (and header) are replaced in place when possible so
        undo history, scroll position and the cursor survive; otherwise the
        whole buffer is replaced.

        Args:
            doc_id: Document identity for the in-flight guard
            editor: Editor holding the document
            trigger: Manual or automatic refresh

        Returns:
            GenerationResult; ``in_place`` tells which replacement was used
        """
        if editor is None:
            return self._failure(doc_id, None, trigger, InvalidInput())

        content = editor.get_value()
        if trigger is Trigger.AUTO and not document_has_marker(content):
            return GenerationResult(GenerationStatus.SKIPPED, content)

        try:
            with self.generating(doc_id):
                result = self.build(content, trigger)
                if result.content == content:
                    return self._success(doc_id, content, trigger, result)

                headings = self.provider.headings(content)
                in_place = apply_to_editor(
                    editor,
                    result.content,
                    **locator_hints(headings, self.settings),
                )
        except Exception as e:
            return self._failure(doc_id, content, trigger, e)

        outcome = self._success(doc_id, content, trigger, result)
        outcome.in_place = in_place
        return outcome

    def _success(
        self,
        doc_id: str,
        content: Optional[str],
        trigger: Trigger,
        result: EngineResult,
    ) -> GenerationResult:
        if result.content == content:
            logger.info("outline_unchanged", doc_id=doc_id, trigger=trigger.value)
            return GenerationResult(
                GenerationStatus.UNCHANGED,
                content,
                item_count=len(result.headings),
            )

        logger.info(
            "outline_generated",
            doc_id=doc_id,
            trigger=trigger.value,
            items=len(result.headings),
            replaced=result.removed_block is not None,
        )
        return GenerationResult(
            GenerationStatus.UPDATED,
            result.content,
            message=UPDATED_MESSAGE if trigger is Trigger.MANUAL else None,
            item_count=len(result.headings),
        )

    def _failure(
        self,
        doc_id: str,
        content: Optional[str],
        trigger: Trigger,
        error: Exception,
    ) -> GenerationResult:
        if isinstance(error, OutlineError):
            logger.info(
                "outline_generation_rejected",
                doc_id=doc_id,
                trigger=trigger.value,
                reason=type(error).__name__,
                detail=error.message,
            )
            message = error.user_message
        else:
            logger.error(
                "outline_generation_failed",
                doc_id=doc_id,
                trigger=trigger.value,
                error=str(error),
                exc_info=True,
            )
            message = f"Failed to generate table of contents: {error}"

        return GenerationResult(
            GenerationStatus.FAILED,
            content or "",
            message=message if trigger is Trigger.MANUAL else None,
            error=error,
        )
