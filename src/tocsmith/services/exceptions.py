"""Custom exceptions for tocsmith services."""


class OutlineError(Exception):
    """Base class for failures while generating an outline.

    Attributes:
        user_message: Short human-readable message shown to interactive callers
    """

    user_message = "Failed to generate table of contents"

    def __init__(self, message: str = ""):
        self.message = message or self.user_message
        super().__init__(self.message)


class InvalidInput(OutlineError):
    """Raised when there is no usable document or editor to work on."""

    user_message = "Unable to generate table of contents: invalid editor or document"


class EmptyDocument(OutlineError):
    """Raised when the document has no content to index."""

    user_message = "Document is empty"


class NoHeadingsMatched(OutlineError):
    """Raised when every heading was removed by the configured filters."""

    user_message = "No headings found in the document"


class ConcurrentGenerationInProgress(OutlineError):
    """Raised when a generation for the same document is already running."""

    user_message = "Table of contents generation already in progress"


class StructuralReplacementFailed(OutlineError):
    """Raised when old and new outline blocks cannot be matched for a
    range replacement. Callers fall back to replacing the whole buffer."""

    user_message = "Could not locate the table of contents for in-place replacement"


class InvalidPattern(OutlineError):
    """Raised when an exclusion pattern is unusable.

    Never escapes a generation run: the pattern is skipped with a warning.

    Attributes:
        pattern: The rejected pattern
        reason: Why it was rejected
    """

    user_message = "Invalid exclusion pattern"

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid exclusion pattern '{pattern}': {reason}")


class FileModifiedError(Exception):
    """Raised when a file is modified during an atomic write operation.

    This exception indicates that the document changed between the initial
    read and the final write, which could lose the user's edits if the write
    were to proceed.

    Attributes:
        path: Path to the file that was modified
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str = "File was modified during write operation"):
        """Initialize FileModifiedError.

        Args:
            path: Path to the file that was modified
            message: Human-readable error message
        """
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")
