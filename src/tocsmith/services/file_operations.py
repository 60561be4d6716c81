"""File operations for the batch (on-disk) outline path.

Documents are read, regenerated in memory and written back atomically with
concurrent-modification checks, so a note edited while the outline was being
computed is never overwritten.
"""

import os
from pathlib import Path
from typing import Optional

import structlog

from tocsmith.services.exceptions import FileModifiedError
from tocsmith.services.file_monitor import FileMonitor
from tocsmith.services.session import GenerationResult, GenerationStatus, OutlineService, Trigger

logger = structlog.get_logger()


def atomic_write(
    path: Path,
    content: str,
    file_monitor: Optional[FileMonitor] = None
) -> None:
    """
    Atomically write content to file with temp-file-rename pattern.

    This function implements safe file writing with:
    1. Early modification check (before write)
    2. Write to temporary file
    3. fsync to ensure data is on disk
    4. Late modification check (after write, before rename)
    5. Atomic rename to replace original file

    Args:
        path: Target file path
        content: Content to write
        file_monitor: Optional FileMonitor for concurrent modification detection

    Raises:
        FileModifiedError: If file was modified during write operation
        OSError: On file I/O errors
        PermissionError: On permission errors
    """
    if file_monitor and file_monitor.is_modified(path):
        raise FileModifiedError(
            str(path),
            "File was modified before write (early check)"
        )

    # Same directory keeps the rename on one filesystem
    temp_path = path.parent / f".{path.name}.tmp.{os.getpid()}"

    try:
        with open(temp_path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        if file_monitor and file_monitor.is_modified(path):
            raise FileModifiedError(
                str(path),
                "File was modified during write (late check)"
            )

        # Atomic on POSIX even if the target exists
        temp_path.replace(path)

        if file_monitor:
            file_monitor.refresh(path)

        logger.debug(
            "atomic_write_success",
            path=str(path),
            size=len(content)
        )

    except FileModifiedError:
        if temp_path.exists():
            temp_path.unlink()
        raise

    except Exception as e:
        if temp_path.exists():
            temp_path.unlink()
        logger.error(
            "atomic_write_failed",
            path=str(path),
            error=str(e)
        )
        raise


def read_document(path: Path) -> str:
    """Read a document as UTF-8 without newline translation."""
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def generate_for_file(
    path: Path,
    service: OutlineService,
    trigger: Trigger = Trigger.MANUAL,
    file_monitor: Optional[FileMonitor] = None,
    dry_run: bool = False,
) -> GenerationResult:
    """
    Regenerate the outline of a document on disk.

    The document is read, the new text is fully assembled in memory, and
    only then written back (atomically). Unchanged documents are not
    rewritten.

    Args:
        path: Document path
        service: Outline service holding settings and the in-flight guard
        trigger: Manual or automatic refresh
        file_monitor: Optional monitor for concurrent modification detection
        dry_run: Compute the result but do not write it

    Returns:
        GenerationResult from the service

    Raises:
        FileModifiedError: If the document changed while it was processed
        OSError: On file I/O errors
    """
    if file_monitor is not None:
        file_monitor.record(path)

    content = read_document(path)
    result = service.generate(str(path), content, trigger)

    if result.status is not GenerationStatus.UPDATED or dry_run:
        return result

    atomic_write(path, result.content, file_monitor)
    logger.info("document_written", path=str(path), trigger=trigger.value)
    return result
