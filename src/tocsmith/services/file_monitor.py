"""Document modification monitoring for watch mode and safe writes."""

from pathlib import Path
from typing import Dict, Iterable


class FileMonitor:
    """
    Track document modification times to detect external changes.

    Used by the watcher to notice edits that should schedule an outline
    refresh, and by atomic writes to refuse clobbering a document that
    changed after it was read.

    Example:
        >>> monitor = FileMonitor()
        >>> note = Path("notes/project.md")
        >>> monitor.record(note)
        >>> # Later, in the watch loop:
        >>> for path in monitor.changed_paths():
        ...     monitor.refresh(path)
        ...     schedule_refresh(path)
    """

    def __init__(self) -> None:
        """Initialize empty file tracker."""
        self._mtimes: Dict[Path, float] = {}

    @property
    def tracked(self) -> list[Path]:
        """Paths currently being tracked."""
        return list(self._mtimes)

    def record(self, path: Path) -> None:
        """
        Record current modification time for a document.

        Args:
            path: File path to track

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        self._mtimes[path] = path.stat().st_mtime_ns

    def record_all(self, paths: Iterable[Path]) -> None:
        """Record every path in one go."""
        for path in paths:
            self.record(path)

    def is_modified(self, path: Path) -> bool:
        """
        Check if a document has been modified since last record.

        Args:
            path: File path to check

        Returns:
            True if file modified or not yet tracked, False otherwise

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        current_mtime = path.stat().st_mtime_ns
        if path not in self._mtimes:
            return True
        return current_mtime != self._mtimes[path]

    def refresh(self, path: Path) -> None:
        """
        Update recorded modification time, e.g. after our own write.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        self._mtimes[path] = path.stat().st_mtime_ns

    def changed_paths(self) -> list[Path]:
        """
        Tracked documents modified since they were last recorded.

        Documents that disappeared are skipped (and stay tracked, so they
        are picked up again if recreated).
        """
        changed = []
        for path in self._mtimes:
            try:
                if self.is_modified(path):
                    changed.append(path)
            except FileNotFoundError:
                continue
        return changed
