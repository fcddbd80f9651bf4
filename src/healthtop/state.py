"""Issue state shared between the scanner thread and the UI loop."""

import threading
from collections.abc import Iterable

from healthtop.models import CacheEntry, ImageEntry, IssueSnapshot, ProcessEntry


class SharedIssueState:
    """
    The only object touched by more than one thread.

    Every read and write goes through a single lock. Readers get immutable
    copies, so the lock is never held while rendering or doing I/O.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cache_entries: tuple[CacheEntry, ...] = ()
        self._image_entries: tuple[ImageEntry, ...] = ()
        self._top_processes: tuple[ProcessEntry, ...] = ()
        self._scanning = True

    def snapshot(self) -> IssueSnapshot:
        """Return a consistent copy of the whole aggregate."""
        with self._lock:
            return IssueSnapshot(
                cache_entries=self._cache_entries,
                image_entries=self._image_entries,
                top_processes=self._top_processes,
                scanning=self._scanning,
            )

    def publish_scan(
        self,
        cache_entries: Iterable[CacheEntry],
        image_entries: Iterable[ImageEntry],
    ) -> None:
        """Store the scan results and clear the scanning flag in one step."""
        caches = tuple(cache_entries)
        images = tuple(image_entries)
        with self._lock:
            self._cache_entries = caches
            self._image_entries = images
            self._scanning = False

    def set_top_processes(self, processes: Iterable[ProcessEntry]) -> None:
        ranked = tuple(processes)
        with self._lock:
            self._top_processes = ranked

    def top_processes(self) -> tuple[ProcessEntry, ...]:
        with self._lock:
            return self._top_processes

    def cache_entries(self) -> tuple[CacheEntry, ...]:
        with self._lock:
            return self._cache_entries

    def is_scanning(self) -> bool:
        with self._lock:
            return self._scanning
