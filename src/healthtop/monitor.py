"""Host metrics sampling and process ranking for healthtop."""

import logging
from collections.abc import Iterable

import psutil

from healthtop.models import MetricsSnapshot, ProcessEntry

logger = logging.getLogger(__name__)

# Errors a single psutil probe may raise; any of them degrades that probe only.
_PROBE_ERRORS = (psutil.Error, OSError)


class MetricsSampler:
    """
    Produces MetricsSnapshot objects on demand using psutil.

    Each probe (CPU, memory, swap, disk) is guarded on its own. A failing probe
    reuses the value from the previous snapshot, so the dashboard degrades
    instead of crashing the refresh loop.
    """

    def __init__(self) -> None:
        self._last = MetricsSnapshot.empty()
        # Initialize CPU percent (first call returns 0.0)
        try:
            psutil.cpu_percent(interval=None)
        except _PROBE_ERRORS:
            logger.debug("Initial CPU sample failed", exc_info=True)

    @property
    def last(self) -> MetricsSnapshot:
        """The most recent snapshot returned by sample()."""
        return self._last

    def sample(self) -> MetricsSnapshot:
        """Collect a snapshot of current host utilization."""
        last = self._last

        try:
            # Non-blocking, measured against the previous call
            cpu_percent = float(psutil.cpu_percent(interval=None))
        except _PROBE_ERRORS:
            logger.debug("CPU probe failed", exc_info=True)
            cpu_percent = last.cpu_percent

        try:
            mem = psutil.virtual_memory()
            memory_used, memory_total = int(mem.used), int(mem.total)
        except _PROBE_ERRORS:
            logger.debug("Memory probe failed", exc_info=True)
            memory_used, memory_total = last.memory_used, last.memory_total

        try:
            swap = psutil.swap_memory()
            swap_used, swap_total = int(swap.used), int(swap.total)
        except _PROBE_ERRORS:
            logger.debug("Swap probe failed", exc_info=True)
            swap_used, swap_total = last.swap_used, last.swap_total

        try:
            disk_used, disk_total = self._disk_usage()
        except _PROBE_ERRORS:
            logger.debug("Disk probe failed", exc_info=True)
            disk_used, disk_total = last.disk_used, last.disk_total

        self._last = MetricsSnapshot(
            cpu_percent=cpu_percent,
            memory_used=memory_used,
            memory_total=memory_total,
            swap_used=swap_used,
            swap_total=swap_total,
            disk_used=disk_used,
            disk_total=disk_total,
        )
        return self._last

    def _disk_usage(self) -> tuple[int, int]:
        """Sum used/total space across physical partitions, once per device."""
        used = 0
        total = 0
        seen: set[str] = set()

        for part in psutil.disk_partitions(all=False):
            if part.device in seen:
                continue
            seen.add(part.device)
            try:
                usage = psutil.disk_usage(part.mountpoint)
            except _PROBE_ERRORS:
                # Unmounted mid-poll, permission denied, etc.
                continue
            total += usage.total
            used += usage.total - usage.free

        return used, total


def rank_processes(processes: Iterable[ProcessEntry], limit: int = 5) -> list[ProcessEntry]:
    """
    Return the ``limit`` heaviest processes by composite score, heaviest first.

    Ties are broken by ascending PID so identical input always ranks the same.
    """
    ordered = sorted(processes, key=lambda p: (-p.score, p.pid))
    return ordered[:limit]


class ProcessRanker:
    """Samples the process table and ranks processes by resource score."""

    def __init__(self, limit: int = 5) -> None:
        self._limit = limit

    @property
    def limit(self) -> int:
        return self._limit

    def rank(self) -> list[ProcessEntry]:
        return rank_processes(self._collect_processes(), self._limit)

    def _collect_processes(self) -> list[ProcessEntry]:
        """
        Collect entries for all running processes.

        psutil.process_iter() caches Process objects between calls, which is
        what makes per-process cpu_percent meaningful from the second call on.
        Handles AccessDenied and ZombieProcess errors gracefully.
        """
        processes: list[ProcessEntry] = []

        for proc in psutil.process_iter(attrs=["pid", "name", "cpu_percent", "memory_info"]):
            try:
                info = proc.info
                mem_info = info.get("memory_info")
                processes.append(
                    ProcessEntry(
                        name=info.get("name") or "",
                        pid=info.get("pid", 0),
                        cpu_percent=info.get("cpu_percent") or 0.0,
                        memory_bytes=mem_info.rss if mem_info else 0,
                    )
                )
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                # Died mid-poll or not ours to inspect
                continue

        return processes
