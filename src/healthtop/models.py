"""Data models for healthtop."""

from dataclasses import dataclass


def percentage(used: int, total: int) -> float:
    """Return used/total as a percentage, treating an empty total as 0%."""
    if total <= 0:
        return 0.0
    return used / total * 100.0


@dataclass(slots=True, frozen=True)
class MetricsSnapshot:
    """Point-in-time host utilization counters."""

    cpu_percent: float  # 0.0 - 100.0, system-wide
    memory_used: int  # Bytes
    memory_total: int
    swap_used: int
    swap_total: int
    disk_used: int
    disk_total: int

    @classmethod
    def empty(cls) -> "MetricsSnapshot":
        return cls(0.0, 0, 0, 0, 0, 0, 0)

    @property
    def memory_percent(self) -> float:
        return percentage(self.memory_used, self.memory_total)

    @property
    def swap_percent(self) -> float:
        return percentage(self.swap_used, self.swap_total)

    @property
    def disk_percent(self) -> float:
        return percentage(self.disk_used, self.disk_total)


@dataclass(slots=True, frozen=True)
class CacheEntry:
    """A dependency cache directory large enough to report."""

    path: str  # Absolute
    size_bytes: int


@dataclass(slots=True, frozen=True)
class ImageEntry:
    """A container image as listed by the runtime CLI."""

    name: str  # repository:tag
    size_label: str
    created_label: str


@dataclass(slots=True, frozen=True)
class ProcessEntry:
    """Immutable snapshot of a process ranked by resource usage."""

    name: str
    pid: int
    cpu_percent: float
    memory_bytes: int  # RSS

    @property
    def score(self) -> float:
        """Composite resource score: CPU percent plus megabytes of RSS."""
        return self.cpu_percent + self.memory_bytes / 1_000_000


@dataclass(slots=True, frozen=True)
class IssueSnapshot:
    """Copy of the shared issue state, safe to read without the lock."""

    cache_entries: tuple[CacheEntry, ...] = ()
    image_entries: tuple[ImageEntry, ...] = ()
    top_processes: tuple[ProcessEntry, ...] = ()
    scanning: bool = True

    @property
    def cache_total_bytes(self) -> int:
        return sum(entry.size_bytes for entry in self.cache_entries)
