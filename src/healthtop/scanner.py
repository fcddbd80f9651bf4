"""Background issue scanner for healthtop."""

import logging
import os
import subprocess
import sys
import threading
from collections.abc import Collection, Iterator
from pathlib import Path

from healthtop.config import AppConfig
from healthtop.models import CacheEntry, ImageEntry
from healthtop.state import SharedIssueState

logger = logging.getLogger(__name__)

FALLBACK_SCAN_ROOT = "/Users" if sys.platform == "darwin" else "/home"

IMAGE_FORMAT = "{{.Repository}}:{{.Tag}}\t{{.Size}}\t{{.CreatedAt}}"


def resolve_scan_root(configured: str | None = None) -> str:
    """Return the directory the cache search starts from."""
    if configured:
        return os.path.abspath(os.path.expanduser(configured))
    try:
        return str(Path.home())
    except RuntimeError:
        return os.environ.get("HOME") or FALLBACK_SCAN_ROOT


def find_cache_dirs(
    root: str,
    names: Collection[str],
    max_depth: int = 6,
    skip_names: Collection[str] = (),
) -> Iterator[str]:
    """
    Yield directories under ``root`` whose name is one of ``names``.

    The root is depth 0 and entries down to ``max_depth`` are considered.
    Hidden entries and ``skip_names`` are pruned, symlinks are never followed,
    and a matched directory is not descended into. Unreadable directories are
    skipped.
    """
    stack: list[tuple[str, int]] = [(root, 0)]
    while stack:
        path, depth = stack.pop()
        if depth >= max_depth:
            continue
        try:
            with os.scandir(path) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError:
            continue

        children: list[tuple[str, int]] = []
        for entry in entries:
            name = entry.name
            if name.startswith(".") or name in skip_names:
                continue
            try:
                if not entry.is_dir(follow_symlinks=False):
                    continue
            except OSError:
                continue
            if name in names:
                yield entry.path
            else:
                children.append((entry.path, depth + 1))
        stack.extend(reversed(children))


def dir_size(path: str) -> int:
    """Sum the sizes of regular files below ``path`` without following symlinks."""
    total = 0
    stack = [path]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                for entry in it:
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            stack.append(entry.path)
                        elif entry.is_file(follow_symlinks=False):
                            total += entry.stat(follow_symlinks=False).st_size
                    except OSError:
                        # Vanished or unreadable entry
                        continue
        except OSError:
            continue
    return total


def scan_caches(
    root: str,
    names: Collection[str],
    max_depth: int = 6,
    skip_names: Collection[str] = (),
    size_floor: int = 100_000_000,
    limit: int = 10,
) -> list[CacheEntry]:
    """Return the largest cache directories above ``size_floor``, biggest first."""
    entries: list[CacheEntry] = []
    seen: set[str] = set()

    for path in find_cache_dirs(root, names, max_depth, skip_names):
        if path in seen:
            continue
        seen.add(path)
        size = dir_size(path)
        logger.debug("Cache candidate %s: %d bytes", path, size)
        if size > size_floor:
            entries.append(CacheEntry(path=path, size_bytes=size))

    entries.sort(key=lambda e: (-e.size_bytes, e.path))
    return entries[:limit]


def parse_image_lines(text: str, limit: int = 10) -> list[ImageEntry]:
    """Parse tab separated ``name, size, created`` lines from the image listing."""
    images: list[ImageEntry] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        parts = line.split("\t")
        if len(parts) < 3:
            continue
        images.append(ImageEntry(name=parts[0], size_label=parts[1], created_label=parts[2]))
        if len(images) >= limit:
            break
    return images


def list_images(tool: str = "docker", limit: int = 10, timeout: float = 60.0) -> list[ImageEntry]:
    """
    List container images via the runtime CLI.

    A missing tool, a non-zero exit or a timeout all mean "no images".
    """
    cmd = [tool, "images", "--format", IMAGE_FORMAT]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except (OSError, subprocess.SubprocessError) as exc:
        logger.info("Image listing unavailable (%s): %s", tool, exc)
        return []

    if result.returncode != 0:
        logger.info("Image listing exited with %d", result.returncode)
        return []

    return parse_image_lines(result.stdout, limit)


class IssueScanner:
    """
    One-shot scanner for reclaimable space.

    Runs once in a daemon thread started at application init and publishes
    its findings into the shared state. It is never restarted and has no
    cancellation path; process exit is the only way to stop it.
    """

    def __init__(self, state: SharedIssueState, config: AppConfig | None = None) -> None:
        self._state = state
        self._config = config or AppConfig()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        """Check if the scanner thread is still working."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def started(self) -> bool:
        return self._thread is not None

    def start(self) -> None:
        """Start the scan. Calling it again has no effect."""
        if self._thread is not None:
            return

        self._thread = threading.Thread(
            target=self.run,
            daemon=True,
            name="IssueScanner",
        )
        self._thread.start()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the scan to finish. Returns True if it has."""
        if self._thread is None:
            return False
        self._thread.join(timeout=timeout)
        return not self._thread.is_alive()

    def run(self) -> None:
        """Scan caches and images, then publish whatever was collected."""
        config = self._config
        caches: list[CacheEntry] = []
        images: list[ImageEntry] = []
        try:
            try:
                root = resolve_scan_root(config.scan_root)
                logger.info("Scanning %s for caches", root)
                caches = scan_caches(
                    root,
                    names=set(config.cache_dir_names),
                    max_depth=config.max_depth,
                    skip_names=set(config.skip_dir_names),
                    size_floor=config.size_floor,
                    limit=config.cache_limit,
                )
            except Exception:
                logger.exception("Cache scan failed")
            try:
                images = list_images(
                    config.container_tool, config.image_limit, config.command_timeout
                )
            except Exception:
                logger.exception("Image listing failed")
        finally:
            self._state.publish_scan(caches, images)
            logger.info("Scan finished: %d caches, %d images", len(caches), len(images))
