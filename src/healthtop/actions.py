"""Destructive cleanup actions for healthtop."""

import logging
import shlex
import shutil
import subprocess
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import psutil

from healthtop.models import CacheEntry

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ActionOutcome:
    """Result of one best-effort operation on one target."""

    target: str
    ok: bool
    error: str | None = None


class ActionExecutor:
    """
    Runs cleanup operations without ever raising.

    Every method returns one ActionOutcome per item it touched. Callers are
    free to ignore them; failures are also logged.
    """

    def __init__(
        self,
        container_tool: str = "docker",
        package_cleanup_command: Sequence[str] = ("brew", "cleanup", "-s"),
        command_timeout: float = 60.0,
    ) -> None:
        self._container_tool = container_tool
        self._package_cleanup_command = list(package_cleanup_command)
        self._command_timeout = command_timeout

    def clean_caches(self, entries: Iterable[CacheEntry]) -> list[ActionOutcome]:
        """Delete every cache directory; one failure does not stop the rest."""
        outcomes: list[ActionOutcome] = []
        for entry in entries:
            try:
                shutil.rmtree(entry.path)
            except OSError as exc:
                outcomes.append(self._failed(entry.path, str(exc)))
            else:
                logger.info("Removed %s", entry.path)
                outcomes.append(ActionOutcome(entry.path, True))
        return outcomes

    def prune_images(self) -> list[ActionOutcome]:
        return [self._run([self._container_tool, "image", "prune", "-af"])]

    def clean_package_cache(self) -> list[ActionOutcome]:
        return [self._run(self._package_cleanup_command)]

    def kill_process(self, pid: int) -> list[ActionOutcome]:
        """Send SIGKILL (TerminateProcess on Windows) to ``pid``."""
        target = f"pid {pid}"
        try:
            psutil.Process(pid).kill()
        except (psutil.Error, OSError) as exc:
            return [self._failed(target, str(exc) or type(exc).__name__)]
        logger.info("Killed %s", target)
        return [ActionOutcome(target, True)]

    def _run(self, cmd: list[str]) -> ActionOutcome:
        target = shlex.join(cmd)
        try:
            result = subprocess.run(cmd, capture_output=True, timeout=self._command_timeout)
        except (OSError, subprocess.SubprocessError) as exc:
            return self._failed(target, str(exc))
        if result.returncode != 0:
            return self._failed(target, f"exit status {result.returncode}")
        logger.info("Ran %s", target)
        return ActionOutcome(target, True)

    @staticmethod
    def _failed(target: str, error: str) -> ActionOutcome:
        logger.warning("Cleanup of %s failed: %s", target, error)
        return ActionOutcome(target, False, error)
