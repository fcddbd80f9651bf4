"""Modal interaction state machine for healthtop."""

import logging
from dataclasses import dataclass
from enum import Enum

from healthtop.actions import ActionExecutor, ActionOutcome
from healthtop.state import SharedIssueState

logger = logging.getLogger(__name__)


class Key(Enum):
    """Abstract inputs understood by the controller."""

    UP = "up"
    DOWN = "down"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    OPEN_CLEANUP = "open_cleanup"
    QUIT = "quit"


class CleanupOption(Enum):
    """Entries of the cleanup menu, in display order."""

    CLEAN_CACHES = "clean_caches"
    PRUNE_IMAGES = "prune_images"
    CLEAN_PACKAGE_CACHE = "clean_package_cache"
    KILL_PROCESS = "kill_process"


CLEANUP_OPTIONS: tuple[CleanupOption, ...] = tuple(CleanupOption)


@dataclass(slots=True, frozen=True)
class Normal:
    pass


@dataclass(slots=True, frozen=True)
class CleanupMenu:
    selected: int = 0


@dataclass(slots=True, frozen=True)
class KillMenu:
    selected: int = 0


InteractionMode = Normal | CleanupMenu | KillMenu


def _step(selected: int, key: Key, count: int) -> int:
    """Move ``selected`` one place up or down within ``count`` items, wrapping."""
    if count <= 0:
        return 0
    last = count - 1
    selected = min(max(selected, 0), last)
    if key is Key.UP:
        return selected - 1 if selected > 0 else last
    return selected + 1 if selected < last else 0


class InteractionController:
    """
    Interprets input in the current mode and dispatches cleanup actions.

    The mode is owned by the UI loop. Process lists are read from the shared
    state at the moment they are needed, never cached here.
    """

    def __init__(self, state: SharedIssueState, executor: ActionExecutor) -> None:
        self._state = state
        self._executor = executor
        self._mode: InteractionMode = Normal()
        self.last_outcomes: list[ActionOutcome] = []

    @property
    def mode(self) -> InteractionMode:
        return self._mode

    def selected_index(self) -> int:
        """The current selection clamped to the list it indexes."""
        mode = self._mode
        if isinstance(mode, CleanupMenu):
            return min(max(mode.selected, 0), len(CLEANUP_OPTIONS) - 1)
        if isinstance(mode, KillMenu):
            count = len(self._state.top_processes())
            return min(max(mode.selected, 0), max(count - 1, 0))
        return 0

    def handle(self, key: Key) -> bool:
        """Apply one input. Returns True when the application should exit."""
        mode = self._mode
        if isinstance(mode, Normal):
            return self._handle_normal(key)
        if isinstance(mode, CleanupMenu):
            self._handle_cleanup(mode, key)
        elif isinstance(mode, KillMenu):
            self._handle_kill(mode, key)
        return False

    def _handle_normal(self, key: Key) -> bool:
        if key is Key.QUIT:
            return True
        if key is Key.OPEN_CLEANUP:
            self._mode = CleanupMenu(0)
        return False

    def _handle_cleanup(self, mode: CleanupMenu, key: Key) -> None:
        if key in (Key.CANCEL, Key.QUIT):
            self._mode = Normal()
        elif key in (Key.UP, Key.DOWN):
            self._mode = CleanupMenu(_step(mode.selected, key, len(CLEANUP_OPTIONS)))
        elif key is Key.CONFIRM:
            option = CLEANUP_OPTIONS[self.selected_index()]
            if option is CleanupOption.KILL_PROCESS:
                self._mode = KillMenu(0)
                return
            self.last_outcomes = self._run_option(option)
            self._mode = Normal()

    def _handle_kill(self, mode: KillMenu, key: Key) -> None:
        if key in (Key.CANCEL, Key.QUIT):
            self._mode = CleanupMenu(0)
        elif key in (Key.UP, Key.DOWN):
            count = len(self._state.top_processes())
            self._mode = KillMenu(_step(mode.selected, key, count))
        elif key is Key.CONFIRM:
            processes = self._state.top_processes()
            if processes:
                index = min(max(mode.selected, 0), len(processes) - 1)
                target = processes[index]
                logger.info("Killing %s (pid %d)", target.name, target.pid)
                self.last_outcomes = self._executor.kill_process(target.pid)
            self._mode = CleanupMenu(0)

    def _run_option(self, option: CleanupOption) -> list[ActionOutcome]:
        logger.info("Running cleanup option %s", option.value)
        if option is CleanupOption.CLEAN_CACHES:
            return self._executor.clean_caches(self._state.cache_entries())
        if option is CleanupOption.PRUNE_IMAGES:
            return self._executor.prune_images()
        return self._executor.clean_package_cache()
