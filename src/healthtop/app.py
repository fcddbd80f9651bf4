"""healthtop - Main Textual application."""

import argparse
import logging

from result import Err
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Static

from healthtop.actions import ActionExecutor
from healthtop.config import AppConfig, load_config, sample_config_json
from healthtop.controller import (
    CLEANUP_OPTIONS,
    CleanupMenu,
    CleanupOption,
    InteractionController,
    Key,
    KillMenu,
)
from healthtop.logging_setup import setup_logging
from healthtop.models import IssueSnapshot, MetricsSnapshot
from healthtop.monitor import MetricsSampler, ProcessRanker
from healthtop.scanner import IssueScanner
from healthtop.state import SharedIssueState

logger = logging.getLogger(__name__)

KEYMAP: dict[str, Key] = {
    "up": Key.UP,
    "k": Key.UP,
    "down": Key.DOWN,
    "j": Key.DOWN,
    "enter": Key.CONFIRM,
    "escape": Key.CANCEL,
    "c": Key.OPEN_CLEANUP,
    "q": Key.QUIT,
}

BAR_WIDTH = 30


def bytes_to_gb(size: int) -> float:
    return size / 1_073_741_824


def band_color(percent: float) -> str:
    """Color band for a utilization percentage."""
    if percent >= 80.0:
        return "red"
    if percent >= 60.0:
        return "yellow"
    return "green"


def _bar(label: str, percent: float, detail: str) -> Text:
    filled = min(int(percent / 100 * BAR_WIDTH), BAR_WIDTH)
    color = band_color(percent)
    line = Text(f"{label:<5}")
    line.append("█" * filled, style=color)
    line.append("░" * (BAR_WIDTH - filled), style="dim")
    line.append(f" {percent:5.1f}% {detail}")
    return line


class MetricsPanel(Static):
    """Gauges for disk, memory, CPU and swap."""

    DEFAULT_CSS = """
    MetricsPanel {
        height: auto;
        padding: 1;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._snapshot = MetricsSnapshot.empty()

    @property
    def snapshot(self) -> MetricsSnapshot:
        return self._snapshot

    def update_metrics(self, snapshot: MetricsSnapshot) -> None:
        self._snapshot = snapshot
        self.update(self.render_metrics(snapshot))

    @staticmethod
    def render_metrics(s: MetricsSnapshot) -> Text:
        lines = [
            _bar(
                "Disk",
                s.disk_percent,
                f"({bytes_to_gb(s.disk_used):.1f}GB/{bytes_to_gb(s.disk_total):.1f}GB)",
            ),
            _bar(
                "RAM",
                s.memory_percent,
                f"({bytes_to_gb(s.memory_used):.1f}GB/{bytes_to_gb(s.memory_total):.1f}GB)",
            ),
            _bar("CPU", s.cpu_percent, "avg"),
            _bar("Swap", s.swap_percent, f"{bytes_to_gb(s.swap_used):.1f}GB"),
        ]
        return Text("\n").join(lines)


class IssuesPanel(Static):
    """Summary of what the scanner and the process ranker found."""

    DEFAULT_CSS = """
    IssuesPanel {
        height: 1fr;
        padding: 0 1;
        border: solid $secondary;
    }
    """

    def update_issues(self, issues: IssueSnapshot) -> None:
        self.update(self.render_issues(issues))

    @staticmethod
    def render_issues(issues: IssueSnapshot) -> Text:
        if issues.scanning:
            text = Text("Scanning filesystem...\n", style="yellow")
        else:
            text = Text()
            if issues.cache_entries:
                text.append(
                    f"• Dependency caches: {bytes_to_gb(issues.cache_total_bytes):.1f}GB"
                    f" in {len(issues.cache_entries)} directories\n",
                    style="red",
                )
                for i, entry in enumerate(issues.cache_entries[:3], start=1):
                    text.append(f"  {i}. {entry.path} ({bytes_to_gb(entry.size_bytes):.1f}GB)\n")
            if issues.image_entries:
                text.append(f"• Docker images: {len(issues.image_entries)} found\n", style="yellow")
                for image in issues.image_entries[:3]:
                    text.append(f"  - {image.name} ({image.size_label})\n")

        if issues.top_processes:
            text.append("• Top processes by resource usage:\n", style="cyan")
            for proc in issues.top_processes[:3]:
                text.append(
                    f"  - {proc.name} (CPU: {proc.cpu_percent:.1f}%,"
                    f" RAM: {bytes_to_gb(proc.memory_bytes):.1f}GB)\n"
                )

        if not issues.scanning and not text.plain:
            text.append("No issues found!", style="green")
        return text


class MenuPanel(Static):
    """Cleanup and kill-process menus. Hidden in normal mode."""

    DEFAULT_CSS = """
    MenuPanel {
        height: auto;
        padding: 1 2;
        border: double $warning;
        display: none;
    }
    """

    @staticmethod
    def render_cleanup(issues: IssueSnapshot, selected: int) -> Text:
        labels = {
            CleanupOption.CLEAN_CACHES: (
                f"Clean {len(issues.cache_entries)} dependency caches"
                f" ({bytes_to_gb(issues.cache_total_bytes):.1f}GB)"
            ),
            CleanupOption.PRUNE_IMAGES: f"Prune Docker images ({len(issues.image_entries)})",
            CleanupOption.CLEAN_PACKAGE_CACHE: "Clean package manager cache",
            CleanupOption.KILL_PROCESS: "Kill heavy processes (free RAM)",
        }
        text = Text("Cleanup Menu\n\n", style="bold")
        for i, option in enumerate(CLEANUP_OPTIONS):
            style = "black on white" if i == selected else ""
            text.append(labels[option] + "\n", style=style)
        text.append("\n[↑/↓] Navigate  [Enter] Execute  [Esc] Cancel", style="grey50")
        return text

    @staticmethod
    def render_kill(issues: IssueSnapshot, selected: int) -> Text:
        text = Text("Kill Process (Free RAM)\n\n", style="bold")
        text.append("Select a process to kill:\n\n", style="yellow")
        for i, proc in enumerate(issues.top_processes):
            style = "black on red" if i == selected else ""
            text.append(
                f"{i + 1} - {proc.name} (CPU: {proc.cpu_percent:.1f}%,"
                f" RAM: {bytes_to_gb(proc.memory_bytes):.1f}GB, PID: {proc.pid})\n",
                style=style,
            )
        text.append("\nWARNING: This will force kill the process!\n", style="red")
        text.append("[↑/↓] Navigate  [Enter] Kill  [Esc] Back", style="grey50")
        return text


class HealthtopApp(App):
    """Main healthtop application."""

    TITLE = "healthtop"
    SUB_TITLE = "Host Health Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }

    #help {
        height: 1;
        color: $text-muted;
    }
    """

    # Every key goes through the controller, ahead of any widget or screen binding
    BINDINGS = [
        Binding(key, f"dispatch('{value.value}')", show=False, priority=True)
        for key, value in KEYMAP.items()
    ]

    def __init__(
        self,
        config: AppConfig | None = None,
        executor: ActionExecutor | None = None,
    ) -> None:
        """Initialize the HealthtopApp."""
        super().__init__()
        self._config = config or AppConfig()
        self._state = SharedIssueState()
        self._scanner = IssueScanner(self._state, self._config)
        self._sampler = MetricsSampler()
        self._ranker = ProcessRanker(limit=self._config.process_limit)
        self._executor = executor or ActionExecutor(
            container_tool=self._config.container_tool,
            package_cleanup_command=self._config.package_cleanup_command,
            command_timeout=self._config.command_timeout,
        )
        self._controller = InteractionController(self._state, self._executor)

    @property
    def state(self) -> SharedIssueState:
        return self._state

    @property
    def controller(self) -> InteractionController:
        return self._controller

    @property
    def scanner(self) -> IssueScanner:
        return self._scanner

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield MetricsPanel(id="metrics")
        yield IssuesPanel(id="issues")
        yield MenuPanel(id="menu")
        yield Static(Text("[c] Clean  [q] Quit"), id="help")

    def on_mount(self) -> None:
        """Start the scan and the refresh timers."""
        self._scanner.start()
        self._refresh_metrics()
        self.set_interval(self._config.refresh_interval, self._refresh_metrics)
        self.set_interval(self._config.ui_interval, self._redraw)

    def _refresh_metrics(self) -> None:
        """Sample metrics and processes; runs inline on the UI loop."""
        snapshot = self._sampler.sample()
        try:
            self._state.set_top_processes(self._ranker.rank())
        except Exception:
            logger.debug("Process ranking failed", exc_info=True)
        self.query_one("#metrics", MetricsPanel).update_metrics(snapshot)
        self._redraw()

    def _redraw(self) -> None:
        issues = self._state.snapshot()
        mode = self._controller.mode
        menu = self.query_one("#menu", MenuPanel)

        if isinstance(mode, CleanupMenu):
            menu.update(MenuPanel.render_cleanup(issues, self._controller.selected_index()))
            menu.display = True
        elif isinstance(mode, KillMenu):
            menu.update(MenuPanel.render_kill(issues, self._controller.selected_index()))
            menu.display = True
        else:
            menu.display = False

        self.query_one("#issues", IssuesPanel).update_issues(issues)

    def action_dispatch(self, name: str) -> None:
        """Feed one input to the controller and redraw."""
        if self._controller.handle(Key(name)):
            self.exit()
            return
        self._redraw()


def main(argv: list[str] | None = None) -> None:
    """Entry point for healthtop."""
    ap = argparse.ArgumentParser(prog="healthtop", description="Terminal host health dashboard.")
    ap.add_argument("--config", metavar="PATH", help="Path to a JSON config file.")
    ap.add_argument("--print-config", action="store_true", help="Print the default config and exit.")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging (DEBUG level).")
    ap.add_argument("--log-file", metavar="PATH", help="Write logs to specified file.")
    args = ap.parse_args(argv)

    if args.print_config:
        print(sample_config_json())
        return

    setup_logging(verbose=args.verbose, log_file=args.log_file)

    loaded = load_config(args.config)
    if isinstance(loaded, Err):
        logger.warning("%s Using defaults.", loaded.unwrap_err())
        config = AppConfig()
    else:
        config = loaded.unwrap()

    app = HealthtopApp(config)
    app.run()


if __name__ == "__main__":
    main()
