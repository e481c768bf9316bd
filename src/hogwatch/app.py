"""hogwatch - live dashboard of the heaviest processes."""

from queue import Empty, Queue

from textual.app import App, ComposeResult, ScreenStackError
from textual.css.query import NoMatches
from textual.timer import Timer
from textual.widgets import DataTable, Footer, Static

from hogwatch.models import CycleResult, Offender, SortKey
from hogwatch.monitor import ResourceMonitor


class HostStats(Static):
    """Header widget showing host usage and the most recent alert."""

    DEFAULT_CSS = """
    HostStats {
        height: auto;
        min-height: 4;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, core_count: int, *args, **kwargs) -> None:
        """Initialize HostStats."""
        super().__init__("Waiting for first sample...", *args, **kwargs)
        self._core_count = core_count
        self._last_alert: str = ""

    def update_stats(self, result: CycleResult) -> None:
        """Update the statistics from a cycle result."""
        if result.alerts:
            self._last_alert = result.alerts[-1].header
        self.update(self.render_stats(result))

    def render_stats(self, result: CycleResult) -> str:
        """Build the header text for a cycle result."""
        capacity = 100.0 * self._core_count
        lines = [
            f"CPU: {result.cpu_percent:6.1f}% of {capacity:.0f}%   "
            f"Mem: {result.memory_percent:5.1f}%   "
            f"Tracked: {result.tracked}",
        ]
        if self._last_alert:
            lines.append(f"[red]Last alert: {self._last_alert}[/red]")
        return "\n".join(lines)


class OffenderTable(DataTable):
    """Table of the top ranked processes."""

    DEFAULT_CSS = """
    OffenderTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize OffenderTable."""
        super().__init__(*args, **kwargs)
        self._sort_key: SortKey = SortKey.CPU

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        self._sort_key = keys[(keys.index(self._sort_key) + 1) % len(keys)]
        return self._sort_key

    def on_mount(self) -> None:
        """Add columns when mounted."""
        self.cursor_type = "row"
        self.add_column("PID", key="pid", width=8)
        self.add_column("CPU%", key="cpu", width=9)
        self.add_column("MEM%", key="mem", width=8)
        self.add_column("Name", key="name")

    def show(self, offenders: list[Offender]) -> None:
        """Replace the table contents with a fresh ranking."""
        self.clear()
        for offender in offenders:
            self.add_row(
                str(offender.pid),
                f"{offender.cpu_percent:7.2f}",
                f"{offender.mem_percent:6.2f}",
                offender.name[:40],
                key=str(offender.pid),
            )


class HogwatchApp(App):
    """Dashboard application around a background ResourceMonitor."""

    TITLE = "hogwatch"
    SUB_TITLE = "Top resource consumers"

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("f6", "sort", "Sort"),
    ]

    def __init__(
        self,
        monitor: ResourceMonitor,
        updates: Queue[CycleResult],
        refresh_interval: float = 0.5,
    ) -> None:
        """
        Initialize the HogwatchApp.

        Args:
            monitor: Monitor to run on its background thread.
            updates: Queue the monitor's on_cycle callback puts results on.
            refresh_interval: Seconds between UI refreshes.
        """
        super().__init__()
        self._monitor = monitor
        self._updates = updates
        self._refresh_interval = refresh_interval
        self._refresh_timer: Timer | None = None
        self._shutting_down = False

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HostStats(self._monitor.core_count, id="host-stats")
        yield OffenderTable(id="offender-table")
        yield Footer()

    def on_mount(self) -> None:
        """Start the monitor when the app is mounted."""
        self._monitor.start()
        self._refresh_timer = self.set_interval(self._refresh_interval, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Drain queued cycle results and refresh the UI with the latest one."""
        if self._shutting_down:
            return
        if self._monitor.error is not None:
            self._stop_monitoring()
            self.exit(return_code=1, message=f"Telemetry failure: {self._monitor.error}")
            return

        latest = None
        alerted = None
        while True:
            try:
                latest = self._updates.get_nowait()
            except Empty:
                break
            if latest.alerts:
                alerted = latest

        if latest is None:
            return
        try:
            stats = self.query_one("#host-stats", HostStats)
        except (NoMatches, ScreenStackError):
            # Widgets already torn down during exit
            return
        if alerted is not None and alerted is not latest:
            stats.update_stats(alerted)
        stats.update_stats(latest)
        self._refresh_table()

    def _refresh_table(self) -> None:
        table = self.query_one("#offender-table", OffenderTable)
        store = self._monitor.store
        table.show(store.rank(store.all(), limit=self._monitor.config.top, by=table.sort_key))

    def action_sort(self) -> None:
        """Cycle through sort keys."""
        table = self.query_one("#offender-table", OffenderTable)
        new_sort_key = table.cycle_sort()
        self._refresh_table()
        self.notify(f"Sort: {new_sort_key.value.upper()}")

    def _stop_monitoring(self) -> None:
        """Stop refreshing and stop the monitor; queued results are dropped."""
        self._shutting_down = True
        if self._refresh_timer is not None:
            self._refresh_timer.stop()
        self._monitor.stop()

    async def action_quit(self) -> None:
        """Stop the monitor and exit."""
        self._stop_monitoring()
        self.exit()
