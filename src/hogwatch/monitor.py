"""Monitor loop: sample, record, check thresholds, blame."""

import logging
import threading
from collections.abc import Callable

from hogwatch.config import MonitorConfig
from hogwatch.models import Alert, AlertKind, CycleResult, HostSnapshot, SortKey
from hogwatch.store import ResourceStore
from hogwatch.telemetry import TelemetrySource

logger = logging.getLogger(__name__)


class ResourceMonitor:
    """
    Periodically feeds telemetry into a ResourceStore and raises alerts.

    Each cycle records every process whose raw CPU or memory usage crosses
    the recording limits, then compares host CPU and memory usage against
    the alert thresholds. On a breach the store is asked for processes
    above the blame limits (falling back to everything tracked) and the top
    entries are reported.

    Runs in the calling thread via `run()`, or on a daemon thread via
    `start()`/`stop()`. Telemetry failures are not caught: they end `run()`,
    and on the thread they are kept in `error`.
    """

    def __init__(
        self,
        source: TelemetrySource,
        config: MonitorConfig | None = None,
        store: ResourceStore | None = None,
        on_alert: Callable[[Alert], None] | None = None,
        on_cycle: Callable[[CycleResult], None] | None = None,
    ) -> None:
        """
        Initialize the ResourceMonitor.

        Args:
            source: Telemetry source; its core count is read once here.
            config: Thresholds and intervals. Defaults to MonitorConfig().
            store: Store to record into. Created from the core count if omitted.
            on_alert: Called with every alert raised.
            on_cycle: Called with the result of every cycle.
        """
        self._source = source
        self._config = config or MonitorConfig()
        self._core_count = source.core_count()
        self._store = store if store is not None else ResourceStore(self._core_count)
        self._on_alert = on_alert
        self._on_cycle = on_cycle

        self._cpu_recording = self._config.record_threshold * self._core_count
        self._cpu_threshold = self._config.cpu_threshold * self._core_count
        self._blame_cpu = self._config.blame_cpu * self._core_count * 100.0

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._error: Exception | None = None

    @property
    def store(self) -> ResourceStore:
        return self._store

    @property
    def config(self) -> MonitorConfig:
        return self._config

    @property
    def core_count(self) -> int:
        return self._core_count

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def error(self) -> Exception | None:
        """Exception that ended the monitor thread, if any."""
        return self._error

    def run_once(self) -> CycleResult:
        """Run a single cycle and return what happened."""
        snapshot = self._source.sample()
        recorded = self._record(snapshot)

        if self._config.evict_after is not None:
            self._store.evict(self._config.evict_after, self._config.evict_floor)

        alerts: list[Alert] = []
        if snapshot.cpu_percent > self._cpu_threshold:
            alerts.append(self._blame(AlertKind.CPU, snapshot.cpu_percent, SortKey.CPU))
        if snapshot.memory_percent > self._config.mem_threshold:
            alerts.append(self._blame(AlertKind.MEMORY, snapshot.memory_percent, SortKey.MEM))

        for alert in alerts:
            logger.info("%s (%d offenders)", alert.header, len(alert.offenders))
            if self._on_alert is not None:
                self._on_alert(alert)

        result = CycleResult(
            cpu_percent=snapshot.cpu_percent,
            memory_percent=snapshot.memory_percent,
            recorded=recorded,
            tracked=len(self._store),
            alerts=alerts,
        )
        if self._on_cycle is not None:
            self._on_cycle(result)
        return result

    def _record(self, snapshot: HostSnapshot) -> int:
        """Record processes crossing either raw limit; return how many."""
        total = snapshot.memory_total
        mem_limit = total * self._config.memory_limit / 100.0
        recorded = 0
        for proc in snapshot.processes:
            if proc.cpu_percent > self._cpu_recording or proc.memory_rss > mem_limit:
                mem_fraction = proc.memory_rss / total if total else 0.0
                self._store.record(proc.pid, proc.cpu_percent, mem_fraction, name=proc.name)
                recorded += 1
        return recorded

    def _blame(self, kind: AlertKind, value: float, by: SortKey) -> Alert:
        """Select and rank the processes to report for a breach."""
        entries = self._store.filter(self._blame_cpu, self._config.blame_mem)
        if not entries:
            entries = self._store.all()
        offenders = self._store.rank(entries, limit=self._config.top, by=by)
        return Alert(kind=kind, value=value, offenders=offenders)

    def run(self, max_cycles: int | None = None) -> None:
        """
        Run cycles until stopped.

        Args:
            max_cycles: Stop after this many cycles. Runs forever if None.
        """
        cycles = 0
        while not self._stop_event.is_set():
            self.run_once()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            self._stop_event.wait(timeout=self._config.interval)

    def start(self) -> None:
        """Start the monitoring thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._error = None
        self._thread = threading.Thread(
            target=self._thread_main,
            daemon=True,
            name="ResourceMonitor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the monitor loop and join the thread if there is one.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _thread_main(self) -> None:
        try:
            self.run()
        except Exception as exc:
            logger.critical("Telemetry acquisition failed: %s", exc, exc_info=True)
            self._error = exc
