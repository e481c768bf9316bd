"""Per-process estimate store with filtering and ranking."""

import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from hogwatch.estimator import SmoothedEstimator
from hogwatch.models import Offender, SortKey

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProcessEntry:
    """Smoothed CPU and memory estimates for one process identifier."""

    pid: int
    name: str
    cpu_estimator: SmoothedEstimator
    mem_estimator: SmoothedEstimator

    @property
    def cpu(self) -> float:
        """Decayed CPU estimate in percent (100 per busy core)."""
        return self.cpu_estimator.get_estimate()

    @property
    def mem(self) -> float:
        """Decayed memory estimate as a fraction of host memory."""
        return self.mem_estimator.get_estimate()

    @property
    def last_seen(self) -> float:
        return max(self.cpu_estimator.last_seen, self.mem_estimator.last_seen)


class ResourceStore:
    """
    Owns one ProcessEntry per process identifier ever recorded.

    Entries are created lazily by `record()` and are never removed unless
    `evict()` is called explicitly. Every access to the entries mapping goes
    through one lock, so the store may be written by a monitor thread while
    a UI thread reads it.
    """

    def __init__(
        self,
        core_count: int,
        clock: Callable[[], float] = time.monotonic,
        alpha: float = 0.1,
        beta: float = 0.1,
        decay_halflife: float = 3.0,
    ) -> None:
        """
        Initialize the ResourceStore.

        Args:
            core_count: Logical cores on the host. CPU estimates are capped at
                100% per core.
            clock: Monotonic time source shared by all estimators.
            alpha: Level smoothing factor.
            beta: Trend smoothing factor.
            decay_halflife: Decay time constant in seconds.
        """
        self._core_count = core_count
        self._clock = clock
        self._alpha = alpha
        self._beta = beta
        self._decay_halflife = decay_halflife
        self._entries: dict[int, ProcessEntry] = {}
        self._lock = threading.Lock()

    @property
    def core_count(self) -> int:
        return self._core_count

    @property
    def cpu_ceiling(self) -> float:
        return 100.0 * self._core_count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, pid: object) -> bool:
        with self._lock:
            return pid in self._entries

    def get(self, pid: int) -> ProcessEntry | None:
        with self._lock:
            return self._entries.get(pid)

    def _new_estimator(self, ceiling: float) -> SmoothedEstimator:
        return SmoothedEstimator(
            ceiling=ceiling,
            alpha=self._alpha,
            beta=self._beta,
            decay_halflife=self._decay_halflife,
            clock=self._clock,
        )

    def record(self, pid: int, cpu_sample: float, mem_sample: float, name: str = "") -> None:
        """
        Fold one sample into the entry for `pid`, creating it if needed.

        Args:
            pid: Process identifier.
            cpu_sample: Raw CPU usage in percent.
            mem_sample: Memory usage as a fraction of total host memory.
            name: Process name, kept from the first non-empty sample.
        """
        with self._lock:
            entry = self._entries.get(pid)
            if entry is None:
                entry = ProcessEntry(
                    pid=pid,
                    name=name,
                    cpu_estimator=self._new_estimator(self.cpu_ceiling),
                    mem_estimator=self._new_estimator(1.0),
                )
                self._entries[pid] = entry
                logger.debug("Tracking new process %s (%s)", pid, name or "?")
            elif name and not entry.name:
                entry.name = name
            entry.cpu_estimator.update(cpu_sample)
            entry.mem_estimator.update(mem_sample)

    def filter(self, min_cpu: float, min_mem: float) -> list[ProcessEntry]:
        """Return entries whose decayed CPU is >= min_cpu and decayed memory is >= min_mem."""
        with self._lock:
            now = self._clock()
            return [
                entry
                for entry in self._entries.values()
                if entry.cpu_estimator.get_estimate(now) >= min_cpu
                and entry.mem_estimator.get_estimate(now) >= min_mem
            ]

    def all(self) -> list[ProcessEntry]:
        """Return every tracked entry."""
        with self._lock:
            return list(self._entries.values())

    def rank(
        self,
        entries: Iterable[ProcessEntry],
        limit: int = 20,
        by: SortKey = SortKey.CPU,
    ) -> list[Offender]:
        """
        Sort entries by decayed estimate and keep the top `limit`.

        All estimates are evaluated at the same instant under the store lock,
        so a concurrent `record()` is never seen half applied. CPU and MEM
        sort descending; PID sorts ascending.
        """
        with self._lock:
            now = self._clock()
            offenders = [
                Offender(
                    pid=entry.pid,
                    name=entry.name,
                    cpu_percent=entry.cpu_estimator.get_estimate(now),
                    mem_percent=entry.mem_estimator.get_estimate(now) * 100.0,
                )
                for entry in entries
            ]
        key_func = {
            SortKey.CPU: lambda o: o.cpu_percent,
            SortKey.MEM: lambda o: o.mem_percent,
            SortKey.PID: lambda o: o.pid,
        }
        offenders.sort(key=key_func[by], reverse=by is not SortKey.PID)
        return offenders[:limit]

    def evict(self, max_age: float, floor: float) -> int:
        """
        Drop entries that are both stale and negligible.

        An entry goes when its last update is more than `max_age` seconds old
        and its decayed CPU (as a fraction of total capacity) and decayed
        memory fraction are both below `floor`.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            now = self._clock()
            stale = [
                pid
                for pid, entry in self._entries.items()
                if now - entry.last_seen > max_age
                and entry.cpu_estimator.get_estimate(now) < floor * self.cpu_ceiling
                and entry.mem_estimator.get_estimate(now) < floor
            ]
            for pid in stale:
                del self._entries[pid]
        if stale:
            logger.debug("Evicted %d stale entries", len(stale))
        return len(stale)
