"""Shared fixtures for hogwatch tests."""

import pytest

from hogwatch.models import HostSnapshot, ProcessSample


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTelemetry:
    """Telemetry source replaying queued snapshots."""

    def __init__(self, cores: int = 4, memory_total: int = 1000) -> None:
        self.cores = cores
        self.memory_total = memory_total
        self.snapshots: list[HostSnapshot] = []
        self.error: Exception | None = None
        self.calls = 0

    def core_count(self) -> int:
        return self.cores

    def push(
        self,
        cpu_percent: float,
        processes: list[tuple[int, float, int]],
        memory_percent: float = 50.0,
    ) -> None:
        """Queue a snapshot built from (pid, cpu_percent, memory_rss) tuples."""
        self.snapshots.append(
            HostSnapshot(
                cpu_percent=cpu_percent,
                memory_total=self.memory_total,
                memory_percent=memory_percent,
                processes=[
                    ProcessSample(pid=pid, name=f"proc{pid}", cpu_percent=cpu, memory_rss=rss)
                    for pid, cpu, rss in processes
                ],
            )
        )

    def sample(self) -> HostSnapshot:
        self.calls += 1
        if self.error is not None:
            raise self.error
        if len(self.snapshots) > 1:
            return self.snapshots.pop(0)
        return self.snapshots[0]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def telemetry() -> FakeTelemetry:
    return FakeTelemetry()
