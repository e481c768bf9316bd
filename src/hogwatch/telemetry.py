"""Host and process telemetry for hogwatch."""

import time
from typing import Protocol

import psutil

from hogwatch.models import HostSnapshot, ProcessSample


class TelemetrySource(Protocol):
    """Anything that can report per-process and host-wide resource usage."""

    def core_count(self) -> int: ...

    def sample(self) -> HostSnapshot: ...


class PsutilTelemetry:
    """
    Telemetry source backed by psutil.

    CPU figures follow psutil's convention: 100.0 per fully busy core, so a
    process or the host total may exceed 100 on multi-core machines.
    Processes that exit or deny access mid-poll are skipped.
    """

    ATTRS = ["pid", "name", "cpu_percent", "memory_info"]

    def __init__(self) -> None:
        # First call returns 0.0; establish a baseline.
        psutil.cpu_percent(percpu=True)

    def prime(self, delay: float = 0.5) -> None:
        """
        Take a throwaway reading of every process and wait.

        psutil computes CPU percentages between two calls, so the first
        real sample is only meaningful after a baseline and a short pause.
        """
        self._collect_processes()
        time.sleep(delay)

    def core_count(self) -> int:
        return psutil.cpu_count(logical=True) or 1

    def sample(self) -> HostSnapshot:
        """Collect one snapshot of the host."""
        cpu_percents = psutil.cpu_percent(percpu=True)
        mem = psutil.virtual_memory()
        processes = self._collect_processes()

        return HostSnapshot(
            cpu_percent=float(sum(cpu_percents)),
            memory_total=mem.total,
            memory_percent=mem.percent,
            processes=processes,
        )

    def _collect_processes(self) -> list[ProcessSample]:
        """
        Collect raw samples of all running processes.

        psutil.process_iter() caches Process objects between calls, which is
        what makes per-process cpu_percent a rate over the poll interval.
        """
        processes: list[ProcessSample] = []

        for proc in psutil.process_iter(attrs=self.ATTRS):
            try:
                info = proc.info
                mem_info = info.get("memory_info")
                processes.append(
                    ProcessSample(
                        pid=info["pid"],
                        name=info.get("name") or "",
                        cpu_percent=info.get("cpu_percent") or 0.0,
                        memory_rss=mem_info.rss if mem_info else 0,
                    )
                )
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                # Process died mid-poll or is off limits; not a telemetry failure
                continue

        return processes
