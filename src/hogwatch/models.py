"""Data models for hogwatch."""

from dataclasses import dataclass, field
from enum import Enum


class SortKey(Enum):
    """Sort keys for offender rankings."""

    CPU = "cpu"
    MEM = "mem"
    PID = "pid"


class AlertKind(Enum):
    """Which host-wide threshold an alert was raised for."""

    CPU = "CPU"
    MEMORY = "Memory"


@dataclass(slots=True, frozen=True)
class ProcessSample:
    """Raw, instantaneous reading of one process."""

    pid: int
    name: str
    cpu_percent: float  # 0.0 - 100.0 * core_count
    memory_rss: int  # Bytes


@dataclass(slots=True, frozen=True)
class HostSnapshot:
    """One round of telemetry for the whole host."""

    cpu_percent: float  # Sum over cores, 0.0 - 100.0 * core_count
    memory_total: int
    memory_percent: float
    processes: list[ProcessSample]


@dataclass(slots=True, frozen=True)
class Offender:
    """A ranked process with its decayed estimates, in report units."""

    pid: int
    name: str
    cpu_percent: float
    mem_percent: float

    def format_line(self) -> str:
        """Format the offender as a report line."""
        return f"PID: {self.pid}, CPU: {self.cpu_percent:.2f}%, MEM: {self.mem_percent:.2f}%"


@dataclass(slots=True, frozen=True)
class Alert:
    """A threshold breach and the processes blamed for it."""

    kind: AlertKind
    value: float
    offenders: list[Offender]

    @property
    def header(self) -> str:
        return f"{self.kind.value} Threshold Exceeded: {self.value:.2f}%"

    def format_lines(self) -> list[str]:
        """Format the alert as header line followed by one line per offender."""
        return [self.header, *(offender.format_line() for offender in self.offenders)]


@dataclass(slots=True, frozen=True)
class CycleResult:
    """Outcome of a single monitor cycle."""

    cpu_percent: float
    memory_percent: float
    recorded: int
    tracked: int
    alerts: list[Alert] = field(default_factory=list)
