"""Monitor configuration."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class MonitorConfig:
    """
    Tunables of the monitor loop.

    Percentages expressed "per core" are multiplied by the logical core
    count when the monitor starts.
    """

    cpu_threshold: float = 90.0  # % per core; host alert
    mem_threshold: float = 90.0  # % of host memory; host alert
    record_threshold: float = 5.0  # % per core; raw sample recording
    memory_limit: float = 10.0  # % of host memory; raw sample recording
    blame_cpu: float = 0.5  # fraction of total CPU capacity
    blame_mem: float = 0.2  # fraction of host memory
    top: int = 20
    interval_ms: int = 50
    evict_after: float | None = None  # seconds; None keeps every entry
    evict_floor: float = 0.01

    def __post_init__(self) -> None:
        if self.interval_ms <= 0:
            raise ValueError(f"interval must be positive, got {self.interval_ms}")
        if self.top <= 0:
            raise ValueError(f"top must be positive, got {self.top}")
        for name in ("cpu_threshold", "mem_threshold", "record_threshold", "memory_limit"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative, got {getattr(self, name)}")
        for name in ("blame_cpu", "blame_mem", "evict_floor"):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {getattr(self, name)}")
        if self.evict_after is not None and self.evict_after <= 0:
            raise ValueError(f"evict_after must be positive, got {self.evict_after}")

    @property
    def interval(self) -> float:
        """Poll interval in seconds."""
        return self.interval_ms / 1000.0
