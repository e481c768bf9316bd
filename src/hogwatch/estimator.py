"""Trend-aware, time-decaying smoothing of noisy resource samples."""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field

# Seconds. A read straight after an update is still treated as one second old.
MIN_ELAPSED = 1.0


def decay_factor(elapsed: float, halflife: float) -> float:
    """Return the staleness penalty for an estimate last updated `elapsed` seconds ago."""
    return math.exp(-max(elapsed, MIN_ELAPSED) / halflife)


@dataclass(slots=True)
class SmoothedEstimator:
    """
    Double-exponential (Holt) smoother with a ceiling and time decay.

    `update()` folds a raw sample into the level/trend pair; `get_estimate()`
    returns the level scaled down by how long ago the last sample arrived,
    so values of processes that stopped reporting fade toward zero.

    `decay_halflife` is used as the e-folding time constant of the decay.
    """

    ceiling: float
    alpha: float = 0.1
    beta: float = 0.1
    decay_halflife: float = 3.0
    clock: Callable[[], float] = field(default=time.monotonic, repr=False, compare=False)
    estimate: float = field(default=0.0, init=False)
    trend: float = field(default=0.0, init=False)
    last_seen: float = field(default=0.0, init=False)

    def __post_init__(self) -> None:
        self.last_seen = self.clock()

    def update(self, value: float) -> None:
        """Fold a new raw sample into the estimate."""
        previous = self.estimate
        self.estimate = min(
            self.alpha * value + (1.0 - self.alpha) * (previous + self.trend),
            self.ceiling,
        )
        self.trend = self.beta * (self.estimate - previous) + (1.0 - self.beta) * self.trend
        self.last_seen = self.clock()

    def get_estimate(self, now: float | None = None) -> float:
        """
        Get the decayed estimate.

        Args:
            now: Clock reading to evaluate at. Defaults to the estimator's clock.
        """
        if now is None:
            now = self.clock()
        return self.estimate * decay_factor(now - self.last_seen, self.decay_halflife)
