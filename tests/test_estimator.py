"""Tests for the smoothed estimator."""

import math

import pytest

from hogwatch.estimator import MIN_ELAPSED, SmoothedEstimator, decay_factor


def test_decay_factor_floor():
    """Elapsed times below one second decay like one second."""
    assert decay_factor(0.0, 3.0) == pytest.approx(math.exp(-1 / 3))
    assert decay_factor(0.5, 3.0) == decay_factor(MIN_ELAPSED, 3.0)
    assert decay_factor(-5.0, 3.0) == decay_factor(MIN_ELAPSED, 3.0)


def test_decay_factor_longer_elapsed():
    """Decay follows exp(-elapsed / halflife) past the floor."""
    assert decay_factor(6.0, 3.0) == pytest.approx(math.exp(-2.0))


class TestSmoothedEstimator:
    """Tests for SmoothedEstimator."""

    def test_initial_state(self, clock):
        """A fresh estimator starts at zero and was last seen at creation."""
        est = SmoothedEstimator(ceiling=1.0, clock=clock)
        assert est.estimate == 0.0
        assert est.trend == 0.0
        assert est.last_seen == clock.now
        assert est.get_estimate() == 0.0

    def test_first_update(self, clock):
        """The first update moves the level alpha of the way to the sample."""
        est = SmoothedEstimator(ceiling=400.0, clock=clock)
        est.update(350.0)
        assert est.estimate == pytest.approx(35.0)
        assert est.trend == pytest.approx(3.5)
        assert est.get_estimate() == pytest.approx(35.0 * math.exp(-1 / 3))

    def test_trend_uses_previous_estimate(self, clock):
        """Trend is updated from the change between old and new level."""
        est = SmoothedEstimator(ceiling=1000.0, alpha=0.5, beta=0.5, clock=clock)
        est.update(100.0)
        # level 50, trend 0.5 * 50 = 25
        est.update(100.0)
        # level 0.5 * 100 + 0.5 * (50 + 25) = 87.5, trend 0.5 * 37.5 + 0.5 * 25
        assert est.estimate == pytest.approx(87.5)
        assert est.trend == pytest.approx(31.25)

    def test_update_sets_last_seen(self, clock):
        """Updating stamps the estimator with the current time."""
        est = SmoothedEstimator(ceiling=1.0, clock=clock)
        clock.advance(10.0)
        est.update(0.5)
        assert est.last_seen == clock.now

    def test_get_estimate_has_no_side_effects(self, clock):
        """Reading does not refresh last_seen or change the level."""
        est = SmoothedEstimator(ceiling=1.0, clock=clock)
        est.update(0.5)
        seen = est.last_seen
        clock.advance(4.0)
        first = est.get_estimate()
        second = est.get_estimate()
        assert first == second
        assert est.last_seen == seen
        assert est.estimate == pytest.approx(0.05)

    def test_clamped_to_ceiling(self, clock):
        """Samples above the ceiling never push the estimate past it."""
        est = SmoothedEstimator(ceiling=4.0, clock=clock)
        for _ in range(200):
            est.update(1000.0)
            assert est.estimate <= 4.0
            assert est.get_estimate() <= 4.0 * decay_factor(MIN_ELAPSED, 3.0) + 1e-12
        assert est.estimate == pytest.approx(4.0)

    def test_negative_values_accepted(self, clock):
        """Negative samples are folded in without validation."""
        est = SmoothedEstimator(ceiling=1.0, clock=clock)
        est.update(-1.0)
        assert est.estimate == pytest.approx(-0.1)

    def test_decay_monotonic(self, clock):
        """Without updates, later reads never exceed earlier ones."""
        est = SmoothedEstimator(ceiling=100.0, clock=clock)
        est.update(80.0)
        previous = est.get_estimate()
        for _ in range(20):
            clock.advance(0.7)
            current = est.get_estimate()
            assert current <= previous
            previous = current
        assert previous < est.estimate

    def test_decay_strictly_decreasing_past_floor(self, clock):
        """Past the one-second floor, decay is strictly decreasing."""
        est = SmoothedEstimator(ceiling=100.0, clock=clock)
        est.update(50.0)
        clock.advance(2.0)
        early = est.get_estimate()
        clock.advance(2.0)
        assert est.get_estimate() < early

    def test_increasing_samples_keep_trend_non_negative(self, clock):
        """A strictly increasing series never produces a negative trend."""
        est = SmoothedEstimator(ceiling=10_000.0, clock=clock)
        for value in range(1, 300):
            est.update(float(value) * 3.0)
            assert est.trend >= 0.0

    def test_constant_samples_converge(self, clock):
        """A constant series converges the level to the value and the trend to zero."""
        est = SmoothedEstimator(ceiling=1000.0, clock=clock)
        for _ in range(1000):
            est.update(42.0)
        assert est.estimate == pytest.approx(42.0, abs=1e-6)
        assert est.trend == pytest.approx(0.0, abs=1e-6)

    def test_custom_halflife(self, clock):
        """Decay uses the configured time constant."""
        est = SmoothedEstimator(ceiling=1.0, decay_halflife=10.0, clock=clock)
        est.update(1.0)
        clock.advance(5.0)
        assert est.get_estimate() == pytest.approx(0.1 * math.exp(-0.5))

    def test_explicit_now(self, clock):
        """get_estimate accepts an explicit clock reading."""
        est = SmoothedEstimator(ceiling=1.0, clock=clock)
        est.update(1.0)
        assert est.get_estimate(clock.now + 3.0) == pytest.approx(0.1 * math.exp(-1.0))

    def test_uses_slots(self, clock):
        """SmoothedEstimator uses __slots__."""
        est = SmoothedEstimator(ceiling=1.0, clock=clock)
        assert not hasattr(est, "__dict__")
