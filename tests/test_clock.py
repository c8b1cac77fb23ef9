"""Tests for delta-time interval timers and the day/night cycle."""

import pytest

from hamlet.core.clock import DayNightCycle, IntervalTimer


class TestIntervalTimer:
    def test_fires_and_carries_remainder(self):
        timer = IntervalTimer(5000.0)
        assert timer.advance(12000.0) == 2
        assert timer.elapsed_ms == pytest.approx(2000.0)
        assert timer.advance(3000.0) == 1
        assert timer.elapsed_ms == pytest.approx(0.0)

    def test_small_steps_accumulate(self):
        timer = IntervalTimer(100.0)
        fired = sum(timer.advance(10.0) for _ in range(35))
        assert fired == 3
        assert timer.elapsed_ms == pytest.approx(50.0)

    def test_catch_up_is_capped(self):
        timer = IntervalTimer(10.0, max_catchup=5)
        assert timer.advance(105.0) == 5
        assert timer.elapsed_ms == pytest.approx(5.0)

    def test_non_positive_delta(self):
        timer = IntervalTimer(10.0)
        assert timer.advance(0.0) == 0
        assert timer.advance(-50.0) == 0
        assert timer.elapsed_ms == 0.0

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            IntervalTimer(0.0)

    def test_reset(self):
        timer = IntervalTimer(10.0)
        timer.advance(7.0)
        timer.reset()
        assert timer.elapsed_ms == 0.0


class TestDayNightCycle:
    def test_phases(self):
        cycle = DayNightCycle(day_length=2, night_length=1)
        phases = []
        for _ in range(4):
            phases.append(cycle.is_day)
            cycle.advance()
        assert phases == [True, True, False, True]

    def test_info_progress(self):
        cycle = DayNightCycle(day_length=4, night_length=2, tick=1)
        info = cycle.info()
        assert info["is_day"] is True
        assert info["progress"] == 0.25
        cycle.set_tick(5)
        info = cycle.info()
        assert info["is_day"] is False
        assert info["phase_tick"] == 1
        assert info["progress"] == 0.5

    def test_set_tick_wraps(self):
        cycle = DayNightCycle(day_length=2, night_length=1)
        cycle.set_tick(7)
        assert cycle.tick == 1
