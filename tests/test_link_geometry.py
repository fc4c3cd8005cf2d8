"""
tests/test_link_geometry.py

Test simulation clock and link geometry oracles.

Validates:
- Clock stepping and advancing without drift
- Satellite pass elevation profile
- Terminal speed oracle
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sim_clock import SimulationClock
from link_geometry import SatellitePassProfile, ConstantSpeedProfile


class TestSimulationClock:
    """Test the simulation clock."""

    def test_starts_at_zero(self):
        clock = SimulationClock()
        assert clock.now() == 0.0
        assert clock() == 0.0

    def test_step_without_drift(self):
        """100 ticks of 10 ms should land exactly on 1 s."""
        clock = SimulationClock(tick_period_us=10000)
        for _ in range(100):
            clock.step()
        assert clock.now() == 1.0
        assert clock.ticks == 100

    def test_advance(self):
        clock = SimulationClock(start_s=2.0)
        assert clock.advance(0.5) == 2.5

    def test_advance_backwards_rejected(self):
        with pytest.raises(ValueError):
            SimulationClock().advance(-1.0)

    def test_invalid_tick(self):
        with pytest.raises(ValueError):
            SimulationClock(tick_period_us=0)


class TestSatellitePassProfile:
    """Test pass elevation profile."""

    def test_rise_culmination_set(self):
        clock = SimulationClock()
        profile = SatellitePassProfile(clock, 10.0, 70.0, 600.0)

        assert profile.elevation() == pytest.approx(10.0)
        assert profile.elevation_at(300.0) == pytest.approx(70.0)
        assert profile.elevation_at(600.0) == pytest.approx(10.0)

    def test_outside_pass(self):
        profile = SatellitePassProfile(SimulationClock(), 10.0, 70.0, 600.0, start_s=100.0)
        assert profile.elevation_at(50.0) == 10.0
        assert profile.elevation_at(800.0) == 10.0

    def test_follows_clock(self):
        clock = SimulationClock()
        profile = SatellitePassProfile(clock, 10.0, 70.0, 600.0)
        clock.advance(150.0)
        assert 10.0 < profile.elevation() < 70.0

    def test_invalid_range(self):
        with pytest.raises(ValueError):
            SatellitePassProfile(SimulationClock(), 60.0, 30.0, 600.0)
        with pytest.raises(ValueError):
            SatellitePassProfile(SimulationClock(), 10.0, 70.0, 0.0)


class TestConstantSpeedProfile:
    """Test velocity oracle."""

    def test_velocity(self):
        profile = ConstantSpeedProfile(12.0)
        assert profile.velocity() == 12.0
        profile.set_speed(0.0)
        assert profile.velocity() == 0.0

    def test_negative_speed_rejected(self):
        with pytest.raises(ValueError):
            ConstantSpeedProfile(-1.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
