"""
src/link_geometry.py

Elevation and velocity oracles for a terminal-to-satellite link.

The fading controller only sees zero-argument callables; these profiles bind
a simple geometric model to a simulation clock and expose those callables.
"""

import math
from typing import Callable
from constants import (
    PASS_MIN_ELEVATION_DEG, PASS_MAX_ELEVATION_DEG, PASS_DURATION_S,
    TERMINAL_SPEED_MS, clamp
)
import logging

logger = logging.getLogger(__name__)


class SatellitePassProfile:
    """
    Elevation angle over one satellite pass.

    Elevation follows a half-sine from min to max and back:

        el(t) = el_min + (el_max - el_min) * sin(pi * t / T)

    Outside [0, T] the satellite sits at el_min.

    Attributes:
        min_elevation_deg: Elevation at rise and set
        max_elevation_deg: Elevation at culmination
        pass_duration_s: Pass duration T
    """

    def __init__(self, clock: Callable[[], float],
                 min_elevation_deg: float = PASS_MIN_ELEVATION_DEG,
                 max_elevation_deg: float = PASS_MAX_ELEVATION_DEG,
                 pass_duration_s: float = PASS_DURATION_S,
                 start_s: float = 0.0):
        if pass_duration_s <= 0:
            raise ValueError(f"pass_duration_s must be positive, got {pass_duration_s}")
        if not 0.0 <= min_elevation_deg <= max_elevation_deg <= 90.0:
            raise ValueError(
                f"Invalid elevation range [{min_elevation_deg}, {max_elevation_deg}]"
            )
        self.clock = clock
        self.min_elevation_deg = min_elevation_deg
        self.max_elevation_deg = max_elevation_deg
        self.pass_duration_s = pass_duration_s
        self.start_s = start_s

    def elevation_at(self, time_s: float) -> float:
        """Elevation (degrees) at a given simulation time."""
        progress = (time_s - self.start_s) / self.pass_duration_s
        if not 0.0 <= progress <= 1.0:
            return self.min_elevation_deg
        span = self.max_elevation_deg - self.min_elevation_deg
        elevation = self.min_elevation_deg + span * math.sin(math.pi * progress)
        return clamp(elevation, self.min_elevation_deg, self.max_elevation_deg)

    def elevation(self) -> float:
        """Elevation oracle bound to the clock."""
        return self.elevation_at(self.clock())


class ConstantSpeedProfile:
    """Terminal moving at a fixed speed; speed can be changed mid-run."""

    def __init__(self, speed_ms: float = TERMINAL_SPEED_MS):
        if speed_ms < 0:
            raise ValueError(f"speed_ms must be >= 0, got {speed_ms}")
        self.speed_ms = speed_ms

    def set_speed(self, speed_ms: float) -> None:
        """Change the terminal speed (m/s)."""
        if speed_ms < 0:
            raise ValueError(f"speed_ms must be >= 0, got {speed_ms}")
        self.speed_ms = speed_ms
        logger.info(f"Terminal speed updated: {speed_ms} m/s")

    def velocity(self) -> float:
        """Velocity oracle."""
        return self.speed_ms
