"""
src/sim_clock.py

Manually advanced simulation clock.

Time is kept as integer microseconds so repeated steps do not accumulate
floating point drift; now() exposes it in seconds for the fading core.
"""

from constants import SIM_TICK_PERIOD_US
import logging

logger = logging.getLogger(__name__)


class SimulationClock:
    """
    Discrete simulation clock.

    Attributes:
        time_us: Current simulation time (microseconds)
        ticks: Number of fixed steps taken
        tick_period_us: Length of one step (microseconds)
    """

    def __init__(self, start_s: float = 0.0, tick_period_us: int = SIM_TICK_PERIOD_US):
        """
        Initialize clock.

        Args:
            start_s: Initial simulation time (seconds)
            tick_period_us: Step length used by step() (microseconds)
        """
        if tick_period_us <= 0:
            raise ValueError(f"tick_period_us must be positive, got {tick_period_us}")
        self.time_us = int(round(start_s * 1e6))
        self.tick_period_us = int(tick_period_us)
        self.ticks = 0

    def now(self) -> float:
        """Current simulation time (seconds)."""
        return self.time_us / 1e6

    def __call__(self) -> float:
        return self.now()

    def advance(self, seconds: float) -> float:
        """
        Move time forward.

        Args:
            seconds: Non-negative interval

        Returns:
            New simulation time (seconds)
        """
        if seconds < 0:
            raise ValueError(f"Cannot move simulation time backwards ({seconds}s)")
        self.time_us += int(round(seconds * 1e6))
        return self.now()

    def step(self) -> float:
        """Advance by one tick and return the new time (seconds)."""
        self.ticks += 1
        self.time_us += self.tick_period_us
        return self.now()
