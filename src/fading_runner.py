"""
src/fading_runner.py

Command-line runner for the Markov fading simulator.

Drives one terminal-to-satellite link through a satellite pass and records
the fading time series.

ARCHITECTURE:
1. Parse command-line arguments and load markov_fading.yaml
2. Build clock, pass/speed profiles and the fading channel manager
3. Optionally lock the link to a set (and state)
4. Step the clock, querying forward and return user fading every tick
5. Log the per-channel summary and optionally write JSON results
"""

import sys
import json
import argparse
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence
from config import FadingSimConfig, initialize_config, override_config
from constants import ChannelType
from sim_clock import SimulationClock
from link_geometry import SatellitePassProfile, ConstantSpeedProfile
from fading_manager import FadingChannelManager

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

logger = logging.getLogger(__name__)

RUNNER_LINK_ID = 0
DEFAULT_CHANNELS = (ChannelType.FORWARD_USER, ChannelType.RETURN_USER)

# ============================================================================
# FADING RUNNER
# ============================================================================

class FadingRunner:
    """
    Runs a single-link fading scenario.

    Attributes:
        config: Loaded FadingSimConfig
        clock: Simulation clock stepped by run()
        manager: FadingChannelManager holding the link controller
    """

    def __init__(self, config: FadingSimConfig, seed: Optional[int] = None):
        """
        Initialize runner.

        Args:
            config: Simulator configuration
            seed: RNG seed, defaults to simulation.random_seed
        """
        self.config = config
        sim = config.simulation
        geometry = config.link_geometry

        self.seed = sim.random_seed if seed is None else seed
        self.clock = SimulationClock(tick_period_us=int(round(sim.time_step_s * 1e6)))
        self.pass_profile = SatellitePassProfile(
            self.clock,
            min_elevation_deg=geometry.min_elevation_deg,
            max_elevation_deg=geometry.max_elevation_deg,
            pass_duration_s=geometry.pass_duration_s
        )
        self.speed_profile = ConstantSpeedProfile(geometry.terminal_speed_ms)

        self.manager = FadingChannelManager(
            config.markov, self.clock, seed=self.seed,
            collect_traces=config.trace.enable_trace_collection,
            history_length=config.trace.history_length
        )
        self.controller = self.manager.ensure_link(
            RUNNER_LINK_ID, self.pass_profile.elevation, self.speed_profile.velocity
        )

        if config.logging.log_fading_values:
            self.controller.fading_trace.connect(self._log_fading_value)

    def lock(self, set_id: Optional[int], state: Optional[int] = None) -> None:
        """Lock the link to a set, or to a set and state."""
        if set_id is None:
            return
        if state is None:
            self.controller.lock_to_set(set_id)
        else:
            self.controller.lock_to_set_and_state(set_id, state)

    def run(self, duration_s: Optional[float] = None,
            channel_types: Sequence[ChannelType] = DEFAULT_CHANNELS) -> List[Dict]:
        """
        Step the simulation and query fading every tick.

        Args:
            duration_s: Simulated time, defaults to simulation.duration_s
            channel_types: Channels queried each tick

        Returns:
            Time series rows (time, elevation, set, state, one value per channel)
        """
        if duration_s is None:
            duration_s = self.config.simulation.duration_s
        end_us = self.clock.time_us + int(round(duration_s * 1e6))

        logger.info(
            f"Running fading scenario: {duration_s}s, "
            f"step={self.clock.tick_period_us}us, seed={self.seed}"
        )

        series = []
        while self.clock.time_us < end_us:
            now = self.clock.step()
            row = {"time_s": now, "elevation_deg": self.pass_profile.elevation()}
            for channel_type in channel_types:
                row[channel_type.name] = self.controller.get_fading(channel_type)
            row["set"] = self.controller.current_set
            row["state"] = self.controller.current_state
            series.append(row)

            if self.clock.ticks % 10000 == 0:
                logger.info(f"Tick {self.clock.ticks}, sim_time={now:.1f}s")

        logger.info(f"Fading scenario complete: {len(series)} samples")
        return series

    def summary(self) -> dict:
        """Trace summary of the runner link."""
        return self.manager.export_summary().get(RUNNER_LINK_ID, {})

    def export_results(self, series: List[Dict], output_path: str) -> None:
        """Write summary and time series as JSON."""
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump({"summary": self.summary(), "series": series}, f, indent=2)
        logger.info(f"Results written to {path}")

    @staticmethod
    def _log_fading_value(time_s: float, channel_type: ChannelType, value: float) -> None:
        logger.info(f"t={time_s:.6f}s {channel_type.name}: {value:.4f}")


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Run a Markov fading time series over a satellite pass"
    )
    parser.add_argument("--config", type=str, default=None,
                       help="Path to markov_fading.yaml")
    parser.add_argument("--duration", type=float, default=None,
                       help="Simulation duration (seconds)")
    parser.add_argument("--step", type=float, default=None,
                       help="Simulation time step (seconds)")
    parser.add_argument("--seed", type=int, default=None,
                       help="RNG seed")
    parser.add_argument("--lock-set", type=int, default=None,
                       help="Lock the link to this probability set")
    parser.add_argument("--lock-state", type=int, default=None,
                       help="Also lock the Markov state (requires --lock-set)")
    parser.add_argument("--output", type=str, default=None,
                       help="Write JSON results to this path")
    parser.add_argument("--log-level", type=str, default=None,
                       choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                       help="Override logging.log_level from the config")

    args = parser.parse_args(argv)
    if args.lock_state is not None and args.lock_set is None:
        parser.error("--lock-state requires --lock-set")
    return args


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Parse arguments and run the fading scenario."""
    args = parse_args(argv)

    logging.basicConfig(level=args.log_level or "INFO", format=LOG_FORMAT)

    try:
        config = initialize_config(args.config)
        if args.step is not None:
            override_config("simulation.time_step_s", args.step)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    if args.log_level is None:
        logging.getLogger().setLevel(config.logging.log_level.upper())

    runner = FadingRunner(config, seed=args.seed)
    runner.lock(args.lock_set, args.lock_state)
    series = runner.run(duration_s=args.duration)

    for channel, stats in runner.summary().get("channels", {}).items():
        logger.info(
            f"{channel}: mean={stats['mean']:.3f} std={stats['std']:.3f} "
            f"min={stats['min']:.3f} max={stats['max']:.3f} ({stats['count']} values)"
        )

    if args.output:
        runner.export_results(series, args.output)


if __name__ == "__main__":
    main()
