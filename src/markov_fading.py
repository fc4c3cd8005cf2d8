"""
src/markov_fading.py

Markov Fading Controller

Produces temporally coherent fading values for a satellite link:
- Cooldown-gated recomputation with one cache slot per direction
- Probability set selection from the elevation angle
- Distance-gated Markov state transitions (spatial hysteresis)
- Set/state locking for deterministic scenarios
"""

import numpy as np
from dataclasses import dataclass, replace
from typing import Callable, Dict
from constants import (
    ChannelType, FadingDirection, CHANNEL_DIRECTIONS, FadingInvariantError
)
from markov_model import MarkovModel
from faders import FadingGenerator, create_fader
from fading_trace import FadingTraceSource
import logging

logger = logging.getLogger(__name__)

# Upper bound for seeds handed to owned random streams
_MAX_SEED = 2**31 - 1


@dataclass
class DirectionCache:
    """Latest computed fading value of one direction."""
    value: float
    computed_at: float


class MarkovFadingController:
    """
    Markov fading controller

    Answers get_fading(channel_type) for the link it belongs to. A new value
    is computed only when the direction's cooldown has elapsed; otherwise the
    cached value is returned untouched.

    RECOMPUTATION:
        if velocity > 0 and (now - t_last_change) * velocity > d_min:
            reselect set from elevation   (unless set-locked)
            Markov transition             (unless state-locked)
        fader[direction].update_parameters(set, state)
        value = fader gain (dB or linear)

    Owns one MarkovModel and two fading generators (UP and DOWN). The oracles
    and the clock are borrowed zero-argument callables.

    Attributes:
        state_count: Number of Markov states
        set_count: Number of probability sets
        current_set: Active probability set
        current_state: State used for the last computation
        fading_trace: Trace source emitting (time_s, channel_type, value)
    """

    def __init__(self, markov_config, elevation: Callable[[], float],
                 velocity: Callable[[], float], clock: Callable[[], float],
                 seed: int = None):
        """
        Initialize controller.

        Loads the probability set for the current elevation, performs one
        transition and seeds both direction caches.

        Args:
            markov_config: MarkovConfig (validated configuration source)
            elevation: Elevation oracle (degrees)
            velocity: Velocity oracle (m/s)
            clock: Simulation time source (seconds)
            seed: RNG seed; the model, both faders and random locking draw
                  their own streams from it
        """
        self.markov_config = markov_config
        self.elevation = elevation
        self.velocity = velocity
        self.clock = clock

        self.state_count = markov_config.state_count
        self.set_count = markov_config.num_sets
        self.current_state = markov_config.initial_state
        self.cooldown_period_s = markov_config.cooldown_period_s
        self.minimum_position_change_m = markov_config.minimum_position_change_m
        self.use_decibels = markov_config.use_decibels

        self.set_lock_enabled = False
        self.state_lock_enabled = False
        self.fading_trace = FadingTraceSource()

        self.rng = np.random.RandomState(seed)
        model_seed, up_seed, down_seed = (int(s) for s in self.rng.randint(0, _MAX_SEED, size=3))

        now = self.clock()
        self.latest_state_change_time = now
        self._cache: Dict[FadingDirection, DirectionCache] = {
            FadingDirection.UP: DirectionCache(value=0.0, computed_at=now),
            FadingDirection.DOWN: DirectionCache(value=0.0, computed_at=now),
        }

        self.markov_model = MarkovModel(self.state_count, self.current_state, seed=model_seed)

        elevation = self.elevation()
        self.current_set = self._select_set(elevation)
        self._update_probabilities(self.current_set)
        self.markov_model.do_transition()

        self.faders: Dict[FadingDirection, FadingGenerator] = {
            FadingDirection.UP: create_fader(
                markov_config.fader_type, markov_config,
                self.current_set, self.current_state, clock, seed=up_seed
            ),
            FadingDirection.DOWN: create_fader(
                markov_config.fader_type, markov_config,
                self.current_set, self.current_state, clock, seed=down_seed
            ),
        }

        self._compute_fading(FadingDirection.UP)
        self._compute_fading(FadingDirection.DOWN)

        logger.info(
            f"MarkovFadingController created: states={self.state_count}, "
            f"sets={self.set_count}, elevation={elevation:.2f}, "
            f"set={self.current_set}, cooldown={self.cooldown_period_s}s, "
            f"min_position_change={self.minimum_position_change_m}m, "
            f"fader={markov_config.fader_type.value}"
        )

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    def get_fading(self, channel_type: ChannelType) -> float:
        """
        Return the fading value for a channel.

        Args:
            channel_type: Channel the value is requested for

        Returns:
            Fading value (dB if use_decibels, else linear power gain)

        Raises:
            FadingInvariantError: If the channel type has no direction
        """
        direction = self._get_direction(channel_type)

        if not self._has_cooldown_period_passed(direction):
            logger.debug(f"t={self.clock():.6f}s cooldown in effect, cached {direction.name} value")
            return self._cache[direction].value

        logger.debug(f"t={self.clock():.6f}s cooldown passed, computing {direction.name} value")

        if self.velocity() > 0:
            self._evaluate_state_change()

        fading_value = self._compute_fading(direction)
        self.fading_trace(self.clock(), ChannelType(channel_type), fading_value)
        return fading_value

    def lock_to_set_and_state(self, set_id: int, state: int) -> None:
        """
        Freeze set and state.

        Args:
            set_id: Probability set in [0, set_count)
            state: Markov state in [0, state_count)
        """
        self._check_state(state)
        self._check_set(set_id)

        self.current_set = set_id
        self.current_state = state
        self._update_probabilities(self.current_set)

        self.set_lock_enabled = True
        self.state_lock_enabled = True
        logger.info(f"Fading locked to set {set_id}, state {state}")

    def lock_to_set(self, set_id: int) -> None:
        """
        Freeze the probability set; states keep evolving.

        Args:
            set_id: Probability set in [0, set_count)
        """
        self._check_set(set_id)

        self.current_set = set_id
        self._update_probabilities(self.current_set)

        self.set_lock_enabled = True
        self.state_lock_enabled = False
        logger.info(f"Fading locked to set {set_id}")

    def lock_to_random_set_and_state(self) -> None:
        """
        Lock to a random set and state drawn from the controller's RNG.

        Draws from [0, count - 1); the highest index is never chosen.
        """
        set_id = int(self.rng.randint(0, max(self.set_count - 1, 1)))
        state = int(self.rng.randint(0, max(self.state_count - 1, 1)))
        self.lock_to_set_and_state(set_id, state)

    def unlock_set_and_state(self) -> None:
        """Restore automatic set and state updates."""
        self.set_lock_enabled = False
        self.state_lock_enabled = False
        logger.info("Fading set and state unlocked")

    def get_cached_fading_value(self, channel_type: ChannelType) -> float:
        """Return the cached value of a channel's direction without recomputing."""
        return self._cache[self._get_direction(channel_type)].value

    def get_cache_entry(self, direction: FadingDirection) -> DirectionCache:
        """Return a copy of one direction's cache slot."""
        return replace(self._cache[FadingDirection(direction)])

    # ========================================================================
    # PRIVATE HELPERS
    # ========================================================================

    def _evaluate_state_change(self) -> None:
        """Reselect set and/or transition once the terminal moved far enough."""
        distance_m = self._distance_since_last_state_change()
        if distance_m <= self.minimum_position_change_m:
            return

        if not self.set_lock_enabled:
            elevation = self.elevation()
            new_set = self._select_set(elevation)
            if new_set != self.current_set:
                logger.info(
                    f"t={self.clock():.6f}s elevation={elevation:.2f}, "
                    f"set [old,new]: [{self.current_set},{new_set}]"
                )
                self.current_set = new_set
                self._update_probabilities(self.current_set)

        if not self.state_lock_enabled:
            self.latest_state_change_time = self.clock()
            self.markov_model.do_transition()

    def _compute_fading(self, direction: FadingDirection) -> float:
        """Compute, cache and return a new value for one direction."""
        if not self.state_lock_enabled:
            self.current_state = self.markov_model.get_state()

        self._check_state(self.current_state)

        fader = self.faders[direction]
        fader.update_parameters(self.current_set, self.current_state)

        if self.use_decibels:
            fading_value = fader.get_channel_gain_db()
        else:
            fading_value = fader.get_channel_gain()

        cache = self._cache[direction]
        cache.value = fading_value
        cache.computed_at = self.clock()

        logger.debug(
            f"t={cache.computed_at:.6f}s {direction.name} fading={fading_value:.4f} "
            f"(set={self.current_set}, state={self.current_state})"
        )
        return fading_value

    def _has_cooldown_period_passed(self, direction: FadingDirection) -> bool:
        return (self.clock() - self._cache[direction].computed_at) > self.cooldown_period_s

    def _update_probabilities(self, set_id: int) -> None:
        """Load the transition matrix of a set into the Markov model."""
        probabilities = self.markov_config.get_elevation_probabilities(set_id)
        for i in range(self.state_count):
            for j in range(self.state_count):
                self.markov_model.set_probability(i, j, probabilities[i][j])
        logger.debug(f"Probabilities loaded for set {set_id}")

    def _distance_since_last_state_change(self) -> float:
        """Distance travelled since the last accepted transition (m)."""
        return (self.clock() - self.latest_state_change_time) * self.velocity()

    def _select_set(self, elevation: float) -> int:
        set_id = self.markov_config.get_probability_set_id(elevation)
        self._check_set(set_id)
        return set_id

    @staticmethod
    def _get_direction(channel_type: ChannelType) -> FadingDirection:
        direction = CHANNEL_DIRECTIONS.get(channel_type)
        if direction is None:
            raise FadingInvariantError(f"Unsupported channel type: {channel_type}")
        return direction

    def _check_state(self, state: int) -> None:
        if not 0 <= state < self.state_count:
            raise FadingInvariantError(f"State {state} outside [0, {self.state_count})")

    def _check_set(self, set_id: int) -> None:
        if not 0 <= set_id < self.set_count:
            raise FadingInvariantError(f"Set {set_id} outside [0, {self.set_count})")
