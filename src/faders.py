"""
src/faders.py

Fading generators for the Markov fading controller.

Turn a discrete (set, state) pair into a continuous channel gain:
- Loo: lognormal line-of-sight component plus Rayleigh multipath
- Rayleigh: pure multipath, no line-of-sight

Both are built on sum-of-sinusoids processes evaluated at simulation time, so
consecutive gains are correlated in time instead of being independent draws.
"""

import math
import numpy as np
from abc import ABC, abstractmethod
from typing import Callable, List
from constants import (
    FaderType, FadingInvariantError, amplitude_from_decibel,
    decibel_to_linear, linear_to_decibel
)
import logging

logger = logging.getLogger(__name__)

# ============================================================================
# SUM-OF-SINUSOIDS PROCESS
# ============================================================================

class SumOfSinusoids:
    """
    Clarke/Jakes sum-of-sinusoids generator

    Approximates a unit-power complex Gaussian process whose Doppler spectrum
    is bounded by max_doppler_hz:

        g(t) = (1/sqrt(N)) * sum_n [cos(w_n t + a_n) + j cos(w_n t + b_n)]
        w_n  = 2*pi*fd*cos(theta_n)

    Attributes:
        num_oscillators: Number of sinusoids (N)
        max_doppler_hz: Maximum Doppler frequency (fd)
    """

    def __init__(self, num_oscillators: int, max_doppler_hz: float,
                 rng: np.random.RandomState):
        if num_oscillators < 1:
            raise FadingInvariantError(
                f"num_oscillators must be positive, got {num_oscillators}"
            )
        self.num_oscillators = int(num_oscillators)
        self.max_doppler_hz = float(max_doppler_hz)

        arrival_angles = rng.uniform(-np.pi, np.pi, self.num_oscillators)
        self._omegas = 2.0 * np.pi * self.max_doppler_hz * np.cos(arrival_angles)
        self._phases_i = rng.uniform(-np.pi, np.pi, self.num_oscillators)
        self._phases_q = rng.uniform(-np.pi, np.pi, self.num_oscillators)

    def sample(self, time_s: float) -> complex:
        """Evaluate the process at one instant."""
        in_phase = np.sum(np.cos(self._omegas * time_s + self._phases_i))
        quadrature = np.sum(np.cos(self._omegas * time_s + self._phases_q))
        return complex(in_phase, quadrature) / math.sqrt(self.num_oscillators)


# ============================================================================
# GENERATOR BASE
# ============================================================================

class FadingGenerator(ABC):
    """
    Base class for fading generators.

    The controller calls update_parameters(set, state) before each read;
    get_channel_gain / get_channel_gain_db then return the gain of the
    process at the time of that update.

    Attributes:
        current_set: Probability set the parameters are taken from
        current_state: Markov state the parameters are taken from
        clock: Zero-argument callable returning simulation time (s)
        rng: Numpy random number generator owned by this instance
    """

    def __init__(self, parameters: List[List[list]], set_id: int, state: int,
                 clock: Callable[[], float], seed: int = None):
        self.parameters = parameters
        self.clock = clock
        self.rng = np.random.RandomState(seed)
        self._check_pair(set_id, state)
        self.current_set = set_id
        self.current_state = state
        self._sample_time_s = clock()

    def update_parameters(self, set_id: int, state: int) -> None:
        """
        Reposition the generator at a (set, state) pair.

        Args:
            set_id: Probability set identifier
            state: Markov state
        """
        self._check_pair(set_id, state)
        if (set_id, state) != (self.current_set, self.current_state):
            logger.debug(
                f"{type(self).__name__} parameters: "
                f"({self.current_set},{self.current_state}) -> ({set_id},{state})"
            )
            self.current_set = set_id
            self.current_state = state
            self._on_parameters_changed()
        self._sample_time_s = self.clock()

    def get_channel_gain(self) -> float:
        """Return channel power gain (linear)."""
        return abs(self._complex_gain(self._sample_time_s)) ** 2

    def get_channel_gain_db(self) -> float:
        """Return channel power gain (dB)."""
        return linear_to_decibel(self.get_channel_gain())

    def _current_parameters(self) -> list:
        return self.parameters[self.current_set][self.current_state]

    def _check_pair(self, set_id: int, state: int) -> None:
        if not 0 <= set_id < len(self.parameters):
            raise FadingInvariantError(
                f"Set {set_id} outside [0, {len(self.parameters)})"
            )
        if not 0 <= state < len(self.parameters[set_id]):
            raise FadingInvariantError(
                f"State {state} outside [0, {len(self.parameters[set_id])})"
            )

    def _on_parameters_changed(self) -> None:
        """Hook for generators whose processes depend on the parameters."""

    @abstractmethod
    def _complex_gain(self, time_s: float) -> complex:
        """Complex channel coefficient at time_s."""


# ============================================================================
# LOO FADER
# ============================================================================

class LooFader(FadingGenerator):
    """
    Loo fading model (land mobile satellite)

    h(t) = A(t) + sqrt(P_mp) * g_mp(t)

    Where:
        A(t)  = 10^(L(t)/20), L(t) ~ N(mean_db, std_db^2) (slow shadowing)
        g_mp  = unit-power Rayleigh process (fast multipath)
        P_mp  = multipath power

    Per (set, state) parameters: [direct_mean_db, direct_std_db, multipath_power_db]
    """

    def __init__(self, loo_config, set_id: int, state: int,
                 clock: Callable[[], float], seed: int = None):
        """
        Initialize Loo fader.

        Args:
            loo_config: LooConfig with per-set, per-state parameters
            set_id: Initial probability set
            state: Initial Markov state
            clock: Simulation time source (seconds)
            seed: RNG seed for the oscillator phases
        """
        super().__init__(loo_config.parameters, set_id, state, clock, seed)
        self._direct = SumOfSinusoids(
            loo_config.direct_oscillators, loo_config.direct_doppler_hz, self.rng
        )
        self._multipath = SumOfSinusoids(
            loo_config.multipath_oscillators, loo_config.multipath_doppler_hz, self.rng
        )

    def _complex_gain(self, time_s: float) -> complex:
        mean_db, std_db, multipath_db = self._current_parameters()

        # Real part of a unit-power complex process has variance 1/2
        shadowing = math.sqrt(2.0) * self._direct.sample(time_s).real
        direct_amplitude = amplitude_from_decibel(mean_db + std_db * shadowing)

        multipath_amplitude = math.sqrt(decibel_to_linear(multipath_db))
        return direct_amplitude + multipath_amplitude * self._multipath.sample(time_s)


# ============================================================================
# RAYLEIGH FADER
# ============================================================================

class RayleighFader(FadingGenerator):
    """
    Rayleigh fading model

    Unit mean power, no line-of-sight component. The Doppler spread follows
    the active (set, state) so a change of regime also changes how fast the
    channel decorrelates.

    Per (set, state) parameters: [num_oscillators, max_doppler_hz]
    """

    def __init__(self, rayleigh_config, set_id: int, state: int,
                 clock: Callable[[], float], seed: int = None):
        super().__init__(rayleigh_config.parameters, set_id, state, clock, seed)
        self._process = self._build_process()

    def _build_process(self) -> SumOfSinusoids:
        num_oscillators, max_doppler_hz = self._current_parameters()
        return SumOfSinusoids(int(num_oscillators), max_doppler_hz, self.rng)

    def _on_parameters_changed(self) -> None:
        num_oscillators, max_doppler_hz = self._current_parameters()
        if (int(num_oscillators) != self._process.num_oscillators
                or float(max_doppler_hz) != self._process.max_doppler_hz):
            self._process = self._build_process()

    def _complex_gain(self, time_s: float) -> complex:
        return self._process.sample(time_s)


# ============================================================================
# FACTORY
# ============================================================================

def create_fader(fader_type: FaderType, markov_config, set_id: int, state: int,
                 clock: Callable[[], float], seed: int = None) -> FadingGenerator:
    """
    Create a fading generator of the configured family.

    Args:
        fader_type: FaderType.LOO or FaderType.RAYLEIGH
        markov_config: MarkovConfig holding the family sub-configurations
        set_id: Initial probability set
        state: Initial Markov state
        clock: Simulation time source (seconds)
        seed: RNG seed for this generator

    Raises:
        FadingInvariantError: If the family is unknown
    """
    if fader_type == FaderType.LOO:
        return LooFader(markov_config.loo, set_id, state, clock, seed)
    if fader_type == FaderType.RAYLEIGH:
        return RayleighFader(markov_config.rayleigh, set_id, state, clock, seed)
    raise FadingInvariantError(f"Unknown fader type: {fader_type}")
