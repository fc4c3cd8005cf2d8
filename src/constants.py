"""
src/constants.py

Global constants and configuration defaults for the Markov fading simulator.
"""

import math
from enum import IntEnum, Enum

# ============================================================================
# SIMULATION TIMING
# ============================================================================

SIM_TICK_RATE_HZ = 100              # Default simulation update frequency
SIM_TICK_PERIOD_S = 1.0 / SIM_TICK_RATE_HZ  # ~0.01s
SIM_TICK_PERIOD_US = int(SIM_TICK_PERIOD_S * 1e6)
SIM_DURATION_S = 600.0              # Default runner duration (one pass)
RANDOM_SEED = 42

# ============================================================================
# MARKOV FADING CONTROLLER
# ============================================================================

MARKOV_STATE_COUNT = 3              # LOS, light shadowing, heavy shadowing
MARKOV_INITIAL_STATE = 0
COOLDOWN_PERIOD_S = 0.00001         # Minimum time between recomputations
MINIMUM_POSITION_CHANGE_M = 20.0    # Distance required before a state change
USE_DECIBELS = True

# Elevation (degrees) each probability set was measured at
MARKOV_SET_ELEVATIONS_DEG = [30.0, 45.0, 60.0, 70.0]

# Transition matrices, one per set, rows indexed by the current state
MARKOV_PROBABILITIES = [
    [[0.9530, 0.0431, 0.0039],
     [0.0515, 0.9347, 0.0138],
     [0.0334, 0.0238, 0.9428]],
    [[0.9643, 0.0255, 0.0102],
     [0.0628, 0.9171, 0.0201],
     [0.0447, 0.0220, 0.9333]],
    [[0.9760, 0.0171, 0.0069],
     [0.0837, 0.9031, 0.0132],
     [0.0567, 0.0236, 0.9197]],
    [[0.9829, 0.0116, 0.0055],
     [0.1082, 0.8727, 0.0191],
     [0.0697, 0.0245, 0.9058]],
]

PROBABILITY_ROW_TOLERANCE = 1e-6

# ============================================================================
# LOO FADER
# ============================================================================

# Per set, per state: [direct mean (dB), direct std (dB), multipath power (dB)]
LOO_PARAMETERS = [
    [[0.0, 0.5, -25.0], [-8.0, 4.5, -12.0], [-17.0, 6.0, -12.0]],
    [[0.0, 0.3, -26.0], [-7.0, 4.0, -13.0], [-16.0, 5.5, -13.0]],
    [[0.0, 0.2, -28.0], [-6.0, 3.5, -15.0], [-14.0, 5.0, -15.0]],
    [[0.0, 0.2, -30.0], [-5.5, 3.0, -16.0], [-13.0, 4.5, -16.0]],
]
LOO_DIRECT_OSCILLATORS = 10
LOO_MULTIPATH_OSCILLATORS = 10
LOO_DIRECT_DOPPLER_HZ = 0.5         # Slow shadowing of the line-of-sight path
LOO_MULTIPATH_DOPPLER_HZ = 100.0

# ============================================================================
# RAYLEIGH FADER
# ============================================================================

# Per set, per state: [number of oscillators, maximum Doppler (Hz)]
RAYLEIGH_PARAMETERS = [
    [[10, 30.0], [10, 30.0], [10, 30.0]],
    [[10, 30.0], [10, 30.0], [10, 30.0]],
    [[10, 30.0], [10, 30.0], [10, 30.0]],
    [[10, 30.0], [10, 30.0], [10, 30.0]],
]

# ============================================================================
# LINK GEOMETRY (RUNNER)
# ============================================================================

PASS_MIN_ELEVATION_DEG = 10.0
PASS_MAX_ELEVATION_DEG = 75.0
PASS_DURATION_S = 600.0
TERMINAL_SPEED_MS = 15.0

# ============================================================================
# TRACE
# ============================================================================

TRACE_HISTORY_LENGTH = 10000

# Floor used when a linear gain of zero is converted to decibels
MIN_GAIN_DB = -200.0

# ============================================================================
# ENUMS
# ============================================================================

class ChannelType(IntEnum):
    """Satellite channel a fading value is requested for."""
    FORWARD_FEEDER = 0
    FORWARD_USER = 1
    RETURN_USER = 2
    RETURN_FEEDER = 3
    UNKNOWN = 4


class FadingDirection(IntEnum):
    """Physical direction sharing one cache slot and one fader."""
    UP = 0
    DOWN = 1


# Fixed grouping of channel types into directions
CHANNEL_DIRECTIONS = {
    ChannelType.RETURN_USER: FadingDirection.UP,
    ChannelType.FORWARD_FEEDER: FadingDirection.UP,
    ChannelType.FORWARD_USER: FadingDirection.DOWN,
    ChannelType.RETURN_FEEDER: FadingDirection.DOWN,
}


class FaderType(Enum):
    """Fading generator family used by the Markov controller."""
    LOO = "loo"
    RAYLEIGH = "rayleigh"


# ============================================================================
# ERRORS
# ============================================================================

class FadingInvariantError(AssertionError):
    """
    Raised when the fading core detects an impossible condition.

    Out-of-range set/state, missing probabilities, unknown channel type or
    unknown fader family. Configuration is validated before it reaches the
    core, so these are programming errors and are never caught here.
    """


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def decibel_to_linear(db: float) -> float:
    """Convert decibels to linear ratio."""
    return 10.0**(db / 10.0)

def linear_to_decibel(linear: float) -> float:
    """Convert linear ratio to decibels."""
    if linear <= 0:
        return MIN_GAIN_DB  # Very negative dB
    return 10.0 * math.log10(linear)

def amplitude_from_decibel(db: float) -> float:
    """Convert a power level in dB to an amplitude."""
    return 10.0**(db / 20.0)

def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp value between min and max."""
    return max(min_val, min(max_val, value))
