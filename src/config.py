"""
src/config.py

Configuration loader for the Markov fading simulator.
Loads YAML parameters into typed dataclasses and validates them before they
reach the fading core.
"""

import copy
import math
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from constants import (
    SIM_DURATION_S, SIM_TICK_PERIOD_S, RANDOM_SEED,
    MARKOV_STATE_COUNT, MARKOV_INITIAL_STATE, COOLDOWN_PERIOD_S,
    MINIMUM_POSITION_CHANGE_M, USE_DECIBELS, MARKOV_SET_ELEVATIONS_DEG,
    MARKOV_PROBABILITIES, PROBABILITY_ROW_TOLERANCE,
    LOO_PARAMETERS, LOO_DIRECT_OSCILLATORS, LOO_MULTIPATH_OSCILLATORS,
    LOO_DIRECT_DOPPLER_HZ, LOO_MULTIPATH_DOPPLER_HZ, RAYLEIGH_PARAMETERS,
    PASS_MIN_ELEVATION_DEG, PASS_MAX_ELEVATION_DEG, PASS_DURATION_S,
    TERMINAL_SPEED_MS, TRACE_HISTORY_LENGTH, FaderType
)
import logging

logger = logging.getLogger(__name__)

# ============================================================================
# DATA CLASSES FOR TYPE-SAFE CONFIG
# ============================================================================

@dataclass
class SimulationConfig:
    """Top-level simulation configuration."""
    name: str = "Markov Fading Simulation"
    version: str = "1.0.0"
    duration_s: float = SIM_DURATION_S
    time_step_s: float = SIM_TICK_PERIOD_S
    random_seed: int = RANDOM_SEED

    def validate(self) -> None:
        """
        Check run duration and step.

        The clock counts whole microseconds, so the step must be at least 1 us.
        """
        if self.duration_s <= 0:
            raise ValueError(f"duration_s must be positive, got {self.duration_s}")
        if self.time_step_s < 1e-6:
            raise ValueError(f"time_step_s must be >= 1e-6, got {self.time_step_s}")

@dataclass
class LooConfig:
    """Loo fader parameters, indexed [set][state]."""
    parameters: list = field(default_factory=lambda: copy.deepcopy(LOO_PARAMETERS))
    direct_oscillators: int = LOO_DIRECT_OSCILLATORS
    multipath_oscillators: int = LOO_MULTIPATH_OSCILLATORS
    direct_doppler_hz: float = LOO_DIRECT_DOPPLER_HZ
    multipath_doppler_hz: float = LOO_MULTIPATH_DOPPLER_HZ

@dataclass
class RayleighConfig:
    """Rayleigh fader parameters, indexed [set][state]."""
    parameters: list = field(default_factory=lambda: copy.deepcopy(RAYLEIGH_PARAMETERS))

@dataclass
class MarkovConfig:
    """
    Markov fading configuration.

    Acts as the configuration source of the fading controller: state and set
    counts, cooldown, hysteresis threshold, fader family, the elevation each
    probability set belongs to and the transition matrices themselves.
    """
    state_count: int = MARKOV_STATE_COUNT
    initial_state: int = MARKOV_INITIAL_STATE
    cooldown_period_s: float = COOLDOWN_PERIOD_S
    minimum_position_change_m: float = MINIMUM_POSITION_CHANGE_M
    use_decibels: bool = USE_DECIBELS
    fader_type: FaderType = FaderType.LOO
    elevations: list = field(default_factory=lambda: list(MARKOV_SET_ELEVATIONS_DEG))
    probabilities: list = field(default_factory=lambda: copy.deepcopy(MARKOV_PROBABILITIES))
    loo: LooConfig = field(default_factory=LooConfig)
    rayleigh: RayleighConfig = field(default_factory=RayleighConfig)

    @property
    def num_sets(self) -> int:
        """Number of probability sets."""
        return len(self.elevations)

    def get_probability_set_id(self, elevation: float) -> int:
        """
        Map an elevation angle to the set measured closest to it.

        Args:
            elevation: Elevation angle (degrees)

        Returns:
            Set identifier in [0, num_sets)
        """
        smallest_difference = math.inf
        set_id = 0
        for index, set_elevation in enumerate(self.elevations):
            difference = abs(set_elevation - elevation)
            if difference < smallest_difference:
                smallest_difference = difference
                set_id = index
        return set_id

    def get_elevation_probabilities(self, set_id: int) -> List[List[float]]:
        """Return the transition matrix of one set."""
        return self.probabilities[set_id]

    def validate(self) -> None:
        """
        Check internal consistency.

        Raises:
            ValueError: If any value is out of range or any table has the
                wrong shape
        """
        if not isinstance(self.fader_type, FaderType):
            raise ValueError(f"Unknown fader type: {self.fader_type}")
        if self.state_count < 1:
            raise ValueError(f"state_count must be positive, got {self.state_count}")
        if self.num_sets < 1:
            raise ValueError("At least one probability set (elevation) is required")
        if not 0 <= self.initial_state < self.state_count:
            raise ValueError(
                f"initial_state {self.initial_state} outside [0, {self.state_count})"
            )
        if self.cooldown_period_s < 0:
            raise ValueError(f"cooldown_period_s must be >= 0, got {self.cooldown_period_s}")
        if self.minimum_position_change_m < 0:
            raise ValueError(
                f"minimum_position_change_m must be >= 0, got {self.minimum_position_change_m}"
            )
        if len(self.probabilities) != self.num_sets:
            raise ValueError(
                f"Expected {self.num_sets} probability sets, got {len(self.probabilities)}"
            )

        for set_id, matrix in enumerate(self.probabilities):
            if len(matrix) != self.state_count:
                raise ValueError(f"Set {set_id}: expected {self.state_count} rows")
            for row_index, row in enumerate(matrix):
                if len(row) != self.state_count:
                    raise ValueError(
                        f"Set {set_id} row {row_index}: expected {self.state_count} columns"
                    )
                if any(p < 0 or p > 1 for p in row):
                    raise ValueError(f"Set {set_id} row {row_index}: probability outside [0, 1]")
                if abs(sum(row) - 1.0) > PROBABILITY_ROW_TOLERANCE:
                    raise ValueError(
                        f"Set {set_id} row {row_index}: probabilities sum to {sum(row):.6f}"
                    )

        if self.fader_type == FaderType.LOO:
            self._validate_fader_table("loo", self.loo.parameters, 3)
        else:
            self._validate_fader_table("rayleigh", self.rayleigh.parameters, 2)

    def _validate_fader_table(self, name: str, table: list, width: int) -> None:
        """Check a [set][state][value] fader table against the set/state counts."""
        if len(table) != self.num_sets:
            raise ValueError(f"{name}: expected {self.num_sets} sets, got {len(table)}")
        for set_id, states in enumerate(table):
            if len(states) != self.state_count:
                raise ValueError(f"{name} set {set_id}: expected {self.state_count} states")
            for state, values in enumerate(states):
                if len(values) != width:
                    raise ValueError(
                        f"{name} set {set_id} state {state}: expected {width} values"
                    )

@dataclass
class LinkGeometryConfig:
    """Satellite pass and terminal motion used by the runner."""
    min_elevation_deg: float = PASS_MIN_ELEVATION_DEG
    max_elevation_deg: float = PASS_MAX_ELEVATION_DEG
    pass_duration_s: float = PASS_DURATION_S
    terminal_speed_ms: float = TERMINAL_SPEED_MS

    def validate(self) -> None:
        if self.pass_duration_s <= 0:
            raise ValueError(f"pass_duration_s must be positive, got {self.pass_duration_s}")
        if not 0.0 <= self.min_elevation_deg <= self.max_elevation_deg <= 90.0:
            raise ValueError(
                f"Pass elevations must satisfy 0 <= min <= max <= 90, got "
                f"[{self.min_elevation_deg}, {self.max_elevation_deg}]"
            )
        if self.terminal_speed_ms < 0:
            raise ValueError(f"terminal_speed_ms must be >= 0, got {self.terminal_speed_ms}")

@dataclass
class LoggingConfig:
    """Logging configuration."""
    log_level: str = "INFO"
    log_fading_values: bool = False

    def validate(self) -> None:
        if str(self.log_level).upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log_level: {self.log_level}")

@dataclass
class TraceConfig:
    """Fading trace collection configuration."""
    enable_trace_collection: bool = True
    history_length: int = TRACE_HISTORY_LENGTH

    def validate(self) -> None:
        if self.history_length < 1:
            raise ValueError(f"history_length must be positive, got {self.history_length}")

@dataclass
class FadingSimConfig:
    """Master configuration object."""
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    markov: MarkovConfig = field(default_factory=MarkovConfig)
    link_geometry: LinkGeometryConfig = field(default_factory=LinkGeometryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    trace: TraceConfig = field(default_factory=TraceConfig)

# ============================================================================
# CONFIGURATION LOADER
# ============================================================================

class ConfigLoader:
    """Loads and manages fading simulator configuration."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize config loader.

        Args:
            config_file: Path to YAML config file. If None, uses default.
        """
        self.config_file = config_file or self._find_default_config()
        self.config: FadingSimConfig = self._load_config()

    @staticmethod
    def _find_default_config() -> str:
        """Find the default config file in project structure."""
        candidates = [
            Path(__file__).parent.parent / "config" / "markov_fading.yaml",
            Path.cwd() / "config" / "markov_fading.yaml",
        ]
        for path in candidates:
            if path.exists():
                logger.info(f"Found config file: {path}")
                return str(path)
        raise FileNotFoundError(
            "Could not find markov_fading.yaml. "
            "Please ensure it exists in ./config/ directory."
        )

    def _load_config(self) -> FadingSimConfig:
        """Load configuration from YAML file."""
        if not Path(self.config_file).exists():
            raise FileNotFoundError(f"Config file not found: {self.config_file}")

        with open(self.config_file, 'r') as f:
            data = yaml.safe_load(f)

        if not data:
            raise ValueError(f"Config file is empty: {self.config_file}")
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {self.config_file}")

        return self._parse_config(data)

    @staticmethod
    def _parse_config(data: Dict[str, Any]) -> FadingSimConfig:
        """
        Parse YAML data into typed config objects.

        Raises:
            ValueError: On unknown keys, wrongly typed values or values that
                fail validation
        """
        config = FadingSimConfig()

        try:
            if "simulation" in data:
                config.simulation = SimulationConfig(**data["simulation"])
            if "markov" in data:
                config.markov = ConfigLoader._parse_markov(data["markov"])
            if "link_geometry" in data:
                config.link_geometry = LinkGeometryConfig(**data["link_geometry"])
            if "logging" in data:
                config.logging = LoggingConfig(**data["logging"])
            if "trace" in data:
                config.trace = TraceConfig(**data["trace"])
        except TypeError as e:
            raise ValueError(f"Invalid configuration: {e}") from e

        ConfigLoader._validate(config)
        return config

    @staticmethod
    def _validate(config: FadingSimConfig) -> None:
        """Validate every section that feeds the simulation."""
        try:
            config.simulation.validate()
            config.markov.validate()
            config.link_geometry.validate()
            config.logging.validate()
            config.trace.validate()
        except TypeError as e:
            raise ValueError(f"Invalid configuration value: {e}") from e

    @staticmethod
    def _parse_markov(section: Dict[str, Any]) -> MarkovConfig:
        """Parse the markov section, including nested fader tables."""
        section = dict(section)
        loo = LooConfig(**section.pop("loo", {}))
        rayleigh = RayleighConfig(**section.pop("rayleigh", {}))

        fader_type = section.pop("fader_type", FaderType.LOO.value)
        try:
            fader_type = FaderType(str(fader_type).lower())
        except ValueError:
            raise ValueError(f"Unknown fader type: {fader_type}") from None

        return MarkovConfig(fader_type=fader_type, loo=loo, rayleigh=rayleigh, **section)

    def get_config(self) -> FadingSimConfig:
        """Return loaded configuration."""
        return self.config

    def override_param(self, key_path: str, value: Any) -> None:
        """
        Override a configuration parameter.

        Key path format: "section.subsection.param"
        Example: config.override_param("markov.cooldown_period_s", 0.5)

        The configuration is validated again; a rejected override is rolled
        back before the ValueError propagates.
        """
        parts = key_path.split('.')
        obj = self.config

        # Navigate to parent object
        for part in parts[:-1]:
            obj = getattr(obj, part)

        previous = getattr(obj, parts[-1])
        setattr(obj, parts[-1], value)
        try:
            self._validate(self.config)
        except ValueError:
            setattr(obj, parts[-1], previous)
            raise
        logger.info(f"Config override: {key_path} = {value}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary (for serialization)."""
        def dataclass_to_dict(obj):
            if hasattr(obj, '__dataclass_fields__'):
                result = {}
                for field_name in obj.__dataclass_fields__:
                    value = getattr(obj, field_name)
                    if hasattr(value, '__dataclass_fields__'):
                        result[field_name] = dataclass_to_dict(value)
                    elif isinstance(value, FaderType):
                        result[field_name] = value.value
                    else:
                        result[field_name] = value
                return result
            return obj

        return dataclass_to_dict(self.config)

# ============================================================================
# GLOBAL CONFIG INSTANCE (SINGLETON PATTERN)
# ============================================================================

_global_config: Optional[ConfigLoader] = None

def initialize_config(config_file: Optional[str] = None) -> FadingSimConfig:
    """Initialize global configuration."""
    global _global_config
    _global_config = ConfigLoader(config_file)
    return _global_config.get_config()

def get_config() -> FadingSimConfig:
    """Get the global configuration."""
    global _global_config
    if _global_config is None:
        _global_config = ConfigLoader()
    return _global_config.get_config()

def override_config(key_path: str, value: Any) -> None:
    """Override a global configuration parameter."""
    global _global_config
    if _global_config is None:
        _global_config = ConfigLoader()
    _global_config.override_param(key_path, value)
