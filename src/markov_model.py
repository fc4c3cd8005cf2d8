"""
src/markov_model.py

Discrete-state Markov chain driving the fading regime.

Holds the current state and an N x N transition matrix. The matrix is loaded
cell by cell by the fading controller whenever the active probability set
changes; a transition samples the successor from the current state's row.
"""

import numpy as np
from constants import FadingInvariantError
import logging

logger = logging.getLogger(__name__)


class MarkovModel:
    """
    Markov state model

    TRANSITION RULE:
        Draw u ~ U[0, 1) and move to the first state j with
        u < sum(P[current, 0..j]). If the row sums to less than u the
        chain stays where it is.

    Attributes:
        state_count: Number of discrete states
        current_state: Index of the current state
        rng: Numpy random number generator (seeded for reproducibility)
    """

    def __init__(self, state_count: int, initial_state: int, seed: int = None):
        """
        Initialize Markov model.

        Args:
            state_count: Number of states (N)
            initial_state: Starting state in [0, N)
            seed: RNG seed for deterministic transitions
        """
        if state_count < 1:
            raise FadingInvariantError(f"state_count must be positive, got {state_count}")
        if not 0 <= initial_state < state_count:
            raise FadingInvariantError(
                f"initial state {initial_state} outside [0, {state_count})"
            )

        self.state_count = state_count
        self.current_state = initial_state
        self.rng = np.random.RandomState(seed)

        self._probabilities = np.zeros((state_count, state_count))
        self._loaded = np.zeros((state_count, state_count), dtype=bool)

    def set_probability(self, from_state: int, to_state: int, probability: float) -> None:
        """
        Overwrite one cell of the transition matrix.

        No normalization is applied; the caller supplies valid rows.
        """
        self._check_state(from_state)
        self._check_state(to_state)
        self._probabilities[from_state, to_state] = probability
        self._loaded[from_state, to_state] = True

    def get_probability(self, from_state: int, to_state: int) -> float:
        """Read one cell of the transition matrix."""
        self._check_state(from_state)
        self._check_state(to_state)
        return float(self._probabilities[from_state, to_state])

    @property
    def probabilities(self) -> np.ndarray:
        """Copy of the transition matrix."""
        return self._probabilities.copy()

    def is_loaded(self) -> bool:
        """True once every cell of the matrix has been set."""
        return bool(self._loaded.all())

    def do_transition(self) -> int:
        """
        Perform one probabilistic state transition.

        Returns:
            The new current state

        Raises:
            FadingInvariantError: If the current state's row was never loaded
        """
        if not self._loaded[self.current_state].all():
            raise FadingInvariantError(
                f"Transition requested before probabilities of state "
                f"{self.current_state} were loaded"
            )

        draw = self.rng.random_sample()
        cumulative = np.cumsum(self._probabilities[self.current_state])
        candidates = np.nonzero(draw < cumulative)[0]

        old_state = self.current_state
        if candidates.size > 0:
            self.current_state = int(candidates[0])

        logger.debug(f"Markov transition: {old_state} -> {self.current_state} (u={draw:.4f})")
        return self.current_state

    def get_state(self) -> int:
        """Return current state."""
        return self.current_state

    def _check_state(self, state: int) -> None:
        if not 0 <= state < self.state_count:
            raise FadingInvariantError(f"State {state} outside [0, {self.state_count})")
