"""
tests/test_markov_model.py

Test the discrete-state Markov model.

Validates:
- Construction range checks
- Probability loading
- Transition sampling (deterministic rows, empirical frequencies)
- Reproducibility with seed
- Fatal errors before probabilities are loaded
"""

import pytest
import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from markov_model import MarkovModel
from constants import FadingInvariantError


def load_matrix(model, matrix):
    for i, row in enumerate(matrix):
        for j, p in enumerate(row):
            model.set_probability(i, j, p)


class TestMarkovModelConstruction:
    """Test model construction."""

    def test_initial_state(self):
        """Initial state should be reported before any transition."""
        model = MarkovModel(state_count=3, initial_state=2, seed=1)
        assert model.get_state() == 2
        assert not model.is_loaded()

    def test_initial_state_out_of_range(self):
        """Initial state outside [0, N) is fatal."""
        with pytest.raises(FadingInvariantError):
            MarkovModel(state_count=3, initial_state=3)

    def test_zero_states_rejected(self):
        """A chain needs at least one state."""
        with pytest.raises(FadingInvariantError):
            MarkovModel(state_count=0, initial_state=0)


class TestMarkovModelProbabilities:
    """Test probability loading."""

    def test_set_and_get_probability(self):
        """set_probability should overwrite exactly one cell."""
        model = MarkovModel(state_count=2, initial_state=0)
        model.set_probability(0, 1, 0.25)

        assert model.get_probability(0, 1) == 0.25
        assert model.get_probability(1, 0) == 0.0

    def test_is_loaded_after_full_matrix(self):
        """Model reports loaded once every cell was written."""
        model = MarkovModel(state_count=2, initial_state=0)
        load_matrix(model, [[0.5, 0.5], [0.5, 0.5]])
        assert model.is_loaded()

    def test_probabilities_is_a_copy(self):
        """Mutating the returned matrix must not affect the model."""
        model = MarkovModel(state_count=2, initial_state=0)
        load_matrix(model, [[1.0, 0.0], [0.0, 1.0]])

        matrix = model.probabilities
        matrix[0, 0] = 0.0
        assert model.get_probability(0, 0) == 1.0

    def test_out_of_range_cell_is_fatal(self):
        """Indices outside [0, N) are fatal."""
        model = MarkovModel(state_count=2, initial_state=0)
        with pytest.raises(FadingInvariantError):
            model.set_probability(2, 0, 0.5)
        with pytest.raises(FadingInvariantError):
            model.set_probability(0, -1, 0.5)


class TestMarkovModelTransitions:
    """Test transition sampling."""

    def test_transition_before_loading_is_fatal(self):
        """Transition without a loaded row is a programming error."""
        model = MarkovModel(state_count=3, initial_state=0, seed=1)
        with pytest.raises(FadingInvariantError):
            model.do_transition()

    def test_deterministic_row(self):
        """A row with a single 1.0 always moves to that state."""
        model = MarkovModel(state_count=3, initial_state=0, seed=1)
        load_matrix(model, [[0, 1, 0], [0, 0, 1], [1, 0, 0]])

        assert model.do_transition() == 1
        assert model.do_transition() == 2
        assert model.do_transition() == 0
        assert model.get_state() == 0

    def test_identity_matrix_keeps_state(self):
        """Self-loops should never change the state."""
        model = MarkovModel(state_count=3, initial_state=1, seed=7)
        load_matrix(model, np.eye(3))

        for _ in range(50):
            assert model.do_transition() == 1

    def test_row_summing_below_draw_keeps_state(self):
        """An all-zero row leaves the chain in place."""
        model = MarkovModel(state_count=2, initial_state=0, seed=3)
        load_matrix(model, [[0.0, 0.0], [0.5, 0.5]])

        for _ in range(20):
            assert model.do_transition() == 0

    def test_empirical_frequencies(self):
        """Successor frequencies should follow the current row."""
        model = MarkovModel(state_count=3, initial_state=0, seed=42)
        load_matrix(model, [[0.2, 0.3, 0.5], [1, 0, 0], [1, 0, 0]])

        counts = np.zeros(3)
        trials = 5000
        for _ in range(trials):
            model.current_state = 0
            counts[model.do_transition()] += 1

        frequencies = counts / trials
        assert np.allclose(frequencies, [0.2, 0.3, 0.5], atol=0.03), \
            f"Frequencies {frequencies} should match row probabilities"

    def test_deterministic_with_seed(self):
        """Same seed should produce same state sequence."""
        matrix = [[0.6, 0.3, 0.1], [0.2, 0.6, 0.2], [0.1, 0.3, 0.6]]
        model1 = MarkovModel(state_count=3, initial_state=0, seed=42)
        model2 = MarkovModel(state_count=3, initial_state=0, seed=42)
        load_matrix(model1, matrix)
        load_matrix(model2, matrix)

        sequence1 = [model1.do_transition() for _ in range(30)]
        sequence2 = [model2.do_transition() for _ in range(30)]

        assert sequence1 == sequence2, "Same seed should produce same transitions"

    def test_states_stay_in_range(self):
        """Every sampled state should be a valid index."""
        model = MarkovModel(state_count=4, initial_state=0, seed=5)
        load_matrix(model, np.full((4, 4), 0.25))

        for _ in range(200):
            assert 0 <= model.do_transition() < 4


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
