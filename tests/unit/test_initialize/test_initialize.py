# Third Party Library
import numpy as np
import pytest

# First Party Library
from pathpool.initialize import init_state, init_states
from pathpool.rng import create_rng


class TestInitState:
    def test_radius(self, unit_gaussian_model):
        state = init_state(unit_gaussian_model, 3, 0, init_radius=0.5)

        assert state.shape == (3,)
        assert np.all(np.abs(state) < 0.5)

    def test_zero_radius(self, unit_gaussian_model):
        state = init_state(unit_gaussian_model, 3, 0, init_radius=0.0)

        assert np.array_equal(state, np.zeros(3))

    def test_user_values(self, unit_gaussian_model):
        state = init_state(unit_gaussian_model, 3, 0, init={'x.2' : 10.0})

        assert state[1] == 10.0
        assert np.all(np.abs(state[[0, 2]]) < 2.0)

    def test_unknown_name(self, unit_gaussian_model):
        with pytest.raises(ValueError):
            init_state(unit_gaussian_model, 3, 0, init={'y' : 1.0})

    def test_negative_radius(self, unit_gaussian_model):
        with pytest.raises(ValueError):
            init_state(unit_gaussian_model, 3, 0, init_radius=-1.0)


class TestInitStates:
    def test_paths_differ(self, unit_gaussian_model):
        states = init_states(unit_gaussian_model, 4, 3)

        assert len(states) == 4
        assert not np.array_equal(states[0], states[1])

    def test_path_offset(self, unit_gaussian_model):
        offset_states = init_states(unit_gaussian_model, 2, 3, path=5)

        assert np.array_equal(offset_states[0], init_state(unit_gaussian_model, 3, 5))
        assert np.array_equal(offset_states[1], init_state(unit_gaussian_model, 3, 6))

    def test_per_path_inits(self, unit_gaussian_model):
        states = init_states(unit_gaussian_model, 2, 3,
                             inits=[{'x.1' : 1.0}, {'x.1' : 2.0}])

        assert states[0][0] == 1.0
        assert states[1][0] == 2.0

    def test_inits_count(self, unit_gaussian_model):
        with pytest.raises(ValueError):
            init_states(unit_gaussian_model, 3, 3, inits=[{}, {}])


class TestCreateRng:
    def test_reproducible(self):
        assert create_rng(1, 2).random() == create_rng(1, 2).random()
        assert create_rng(1, 2).random() != create_rng(1, 3).random()

    @pytest.mark.parametrize("seed, path", [(None, 0), (-1, 0), (1, -1)])
    def test_invalid(self, seed, path):
        with pytest.raises(ValueError):
            create_rng(seed, path)
