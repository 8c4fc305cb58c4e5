# Standard Library
import logging

logger = logging.getLogger(__name__)

# Third Party Library
import numpy as np
import pytest

# First Party Library
from pathpool.importance import WeightContractError
from pathpool.resampling.resampler import Resampler, ResamplerError, WeightedResampler


class TestWeightedResampler:
    def test_num_draws(self):
        weights = np.linspace(0.1, 1.0, 10)

        pool_idxs, resampling_data, resampler_data = WeightedResampler(3).resample(weights, 25)

        assert pool_idxs.shape == (25,)
        assert np.all((pool_idxs >= 0) & (pool_idxs < 10))

        assert [rec['draw_idx'] for rec in resampling_data] == list(range(25))
        assert [rec['pool_idx'] for rec in resampling_data] == list(pool_idxs)

        assert resampler_data[0]['seed'] == 3
        assert resampler_data[0]['n_candidates'] == 10
        assert resampler_data[0]['n_unique'] == len(np.unique(pool_idxs))

    def test_reproducible(self):
        weights = np.ones(100)

        first, _, _ = WeightedResampler(42, path=1).resample(weights, 1000)
        second, _, _ = WeightedResampler(42, path=1).resample(weights, 1000)

        assert np.array_equal(first, second)

    def test_repeated_calls_reproducible(self):
        resampler = WeightedResampler(42)
        weights = np.ones(100)

        first, _, _ = resampler.resample(weights, 1000)
        second, _, _ = resampler.resample(weights, 1000)

        assert np.array_equal(first, second)

    def test_path_decorrelates(self):
        weights = np.ones(100)

        first, _, _ = WeightedResampler(42, path=0).resample(weights, 1000)
        second, _, _ = WeightedResampler(42, path=1).resample(weights, 1000)

        assert not np.array_equal(first, second)

    def test_equal_weights_frequency(self):
        n_draws = 100000

        pool_idxs, _, _ = WeightedResampler(7).resample(np.ones(3), n_draws)

        freqs = np.bincount(pool_idxs, minlength=3) / n_draws
        assert np.allclose(freqs, 1.0 / 3.0, atol=0.01)

    def test_unnormalized_weights(self):
        n_draws = 100000

        pool_idxs, _, _ = WeightedResampler(7).resample(np.array([2.0, 6.0]), n_draws)

        freqs = np.bincount(pool_idxs, minlength=2) / n_draws
        assert np.allclose(freqs, [0.25, 0.75], atol=0.01)

    def test_zero_weight_never_drawn(self):
        pool_idxs, _, _ = WeightedResampler(7).resample(np.array([0.0, 1.0, 0.0]), 500)

        assert np.all(pool_idxs == 1)

    @pytest.mark.parametrize(
        "weights",
        [
            [np.nan, 1.0],
            [-0.5, 1.0],
            [0.0, 0.0],
            [],
        ],
    )
    def test_invalid_weights(self, weights):
        with pytest.raises(ResamplerError) as exc_info:
            WeightedResampler(7).resample(np.array(weights), 10)

        assert isinstance(exc_info.value, WeightContractError)

    def test_no_draws(self):
        with pytest.raises(ResamplerError):
            WeightedResampler(7).resample(np.ones(3), 0)

    def test_resampling_fields(self):
        fields = WeightedResampler(7).resampling_fields()

        assert fields == [('draw_idx', (1,), int), ('pool_idx', (1,), int)]


def test_abstract_resampler():
    with pytest.raises(NotImplementedError):
        Resampler().resample(np.ones(3), 2)
