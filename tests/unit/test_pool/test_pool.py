# Standard Library
import logging

logger = logging.getLogger(__name__)

# Third Party Library
import numpy as np
import pytest

# First Party Library
from pathpool import error_codes
from pathpool.error_codes import ContractViolation
from pathpool.path_result import PathResult, PathStatus
from pathpool.pool import PathPool, PoolError


def make_result(path_idx, num_draws, num_params=2, offset=0.0):
    log_ratios = np.arange(num_draws, dtype=float) + offset
    samples = np.tile(log_ratios, (num_params, 1))
    return PathResult(path_idx, PathStatus.SUCCESS,
                      log_ratios=log_ratios,
                      samples=samples,
                      lp_approx=-log_ratios,
                      eval_count=7)


class TestPathResult:
    def test_failed(self):
        result = PathResult.failed(3, eval_count=12, reason='init')

        assert not result.succeeded
        assert result.status is PathStatus.FAILED
        assert result.num_draws == 0
        assert result.num_params is None
        assert result.eval_count == 12
        assert result.diagnostics == {'reason' : 'init'}

    def test_lp(self):
        result = make_result(0, 4)

        assert np.allclose(result.lp, 0.0)

    def test_default_lp_approx(self):
        result = PathResult(0, PathStatus.SUCCESS,
                            log_ratios=[0.1, 0.2],
                            samples=[[1.0, 2.0]])

        assert np.array_equal(result.lp_approx, [0.0, 0.0])
        assert result.num_params == 1

    def test_negative_eval_count(self):
        with pytest.raises(ValueError):
            PathResult.failed(0, eval_count=-1)


class TestPathPool:
    def test_from_results(self):
        results = [make_result(0, 2), make_result(1, 3, offset=10.0), make_result(2, 4)]

        pool = PathPool.from_results(results)

        assert pool.num_draws == 9
        assert len(pool) == 9
        assert pool.num_params == 2
        assert pool.samples.shape == (2, 9)
        assert np.array_equal(pool.path_idxs, [0, 0, 1, 1, 1, 2, 2, 2, 2])

        # columns stay with their ratios
        assert np.array_equal(pool.log_ratios, [0, 1, 10, 11, 12, 0, 1, 2, 3])
        assert np.array_equal(pool.samples[0], pool.log_ratios)
        assert np.array_equal(pool.samples[1], pool.log_ratios)

        assert np.allclose(pool.lp, 0.0)

    def test_four_paths_of_fifty(self):
        results = [make_result(i, 50, num_params=3) for i in range(4)]

        pool = PathPool.from_results(results)

        assert pool.num_draws == 200
        assert pool.samples.shape == (3, 200)

    def test_read_only(self):
        pool = PathPool.from_results([make_result(0, 3)])

        with pytest.raises(ValueError):
            pool.log_ratios[0] = 100.0

        with pytest.raises(ValueError):
            pool.samples[0, 0] = 100.0

    def test_dimension_mismatch(self):
        results = [make_result(0, 3, num_params=2), make_result(1, 3, num_params=3)]

        with pytest.raises(PoolError):
            PathPool.from_results(results)

    def test_column_mismatch(self):
        result = make_result(0, 3)
        result.samples = result.samples[:, :2]

        with pytest.raises(PoolError):
            PathPool.from_results([result])

    def test_failed_result(self):
        with pytest.raises(PoolError):
            PathPool.from_results([make_result(0, 3), PathResult.failed(1)])

    def test_empty(self):
        with pytest.raises(PoolError) as exc_info:
            PathPool.from_results([])

        assert isinstance(exc_info.value, ContractViolation)
        assert exc_info.value.exit_code == error_codes.SOFTWARE
