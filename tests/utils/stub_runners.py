"""Runners returning canned path results for testing the combiner
without running any optimization."""

import threading

import numpy as np

from pathpool.path_result import PathResult, PathStatus
from pathpool.rng import create_rng
from pathpool.runners.runner import Runner


class StubRunner(Runner):
    """Returns normally distributed draws for every path.

    Paths whose index is in `fail_paths` return a failed result and
    those in `raise_paths` raise.
    """

    def __init__(self, num_draws=50, eval_count=10,
                 fail_paths=(), raise_paths=(), num_params=None):

        self.num_draws = num_draws
        self.eval_count = eval_count
        self.fail_paths = set(fail_paths)
        self.raise_paths = set(raise_paths)
        self.num_params = num_params

        self.calls = []
        self._lock = threading.Lock()

    def path_num_params(self, model, path_idx):
        if self.num_params is not None:
            return self.num_params
        return model.num_params

    def run_path(self, model, init_state, seed, path_id, path_idx=None, **kwargs):

        with self._lock:
            self.calls.append({'path_id' : path_id,
                               'path_idx' : path_idx,
                               'kwargs' : kwargs})

        if path_idx in self.raise_paths:
            raise RuntimeError("path {} blew up".format(path_idx))

        if path_idx in self.fail_paths:
            return PathResult.failed(path_idx, eval_count=self.eval_count)

        num_params = self.path_num_params(model, path_idx)

        rng = create_rng(seed, path_id)
        samples = rng.normal(size=(num_params, self.num_draws))
        lp_approx = -0.5 * np.sum(samples**2, axis=0)
        log_ratios = rng.normal(scale=0.1, size=self.num_draws)

        return PathResult(path_idx, PathStatus.SUCCESS,
                          log_ratios=log_ratios,
                          samples=samples,
                          lp_approx=lp_approx,
                          eval_count=self.eval_count)


class MixedDimensionRunner(StubRunner):
    """Odd paths return draws of one more dimension than even ones."""

    def path_num_params(self, model, path_idx):
        return model.num_params + (path_idx % 2)
