"""Pooling of the draws of many paths into one importance sampling
population.

Different paths may return different numbers of draws (e.g. because
some draws had a non-finite density and were dropped) so the size of
the pool is only known after all paths have finished. The pool is
therefore always built from the collected results and never
preallocated from an assumed per-path draw count.

The order of paths in the pool is irrelevant to the correctness of the
weighting, only the correspondence between a draw's sample column and
its log-ratio within a path matters, and that is preserved.

"""

import logging

logger = logging.getLogger(__name__)

import numpy as np

from pathpool.error_codes import ContractViolation


class PoolError(ContractViolation):
    """Path results that cannot be pooled, e.g. because they disagree on
    the parameter dimension."""
    pass


class PathPool(object):
    """Contiguous, read-only population of the draws of all successful
    paths.

    Column `i` of `samples` corresponds to element `i` of
    `log_ratios`, `lp_approx` and `path_idxs`.

    """

    def __init__(self, log_ratios, samples, lp_approx, path_idxs):
        """Constructor for PathPool.

        Typically you want `PathPool.from_results` instead.

        Parameters
        ----------
        log_ratios : arraylike of float of shape (n_draws,)

        samples : arraylike of float of shape (n_params, n_draws)

        lp_approx : arraylike of float of shape (n_draws,)

        path_idxs : arraylike of int of shape (n_draws,)
            The index of the path each draw came from.

        """

        self._log_ratios = np.array(log_ratios, dtype=float)
        self._samples = np.array(samples, dtype=float)
        self._lp_approx = np.array(lp_approx, dtype=float)
        self._path_idxs = np.array(path_idxs, dtype=int)

        n_draws = self._log_ratios.shape[0]

        if self._samples.ndim != 2 or self._samples.shape[1] != n_draws:
            raise PoolError("samples of shape {} do not match {} log ratios".format(
                self._samples.shape, n_draws))

        if self._lp_approx.shape != (n_draws,) or self._path_idxs.shape != (n_draws,):
            raise PoolError("per draw fields must all have {} entries".format(n_draws))

        # immutable after construction
        for arr in (self._log_ratios, self._samples, self._lp_approx, self._path_idxs):
            arr.setflags(write=False)

    @classmethod
    def from_results(cls, results):
        """Concatenate the draws of successful path results.

        Parameters
        ----------
        results : list of PathResult
            Successful path results, at least one.

        Returns
        -------
        pool : PathPool

        Raises
        ------
        PoolError
            If no results are given, a result is not successful, or
            the results disagree on the parameter dimension.

        """

        results = list(results)

        if len(results) == 0:
            raise PoolError("At least one successful path is needed to make a pool")

        for result in results:
            if not result.succeeded:
                raise PoolError("Path {} did not succeed and cannot be pooled".format(
                    result.path_idx))

        num_params = results[0].num_params
        for result in results:

            if result.num_params != num_params:
                raise PoolError(
                    "Path {} has parameter dimension {} but path {} has {}".format(
                        result.path_idx, result.num_params,
                        results[0].path_idx, num_params))

            if result.samples.shape[1] != result.num_draws:
                raise PoolError(
                    "Path {} returned {} sample columns for {} log ratios".format(
                        result.path_idx, result.samples.shape[1], result.num_draws))

        num_draws = sum(result.num_draws for result in results)

        log_ratios = np.empty(num_draws)
        lp_approx = np.empty(num_draws)
        path_idxs = np.empty(num_draws, dtype=int)
        samples = np.empty((num_params, num_draws))

        start = 0
        for result in results:
            end = start + result.num_draws

            log_ratios[start:end] = result.log_ratios
            lp_approx[start:end] = result.lp_approx
            path_idxs[start:end] = result.path_idx
            samples[:, start:end] = result.samples

            start = end

        logger.debug("Pooled {} draws from {} paths".format(num_draws, len(results)))

        return cls(log_ratios, samples, lp_approx, path_idxs)

    @property
    def log_ratios(self):
        """The pooled log-importance-ratios."""
        return self._log_ratios

    @property
    def samples(self):
        """The pooled draws, one per column."""
        return self._samples

    @property
    def lp_approx(self):
        """Log density of the generating approximation for each draw."""
        return self._lp_approx

    @property
    def lp(self):
        """Log density of the target for each draw."""
        return self._lp_approx + self._log_ratios

    @property
    def path_idxs(self):
        """The index of the path each draw came from."""
        return self._path_idxs

    @property
    def num_draws(self):
        """Total number of pooled draws."""
        return self._log_ratios.shape[0]

    @property
    def num_params(self):
        """Dimension of each draw."""
        return self._samples.shape[0]

    def __len__(self):
        return self.num_draws
