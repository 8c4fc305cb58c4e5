"""Importance weight estimators for pooled log-importance-ratios.

Estimator Interface
-------------------

An estimator implements an `estimate` method which accepts the pooled
log-ratios and a tail length and returns a tuple of:

- weights : array of float with one non-negative, finite entry per
  log-ratio, not all zero. Normalization is up to the estimator.
- diagnostics : dict of str : value, which the manager forwards to the
  reporters without interpreting it.

The tail length is computed by the caller for every run with
`tail_length` since it depends on the number of pooled draws. How it
is rounded is up to each estimator, those here take the ceiling.

Two estimators are provided:

- StandardImportanceEstimator : plain self-normalized importance
  weights, no smoothing.
- ParetoSmoothedEstimator : Pareto smoothed importance sampling
  (PSIS), the largest ratios are replaced by the expected order
  statistics of a generalized Pareto distribution fit to them.

"""

import math
import logging

logger = logging.getLogger(__name__)

import numpy as np
from scipy.stats import genpareto

from pathpool.error_codes import ContractViolation

MIN_TAIL_LENGTH = 5
"""Tails shorter than this are not smoothed."""

KHAT_WARN_THRESHOLD = 0.7
"""Pareto shape estimates above this indicate unreliable weights."""


class WeightContractError(ContractViolation):
    """Importance weights that are non-finite, negative, or all zero."""
    pass


def tail_length(num_draws):
    """The number of tail draws to smooth for a pool of the given size.

    Balances having enough tail points to fit the smoothing model
    against over-smoothing a small pool.

    Parameters
    ----------
    num_draws : int
        The total number of pooled draws.

    Returns
    -------
    tail_len : float

    Examples
    --------

    >>> tail_length(25)
    5.0
    >>> tail_length(10000)
    300.0

    """
    return min(0.2 * num_draws, 3 * math.sqrt(num_draws))


def validate_weights(weights, num_draws=None):
    """Check that a weight vector satisfies the estimator contract.

    Parameters
    ----------
    weights : arraylike of float

    num_draws : int, optional
        The number of weights expected.

    Returns
    -------
    weights : numpy.ndarray of float

    Raises
    ------
    WeightContractError

    """

    weights = np.asarray(weights, dtype=float)

    if weights.ndim != 1:
        raise WeightContractError("weights must be one dimensional, got shape {}".format(
            weights.shape))

    if num_draws is not None and weights.shape[0] != num_draws:
        raise WeightContractError("Expected {} weights, got {}".format(
            num_draws, weights.shape[0]))

    if weights.shape[0] == 0:
        raise WeightContractError("No weights given")

    if not np.all(np.isfinite(weights)):
        raise WeightContractError("{} weights are not finite".format(
            int(np.sum(~np.isfinite(weights)))))

    if np.any(weights < 0.0):
        raise WeightContractError("{} weights are negative".format(
            int(np.sum(weights < 0.0))))

    if not np.any(weights > 0.0):
        raise WeightContractError("All weights are zero")

    return weights


def _normalized_exp(log_weights):
    """Exponentiate and normalize log weights stably."""

    lw_max = np.max(log_weights)
    if not np.isfinite(lw_max):
        raise WeightContractError("The largest log weight is {}".format(lw_max))

    weights = np.exp(log_weights - lw_max)
    return weights / np.sum(weights)


class WeightEstimator(object):
    """Abstract base class for importance weight estimators."""

    def estimate(self, log_ratios, tail_len):
        """Compute importance weights for the pooled log-ratios.

        Parameters
        ----------
        log_ratios : arraylike of float of shape (n_draws,)

        tail_len : float
            The number of tail draws to use, see `tail_length`.

        Returns
        -------
        weights : numpy.ndarray of float of shape (n_draws,)

        diagnostics : dict of str : value

        """
        raise NotImplementedError


class StandardImportanceEstimator(WeightEstimator):
    """Self-normalized importance weights without any smoothing.

    The tail length is ignored.
    """

    def estimate(self, log_ratios, tail_len):
        # documented in superclass

        log_ratios = np.asarray(log_ratios, dtype=float)

        if np.any(np.isnan(log_ratios)):
            raise WeightContractError("log ratios contain NaN")

        return _normalized_exp(log_ratios), {}


class ParetoSmoothedEstimator(WeightEstimator):
    """Pareto smoothed importance sampling weights.

    The largest `ceil(tail_len)` log-ratios are replaced by the
    expected order statistics of a generalized Pareto distribution
    fit to them (with `scipy.stats.genpareto`), truncated at the
    largest raw ratio. The fitted shape parameter `khat` is returned
    as a diagnostic, values above 0.7 mean the weights are unreliable.

    """

    def __init__(self, min_tail_length=MIN_TAIL_LENGTH,
                 khat_warn_threshold=KHAT_WARN_THRESHOLD):
        """Constructor for ParetoSmoothedEstimator.

        Parameters
        ----------
        min_tail_length : int
            Tails shorter than this are left unsmoothed and no khat is
            estimated.

        khat_warn_threshold : float
            A warning is logged when the estimated shape exceeds this.

        """

        self.min_tail_length = min_tail_length
        self.khat_warn_threshold = khat_warn_threshold

    def smooth_tail(self, log_weights, tail_len):
        """Replace the tail of the log weights with smoothed values.

        Parameters
        ----------
        log_weights : numpy.ndarray of float
            Log weights shifted so that their maximum is 0.

        tail_len : float

        Returns
        -------
        smoothed_log_weights : numpy.ndarray of float

        khat : float
            The estimated Pareto shape, NaN if no smoothing was done.

        """

        n_draws = log_weights.shape[0]
        n_tail = min(int(math.ceil(tail_len)), n_draws - 1)

        if n_tail < self.min_tail_length:
            logger.info("Tail of {} draws too short to smooth".format(n_tail))
            return log_weights, np.nan

        order = np.argsort(log_weights, kind='stable')
        tail_idxs = order[-n_tail:]
        cutoff = log_weights[order[-n_tail - 1]]

        if not np.isfinite(cutoff):
            logger.info("Tail cutoff is not finite, not smoothing")
            return log_weights, np.nan

        tail = log_weights[tail_idxs]
        exp_cutoff = np.exp(cutoff)
        excess = np.exp(tail) - exp_cutoff

        if not np.any(excess > 0.0):
            # constant tail, nothing to fit
            return log_weights, np.nan

        khat, _, sigma = genpareto.fit(excess, floc=0.0)

        if not (np.isfinite(khat) and np.isfinite(sigma) and sigma > 0.0):
            logger.info("Pareto fit did not converge (k={}, sigma={})".format(khat, sigma))
            return log_weights, np.nan

        # expected order statistics of the fitted distribution
        probs = (np.arange(1, n_tail + 1) - 0.5) / n_tail
        smoothed = np.log(genpareto.ppf(probs, khat, scale=sigma) + exp_cutoff)

        smoothed = np.minimum(smoothed, tail[-1])

        smoothed_log_weights = log_weights.copy()
        smoothed_log_weights[tail_idxs] = smoothed

        return smoothed_log_weights, float(khat)

    def estimate(self, log_ratios, tail_len):
        # documented in superclass

        log_ratios = np.asarray(log_ratios, dtype=float)

        if np.any(np.isnan(log_ratios)) or np.any(log_ratios == np.inf):
            raise WeightContractError("log ratios must not contain NaN or +inf")

        lw_max = np.max(log_ratios)
        if not np.isfinite(lw_max):
            raise WeightContractError("All log ratios are -inf")

        log_weights, khat = self.smooth_tail(log_ratios - lw_max, tail_len)

        if khat > self.khat_warn_threshold:
            logger.warning(
                "Pareto k value ({:.2f}) is greater than {}. "
                "Importance resampling may be unreliable.".format(
                    khat, self.khat_warn_threshold))

        return _normalized_exp(log_weights), {'khat' : khat}
