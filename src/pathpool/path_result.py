"""Reference implementation of the result of a single path run.

Runners do not have to return this exact class, only something that
acts like it (duck typed). The required attributes of the PathResult
interface are:

- `path_idx` : int
- `status` : PathStatus
- `log_ratios` : arraylike of float of shape (n_draws,)
- `samples` : arraylike of float of shape (n_params, n_draws)
- `lp_approx` : arraylike of float of shape (n_draws,)
- `eval_count` : int

The log-importance-ratio of a draw is the log density of the target
minus the log density of the approximating distribution at that
draw. So the target log density is recovered as `lp_approx +
log_ratios`.

When a path has failed only `path_idx`, `status` and `eval_count` are
meaningful and the arrays must not be read.

"""

from enum import Enum
import logging

logger = logging.getLogger(__name__)

import numpy as np


class PathStatus(Enum):
    """Outcome of a single path run."""

    SUCCESS = 0
    FAILED = 1


class PathResult(object):
    """The draws and bookkeeping produced by one path."""

    def __init__(self, path_idx, status,
                 log_ratios=None,
                 samples=None,
                 lp_approx=None,
                 eval_count=0,
                 diagnostics=None,
    ):
        """Constructor for PathResult.

        Parameters
        ----------
        path_idx : int
            The index of the path within the run (not offset by the
            path id offset).

        status : PathStatus

        log_ratios : arraylike of float of shape (n_draws,)

        samples : arraylike of float of shape (n_params, n_draws)
            Unconstrained draws, one per column.

        lp_approx : arraylike of float of shape (n_draws,), optional
            Log density of the approximation at each draw. Zeros if
            not given.

        eval_count : int
            Number of log density evaluations the path spent, also for
            failed paths.

        diagnostics : dict, optional
            Free form runner specific values (e.g. the number of
            optimizer iterations).

        """

        if eval_count < 0:
            raise ValueError("eval_count must be non-negative, got {}".format(eval_count))

        self.path_idx = path_idx
        self.status = status
        self.eval_count = int(eval_count)
        self.diagnostics = diagnostics if diagnostics is not None else {}

        if status is PathStatus.SUCCESS:
            self.log_ratios = np.asarray(log_ratios, dtype=float)
            self.samples = np.atleast_2d(np.asarray(samples, dtype=float))

            if lp_approx is None:
                self.lp_approx = np.zeros_like(self.log_ratios)
            else:
                self.lp_approx = np.asarray(lp_approx, dtype=float)

        else:
            self.log_ratios = None
            self.samples = None
            self.lp_approx = None

    @classmethod
    def failed(cls, path_idx, eval_count=0, **diagnostics):
        """Make the result of a path that did not run successfully."""
        return cls(path_idx, PathStatus.FAILED,
                   eval_count=eval_count,
                   diagnostics=diagnostics)

    @property
    def succeeded(self):
        """Whether the path returned usable draws."""
        return self.status is PathStatus.SUCCESS

    @property
    def num_draws(self):
        """The number of draws of this path, 0 for failed paths."""
        if not self.succeeded:
            return 0
        return self.log_ratios.shape[0]

    @property
    def num_params(self):
        """Dimension of the unconstrained parameter space."""
        if not self.succeeded:
            return None
        return self.samples.shape[0]

    @property
    def lp(self):
        """Log density of the target at each draw."""
        if not self.succeeded:
            return None
        return self.lp_approx + self.log_ratios

    def __repr__(self):
        return "PathResult(path_idx={}, status={}, num_draws={}, eval_count={})".format(
            self.path_idx, self.status.name, self.num_draws, self.eval_count)
