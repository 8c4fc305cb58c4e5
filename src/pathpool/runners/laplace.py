"""Runner fitting a Gaussian approximation at the mode found by L-BFGS.

For each path the negative log density is minimized with scipy's
L-BFGS-B starting from the path's initial state. The inverse Hessian
estimate of the optimizer at the end of the search defines a
multivariate normal approximation centered on the optimum, from which
the draws of the path are made.

Every draw is evaluated with the model to get its log-importance-ratio
(log target density minus log approximation density). Draws where the
target density is not finite are dropped, so paths may return fewer
draws than requested.

The optimizer hyperparameters map onto L-BFGS-B as follows:

- history_size : `maxcor`
- num_iterations : `maxiter`
- tol_rel_obj : `ftol`, in units of machine epsilon
- tol_grad : `gtol`
- tol_obj, tol_param, tol_rel_grad : checked after every iteration

`init_alpha` is accepted so that configurations can be shared between
runners, but L-BFGS-B always chooses its own first step.

"""

import math
import logging

logger = logging.getLogger(__name__)

import numpy as np
from scipy.optimize import minimize
from eliot import log_call

from pathpool.interrupt import Interrupt, PathInterrupted
from pathpool.path_result import PathResult, PathStatus
from pathpool.rng import create_rng
from pathpool.runners.runner import Runner

EPSILON = np.finfo(float).eps

# defaults for the optimizer hyperparameters
DEFAULT_OPTIMIZER_OPTS = {
    'history_size' : 5,
    'init_alpha' : 0.001,
    'tol_obj' : 1e-12,
    'tol_rel_obj' : 1e4,
    'tol_grad' : 1e-8,
    'tol_rel_grad' : 1e7,
    'tol_param' : 1e-8,
    'num_iterations' : 1000,
}


class LaplaceRunner(Runner):
    """Runs L-BFGS to the mode and draws from a normal approximation."""

    def __init__(self, num_draws=1000, refresh=100, interrupt=None, **optimizer_opts):
        """Constructor for LaplaceRunner.

        Parameters
        ----------
        num_draws : int
            Number of draws to make from the approximation of each path.

        refresh : int
            Progress is logged every `refresh` iterations, 0 for never.

        interrupt : Interrupt, optional
            Called every iteration of every path.

        **optimizer_opts
            Default optimizer hyperparameters, see
            `DEFAULT_OPTIMIZER_OPTS`. Any of these can also be given per
            call of `run_path`.

        """

        unknown = set(optimizer_opts).difference(DEFAULT_OPTIMIZER_OPTS)
        if len(unknown) > 0:
            raise ValueError("Unknown optimizer options: {}".format(
                ", ".join(sorted(unknown))))

        if num_draws < 1:
            raise ValueError("num_draws must be at least 1, got {}".format(num_draws))

        self.num_draws = num_draws
        self.refresh = refresh
        self.interrupt = interrupt if interrupt is not None else Interrupt()

        self.optimizer_opts = dict(DEFAULT_OPTIMIZER_OPTS)
        self.optimizer_opts.update(optimizer_opts)

    def _optimize(self, model, init_state, path_idx, opts, counter):
        """Minimize the negative log density.

        Returns the scipy OptimizeResult and whether one of the extra
        tolerances ended the search.
        """

        last = {'x' : None, 'grad' : None}

        def objective(x):
            counter['evals'] += 1
            lp, grad = model.log_density_and_grad(x)

            if not np.isfinite(lp):
                return np.inf, np.zeros_like(x)

            last['x'] = np.array(x)
            last['grad'] = np.asarray(grad, dtype=float)
            return -lp, -last['grad']

        state = {'iteration' : 0,
                 'fun' : None,
                 'x' : np.asarray(init_state, dtype=float),
                 'tolerance' : None}

        def callback(intermediate_result):
            state['iteration'] += 1
            iteration = state['iteration']

            self.interrupt(path_idx, iteration)

            x = intermediate_result.x
            fun = intermediate_result.fun

            if self.refresh > 0 and iteration % self.refresh == 0:
                logger.info("Path [{}] :Iter: {} log density: {}".format(
                    path_idx, iteration, -fun))

            prev_fun = state['fun']
            prev_x = state['x']
            state['fun'] = fun
            state['x'] = np.array(x)

            if prev_fun is not None and abs(prev_fun - fun) < opts['tol_obj']:
                state['tolerance'] = 'tol_obj'

            elif np.linalg.norm(x - prev_x) < opts['tol_param']:
                state['tolerance'] = 'tol_param'

            elif last['x'] is not None and np.array_equal(last['x'], x):
                rel_grad = np.max(np.abs(last['grad'])) / max(abs(fun), 1.0)
                if rel_grad < opts['tol_rel_grad'] * EPSILON:
                    state['tolerance'] = 'tol_rel_grad'

            if state['tolerance'] is not None:
                raise StopIteration

        result = minimize(objective, np.asarray(init_state, dtype=float),
                          jac=True,
                          method='L-BFGS-B',
                          callback=callback,
                          options={'maxcor' : opts['history_size'],
                                   'maxiter' : opts['num_iterations'],
                                   'ftol' : opts['tol_rel_obj'] * EPSILON,
                                   'gtol' : opts['tol_grad'],
                          })

        return result, state['tolerance'], state['iteration']

    def run_path(self, model, init_state, seed, path_id, path_idx=None, **kwargs):
        # documented in superclass

        if path_idx is None:
            path_idx = path_id

        opts = self.path_opts(**kwargs)

        counter = {'evals' : 0}

        try:
            return self._fit_path(model, init_state, seed, path_id, path_idx,
                                  opts, counter)

        except PathInterrupted as interruption:
            logger.info("Path [{}] :{}".format(path_idx, interruption))
            return PathResult.failed(path_idx, eval_count=counter['evals'],
                                     reason='interrupted')

        # errors of the model end only this path, its evaluations so
        # far are still credited
        except Exception as path_exception:
            exception = "{}({})".format(type(path_exception).__name__, path_exception)
            logger.info("Path [{}] :Model raised {}".format(path_idx, exception))
            return PathResult.failed(path_idx, eval_count=counter['evals'],
                                     reason='exception',
                                     exception=exception)

    def path_opts(self, **kwargs):
        """The optimizer hyperparameters of a path.

        Parameters
        ----------
        **kwargs
            Per path values overriding the defaults of this runner.

        Returns
        -------
        opts : dict

        Raises
        ------
        ValueError
            If an option is not one of `DEFAULT_OPTIMIZER_OPTS`.

        """

        unknown = set(kwargs).difference(DEFAULT_OPTIMIZER_OPTS)
        if len(unknown) > 0:
            raise ValueError("Unknown optimizer options: {}".format(
                ", ".join(sorted(unknown))))

        opts = dict(self.optimizer_opts)
        opts.update(kwargs)

        return opts

    @log_call(include_args=[],
              include_result=False)
    def pre_run(self, runner_opts=None, **kwargs):
        """Check the optimizer options of a run before any path starts."""

        if runner_opts is not None:
            self.path_opts(**runner_opts)

    def _fit_path(self, model, init_state, seed, path_id, path_idx, opts, counter):
        """Optimize, fit the approximation and draw from it, counting
        every log density evaluation in `counter`."""

        init_state = np.asarray(init_state, dtype=float)

        counter['evals'] += 1
        init_lp = model.log_density(init_state)
        if not np.isfinite(init_lp):
            logger.info("Path [{}] :Initial log density is not finite".format(path_idx))
            return PathResult.failed(path_idx, eval_count=counter['evals'],
                                     reason='init')

        opt_result, tolerance, n_iterations = self._optimize(
            model, init_state, path_idx, opts, counter)

        if tolerance is not None:
            message = "Convergence detected: {} satisfied".format(tolerance)
        else:
            message = str(opt_result.message)

        logger.debug("Path [{}] :{} after {} iterations".format(
            path_idx, message, n_iterations))

        mode = opt_result.x
        if not (np.all(np.isfinite(mode)) and np.isfinite(opt_result.fun)):
            logger.info("Path [{}] :Optimization did not reach a finite mode".format(path_idx))
            return PathResult.failed(path_idx, eval_count=counter['evals'],
                                     reason='optimization')

        cov = np.atleast_2d(opt_result.hess_inv.todense())
        cov = 0.5 * (cov + cov.T)

        try:
            chol = np.linalg.cholesky(cov)
        except np.linalg.LinAlgError:
            logger.info("Path [{}] :Inverse Hessian is not positive definite".format(path_idx))
            return PathResult.failed(path_idx, eval_count=counter['evals'],
                                     reason='covariance')

        n_params = mode.shape[0]

        rng = create_rng(seed, path_id)
        z = rng.standard_normal((n_params, self.num_draws))
        samples = mode[:, np.newaxis] + chol @ z

        lp_approx = (-0.5 * np.sum(z**2, axis=0)
                     - np.sum(np.log(np.diag(chol)))
                     - 0.5 * n_params * math.log(2 * math.pi))

        lp = np.empty(self.num_draws)
        for draw_idx in range(self.num_draws):
            counter['evals'] += 1
            lp[draw_idx] = model.log_density(samples[:, draw_idx])

        finite = np.isfinite(lp)
        if not np.any(finite):
            logger.info("Path [{}] :No draw has a finite log density".format(path_idx))
            return PathResult.failed(path_idx, eval_count=counter['evals'],
                                     reason='draws')

        if not np.all(finite):
            logger.info("Path [{}] :Dropping {} draws with non-finite log density".format(
                path_idx, int(np.sum(~finite))))

        log_ratios = lp[finite] - lp_approx[finite]

        diagnostics = {'n_iterations' : n_iterations,
                       'message' : message,
                       'mode_lp' : -float(opt_result.fun),
                       'elbo' : float(np.mean(log_ratios)),
        }

        return PathResult(path_idx, PathStatus.SUCCESS,
                          log_ratios=log_ratios,
                          samples=samples[:, finite],
                          lp_approx=lp_approx[finite],
                          eval_count=counter['evals'],
                          diagnostics=diagnostics)
