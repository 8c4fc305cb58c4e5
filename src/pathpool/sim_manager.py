"""Module for the main run management class.

All component class interfaces are set by how the manager interacts
with them.

Managers implement a three phase protocol for running:

- init
- run
- cleanup

The separate `init` method is different than the constructor
`__init__` method and instead calls the special `init` method on the
work mapper and the reporters at runtime. This allows things that need
to be done at runtime, e.g. opening files or starting worker threads,
to be kept out of construction.

The `cleanup` method is called both when a run ends normally and when
it ends abnormally, so that file handles are closed and worker
threads are shut down.

A multi-path run proceeds as:

1. runner.pre_run
2. run_paths -> work_mapper.map(runner.run_path)
3. runner.post_run
4. collect_paths : failed paths are logged and excluded
5. PathPool.from_results : pool the draws of the successful paths
6. estimator.estimate : importance weights of the pool
7. resampler.resample : the final weighted draws
8. reporter.report for all reporters

"""

import logging

logger = logging.getLogger(__name__)

import numpy as np
import pandas as pd
from eliot import start_action, log_call

from pathpool.error_codes import PathPoolError
from pathpool.importance import ParetoSmoothedEstimator, tail_length, validate_weights
from pathpool.initialize import init_states
from pathpool.pool import PathPool
from pathpool.resampling.resampler import WeightedResampler
from pathpool.stats import RunStats, Timer
from pathpool.work_mapper.mapper import Mapper

APPROX_DENSITY_NAME = "lp_approx__"
TARGET_DENSITY_NAME = "lp__"

class NoSuccessfulPathsError(PathPoolError):
    """Every path of a run failed, there is nothing to resample."""

    def __init__(self, message="No paths ran successfully",
                 n_paths=None, total_evals=None):
        super().__init__(message)
        self.n_paths = n_paths
        self.total_evals = total_evals


class MultiPathResult(object):
    """The final output of a multi-path run."""

    def __init__(self, draws, param_names, pool_idxs, pool, weights,
                 path_results, run_stats, estimator_diagnostics):

        self.draws = draws
        self.param_names = param_names
        self.pool_idxs = pool_idxs
        self.pool = pool
        self.weights = weights
        self.path_results = path_results
        self.run_stats = run_stats
        self.estimator_diagnostics = estimator_diagnostics

    def draws_df(self):
        """The output rows as a table with the parameter names as columns."""
        return pd.DataFrame(self.draws, columns=self.param_names)


class Manager(object):
    """The class that coordinates multi-path runs.

    The order of application of the components is:

    - runner (mapped over paths by the work mapper)
    - estimator
    - resampler
    - reporters

    """

    REPORT_ITEM_KEYS = ('draws',
                        'pool_idxs',
                        'path_results',
                        'pool',
                        'weights',
                        'estimator_diagnostics',
                        'resampling_data',
                        'resampler_data',
                        'worker_segment_times',
                        'run_stats',
    )
    """Keys of values that will be passed to reporters."""

    def __init__(self, model,
                 runner=None,
                 work_mapper=None,
                 estimator=None,
                 resampler=None,
                 reporters=None,
    ):
        """Constructor for Manager.

        Arguments
        ---------

        model : object implementing the Model interface
            The target density all paths are fit to.

        runner : object implementing the Runner interface
            Fits one path and draws from its approximation.

        work_mapper : object implementing the WorkMapper interface, optional
            Maps the runner over the paths. Defaults to the serial Mapper.

        estimator : object implementing the WeightEstimator interface, optional
            Defaults to Pareto smoothed importance sampling.

        resampler : object implementing the Resampler interface, optional
            Defaults to a WeightedResampler made from the seed and path
            offset of each run.

        reporters : list of objects implementing the Reporter interface, optional

        """

        if runner is None:
            raise ValueError("A runner must be given")

        self.model = model
        self.runner = runner

        if work_mapper is None:
            self.work_mapper = Mapper()
        else:
            self.work_mapper = work_mapper

        if estimator is None:
            self.estimator = ParetoSmoothedEstimator()
        else:
            self.estimator = estimator

        self.resampler = resampler

        if reporters is None:
            self.reporters = []
        else:
            self.reporters = reporters

    def param_names(self):
        """The header of the output rows."""
        return list(self.model.constrained_param_names()) + \
            [APPROX_DENSITY_NAME, TARGET_DENSITY_NAME]

    @log_call(include_args=['num_workers'],
              include_result=False)
    def init(self, num_workers=None, resampler=None):
        """Initialize components for use at runtime.

        Passes the `run_path` method of the runner and the number of
        workers to the work mapper and the output header and all
        components to each reporter.

        Parameters
        ----------
        num_workers : int
            The number of workers to use in the work mapper.
             (Default value = None)

        resampler : Resampler object
            The resampler that will be used in this run.

        """

        logger.info("Initializing run")

        self.work_mapper.init(
            path_func=self.runner.run_path,
            num_workers=num_workers,
        )

        for reporter in self.reporters:
            reporter.init(param_names=self.param_names(),
                          model=self.model,
                          runner=self.runner,
                          estimator=self.estimator,
                          resampler=resampler,
                          work_mapper=self.work_mapper,
                          reporters=self.reporters)

    def cleanup(self):
        """Perform cleanup actions for the work mapper and reporters."""

        self.work_mapper.cleanup()

        for reporter in self.reporters:
            reporter.cleanup(runner=self.runner,
                             work_mapper=self.work_mapper,
                             reporters=self.reporters)

    @log_call(include_args=['seed', 'path'],
              include_result=False)
    def run_paths(self, states, seed, path=0, runner_opts=None):
        """Run one path per initial state using the work mapper.

        Parameters
        ----------
        states : list of arraylike
            The unconstrained initial state of each path.

        seed : int

        path : int
            The path id offset, path `i` has id `path + i`.

        runner_opts : dict, optional
            Optimizer hyperparameters forwarded to every call of
            `run_path`.

        Returns
        -------
        path_results : list of PathResult
            The result of every path, failed ones included, in path
            order.

        """

        if runner_opts is None:
            runner_opts = {}

        num_paths = len(states)

        logger.info("Starting {} paths".format(num_paths))

        # every option is repeated for each path
        opt_kwargs = {key : [value for _ in range(num_paths)]
                      for key, value in runner_opts.items()}

        path_results = list(self.work_mapper.map(
            (self.model for _ in range(num_paths)),
            states,
            (seed for _ in range(num_paths)),
            (path + path_idx for path_idx in range(num_paths)),
            path_idx=(path_idx for path_idx in range(num_paths)),
            **opt_kwargs
        ))

        logger.info("All paths finished")

        return path_results

    @staticmethod
    def collect_paths(path_results):
        """Separate the successful paths and total the evaluations.

        Parameters
        ----------
        path_results : list of PathResult

        Returns
        -------
        successful_results : list of PathResult

        total_evals : int
            Evaluations over all paths, failed ones included.

        Raises
        ------
        NoSuccessfulPathsError
            When no path succeeded.

        """

        successful_results = []
        total_evals = 0
        for result in path_results:

            total_evals += result.eval_count

            if result.succeeded:
                successful_results.append(result)
            else:
                logger.info("Path {} failed.".format(result.path_idx))

        if len(successful_results) == 0:
            logger.error("No paths ran successfully")
            raise NoSuccessfulPathsError(n_paths=len(path_results),
                                         total_evals=total_evals)

        return successful_results, total_evals

    def make_draws(self, pool, pool_idxs):
        """The output rows for the drawn pool columns.

        Each row is the constrained values of the pool column followed
        by its approximation and target log densities.

        """

        lp = pool.lp

        rows = []
        for pool_idx in pool_idxs:
            constrained = np.asarray(self.model.constrain(pool.samples[:, pool_idx]), dtype=float)
            rows.append(np.concatenate([constrained,
                                        [pool.lp_approx[pool_idx], lp[pool_idx]]]))

        return np.array(rows)

    @log_call(
        include_args=[
            'seed',
            'path',
            'num_paths',
            'num_multi_draws',
            'num_workers',
        ],
        include_result=False)
    def run(self, seed, path=0,
            num_paths=4,
            num_multi_draws=1000,
            inits=None,
            init_radius=2.0,
            refresh=100,
            num_workers=None,
            runner_opts=None,
    ):
        """Run the paths and combine them into weighted draws.

        Parameters
        ----------
        seed : int
            Random seed for the initial states, the paths and the
            resampling.

        path : int
            Path id offset, decorrelates runs sharing a seed.

        num_paths : int
            Number of independent paths to run.

        num_multi_draws : int
            Number of draws to resample from the pool.

        inits : dict or list of dict, optional
            User supplied initial values by parameter name, one set
            for all paths or one per path.

        init_radius : float
            Unspecified initial values are drawn uniformly in
            (-init_radius, init_radius).

        refresh : int
            0 silences the evaluation count summary.

        num_workers : int, optional
            The number of workers to use for the work mapper.

        runner_opts : dict, optional
            Optimizer hyperparameters forwarded opaquely to the runner.

        Returns
        -------
        result : MultiPathResult

        Raises
        ------
        NoSuccessfulPathsError
            When every path failed.

        ContractViolation
            When the path results cannot be pooled or the weights are
            invalid.

        """

        if num_paths < 1:
            raise ValueError("num_paths must be at least 1, got {}".format(num_paths))

        if num_multi_draws < 1:
            raise ValueError("num_multi_draws must be at least 1, got {}".format(num_multi_draws))

        if self.resampler is None:
            resampler = WeightedResampler(seed, path)
        else:
            resampler = self.resampler

        try:
            self.init(num_workers=num_workers, resampler=resampler)

            result = self._run(seed, path, num_paths, num_multi_draws, resampler,
                               inits=inits,
                               init_radius=init_radius,
                               refresh=refresh,
                               runner_opts=runner_opts)
        finally:
            self.cleanup()

        return result

    def _run(self, seed, path, num_paths, num_multi_draws, resampler,
             inits=None,
             init_radius=2.0,
             refresh=100,
             runner_opts=None,
    ):
        """See run."""

        states = init_states(self.model, num_paths, seed,
                             path=path,
                             inits=inits,
                             init_radius=init_radius)

        self.runner.pre_run(num_paths=num_paths, runner_opts=runner_opts)

        with Timer() as paths_timer:
            path_results = self.run_paths(states, seed, path=path, runner_opts=runner_opts)

        self.runner.post_run()

        successful_results, total_evals = self.collect_paths(path_results)

        if refresh != 0:
            logger.info("Total log probability function evaluations:{}".format(total_evals))

        pool = PathPool.from_results(successful_results)

        # the resampling interval is the weight estimation through the
        # resampling
        with start_action(action_type="importance resampling"), Timer() as psis_timer:

            weights, estimator_diagnostics = self.estimator.estimate(
                pool.log_ratios, tail_length(pool.num_draws))

            weights = validate_weights(weights, num_draws=pool.num_draws)

            pool_idxs, resampling_data, resampler_data = resampler.resample(
                weights, num_multi_draws)

        draws = self.make_draws(pool, pool_idxs)

        run_stats = RunStats(
            pathfinders_elapsed_seconds=paths_timer.elapsed,
            resampling_elapsed_seconds=psis_timer.elapsed,
            total_log_density_evaluations=total_evals,
            n_paths=num_paths,
            n_successful_paths=len(successful_results),
            n_pooled_draws=pool.num_draws,
            estimator_diagnostics=estimator_diagnostics,
        )

        worker_segment_times = getattr(self.work_mapper, 'worker_segment_times', None)
        if worker_segment_times is None:
            worker_segment_times = {}

        report = {'draws' : draws,
                  'pool_idxs' : pool_idxs,
                  'path_results' : path_results,
                  'pool' : pool,
                  'weights' : weights,
                  'estimator_diagnostics' : estimator_diagnostics,
                  'resampling_data' : resampling_data,
                  'resampler_data' : resampler_data,
                  'worker_segment_times' : worker_segment_times,
                  'run_stats' : run_stats,
        }

        # check that all of the keys that are specified for this
        # manager are present
        assert all([rep_key in report for rep_key in self.REPORT_ITEM_KEYS])

        logger.info("Starting reporting")
        for reporter in self.reporters:
            reporter.report(**report)

        return MultiPathResult(draws, self.param_names(), pool_idxs, pool, weights,
                               path_results, run_stats, estimator_diagnostics)
