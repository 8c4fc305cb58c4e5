"""Abstract Base classes implementing the Runner interface.

Runner Interface
----------------

All a runner needs to implement is the 'run_path' method which
should accept a model, an initial state, a random seed and a path id
and return an object implementing the PathResult interface.

Additionally, any number of optional key word arguments should be
given. These are the optimizer hyperparameters which are forwarded
opaquely by the manager from the configuration of the run.

A runner must not raise for ordinary numerical failures of a path but
report them with a failed PathResult so that the path's evaluation
count is still credited. A runner must not modify shared state since
paths are run concurrently.

"""

from eliot import log_call

from pathpool.path_result import PathResult

class Runner(object):
    """Abstract base class for the Runner interface."""

    @log_call(include_args=[],
              include_result=False)
    def pre_run(self, **kwargs):
        """Perform behavior before any path of a run is started.

        Parameters
        ----------

        kwargs : key-word arguments
            Key-value pairs to be interpreted by each runner implementation.

        """

        # by default just pass since subclasses need not implement this
        pass

    @log_call(include_args=[],
              include_result=False)
    def post_run(self, **kwargs):
        """Perform behavior after all paths of a run have finished.

        Parameters
        ----------

        kwargs : key-word arguments
            Key-value pairs to be interpreted by each runner implementation.

        """

        # by default just pass since subclasses need not implement this
        pass

    def run_path(self, model, init_state, seed, path_id, path_idx=None, **kwargs):
        """Fit an approximation starting from the initial state and draw
        from it.

        Parameters
        ----------
        model : object implementing the Model interface

        init_state : arraylike of float of shape (n_params,)
            Unconstrained initial point.

        seed : int
            The random seed of the run.

        path_id : int
            The id of this path (path offset included) used with the
            seed to make the random source of this path.

        path_idx : int
            The index of the path within the run, used for reporting.
            Defaults to `path_id`.

        Returns
        -------
        result : object implementing the PathResult interface

        """

        raise NotImplementedError

class FailingRunner(Runner):
    """Stub Runner whose paths always fail.

    May be useful for testing.
    """

    def __init__(self, eval_count=0):
        self.eval_count = eval_count

    def run_path(self, model, init_state, seed, path_id, path_idx=None, **kwargs):
        # documented in superclass
        return PathResult.failed(path_id if path_idx is None else path_idx,
                                 eval_count=self.eval_count)
