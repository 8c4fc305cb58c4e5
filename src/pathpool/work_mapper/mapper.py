"""Reference implementations and abstract base classes for mapping a
runner's path function over the paths of a run.

A work mapper is initialized at runtime with the function to map (the
`run_path` method of a runner) and then called with `map`, where each
positional and key-word argument is an iterable with one element per
path.

Every call of the function writes exactly one slot of the returned
list, the slot of its path, so no shared append structure is needed
and the results come back in the order of the input regardless of the
order in which paths finish.

The function is expected to report the failure of a path through its
return value. If it raises instead, the mapper logs the exception with
its traceback and puts a failed PathResult in the slot of that path so
that no exception from a single path crosses the fan-out.

"""
import sys
import traceback
import time

import logging

logger = logging.getLogger(__name__)

from eliot import log_call

from pathpool.path_result import PathResult


def run_task(func, path_idx, call_args, call_kwargs):
    """Call the path function for one path, converting an exception into
    a failed result.

    Parameters
    ----------
    func : callable

    path_idx : int
        The index of the path, used for the failed result.

    call_args : list

    call_kwargs : dict

    Returns
    -------
    result : PathResult

    """

    try:

        return func(*call_args, **call_kwargs)

    except Exception as task_exception:

        # get the traceback for the exception
        tb = sys.exc_info()[2]

        msg = "Exception '{}({})' caught in the task for path {}.".format(
            type(task_exception).__name__, task_exception, path_idx)
        traceback_log_msg = \
            """Traceback:
--------------------------------------------------------------------------------
{}
--------------------------------------------------------------------------------
            """.format(''.join(traceback.format_exception(
                type(task_exception), task_exception, tb)),
            )

        logger.error(msg + '\n' + traceback_log_msg)

        return PathResult.failed(path_idx,
                                 exception="{}({})".format(
                                     type(task_exception).__name__, task_exception))


class ABCMapper(object):
    """Abstract base class for a Mapper."""

    def __init__(self, path_func=None, **kwargs):
        """Constructor for the Mapper class. No arguments are required.

        Parameters
        ----------
        path_func : callable, optional
            Set a default path_func. Typically set at runtime.

        """

        self._func = path_func

        self._attributes = kwargs

    @property
    def attributes(self):
        return self._attributes

    @log_call(include_args=[],
              include_result=False)
    def init(self, path_func=None, **kwargs):
        """Runtime initialization and setting of function to map over paths.

        Parameters
        ----------
        path_func : callable implementing the Runner.run_path interface

        """

        if self.path_func is not None and path_func is not None:
            logger.info("overriding default path_func {} with {}".format(self._func, path_func))
            self._func = path_func

        elif self.path_func is None and path_func is None:
            raise ValueError("path_func must be given since no default specified")

        elif self.path_func is None and path_func is not None:
            self._func = path_func

    @property
    def path_func(self):
        """The function that will be called for new data in the `map` method."""
        return self._func

    @log_call(include_args=[],
              include_result=False)
    def cleanup(self, **kwargs):
        """Runtime post-run tasks.

        This is run either at the end of a successful run or upon an
        error in the manager.

        The base class performs no actions here and all arguments are
        ignored.

        """

        # nothing to do
        pass

    def map(self, *args, **kwargs):
        """Map the 'path_func' to args.

        Parameters
        ----------
        *args : list of iterables
            Each element is the argument to one call of 'path_func'.

        **kwargs : iterables
            Each element is the key-word argument to one call of
            'path_func'.

        Returns
        -------
        results : list
            The results of each call to 'path_func' in the same order
            as input.

        """
        raise NotImplementedError

    @staticmethod
    def _expand_args(args, kwargs):
        """Expand the generators for the args and kwargs into lists."""

        args = [list(arg) for arg in args]
        kwargs = {key : list(kwarg) for key, kwarg in kwargs.items()}

        if len(args) == 0:
            raise ValueError("At least one positional argument iterable must be given")

        num_tasks = len(args[0])
        lengths = [len(arg) for arg in args] + [len(kwarg) for kwarg in kwargs.values()]
        if any(length != num_tasks for length in lengths):
            raise ValueError("All argument iterables must be of the same length, got {}".format(
                lengths))

        return args, kwargs, num_tasks

    @staticmethod
    def _call_args(args, kwargs, task_idx):
        """Get just the args for one call to func."""

        call_args = [arg[task_idx] for arg in args]
        call_kwargs = {key : value[task_idx] for key, value in kwargs.items()}

        path_idx = call_kwargs.get('path_idx', task_idx)

        return path_idx, call_args, call_kwargs


class Mapper(ABCMapper):
    """Basic non-parallel reference implementation of a mapper."""

    def __init__(self, path_func=None, **kwargs):
        """Constructor for the Mapper class. No arguments are required.

        Parameters
        ----------
        path_func : callable, optional
            Set a default path_func. Typically set at runtime.

        """

        super().__init__(path_func=path_func, **kwargs)

        self._worker_segment_times = {0 : []}

    @log_call(include_args=[],
              include_result=False)
    def map(self, *args, **kwargs):
        """Map the 'path_func' to args.

        Parameters
        ----------
        *args : list of iterables
            Each element is the argument to one call of 'path_func'.

        Returns
        -------
        results : list
            The results of each call to 'path_func' in the same order as input.

        Examples
        --------

        >>> Mapper(path_func=sum).map([(0,1,2), (3,4,5)])
        [3, 12]

        """

        args, kwargs, num_tasks = self._expand_args(args, kwargs)

        segment_times = []
        results = [None for _ in range(num_tasks)]
        for task_idx in range(num_tasks):
            start = time.time()

            path_idx, call_args, call_kwargs = self._call_args(args, kwargs, task_idx)

            results[task_idx] = run_task(self._func, path_idx, call_args, call_kwargs)

            end = time.time()
            segment_times.append(end - start)

        self._worker_segment_times[0] = segment_times

        return results

    @property
    def worker_segment_times(self):
        """The run timings for each path for each worker.

        Returns
        -------
        worker_seg_times : dict of int : list of float
            Dictionary mapping worker indices to a list of times in
            seconds for each path run.

        """
        return self._worker_segment_times


class ABCWorkerMapper(ABCMapper):
    """Abstract base class for mappers with a fixed number of workers."""

    def __init__(self,
                 num_workers=None,
                 path_func=None,
                 **kwargs):
        """Constructor for ABCWorkerMapper.

        Parameters
        ----------
        num_workers : int
            The number of workers.

        path_func : callable, optional
            Set a default path_func. Typically set at runtime.

        """

        super().__init__(path_func=path_func, **kwargs)

        self._num_workers = num_workers
        self._worker_segment_times = None

        if num_workers is not None:
            self._worker_segment_times = {i : [] for i in range(self.num_workers)}

    def init(self, num_workers=None, path_func=None,
             **kwargs):
        """Runtime initialization and setting of function to map over paths.

        Parameters
        ----------
        num_workers : int
            The number of workers.

        path_func : callable implementing the Runner.run_path interface

        """

        super().init(path_func=path_func)

        # the number of workers must be given here or set as an object attribute
        if num_workers is None and self.num_workers is None:
            raise ValueError("The number of workers must be given, received {}".format(num_workers))

        # if the number of workers was given for this init() call use
        # that, otherwise we use the default that was specified when
        # the object was created
        elif num_workers is not None:
            self._num_workers = num_workers

        if self.num_workers < 1:
            raise ValueError("The number of workers must be at least 1, received {}".format(
                self.num_workers))

        # update the worker segment times
        self._worker_segment_times = {i : [] for i in range(self.num_workers)}

    @property
    def num_workers(self):
        """The number of workers."""
        return self._num_workers

    @property
    def worker_segment_times(self):
        """The run timings for each path for each worker.

        Returns
        -------
        worker_seg_times : dict of int : list of float
            Dictionary mapping worker indices to a list of times in
            seconds for each path run.

        """
        return self._worker_segment_times
