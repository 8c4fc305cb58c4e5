"""Work mapper running paths on a fixed size pool of threads.

Paths are CPU bound and blocking but typically spend their time in
numpy and scipy routines that release the GIL, and they share the
read-only model, so threads avoid the serialization cost of sending
models and results between processes.

"""

from concurrent.futures import ThreadPoolExecutor, wait
import threading
import time

import logging

logger = logging.getLogger(__name__)

from eliot import log_call, start_action

from pathpool.work_mapper.mapper import ABCWorkerMapper, run_task

THREAD_NAME_PREFIX = "pathpool-worker"

class ThreadMapper(ABCWorkerMapper):
    """Work mapper using a `concurrent.futures.ThreadPoolExecutor`.

    The executor is created in `init` and shut down in `cleanup`, so a
    single mapper can be used for many calls to `map` in between.

    """

    def __init__(self, num_workers=None, path_func=None, **kwargs):
        """Constructor for ThreadMapper.

        Parameters
        ----------
        num_workers : int
            The number of worker threads.

        path_func : callable, optional
            Set a default path_func. Typically set at runtime.

        """

        super().__init__(num_workers=num_workers,
                         path_func=path_func,
                         **kwargs)

        # this is meant to be a transient variable, will be initialized and deinitialized
        self._executor = None

    def init(self, num_workers=None, path_func=None, **kwargs):
        """Runtime initialization, starts the worker threads.

        Parameters
        ----------
        num_workers : int
            The number of worker threads.

        path_func : callable implementing the Runner.run_path interface

        """

        super().init(num_workers=num_workers,
                     path_func=path_func,
                     **kwargs)

        self._executor = ThreadPoolExecutor(max_workers=self.num_workers,
                                            thread_name_prefix=THREAD_NAME_PREFIX)

        logger.info("Started thread pool with {} workers".format(self.num_workers))

    def cleanup(self, **kwargs):
        """Shut down the worker threads, waiting for running paths."""

        super().cleanup(**kwargs)

        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    @staticmethod
    def _worker_idx():
        """The index of the worker thread calling this."""

        name = threading.current_thread().name
        try:
            return int(name.rsplit('_', 1)[-1])
        except ValueError:
            return 0

    def _run_slot(self, slots, task_idx, path_idx, call_args, call_kwargs):
        """Run a single path and write its slot."""

        start = time.time()

        result = run_task(self._func, path_idx, call_args, call_kwargs)

        end = time.time()

        # each task only ever writes its own slot
        slots[task_idx] = (result, self._worker_idx(), end - start)

    @log_call(include_args=[],
              include_result=False)
    def map(self, *args, **kwargs):
        # docstring in superclass

        if self._executor is None:
            raise RuntimeError("ThreadMapper must be initialized with 'init' before mapping")

        args, kwargs, num_tasks = self._expand_args(args, kwargs)

        slots = [None for _ in range(num_tasks)]

        with start_action(action_type="thread map", num_tasks=num_tasks):

            futures = []
            for task_idx in range(num_tasks):
                path_idx, call_args, call_kwargs = self._call_args(args, kwargs, task_idx)

                futures.append(self._executor.submit(self._run_slot,
                                                     slots, task_idx, path_idx,
                                                     call_args, call_kwargs))

            logger.info("Waiting for {} paths to be run".format(num_tasks))

            # the join, the only synchronization point
            wait(futures)

            # errors of the slot machinery itself are not path failures
            for future in futures:
                future.result()

        worker_segment_times = {i : [] for i in range(self.num_workers)}
        results = []
        for result, worker_idx, seg_time in slots:
            worker_segment_times.setdefault(worker_idx, []).append(seg_time)
            results.append(result)

        self._worker_segment_times = worker_segment_times

        return results
