"""Timings and counts accumulated over a multi-path run."""

import time

TIME_HEADER = "Elapsed Time: "


def duration_seconds(start, end):
    """Seconds between two `time.perf_counter` readings, to the
    millisecond."""
    return round(end - start, 3)


class Timer(object):
    """Context manager measuring a wall-clock interval.

    >>> with Timer() as timer:
    ...     pass
    >>> timer.elapsed >= 0.0
    True

    """

    def __init__(self):
        self.start = None
        self.end = None

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, *exc_info):
        self.end = time.perf_counter()

    @property
    def elapsed(self):
        """Seconds elapsed, up to now if the interval is still open."""
        end = self.end if self.end is not None else time.perf_counter()
        return duration_seconds(self.start, end)


class RunStats(object):
    """Statistics reported once at the end of a multi-path run."""

    def __init__(self,
                 pathfinders_elapsed_seconds=0.0,
                 resampling_elapsed_seconds=0.0,
                 total_log_density_evaluations=0,
                 n_paths=0,
                 n_successful_paths=0,
                 n_pooled_draws=0,
                 estimator_diagnostics=None,
    ):

        self.pathfinders_elapsed_seconds = pathfinders_elapsed_seconds
        self.resampling_elapsed_seconds = resampling_elapsed_seconds
        self.total_log_density_evaluations = total_log_density_evaluations
        self.n_paths = n_paths
        self.n_successful_paths = n_successful_paths
        self.n_pooled_draws = n_pooled_draws
        self.estimator_diagnostics = estimator_diagnostics if estimator_diagnostics is not None else {}

    @property
    def total_elapsed_seconds(self):
        return self.pathfinders_elapsed_seconds + self.resampling_elapsed_seconds

    @property
    def n_failed_paths(self):
        return self.n_paths - self.n_successful_paths

    def timing_lines(self):
        """The human readable timing trailer of the output.

        Returns
        -------
        lines : list of str

        """

        indent = " " * len(TIME_HEADER)

        return [
            "{}{:f} seconds (Pathfinders)".format(TIME_HEADER, self.pathfinders_elapsed_seconds),
            "{}{:f} seconds (PSIS)".format(indent, self.resampling_elapsed_seconds),
            "{}{:f} seconds (Total)".format(indent, self.total_elapsed_seconds),
        ]

    def dict(self):
        """All the statistics as a flat dictionary."""

        return {
            'pathfinders_elapsed_seconds' : self.pathfinders_elapsed_seconds,
            'resampling_elapsed_seconds' : self.resampling_elapsed_seconds,
            'total_elapsed_seconds' : self.total_elapsed_seconds,
            'total_log_density_evaluations' : self.total_log_density_evaluations,
            'n_paths' : self.n_paths,
            'n_successful_paths' : self.n_successful_paths,
            'n_pooled_draws' : self.n_pooled_draws,
        }
