"""Callbacks that runners check once per optimizer iteration.

An interrupt that wants to stop a path raises `PathInterrupted`. The
runner reports such a path as failed and the other paths are not
affected.

"""

import threading


class PathInterrupted(Exception):
    """Raised by an interrupt to stop the path it was called from."""
    pass


class Interrupt(object):
    """Interrupt that never stops anything."""

    def __call__(self, path_idx, iteration):
        """Called by a runner once per iteration.

        Parameters
        ----------
        path_idx : int

        iteration : int

        """
        pass


class EventInterrupt(Interrupt):
    """Stops every path still running once its event is set.

    Safe to set from another thread, e.g. a signal handler in the main
    thread while worker threads are running paths.
    """

    def __init__(self, event=None):
        self.event = event if event is not None else threading.Event()

    def set(self):
        self.event.set()

    def __call__(self, path_idx, iteration):
        if self.event.is_set():
            raise PathInterrupted("Path {} interrupted at iteration {}".format(
                path_idx, iteration))
