"""Reporter keeping the output of a run in memory."""

from pathpool.reporter.reporter import Reporter

class MemoryReporter(Reporter):
    """Stores the header, the output rows and the timing trailer.

    Useful for programmatic use and testing.
    """

    def __init__(self, **kwargs):

        super().__init__(**kwargs)

        self.header = None
        self.rows = []
        self.trailer = []
        self.path_results = None
        self.run_stats = None
        self.estimator_diagnostics = None

    def init(self, param_names=None, **kwargs):

        self.header = list(param_names)
        self.rows = []
        self.trailer = []

    def report(self, draws=None, path_results=None, run_stats=None,
               estimator_diagnostics=None, **kwargs):

        self.rows.extend([list(row) for row in draws])
        self.path_results = list(path_results)
        self.run_stats = run_stats
        self.estimator_diagnostics = estimator_diagnostics
        self.trailer.extend(run_stats.timing_lines())

    def cleanup(self, **kwargs):
        pass
