"""Reporter writing the resampled draws to a CSV file.

The file starts with a header row of the column names, followed by
one row per resampled draw in draw order. The timing trailer is
appended as comment lines starting with '#'.

"""

import csv
import logging

logger = logging.getLogger(__name__)

from pathpool.reporter.reporter import FileReporter

COMMENT_PREFIX = "#"

class DrawsCSVReporter(FileReporter):
    """Streams the output rows of a run to a CSV file."""

    FILE_ORDER = ('draws_path',)
    SUGGESTED_EXTENSIONS = ('draws.csv',)

    def __init__(self, precision=None, **kwargs):
        """Constructor for DrawsCSVReporter.

        Parameters
        ----------
        precision : int, optional
            Significant digits to write, full precision if not given.

        file_path : str
            Path of the CSV file.

        mode : str
            File mode, see FileReporter.

        """

        super().__init__(**kwargs)

        self.precision = precision
        self._file = None
        self._writer = None

    def _format(self, value):
        if self.precision is None:
            return repr(float(value))
        return "{:.{}g}".format(value, self.precision)

    def comment(self, message=""):
        """Write a comment line, a bare prefix for an empty message."""

        if len(message) > 0:
            self._file.write("{} {}\n".format(COMMENT_PREFIX, message))
        else:
            self._file.write("{}\n".format(COMMENT_PREFIX))

    def init(self, param_names=None, **kwargs):

        self._check_file(0)

        self._file = open(self.file_path, self._text_mode(0), newline='')
        self._writer = csv.writer(self._file)

        self._writer.writerow(param_names)

    def report(self, draws=None, run_stats=None, **kwargs):

        for row in draws:
            self._writer.writerow([self._format(value) for value in row])

        self.comment()
        for line in run_stats.timing_lines():
            self.comment(line)
        self.comment()

        self._file.flush()

        logger.info("Wrote {} draws to {}".format(len(draws), self.file_path))

    def cleanup(self, **kwargs):

        if self._file is not None:
            self._file.close()
            self._file = None
            self._writer = None
