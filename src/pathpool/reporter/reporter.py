import os.path as osp
import logging

logger = logging.getLogger(__name__)

class ReporterError(Exception):
    """ """
    pass

class Reporter(object):
    """Abstract base class for pathpool reporters.

    All reporters must customize and override minimally the 'report'
    method. Optionally the 'init' and 'cleanup' can be overriden.

    See Also
    --------

    pathpool.sim_manager : details of calls to reporter methods.

    """

    SUGGESTED_EXTENSIONS = ()
    """Suggested extensions for file paths, none for reporters without
    files."""

    def __init__(self, **kwargs):
        """Construct a reporter.

        Void constructor for the Reporter base class.

        Parameters
        ----------
        **kwargs : key-value pairs
            Ignored kwargs, but accepts them from subclass calls for
            compatibility.

        """
        pass

    def init(self, **kwargs):
        """Initialization routines for the reporter at runtime.

        Initialize I/O connections including file descriptors,
        database connections, timers, stdout/stderr etc.

        Void method for reporter base class.

        Reporters can expect to have the following key word arguments
        passed to them by the manager in this call.

        Parameters
        ----------

        param_names : list of str
            The header of the output, the constrained parameter names
            followed by 'lp_approx__' and 'lp__'.

        model : Model object

        runner : Runner object

        estimator : WeightEstimator object

        resampler : Resampler object

        work_mapper : WorkMapper object

        reporters : list of Reporter objects
            The list of reporters that are in the run.

        """
        method_name = 'init'
        assert not hasattr(super(), method_name), \
            "Superclass with method {} is masked".format(method_name)

    def report(self, **kwargs):
        """Given the results of a run, perform I/O operations to persist
        that data.

        Void method for reporter base class.

        Reporters can expect to have the following key word arguments
        passed to them by the manager.

        Parameters
        ----------

        draws : numpy.ndarray of float of shape (n_multi_draws, n_columns)
            The output rows in draw order, constrained parameter values
            followed by the approximation and target log densities.

        pool_idxs : numpy.ndarray of int of shape (n_multi_draws,)
            The pool column each output row was taken from.

        path_results : list of PathResult
            The results of all paths, failed ones included, in path
            order.

        pool : PathPool
            The pooled draws of the successful paths.

        weights : numpy.ndarray of float
            The importance weights of the pool.

        estimator_diagnostics : dict of str : value
            Diagnostics returned by the weight estimator.

        resampling_data : list of dict of str : value
            A record for each output draw.

        resampler_data : list of dict of str : value
            Records of the resampler.

        worker_segment_times : dict of int : list of float
            Mapping worker index to the times they took for each
            path they ran.

        run_stats : RunStats
            Timings and evaluation counts.

        """

        method_name = 'report'
        assert not hasattr(super(), method_name), \
            "Superclass with method {} is masked".format(method_name)

    def cleanup(self, **kwargs):
        """Teardown routines for the reporter at the end of the run.

        Use to cleanly and safely close I/O connections or other
        cleanup I/O. Called also when a run fails.

        """
        method_name = 'cleanup'
        assert not hasattr(super(), method_name), \
            "Superclass with method {} is masked".format(method_name)


class FileReporter(Reporter):
    """Abstract reporter that handles specifying file paths for a
    reporter.

    This abstract class doesn't perform any operations that involve
    actually opening file descriptors, but only the validation and
    organization of file paths.

    Subclasses set the FILE_ORDER constant to the names of the
    attributes the paths are exposed as and SUGGESTED_EXTENSIONS to
    the file extensions used when paths are generated by a
    Configuration.

    """

    MODES = ('x', 'w', 'w-', 'r', 'r+',)
    """Valid modes accepted for files."""

    DEFAULT_MODE = 'x'
    """The default mode to set for opening files if none is specified
    (create if doesn't exist, fail if it does.)"""

    SUGGESTED_FILENAME_TEMPLATE = "{config}{narration}{reporter_class}.{ext}"
    """Template to use for generating file path names.

    The fields in the template are:

    config : indicator of the runtime configuration used

    narration : freeform description of the instance

    reporter_class : the name of the class that produced the output,
        used to disambiguate reporters with the same extension

    ext : The file extension

    """

    FILE_ORDER = ()
    """Specify an ordering of file paths. Should be customized."""

    SUGGESTED_EXTENSIONS = ()
    """Suggested extensions for file paths. Should be customized."""

    def __init__(self, file_paths=None, modes=None,
                 file_path=None, mode=None,
                 **kwargs):
        """Constructor for FileReporter.

        This constructor allows the specification of either a list of
        file names (and modes) via 'file_paths' and 'modes' key-word
        arguments or a single 'file_path' and 'mode'.

        Parameters
        ----------

        file_paths : list of str
            The list of file paths (in order) to use.

        modes : list of str
            The list of mode specs (in order) to use.

        file_path : str
            If 'file_paths' not specified, the single file path to use.

        mode : str
            If 'file_path' option used, this is the mode for that file.

        """

        if (file_paths is not None) and (file_path is not None):
            raise ValueError("only file_paths or file_path kwargs can be specified")

        # if only one file path is given then we handle it as multiple
        if file_path is not None:
            file_paths = [file_path]

        if file_paths is None:
            raise ValueError("if no explicit file path is given the 'file_paths' must have a value")

        if len(file_paths) != len(self.FILE_ORDER):
            raise ValueError("you must give file_paths {} paths".format(len(self.FILE_ORDER)))

        self._file_paths = list(file_paths)

        if (modes is not None) and (mode is not None):
            raise ValueError("only modes or mode kwargs can be specified")

        # if modes is None we make modes, from defaults if we have to
        if modes is None:

            if mode is None:
                mode = self.DEFAULT_MODE

            # if only one mode is given copy it for each file given
            modes = [mode for i in range(len(self._file_paths))]

        self._modes = []
        for mode in modes:
            if not self._validate_mode(mode):
                raise ValueError("Incorrect mode {}".format(mode))
            self._modes.append(mode)

        super().__init__(**kwargs)

    def __getattr__(self, name):
        # expose the file paths by the names in FILE_ORDER
        file_order = type(self).FILE_ORDER
        if name in file_order and '_file_paths' in self.__dict__:
            return self._file_paths[file_order.index(name)]
        raise AttributeError(name)

    def _validate_mode(self, mode):
        """Check if the mode spec is a valid one.

        Parameters
        ----------
        mode : str

        Returns
        -------
        valid : bool

        """
        return mode in self.MODES

    @property
    def mode(self):
        """For single file path reporters the mode of that file."""
        if len(self._file_paths) > 1:
            raise ReporterError("there are multiple files and modes defined")

        return self._modes[0]

    @property
    def file_path(self):
        """For single file path reporters the file path to that file spec."""
        if len(self._file_paths) > 1:
            raise ReporterError("there are multiple files and modes defined")

        return self._file_paths[0]

    @property
    def file_paths(self):
        """The file paths for this reporter, in order."""
        return self._file_paths

    @property
    def modes(self):
        """The modes for the files, in order."""
        return self._modes

    def _check_file(self, file_idx):
        """Raise if the file may not be written in its mode."""

        file_path = self.file_paths[file_idx]
        if self.modes[file_idx] in ('x', 'w-') and osp.exists(file_path):
            raise FileExistsError("File exists: '{}'".format(file_path))

    def _text_mode(self, file_idx):
        """The mode to pass to `open` for text files."""

        mode = self.modes[file_idx]
        if mode in ('x', 'w-'):
            return 'x'
        elif mode == 'r+':
            return 'a'
        elif mode == 'r':
            raise ReporterError("File '{}' is opened read only".format(self.file_paths[file_idx]))
        else:
            return 'w'
