import os.path as osp
from copy import deepcopy
from base64 import b64encode, b64decode
from zlib import compress, decompress
import itertools as it
import logging

logger = logging.getLogger(__name__)

import dill

from pathpool.runners.laplace import DEFAULT_OPTIMIZER_OPTS
from pathpool.sim_manager import Manager
from pathpool.work_mapper.mapper import Mapper
from pathpool.work_mapper.thread_mapper import ThreadMapper

class Configuration():
    """The runtime configuration of a multi-path run.

    Holds the run parameters, the optimizer options forwarded to the
    runner, the work mapper and the reporters. The reporters are
    generated with file paths in the work dir named from the config
    name and narration.

    """

    DEFAULT_WORKDIR = osp.realpath(osp.curdir)
    DEFAULT_CONFIG_NAME = "root"
    DEFAULT_NARRATION = ""
    DEFAULT_REPORTER_CLASS = ""

    # if there is to be reporter class in filenames use this template
    # to put it into the filename
    REPORTER_CLASS_SEG_TEMPLATE = ".{}"
    DEFAULT_MODE = 'x'

    DEFAULT_RUN_OPTS = {
        'seed' : 0,
        'path' : 0,
        'num_paths' : 4,
        'num_multi_draws' : 1000,
        'init_radius' : 2.0,
        'refresh' : 100,
    }

    PICKLE_PROTOCOL = 3

    def __init__(self,
                 # reporters
                 config_name=None,
                 work_dir=None,
                 mode=None,
                 narration=None,
                 reporter_classes=None,
                 reporter_partial_kwargs=None,
                 # work mappers
                 work_mapper_class=None,
                 work_mapper_partial_kwargs=None,
                 # run parameters
                 run_opts=None,
                 runner_opts=None,
    ):

        ## reporter stuff

        # reporters and partial kwargs
        if reporter_classes is not None:
            self._reporter_classes = list(reporter_classes)
        else:
            self._reporter_classes = []

        if reporter_partial_kwargs is not None:
            self._reporter_partial_kwargs = list(reporter_partial_kwargs)
        else:
            self._reporter_partial_kwargs = [{} for _ in self._reporter_classes]

        if len(self._reporter_partial_kwargs) != len(self._reporter_classes):
            raise ValueError("One set of partial kwargs must be given per reporter class")

        # config string
        if config_name is not None:
            self._config_name = config_name
        else:
            self._config_name = self.DEFAULT_CONFIG_NAME

        if work_dir is not None:
            self._work_dir = work_dir
        else:
            self._work_dir = self.DEFAULT_WORKDIR

        # narration
        if narration is not None:
            narration = "_{}".format(narration) if len(narration) > 0 else ""
            self._narration = narration
        else:
            self._narration = self.DEFAULT_NARRATION

        # file modes, if none are given we set to the default, this
        # needs to be done before generating the reporters
        if mode is not None:
            self._mode = mode
        else:
            self._mode = self.DEFAULT_MODE

        # generate the reporters for this configuration
        self._reporters = self._gen_reporters()

        ## work mapper

        # the partial kwargs that will be passed for reparametrization
        if work_mapper_partial_kwargs is None:
            self._work_mapper_partial_kwargs = {}
        else:
            self._work_mapper_partial_kwargs = dict(work_mapper_partial_kwargs)

        # if the number of workers is not given set it to None
        if 'num_workers' not in self._work_mapper_partial_kwargs:
            self._work_mapper_partial_kwargs['num_workers'] = None

        num_workers = self._work_mapper_partial_kwargs['num_workers']
        if num_workers is not None and num_workers < 1:
            raise ValueError("num_workers must be at least 1, got {}".format(num_workers))

        # if the number of workers was specified and no work_mapper
        # class was specified default to the ThreadMapper
        if (num_workers is not None) and (work_mapper_class is None):
            self._work_mapper_class = ThreadMapper

        # if no number of workers was specified and no work_mapper
        # class was specified we default to the serial mapper
        elif (num_workers is None) and (work_mapper_class is None):
            self._work_mapper_class = Mapper

        # otherwise if the work_mapper class was given we use it and
        # whatever the number of workers was
        else:
            self._work_mapper_class = work_mapper_class

        # the serial mapper takes no number of workers
        mapper_kwargs = dict(self._work_mapper_partial_kwargs)
        if self._work_mapper_class is Mapper:
            mapper_kwargs.pop('num_workers')

        # then generate a work mapper
        self._work_mapper = self._work_mapper_class(**mapper_kwargs)

        ## run parameters

        self._run_opts = dict(self.DEFAULT_RUN_OPTS)
        if run_opts is not None:
            unknown = set(run_opts).difference(self.DEFAULT_RUN_OPTS)
            if len(unknown) > 0:
                raise ValueError("Unknown run options: {}".format(", ".join(sorted(unknown))))
            self._run_opts.update(run_opts)

        self._validate_run_opts(self._run_opts)

        self._runner_opts = {}
        if runner_opts is not None:
            unknown = set(runner_opts).difference(DEFAULT_OPTIMIZER_OPTS)
            if len(unknown) > 0:
                raise ValueError("Unknown optimizer options: {}".format(
                    ", ".join(sorted(unknown))))
            self._runner_opts.update(runner_opts)

    @staticmethod
    def _validate_run_opts(run_opts):

        if run_opts['seed'] is None or run_opts['seed'] < 0:
            raise ValueError("seed must be a non-negative integer, got {}".format(run_opts['seed']))

        if run_opts['path'] < 0:
            raise ValueError("path must be non-negative, got {}".format(run_opts['path']))

        if run_opts['num_paths'] < 1:
            raise ValueError("num_paths must be at least 1, got {}".format(run_opts['num_paths']))

        if run_opts['num_multi_draws'] < 1:
            raise ValueError("num_multi_draws must be at least 1, got {}".format(
                run_opts['num_multi_draws']))

        if run_opts['init_radius'] < 0:
            raise ValueError("init_radius must be non-negative, got {}".format(
                run_opts['init_radius']))

        if run_opts['refresh'] < 0:
            raise ValueError("refresh must be non-negative, got {}".format(run_opts['refresh']))

    @property
    def reporter_classes(self):
        """ """
        return self._reporter_classes

    @property
    def reporter_partial_kwargs(self):
        """ """
        return self._reporter_partial_kwargs

    @property
    def config_name(self):
        """ """
        return self._config_name

    @property
    def work_dir(self):
        """ """
        return self._work_dir

    @property
    def narration(self):
        """ """
        return self._narration

    @property
    def mode(self):
        """ """
        return self._mode

    @property
    def work_mapper_class(self):
        """ """
        return self._work_mapper_class

    @property
    def work_mapper_partial_kwargs(self):
        """ """
        return self._work_mapper_partial_kwargs

    @property
    def run_opts(self):
        """ """
        return self._run_opts

    @property
    def runner_opts(self):
        """ """
        return self._runner_opts

    def _gen_reporters(self):
        """ """

        # check the extensions of all the reporters. If any of them
        # are the same raise a flag to add the reporter names to the
        # filenames
        all_exts = list(it.chain(*[[ext for ext in rep.SUGGESTED_EXTENSIONS]
                                 for rep in self.reporter_classes]))

        duplicates = len(set(all_exts)) < len(all_exts)

        reporters = []
        for idx, reporter_class in enumerate(self.reporter_classes):

            # the number of file names the reporter needs is given by
            # the number of suggested extensions it has, reporters
            # without files only get their partial kwargs
            file_paths = []
            for extension in reporter_class.SUGGESTED_EXTENSIONS:

                if duplicates:
                    reporter_class_seg_str = self.REPORTER_CLASS_SEG_TEMPLATE.format(
                        reporter_class.__name__)
                else:
                    reporter_class_seg_str = self.DEFAULT_REPORTER_CLASS

                filename = reporter_class.SUGGESTED_FILENAME_TEMPLATE.format(
                    narration=self.narration,
                    config=self.config_name,
                    reporter_class=reporter_class_seg_str,
                    ext=extension)

                file_paths.append(osp.join(self.work_dir, filename))

            if len(file_paths) > 0:
                modes = [self.mode for i in range(len(file_paths))]
                reporter = reporter_class(file_paths=file_paths, modes=modes,
                                          **self.reporter_partial_kwargs[idx])
            else:
                reporter = reporter_class(**self.reporter_partial_kwargs[idx])

            reporters.append(reporter)

        return reporters

    @property
    def reporters(self):
        """ """
        return deepcopy(self._reporters)

    @property
    def work_mapper(self):
        """ """
        return deepcopy(self._work_mapper)

    def run_kwargs(self):
        """The key-word arguments for `Manager.run`."""

        kwargs = dict(self.run_opts)
        kwargs['runner_opts'] = dict(self.runner_opts)

        return kwargs

    def manager(self, apparatus):
        """Make a manager for an apparatus using this configuration.

        Parameters
        ----------
        apparatus : Apparatus

        Returns
        -------
        manager : Manager

        """

        return Manager(apparatus.model,
                       runner=apparatus.runner,
                       estimator=apparatus.estimator,
                       work_mapper=self.work_mapper,
                       reporters=self.reporters)

    def reparametrize(self, **kwargs):
        """Make a new configuration, changing the given values.

        Parameters
        ----------
        **kwargs :
            Any of the constructor arguments. Values of None are
            ignored and the partial kwargs and options are updated
            rather than replaced.

        Returns
        -------
        configuration : Configuration

        """

        # dictionary of the possible reparametrizations from the
        # current configuration
        params = {

            # related to the work mapper
            'work_mapper_class' : self.work_mapper_class,
            'work_mapper_partial_kwargs' : deepcopy(self.work_mapper_partial_kwargs),

            # those related to the reporters
            'mode' : self.mode,
            'config_name' : self.config_name,
            'work_dir' : self.work_dir,
            'narration' : self.narration.lstrip('_'),
            'reporter_classes' : self.reporter_classes,
            'reporter_partial_kwargs' : deepcopy(self.reporter_partial_kwargs),

            # run parameters
            'run_opts' : deepcopy(self.run_opts),
            'runner_opts' : deepcopy(self.runner_opts),
        }

        for key, value in kwargs.items():

            if key not in params:
                raise ValueError("Unknown configuration parameter: {}".format(key))

            # for the dictionaries we need to update them not
            # completely overwrite
            if key in [
                    'work_mapper_partial_kwargs',
                    'run_opts',
                    'runner_opts',
            ]:
                if value is not None:
                    params[key].update(value)

            # if the value is given we replace the old one with it
            elif value is not None:
                params[key] = value

        # a new number of workers without a mapper class picks the
        # default class for it
        if 'work_mapper_class' not in kwargs and \
           kwargs.get('work_mapper_partial_kwargs') is not None and \
           self.work_mapper_class in (Mapper, ThreadMapper):
            params['work_mapper_class'] = None

        new_configuration = type(self)(**params)

        return new_configuration

    def serialize(self):
        """Serialize to a compressed, base64 encoded dill pickle."""

        return b64encode(compress(dill.dumps(self,
                                             protocol=self.PICKLE_PROTOCOL,
                                             recurse=True)))

    @classmethod
    def deserialize(cls, serial_str):
        """Deserialize a string made by `serialize`."""

        return dill.loads(decompress(b64decode(serial_str)))
