"""Reporter persisting a whole multi-path run to an HDF5 file.

Layout of the file:

- `draws` : (n_multi_draws, n_columns) output rows, the column names
  are in the `param_names` attribute
- `resampling/<field>` : one dataset per resampling record field
- `pool/{log_ratios, lp_approx, path_idxs, samples, weights}` : the
  pooled population and its importance weights
- `paths/<path_idx>` : one group per path with its status and
  evaluation count as attributes and, for successful paths, its own
  draws
- `run_stats` : group whose attributes are the run statistics and
  the estimator diagnostics

"""

import logging

logger = logging.getLogger(__name__)

import numpy as np
import h5py

from pathpool.reporter.reporter import FileReporter

class HDF5Reporter(FileReporter):
    """Reporter writing draws, pool, weights and per path output to an
    HDF5 file with h5py."""

    FILE_ORDER = ('hdf5_path',)
    SUGGESTED_EXTENSIONS = ('pathpool.h5',)

    def __init__(self, save_paths=True, **kwargs):
        """Constructor for HDF5Reporter.

        Parameters
        ----------
        save_paths : bool
            Whether to save the draws of each individual path as well.

        file_path : str

        mode : str
            Any h5py file mode.

        """

        super().__init__(**kwargs)

        self.save_paths = save_paths
        self._h5 = None
        self._param_names = None
        self._resampling_fields = None

    def init(self, param_names=None, resampler=None, **kwargs):

        self._param_names = list(param_names)

        if resampler is not None:
            self._resampling_fields = resampler.resampling_fields()

        self._h5 = h5py.File(self.file_path, mode=self.mode)

    def _write_paths(self, path_results):

        paths_grp = self._h5.create_group('paths')

        for result in path_results:
            path_grp = paths_grp.create_group(str(result.path_idx))
            path_grp.attrs['status'] = result.status.name
            path_grp.attrs['eval_count'] = result.eval_count

            if result.succeeded:
                path_grp.create_dataset('log_ratios', data=result.log_ratios)
                path_grp.create_dataset('lp_approx', data=result.lp_approx)
                path_grp.create_dataset('samples', data=result.samples)

    def _write_resampling(self, resampling_data):

        resampling_grp = self._h5.create_group('resampling')

        if self._resampling_fields is not None:
            fields = self._resampling_fields
        elif len(resampling_data) > 0:
            fields = [(key, (1,), None) for key in resampling_data[0].keys()]
        else:
            fields = []

        for field_name, field_shape, field_dtype in fields:
            values = np.array([record[field_name] for record in resampling_data],
                              dtype=field_dtype)
            resampling_grp.create_dataset(field_name, data=values)

    def report(self, draws=None, pool=None, weights=None, path_results=None,
               resampling_data=None, run_stats=None, estimator_diagnostics=None,
               **kwargs):

        draws_dset = self._h5.create_dataset('draws', data=np.asarray(draws))
        draws_dset.attrs['param_names'] = np.array(self._param_names, dtype=h5py.string_dtype())

        self._write_resampling(resampling_data)

        pool_grp = self._h5.create_group('pool')
        pool_grp.create_dataset('log_ratios', data=pool.log_ratios)
        pool_grp.create_dataset('lp_approx', data=pool.lp_approx)
        pool_grp.create_dataset('path_idxs', data=pool.path_idxs)
        pool_grp.create_dataset('samples', data=pool.samples)
        pool_grp.create_dataset('weights', data=np.asarray(weights))

        if self.save_paths:
            self._write_paths(path_results)

        stats_grp = self._h5.create_group('run_stats')
        for key, value in run_stats.dict().items():
            stats_grp.attrs[key] = value

        if estimator_diagnostics is not None:
            for key, value in estimator_diagnostics.items():
                stats_grp.attrs[key] = value

        self._h5.flush()

        logger.info("Wrote run to {}".format(self.file_path))

    def cleanup(self, **kwargs):

        if self._h5 is not None:
            self._h5.close()
            self._h5 = None
