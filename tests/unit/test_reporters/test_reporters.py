# Standard Library
import csv
import logging

logger = logging.getLogger(__name__)

# Third Party Library
import h5py
import numpy as np
import pytest

# First Party Library
from pathpool.reporter.dashboard import DashboardReporter
from pathpool.reporter.draws_csv import DrawsCSVReporter
from pathpool.reporter.hdf5 import HDF5Reporter
from pathpool.reporter.reporter import FileReporter, ReporterError
from pathpool.sim_manager import Manager, NoSuccessfulPathsError
from pathpool.stats import RunStats

from stub_runners import StubRunner

HEADER = ['x.1', 'x.2', 'x.3', 'lp_approx__', 'lp__']


def run_with(model, reporters, fail_paths=(1,)):
    manager = Manager(model,
                      runner=StubRunner(num_draws=50, fail_paths=fail_paths),
                      reporters=reporters)

    return manager.run(1, num_paths=4, num_multi_draws=20)


class TestRunStats:
    def test_timing_lines(self):
        stats = RunStats(pathfinders_elapsed_seconds=1.5,
                         resampling_elapsed_seconds=0.25)

        assert stats.timing_lines() == [
            "Elapsed Time: 1.500000 seconds (Pathfinders)",
            "              0.250000 seconds (PSIS)",
            "              1.750000 seconds (Total)",
        ]

    def test_dict(self):
        stats = RunStats(n_paths=4, n_successful_paths=3)

        assert stats.n_failed_paths == 1
        assert stats.dict()['n_paths'] == 4


class TestDrawsCSVReporter:
    def test_report(self, unit_gaussian_model, tmp_path):
        csv_path = tmp_path / "run.draws.csv"

        result = run_with(unit_gaussian_model, [DrawsCSVReporter(file_path=str(csv_path))])

        lines = csv_path.read_text().splitlines()

        assert lines[0] == ",".join(HEADER)

        data_lines = [line for line in lines[1:] if not line.startswith('#')]
        rows = np.array([[float(value) for value in row]
                         for row in csv.reader(data_lines)])
        assert rows.shape == (20, 5)
        assert np.allclose(rows, result.draws)

        # the trailer comes after all the draws
        trailer = lines[21:]
        assert trailer[0] == "#"
        assert trailer[1].startswith("# Elapsed Time: ")
        assert trailer[1].endswith("seconds (Pathfinders)")
        assert trailer[2].endswith("seconds (PSIS)")
        assert trailer[3].endswith("seconds (Total)")
        assert trailer[4] == "#"

    def test_precision(self, unit_gaussian_model, tmp_path):
        csv_path = tmp_path / "run.draws.csv"

        run_with(unit_gaussian_model, [DrawsCSVReporter(file_path=str(csv_path), precision=3)])

        first_row = csv_path.read_text().splitlines()[1].split(',')
        assert all(value == "{:.3g}".format(float(value)) for value in first_row)

    def test_exists(self, unit_gaussian_model, tmp_path):
        csv_path = tmp_path / "run.draws.csv"
        csv_path.write_text("old")

        with pytest.raises(FileExistsError):
            run_with(unit_gaussian_model, [DrawsCSVReporter(file_path=str(csv_path))])

        assert csv_path.read_text() == "old"

    def test_overwrite(self, unit_gaussian_model, tmp_path):
        csv_path = tmp_path / "run.draws.csv"
        csv_path.write_text("old")

        run_with(unit_gaussian_model, [DrawsCSVReporter(file_path=str(csv_path), mode='w')])

        assert csv_path.read_text().startswith("x.1")

    def test_no_report_on_total_failure(self, unit_gaussian_model, tmp_path):
        csv_path = tmp_path / "run.draws.csv"

        with pytest.raises(NoSuccessfulPathsError):
            run_with(unit_gaussian_model, [DrawsCSVReporter(file_path=str(csv_path))],
                     fail_paths=(0, 1, 2, 3))

        # only the header was written
        assert csv_path.read_text().splitlines() == [",".join(HEADER)]


class TestDashboardReporter:
    def test_report(self, unit_gaussian_model, tmp_path):
        dash_path = tmp_path / "run.dash.org"

        run_with(unit_gaussian_model, [DashboardReporter(file_path=str(dash_path))])

        dashboard = dash_path.read_text()

        assert "* Run" in dashboard
        assert "Number of Paths: 4" in dashboard
        assert "Successful Paths: 3" in dashboard
        assert "Failed Paths: 1" in dashboard
        assert "Pooled Draws: 150" in dashboard
        assert "Resampled Draws: 20" in dashboard
        assert "FAILED" in dashboard
        assert "Estimator: ParetoSmoothedEstimator" in dashboard
        assert "khat" in dashboard
        assert "seconds (PSIS)" in dashboard


class TestHDF5Reporter:
    def test_report(self, unit_gaussian_model, tmp_path):
        h5_path = tmp_path / "run.pathpool.h5"

        result = run_with(unit_gaussian_model, [HDF5Reporter(file_path=str(h5_path))])

        with h5py.File(str(h5_path), mode='r') as h5:

            assert np.allclose(h5['draws'][:], result.draws)

            param_names = [name.decode() if isinstance(name, bytes) else name
                           for name in h5['draws'].attrs['param_names']]
            assert param_names == HEADER

            assert np.array_equal(h5['resampling/pool_idx'][:], result.pool_idxs)
            assert np.array_equal(h5['resampling/draw_idx'][:], np.arange(20))

            assert h5['pool/samples'].shape == (3, 150)
            assert np.allclose(h5['pool/weights'][:], result.weights)
            assert np.array_equal(h5['pool/path_idxs'][:], result.pool.path_idxs)

            assert sorted(h5['paths'].keys()) == ['0', '1', '2', '3']
            assert h5['paths/1'].attrs['status'] == 'FAILED'
            assert 'samples' not in h5['paths/1']
            assert h5['paths/0/samples'].shape == (3, 50)

            assert h5['run_stats'].attrs['n_successful_paths'] == 3
            assert h5['run_stats'].attrs['total_log_density_evaluations'] == 40
            assert 'khat' in h5['run_stats'].attrs

    def test_no_paths(self, unit_gaussian_model, tmp_path):
        h5_path = tmp_path / "run.pathpool.h5"

        run_with(unit_gaussian_model, [HDF5Reporter(file_path=str(h5_path), save_paths=False)])

        with h5py.File(str(h5_path), mode='r') as h5:
            assert 'paths' not in h5


class TestFileReporter:
    def test_file_order_names(self):
        reporter = DrawsCSVReporter(file_path="a.draws.csv")

        assert reporter.draws_path == "a.draws.csv"
        assert reporter.file_path == "a.draws.csv"
        assert reporter.mode == 'x'

        with pytest.raises(AttributeError):
            reporter.not_a_path

    @pytest.mark.parametrize(
        "kwargs",
        [
            {},
            {'file_paths' : ["a", "b"]},
            {'file_path' : "a", 'file_paths' : ["a"]},
            {'file_path' : "a", 'mode' : 'q'},
            {'file_path' : "a", 'mode' : 'w', 'modes' : ['w']},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            DrawsCSVReporter(**kwargs)

    def test_read_only(self):
        reporter = DashboardReporter(file_path="a.dash.org", mode='r')

        with pytest.raises(ReporterError):
            reporter.write_dashboard("text")

    def test_multiple_files(self):

        class TwoFileReporter(FileReporter):
            FILE_ORDER = ('first_path', 'second_path')

        reporter = TwoFileReporter(file_paths=["a", "b"])

        assert reporter.second_path == "b"

        with pytest.raises(ReporterError):
            reporter.file_path
