# Standard Library
import logging

logger = logging.getLogger(__name__)

# Third Party Library
import numpy as np
import pytest

# First Party Library
from pathpool.interrupt import EventInterrupt, Interrupt
from pathpool.models import GaussianModel, Model
from pathpool.path_result import PathStatus
from pathpool.runners.laplace import LaplaceRunner
from pathpool.runners.runner import FailingRunner, Runner

from stub_models import BoundedGaussianModel


class UnboundedBelowModel(Model):
    """Target with no finite density anywhere."""

    def param_names(self):
        return ['a', 'b']

    def log_density(self, x):
        return -np.inf

    def grad_log_density(self, x):
        return np.zeros(2)


class TestLaplaceRunner:
    def test_gaussian(self, gaussian_model):
        runner = LaplaceRunner(num_draws=400)

        result = runner.run_path(gaussian_model, np.zeros(3), 1, 0)

        assert result.status is PathStatus.SUCCESS
        assert result.path_idx == 0
        assert result.num_draws == 400
        assert result.samples.shape == (3, 400)
        assert result.lp_approx.shape == (400,)
        assert np.all(np.isfinite(result.log_ratios))

        assert np.allclose(np.mean(result.samples, axis=1), gaussian_model.mean, atol=0.3)
        assert result.diagnostics['mode_lp'] == pytest.approx(0.0, abs=1e-4)

        # the optimizer, the initial check and every draw
        assert result.eval_count > 400 + 1

    def test_target_recovered(self, gaussian_model):
        result = LaplaceRunner(num_draws=20).run_path(gaussian_model, np.zeros(3), 1, 0)

        lp = np.array([gaussian_model.log_density(result.samples[:, i])
                       for i in range(result.num_draws)])

        assert np.allclose(result.lp, lp)

    def test_reproducible(self, gaussian_model):
        runner = LaplaceRunner(num_draws=50)

        first = runner.run_path(gaussian_model, np.zeros(3), 9, 2)
        second = runner.run_path(gaussian_model, np.zeros(3), 9, 2)
        other = runner.run_path(gaussian_model, np.zeros(3), 9, 3)

        assert np.array_equal(first.samples, second.samples)
        assert not np.array_equal(first.samples, other.samples)

    def test_path_idx(self, gaussian_model):
        result = LaplaceRunner(num_draws=10).run_path(
            gaussian_model, np.zeros(3), 1, 12, path_idx=2)

        assert result.path_idx == 2

    def test_non_finite_init(self):
        result = LaplaceRunner(num_draws=10).run_path(
            UnboundedBelowModel(), np.zeros(2), 1, 0)

        assert result.status is PathStatus.FAILED
        assert result.eval_count == 1
        assert result.diagnostics['reason'] == 'init'

    def test_interrupted(self, gaussian_model):
        interrupt = EventInterrupt()
        interrupt.set()

        result = LaplaceRunner(num_draws=10, interrupt=interrupt).run_path(
            gaussian_model, np.zeros(3), 1, 0)

        assert not result.succeeded
        assert result.diagnostics['reason'] == 'interrupted'
        assert result.eval_count > 1

    def test_interrupt_called(self, gaussian_model, mocker):
        interrupt = mocker.Mock(spec=Interrupt)

        LaplaceRunner(num_draws=10, interrupt=interrupt).run_path(
            gaussian_model, np.zeros(3), 1, 4)

        assert interrupt.call_count > 0
        path_idx, iteration = interrupt.call_args_list[0].args
        assert path_idx == 4
        assert iteration == 1

    def test_refresh_logging(self, gaussian_model, caplog):

        with caplog.at_level(logging.INFO, logger='pathpool.runners.laplace'):
            LaplaceRunner(num_draws=10, refresh=1).run_path(
                gaussian_model, np.zeros(3), 1, 0)

        assert "Path [0] :Iter: 1 log density:" in caplog.text

    def test_refresh_silenced(self, gaussian_model, caplog):

        with caplog.at_level(logging.INFO, logger='pathpool.runners.laplace'):
            LaplaceRunner(num_draws=10, refresh=0).run_path(
                gaussian_model, np.zeros(3), 1, 0)

        assert ":Iter:" not in caplog.text

    def test_optimizer_opts(self, gaussian_model):
        runner = LaplaceRunner(num_draws=10, history_size=3)

        assert runner.optimizer_opts['history_size'] == 3

        result = runner.run_path(gaussian_model, np.zeros(3), 1, 0, num_iterations=50)
        assert result.succeeded

    def test_unknown_optimizer_opts(self, gaussian_model):
        with pytest.raises(ValueError):
            LaplaceRunner(step_size=0.1)

        with pytest.raises(ValueError):
            LaplaceRunner().run_path(gaussian_model, np.zeros(3), 1, 0, step_size=0.1)

    def test_model_raises_during_draws(self, caplog):
        model = BoundedGaussianModel([0.0, 0.0, 0.0])

        with caplog.at_level(logging.INFO, logger='pathpool.runners.laplace'):
            result = LaplaceRunner(num_draws=200).run_path(model, np.zeros(3), 1, 0)

        assert result.status is PathStatus.FAILED
        assert result.diagnostics['reason'] == 'exception'
        assert result.diagnostics['exception'] == "ValueError(outside of support)"
        assert "Path [0] :Model raised ValueError" in caplog.text

        # the evaluations up to and including the raising one
        assert result.eval_count > 2
        assert result.eval_count == model.num_calls

    def test_pre_run_checks_opts(self):
        runner = LaplaceRunner()

        runner.pre_run(num_paths=2, runner_opts={'tol_grad' : 1e-6})

        with pytest.raises(ValueError):
            runner.pre_run(num_paths=2, runner_opts={'step_size' : 0.1})

    def test_num_draws(self):
        with pytest.raises(ValueError):
            LaplaceRunner(num_draws=0)


class TestFailingRunner:
    def test_fails(self, gaussian_model):
        result = FailingRunner(eval_count=5).run_path(gaussian_model, np.zeros(3), 1, 7)

        assert not result.succeeded
        assert result.path_idx == 7
        assert result.eval_count == 5


def test_abstract_runner(gaussian_model):
    runner = Runner()

    runner.pre_run(num_paths=2)
    runner.post_run()

    with pytest.raises(NotImplementedError):
        runner.run_path(gaussian_model, np.zeros(3), 1, 0)


class TestGaussianModel:
    def test_log_density(self):
        model = GaussianModel([1.0, 2.0], scale=2.0)

        assert model.log_density([1.0, 2.0]) == 0.0
        assert model.log_density([3.0, 2.0]) == pytest.approx(-0.5)
        assert np.allclose(model.grad_log_density([3.0, 2.0]), [-0.5, 0.0])

    def test_names(self):
        model = GaussianModel([0.0, 0.0, 0.0])

        assert model.param_names() == ['x.1', 'x.2', 'x.3']
        assert model.constrained_param_names() == model.param_names()
        assert model.num_params == 3

    def test_invalid(self):
        with pytest.raises(ValueError):
            GaussianModel([0.0], scale=0.0)

        with pytest.raises(ValueError):
            GaussianModel([0.0, 1.0], names=['a'])
