import sys
import logging

import click
import numpy as np

from pathpool import error_codes
from pathpool.error_codes import PathPoolError
from pathpool.apparatus import Apparatus
from pathpool.configuration import Configuration
from pathpool.importance import ParetoSmoothedEstimator
from pathpool.models import GaussianModel
from pathpool.reporter.dashboard import DashboardReporter
from pathpool.reporter.draws_csv import DrawsCSVReporter
from pathpool.reporter.hdf5 import HDF5Reporter
from pathpool.runners.laplace import LaplaceRunner

def set_loglevel(loglevel):
    """Configure the root logger from a level name or number.

    \b
    Parameters
    ----------
    loglevel : str
        A level name like 'INFO' or an integer level.

    """

    # try to cast the loglevel as an integer. If that fails interpret
    # it as a string.
    try:
        loglevel_num = int(loglevel)
    except ValueError:
        loglevel_num = getattr(logging, loglevel.upper(), None)

    # if no such log level exists in logging the string was invalid
    if not isinstance(loglevel_num, int):
        raise ValueError("invalid log level given")

    logging.basicConfig(level=loglevel_num)

def random_seed():
    """A fresh seed from the operating system entropy."""
    return int(np.random.SeedSequence().entropy % (2**31))

@click.group()
def cli():
    """Multi-path variational inference with importance resampling."""
    pass

@click.command()
@click.option('--log', default="WARNING")
@click.option('--dim', type=click.INT, required=True,
              help="Number of parameters.")
@click.option('--mean', type=click.FLOAT, multiple=True,
              help="Mean of each parameter, repeat for each one. Defaults to 0.")
@click.option('--scale', type=click.FLOAT, default=1.0,
              help="Standard deviation shared by all parameters.")
@click.option('--num-draws', type=click.INT, default=1000,
              help="Draws from the approximation of each path.")
@click.argument('apparatus', type=click.Path(exists=False))
def make_gaussian(log, dim, mean, scale, num_draws, apparatus):
    """Write an apparatus for a diagonal normal target to APPARATUS."""

    set_loglevel(log)

    if len(mean) == 0:
        mean = np.zeros(dim)
    elif len(mean) == 1:
        mean = np.full(dim, mean[0])
    elif len(mean) != dim:
        raise click.BadParameter("give one --mean or one per parameter",
                                 param_hint='--mean')

    try:
        model = GaussianModel(mean, scale=scale)
        runner = LaplaceRunner(num_draws=num_draws)
    except ValueError as err:
        raise click.UsageError(str(err))

    Apparatus(model, runner, estimator=ParetoSmoothedEstimator()).dump(apparatus)

    logging.info("Wrote apparatus to {}".format(apparatus))

@click.command()
@click.option('--log', default="WARNING")
@click.option('--seed', type=click.INT, default=None,
              help="Random seed, drawn from the system if not given.")
@click.option('--path', type=click.INT, default=0,
              help="Path id offset.")
@click.option('--num-paths', type=click.INT, default=4)
@click.option('--num-draws', type=click.INT, default=None,
              help="Draws from the approximation of each path.")
@click.option('--num-multi-draws', type=click.INT, default=1000,
              help="Draws resampled from the pool.")
@click.option('--init-radius', type=click.FLOAT, default=2.0)
@click.option('--n-workers', type=click.INT, default=None)
@click.option('--refresh', type=click.INT, default=100)
@click.option('--history-size', type=click.INT, default=None)
@click.option('--init-alpha', type=click.FLOAT, default=None)
@click.option('--tol-obj', type=click.FLOAT, default=None)
@click.option('--tol-rel-obj', type=click.FLOAT, default=None)
@click.option('--tol-grad', type=click.FLOAT, default=None)
@click.option('--tol-rel-grad', type=click.FLOAT, default=None)
@click.option('--tol-param', type=click.FLOAT, default=None)
@click.option('--num-iterations', type=click.INT, default=None)
@click.option('-O', '--output', type=click.Path(exists=False), default=None,
              help="CSV file for the draws.")
@click.option('--dashboard', type=click.Path(exists=False), default=None)
@click.option('--hdf5', type=click.Path(exists=False), default=None)
@click.option('--mode', type=click.Choice(['x', 'w']), default='x')
@click.argument('apparatus', type=click.Path(exists=True))
def run(log, seed, path, num_paths, num_draws, num_multi_draws, init_radius,
        n_workers, refresh,
        history_size, init_alpha, tol_obj, tol_rel_obj, tol_grad, tol_rel_grad,
        tol_param, num_iterations,
        output, dashboard, hdf5, mode,
        apparatus):
    """Run the paths of the APPARATUS and resample from their pool."""

    set_loglevel(log)

    if seed is None:
        seed = random_seed()
        logging.info("Using seed {}".format(seed))

    runner_opts = {
        'history_size' : history_size,
        'init_alpha' : init_alpha,
        'tol_obj' : tol_obj,
        'tol_rel_obj' : tol_rel_obj,
        'tol_grad' : tol_grad,
        'tol_rel_grad' : tol_rel_grad,
        'tol_param' : tol_param,
        'num_iterations' : num_iterations,
    }
    runner_opts = {key : value for key, value in runner_opts.items()
                   if value is not None}

    try:
        config = Configuration(
            work_mapper_partial_kwargs={'num_workers' : n_workers},
            run_opts={'seed' : seed,
                      'path' : path,
                      'num_paths' : num_paths,
                      'num_multi_draws' : num_multi_draws,
                      'init_radius' : init_radius,
                      'refresh' : refresh},
            runner_opts=runner_opts,
        )
    except ValueError as err:
        raise click.UsageError(str(err))

    apparatus = Apparatus.load(apparatus)

    if num_draws is not None:
        if num_draws < 1:
            raise click.BadParameter("must be at least 1", param_hint='--num-draws')
        apparatus.runner.num_draws = num_draws

    if hasattr(apparatus.runner, 'refresh'):
        apparatus.runner.refresh = refresh

    manager = config.manager(apparatus)

    if output is not None:
        manager.reporters.append(DrawsCSVReporter(file_path=output, mode=mode))

    if dashboard is not None:
        manager.reporters.append(DashboardReporter(file_path=dashboard, mode=mode))

    if hdf5 is not None:
        manager.reporters.append(HDF5Reporter(file_path=hdf5, mode=mode))

    try:
        result = manager.run(**config.run_kwargs())

    except PathPoolError as err:
        click.echo(str(err), err=True)
        sys.exit(err.exit_code)

    click.echo("Paths: {} successful, {} failed".format(
        result.run_stats.n_successful_paths,
        result.run_stats.n_failed_paths))

    for line in result.run_stats.timing_lines():
        click.echo(line)

    sys.exit(error_codes.OK)

cli.add_command(make_gaussian, name='make-gaussian')
cli.add_command(run)

if __name__ == "__main__":

    cli()
