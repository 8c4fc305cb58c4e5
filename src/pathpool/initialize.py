"""Generation of initial states for each path."""

import logging

logger = logging.getLogger(__name__)

import numpy as np

from pathpool.rng import create_rng


def init_state(model, seed, path, init=None, init_radius=2.0):
    """Make an unconstrained initial state for one path.

    Values the user supplied in `init` are kept and the rest are drawn
    uniformly in (-init_radius, init_radius).

    Parameters
    ----------
    model : object implementing the Model interface

    seed : int

    path : int
        The path id (offset included) which decorrelates the draws of
        different paths.

    init : dict of str : float, optional
        User supplied values by parameter name.

    init_radius : float
        Non-negative half width of the uniform initialization interval.

    Returns
    -------
    state : numpy.ndarray of float of shape (n_params,)

    """

    if init_radius < 0:
        raise ValueError("init_radius must be non-negative, got {}".format(init_radius))

    names = model.param_names()
    init = {} if init is None else dict(init)

    unknown = set(init).difference(names)
    if len(unknown) > 0:
        raise ValueError("Unknown parameters in init: {}".format(", ".join(sorted(unknown))))

    rng = create_rng(seed, path)
    state = rng.uniform(-init_radius, init_radius, size=len(names))

    for i, name in enumerate(names):
        if name in init:
            state[i] = init[name]

    return state


def init_states(model, num_paths, seed, path=0, inits=None, init_radius=2.0):
    """Make the initial states for all paths of a run.

    Parameters
    ----------
    model : object implementing the Model interface

    num_paths : int

    seed : int

    path : int
        The path id offset of the run, path `i` uses id `path + i`.

    inits : dict or list of dict, optional
        Either one set of user values shared by all paths or one per
        path.

    init_radius : float

    Returns
    -------
    states : list of numpy.ndarray

    """

    if inits is None or isinstance(inits, dict):
        inits = [inits for _ in range(num_paths)]

    if len(inits) != num_paths:
        raise ValueError("Expected {} inits, got {}".format(num_paths, len(inits)))

    return [init_state(model, seed, path + path_idx,
                       init=inits[path_idx],
                       init_radius=init_radius)
            for path_idx in range(num_paths)]
