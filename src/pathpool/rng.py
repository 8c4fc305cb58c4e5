"""Construction of the random number generators used by a run.

All randomness is derived from the caller supplied seed combined with
a path discriminator so that re-running with the same seed and path
reproduces the same numbers. Global or ambient entropy is never used.

"""

import numpy as np


def create_rng(seed, path=0):
    """Create a generator for the given seed and path discriminator.

    Parameters
    ----------
    seed : int
        The run level random seed.

    path : int
        Discriminator (a path id, or the path offset of the whole
        run) that decorrelates streams created from the same seed.

    Returns
    -------
    rng : numpy.random.Generator

    """

    if seed is None:
        raise ValueError("A seed must be given, ambient entropy is not used")

    seed = int(seed)
    path = int(path)
    if seed < 0 or path < 0:
        raise ValueError("seed and path must be non-negative, got {} and {}".format(
            seed, path))

    return np.random.default_rng(np.random.SeedSequence([seed, path]))
