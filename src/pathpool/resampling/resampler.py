"""Weighted resampling with replacement of pooled draws."""

import logging

logger = logging.getLogger(__name__)

import numpy as np
from eliot import log_call

from pathpool.importance import WeightContractError, validate_weights
from pathpool.rng import create_rng


class ResamplerError(WeightContractError):
    """Error raised when the weights or the requested number of draws
    cannot be resampled."""
    pass


class Resampler(object):
    """Abstract base class for implementing resamplers.

    All subclasses of Resampler must implement the 'resample' method.

    The class constants give the names, shapes and dtypes of the
    per-draw records that 'resample' produces so that reporters can
    make tables for them:

    - RESAMPLING_FIELDS
    - RESAMPLING_SHAPES
    - RESAMPLING_DTYPES

    """

    RESAMPLING_FIELDS = ('draw_idx', 'pool_idx',)
    """String names of fields produced in each resampling record."""

    RESAMPLING_SHAPES = ((1,), (1,),)
    """Numpy-style shapes of all fields produced in records."""

    RESAMPLING_DTYPES = (int, int,)
    """The dtypes of all fields produced in records."""

    def resampling_fields(self):
        """Returns a list of zipped field specs.

        Returns
        -------

        record_specs : list of tuple
            A list of the specs for each field, a spec is a tuple of
            type (field_name, shape_spec, dtype_spec)
        """
        return list(zip(self.RESAMPLING_FIELDS,
                        self.RESAMPLING_SHAPES,
                        self.RESAMPLING_DTYPES))

    def resample(self, weights, n_draws):
        """Select draws according to their weights.

        Parameters
        ----------
        weights : arraylike of float of shape (n_pooled,)

        n_draws : int
            The number of draws to make.

        Returns
        -------
        pool_idxs : numpy.ndarray of int of shape (n_draws,)
            Indices into the pool, in draw order.

        resampling_data : list of dict of str : value
            A record for each draw.

        resampler_data : list of dict of str : value
            Records of the state of the resampler.

        """
        raise NotImplementedError


class WeightedResampler(Resampler):
    """Draws i.i.d. indices with replacement, with probability
    proportional to the weights.

    The random source is created from the seed and path given at
    construction for every call to `resample` so identical weights
    always give identical draws.

    """

    def __init__(self, seed, path=0):
        """Constructor for WeightedResampler.

        Parameters
        ----------
        seed : int
            The random seed of the run.

        path : int
            The path id offset of the run, decorrelates runs that
            share a seed.

        """

        self._seed = seed
        self._path = path

    @property
    def seed(self):
        """The random seed resampling is derived from."""
        return self._seed

    @property
    def path(self):
        """The path discriminator resampling is derived from."""
        return self._path

    @log_call(include_args=['n_draws'],
              include_result=False)
    def resample(self, weights, n_draws):
        # documented in superclass

        if n_draws < 1:
            raise ResamplerError("At least one draw must be requested, got {}".format(n_draws))

        try:
            weights = validate_weights(weights)
        except WeightContractError as err:
            raise ResamplerError("Cannot resample: {}".format(err)) from err

        probs = weights / np.sum(weights)

        rng = create_rng(self.seed, self.path)

        pool_idxs = rng.choice(probs.shape[0], size=n_draws, replace=True, p=probs)

        logger.debug("Resampled {} draws from {} candidates".format(
            n_draws, probs.shape[0]))

        resampling_data = [{'draw_idx' : draw_idx, 'pool_idx' : int(pool_idx)}
                           for draw_idx, pool_idx in enumerate(pool_idxs)]

        resampler_data = [{'seed' : self.seed,
                           'path' : self.path,
                           'n_candidates' : probs.shape[0],
                           'n_unique' : int(np.unique(pool_idxs).shape[0])}]

        return pool_idxs, resampling_data, resampler_data
