"""Target density models.

Model Interface
---------------

A model is anything providing:

- `param_names()` : names of the unconstrained parameters
- `constrained_param_names()` : names of the values written for each
  draw
- `log_density(x)` : the unnormalized log density of the target at an
  unconstrained point
- `grad_log_density(x)` : its gradient
- `constrain(x)` : the constrained values for an unconstrained point

Model methods may be called concurrently from several paths and must
not modify any shared state.

"""

import numpy as np


class Model(object):
    """Abstract base class for the Model interface."""

    def param_names(self):
        """Names of the unconstrained parameters, in order."""
        raise NotImplementedError

    @property
    def num_params(self):
        """Dimension of the unconstrained parameter space."""
        return len(self.param_names())

    def constrained_param_names(self):
        """Names of the constrained values of a draw.

        Defaults to the unconstrained names.
        """
        return self.param_names()

    def log_density(self, x):
        """The unnormalized log density of the target at `x`."""
        raise NotImplementedError

    def grad_log_density(self, x):
        """Gradient of the log density at `x`."""
        raise NotImplementedError

    def log_density_and_grad(self, x):
        """The log density and its gradient at `x` as a tuple."""
        return self.log_density(x), self.grad_log_density(x)

    def constrain(self, x):
        """Map an unconstrained point to its constrained values.

        Defaults to the identity.
        """
        return np.asarray(x, dtype=float)


class GaussianModel(Model):
    """Independent normal target, useful as a toy system for testing."""

    def __init__(self, mean, scale=1.0, names=None):
        """Constructor for GaussianModel.

        Parameters
        ----------
        mean : arraylike of float of shape (n_params,)

        scale : float or arraylike of float of shape (n_params,)
            Standard deviations, must be positive.

        names : list of str, optional
            Parameter names, defaults to 'x.1', 'x.2', ...

        """

        self.mean = np.atleast_1d(np.asarray(mean, dtype=float))
        self.scale = np.broadcast_to(np.asarray(scale, dtype=float),
                                     self.mean.shape).copy()

        if np.any(self.scale <= 0.0):
            raise ValueError("scale must be positive")

        if names is None:
            names = ["x.{}".format(i + 1) for i in range(self.mean.shape[0])]
        elif len(names) != self.mean.shape[0]:
            raise ValueError("Expected {} names, got {}".format(
                self.mean.shape[0], len(names)))

        self._names = list(names)

    def param_names(self):
        return list(self._names)

    def log_density(self, x):
        z = (np.asarray(x, dtype=float) - self.mean) / self.scale
        return -0.5 * float(np.dot(z, z))

    def grad_log_density(self, x):
        return -(np.asarray(x, dtype=float) - self.mean) / self.scale**2
