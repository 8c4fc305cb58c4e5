"""Multi-path approximate inference with importance resampling.

Many independent approximate-inference runs (paths) are fit to a
target density, their draws are pooled into one importance sampling
population, and a fixed size weighted resample of that population is
returned as the final set of posterior draws.

"""

__version__ = "0.1.0"
