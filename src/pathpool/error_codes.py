"""Process exit codes and the exception base classes that carry them.

The codes follow the BSD `sysexits` convention that command line
front ends expect.

"""

OK = 0
"""Successful run."""

SOFTWARE = 70
"""Internal software error, e.g. no path ran successfully."""


class PathPoolError(Exception):
    """Base class for errors that end a multi-path run.

    Each error carries the exit code a command line front end should
    terminate with.
    """

    exit_code = SOFTWARE


class ContractViolation(PathPoolError):
    """A collaborator broke its contract with the combiner.

    These indicate a broken runner or weight estimator rather than
    normal statistical variability and are never coerced away.
    """
    pass
