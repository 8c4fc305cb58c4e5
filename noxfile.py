# NOTE: Nox is used for anything that requires some sort of special
# virtual environment in order to operate, here just the tests.

# Standard Library
from pathlib import Path

# Third Party Library
import nox

DEFAULT_PYTHON_VERSION = "3.11"

PROJECT_ROOT_DIR = Path(__file__).parent

UNIT_TEST_DIRNAME = "unit"


### Tests


@nox.session(python=DEFAULT_PYTHON_VERSION)
def tests(
    session: nox.Session,
) -> None:
    """Run the unit tests."""

    session.install("-e", ".[test]")

    session.run(
        "pytest",
        "--import-mode=importlib",
        f"tests/{UNIT_TEST_DIRNAME}",
        *session.posargs,
    )


@nox.session(python=DEFAULT_PYTHON_VERSION)
def doctests(session: nox.Session) -> None:
    """Run the examples in the docstrings of the package."""

    session.install("-e", ".[test]")

    session.run(
        "pytest",
        "--doctest-modules",
        "src/pathpool",
    )
