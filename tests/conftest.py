"""Root level conftest.

This provides fixtures and adds the utility importable modules
available to all tests.

"""
import sys
import os.path as osp
from pathlib import Path

import pytest

tests_dir = Path(osp.dirname(__file__))
utils_dir = tests_dir / 'utils'

sys.path.append(str(utils_dir))

from pathpool.models import GaussianModel

NUM_PARAMS = 3

@pytest.fixture
def gaussian_model():
    return GaussianModel([1.0, -2.0, 0.5])

@pytest.fixture
def unit_gaussian_model():
    return GaussianModel([0.0 for _ in range(NUM_PARAMS)])
