import matplotlib

matplotlib.use("Agg")

import pytest

from sample_fragments import RecordingFragment, doubled_quadratic_nll, quadratic_nll
from stockassess.models import default_registry


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def quadratic_registry():
    registry = default_registry()
    registry.include("DD", quadratic_nll)
    registry.include("DD_SS", doubled_quadratic_nll)
    return registry


@pytest.fixture
def recording_registry():
    registry = default_registry()
    dd = RecordingFragment(1.0)
    dd_ss = RecordingFragment(2.0)
    registry.include("DD", dd)
    registry.include("DD_SS", dd_ss)
    return registry, dd, dd_ss


@pytest.fixture
def quadratic_data():
    return {"model": "DD", "target": [1.5, -2.0]}


@pytest.fixture
def quadratic_parameters():
    return {"theta": [0.0, 0.0]}
