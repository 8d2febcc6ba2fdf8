import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from pmfir import FilterSpec


@pytest.fixture
def lowpass_spec():
    """9-tap lowpass: passband [0, 0.2], stopband [0.3, 0.5]."""
    return FilterSpec(h_len=9, bands=((0.0, 0.2), (0.3, 0.5)), des=(1.0, 0.0), weights=(1.0, 1.0))


@pytest.fixture
def flat_spec():
    """Single band over the whole axis with a constant desired response."""
    return FilterSpec(h_len=11, bands=((0.0, 0.5),), des=(1.0,), weights=(1.0,))


@pytest.fixture
def bandpass_spec():
    """25-tap bandpass with a weighted passband."""
    return FilterSpec(
        h_len=25,
        bands=((0.0, 0.1), (0.15, 0.3), (0.35, 0.5)),
        des=(0.0, 1.0, 0.0),
        weights=(1.0, 2.0, 1.0),
    )


@pytest.fixture(params=[
    (9, ((0.0, 0.2), (0.3, 0.5)), (1.0, 0.0), (1.0, 1.0)),
    (15, ((0.0, 0.15), (0.25, 0.5)), (1.0, 0.0), (1.0, 10.0)),
    (14, ((0.0, 0.2), (0.3, 0.5)), (1.0, 0.0), (1.0, 1.0)),
    (21, ((0.0, 0.1), (0.2, 0.3), (0.4, 0.5)), (1.0, 0.0, 1.0), (1.0, 1.0, 1.0)),
])
def any_spec(request):
    """Parametrized fixture over several valid designs."""
    h_len, bands, des, weights = request.param
    return FilterSpec(h_len=h_len, bands=bands, des=des, weights=weights)


@pytest.fixture
def tolerance():
    """Standard tolerance for numerical comparisons."""
    return 1e-10


@pytest.fixture
def loose_tolerance():
    """Looser tolerance for ripple comparisons."""
    return 1e-6


@pytest.fixture(autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(0)
