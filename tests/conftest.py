import numpy as np
import pytest

from diffexpr import get_config, set_config


@pytest.fixture(autouse=True)
def _restore_config():
    """Tests may flip `check_domain`; put the previous config back afterwards."""
    prev = get_config()
    yield
    set_config(prev)


@pytest.fixture
def rng():
    return np.random.default_rng(20240607)
