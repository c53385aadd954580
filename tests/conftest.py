import numpy as np
import pytest

from gesturelib.registry import create_default_registry


@pytest.fixture
def registry():
    """Fresh registry per test so registrations never leak between tests."""
    return create_default_registry()


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
