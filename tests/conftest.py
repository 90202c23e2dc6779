import numpy as np
import pytest

from fakes import FakeBackend
from wavutil import build_wav


@pytest.fixture
def make_wav():
    return build_wav


@pytest.fixture
def sine_wav():
    """Two seconds of a 440 Hz tone, 44.1 kHz mono 16-bit."""
    rate = 44100
    t = np.arange(2 * rate) / rate
    return build_wav(0.5 * np.sin(2 * np.pi * 440 * t), bits=16, rate=rate)


@pytest.fixture
def backend():
    return FakeBackend()
