import numpy as np
import pytest

from tagwavelib.envelope import build_envelope, column_bounds, envelope_for_duration
from tagwavelib.models import NO_SIGNAL


def test_column_bounds_fractional_ratio():
    starts, ends = column_bounds(10, 4)
    assert list(starts) == [0, 2, 5, 7]
    assert list(ends) == [2, 5, 7, 10]


def test_column_bounds_more_columns_than_samples():
    starts, ends = column_bounds(3, 6)
    assert list(starts) == [0, 1, 2, 3, 4, 5]
    assert list(ends) == [1, 2, 3, 3, 3, 3]


def test_one_sample_per_column():
    samples = np.array([0.1, -0.2, 0.3, -0.4])
    env = build_envelope(samples, 4)
    assert list(env.mins) == list(samples)
    assert list(env.maxs) == list(samples)


def test_min_max_per_column():
    samples = np.array([0.0, 0.5, -0.5, 0.25, -1.0, 1.0, 0.1, 0.2, 0.3, 0.4])
    env = build_envelope(samples, 4)
    assert env[0] == (0.0, 0.5)
    assert env[1] == (-1.0, 0.25)
    assert env[2] == (0.1, 1.0)
    assert env[3] == (0.2, 0.4)


def test_columns_past_the_samples_hold_the_sentinel():
    env = build_envelope(np.array([0.5, -0.5, 0.0]), 6)
    assert len(env) == 6
    for i in range(3, 6):
        assert env[i] == NO_SIGNAL
        assert env.is_empty(i)
    assert not env.is_empty(0)


def test_nan_samples_are_skipped():
    samples = np.array([np.nan, np.nan, 0.5, np.nan, -0.5, 0.25])
    env = build_envelope(samples, 3)
    assert env[0] == NO_SIGNAL
    assert env[1] == (0.5, 0.5)
    assert env[2] == (-0.5, 0.25)


def test_empty_input_is_all_sentinel():
    env = build_envelope(np.array([]), 5)
    assert len(env) == 5
    assert all(env.is_empty(i) for i in range(5))


@pytest.mark.parametrize("width", [0, -3])
def test_width_below_one_is_rejected(width):
    with pytest.raises(ValueError):
        build_envelope(np.zeros(4), width)


def test_columns_bound_every_sample():
    rng = np.random.default_rng(7)
    samples = rng.uniform(-1, 1, 1000)
    env = build_envelope(samples, 37)
    assert len(env) == 37
    assert np.all(env.mins <= env.maxs)
    assert env.mins.min() == samples.min()
    assert env.maxs.max() == samples.max()


def test_build_is_deterministic():
    samples = np.sin(np.linspace(0, 20, 5000))
    a = build_envelope(samples, 64)
    b = build_envelope(samples, 64)
    assert np.array_equal(a.mins, b.mins)
    assert np.array_equal(a.maxs, b.maxs)


def test_envelope_for_duration_uses_display_width():
    env = envelope_for_duration(np.zeros(88200), 2.0, 1856)
    assert len(env) == 2
    env = envelope_for_duration(np.zeros(100), 3600.0, 1856)
    assert len(env) == 1856
