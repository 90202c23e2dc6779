"""Waveform envelope: per-column min/max reduction of a sample array."""

from __future__ import annotations

import numpy as np

from .models import NO_SIGNAL, Envelope
from .timeline import display_width


def column_bounds(sample_count: int, width: int) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(starts, ends)`` sample indices for every display column.

    ``samples_per_column = max(1, n / width)`` is a float ratio, so columns
    do not have to align with whole samples.  Column ``i`` covers
    ``floor(i * spc)`` up to ``min(floor((i + 1) * spc), n)``.
    """
    spc = max(1.0, sample_count / width)
    idx = np.arange(width + 1, dtype=np.float64) * spc
    edges = np.floor(idx).astype(np.int64)
    starts = edges[:-1]
    ends = np.minimum(edges[1:], sample_count)
    return starts, ends


def build_envelope(samples, width: int) -> Envelope:
    """Reduce *samples* to ``width`` (min, max) columns.

    NaN samples are skipped.  A column whose range is empty, or holds only
    NaN, gets the ``NO_SIGNAL`` pair ``(1, -1)``.  The result depends only
    on the arguments, so it can be rebuilt freely (e.g. on every resize).
    """
    width = int(width)
    if width < 1:
        raise ValueError(f"display width must be >= 1, got {width}")

    data = np.asarray(samples, dtype=np.float64)
    n = len(data)
    empty_lo, empty_hi = NO_SIGNAL
    mins = np.full(width, empty_lo, dtype=np.float64)
    maxs = np.full(width, empty_hi, dtype=np.float64)
    if n == 0:
        return Envelope(mins=mins, maxs=maxs)

    starts, ends = column_bounds(n, width)
    valid = ends > starts
    if not valid.any():
        return Envelope(mins=mins, maxs=maxs)

    # Non-empty columns are contiguous and back to back, so reduceat over
    # their starts covers exactly [start, end) for each of them.
    v_starts = starts[valid]
    stop = int(ends[valid][-1])
    view = data[:stop]
    col_min = np.fmin.reduceat(view, v_starts)
    col_max = np.fmax.reduceat(view, v_starts)

    # Fold against the sentinel so all-NaN columns keep it.
    mins[valid] = np.fmin(empty_lo, col_min)
    maxs[valid] = np.fmax(empty_hi, col_max)
    return Envelope(mins=mins, maxs=maxs)


def envelope_for_duration(samples, duration: float, available_width: int,
                          full_width_seconds: float = 3600.0) -> Envelope:
    """Build an envelope sized by :func:`display_width`."""
    return build_envelope(
        samples, display_width(duration, available_width, full_width_seconds)
    )

