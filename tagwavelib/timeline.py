"""Mapping between track time and display pixels."""

from __future__ import annotations

import math

FULL_WIDTH_SECONDS = 3600.0  # one hour of audio spans the available width
LAYOUT_PADDING_PX = 64


def available_width(screen_width: int, padding: int = LAYOUT_PADDING_PX) -> int:
    """Pixels left for the waveform once the layout padding is taken off."""
    return max(1, int(screen_width) - int(padding))


def display_width(duration: float, available_width: int,
                  full_width_seconds: float = FULL_WIDTH_SECONDS) -> int:
    """Columns needed for *duration* when *full_width_seconds* fill the width.

    Scales linearly, rounds up, and never returns less than 1.
    """
    if duration <= 0 or available_width <= 0:
        return 1
    return max(1, math.ceil(duration / full_width_seconds * available_width))


def x_to_time(x: float, duration: float, width: int) -> float:
    """Track time under pixel *x*, clamped to ``[0, duration]``."""
    if width <= 0 or duration <= 0:
        return 0.0
    fraction = min(1.0, max(0.0, x / width))
    return min(fraction * duration, duration)


def time_to_x(time: float, duration: float, width: int) -> float:
    """Pixel column for *time*, clamped to ``[0, width]``."""
    if duration <= 0:
        return 0.0
    return min(max(0.0, time / duration * width), float(width))


def is_near_playhead(x: float, current_time: float, duration: float,
                     width: int, tolerance: float = 15) -> bool:
    """True when pixel *x* is within *tolerance* pixels of the playhead."""
    if duration <= 0:
        return False
    playhead_x = current_time / duration * width
    return abs(x - playhead_x) <= tolerance


def format_time(seconds: float) -> str:
    """Format seconds as ``S.mmm`` (whole seconds, zero-padded millis)."""
    secs = math.floor(seconds)
    millis = math.floor((seconds - secs) * 1000)
    return f"{secs}.{millis:03d}"
