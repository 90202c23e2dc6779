from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

import numpy as np


# Sentinel column value: min above max means "no signal, draw nothing".
NO_SIGNAL: tuple[float, float] = (1.0, -1.0)


class ClockState(Enum):
    IDLE = "idle"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    SUSPENDED = "suspended"


@dataclass(frozen=True)
class DecodedAudio:
    """Result of decoding one PCM WAV buffer.

    Attributes:
        samples:         Mono samples in [-1, 1] (read-only float64 array).
        sample_rate:     Frames per second, always > 0.
        channels:        Channel count of the source before downmixing.
        bits_per_sample: Source bit depth (8, 16, 24 or 32).
        duration:        ``len(samples) / sample_rate`` in seconds.
        raw_bytes:       The untouched input, kept for the playback backend.
    """
    samples: np.ndarray
    sample_rate: int
    channels: int
    bits_per_sample: int
    duration: float
    raw_bytes: bytes = field(repr=False)

    @property
    def sample_count(self) -> int:
        return int(len(self.samples))


@dataclass(frozen=True)
class Envelope:
    """Per-column (min, max) summary of a sample array.

    Columns without signal hold the ``NO_SIGNAL`` pair.
    """
    mins: np.ndarray
    maxs: np.ndarray

    def __len__(self) -> int:
        return int(len(self.mins))

    def __iter__(self) -> Iterator[tuple[float, float]]:
        for lo, hi in zip(self.mins, self.maxs):
            yield float(lo), float(hi)

    def __getitem__(self, index: int) -> tuple[float, float]:
        return float(self.mins[index]), float(self.maxs[index])

    @property
    def width(self) -> int:
        return len(self)

    def is_empty(self, index: int) -> bool:
        return bool(self.mins[index] > self.maxs[index])


@dataclass(frozen=True)
class Tag:
    """A committed ``(start, end)`` interval in seconds, ``end > start``."""
    start: float
    end: float

    def __post_init__(self):
        if not self.end > self.start:
            raise ValueError(
                f"Tag end must be after start: {self.start!r} >= {self.end!r}"
            )

    def __iter__(self) -> Iterator[float]:
        yield self.start
        yield self.end

    @property
    def length(self) -> float:
        return self.end - self.start
