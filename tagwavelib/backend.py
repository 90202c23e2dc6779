"""Hardware playback backend: soundfile decode + sounddevice output.

A backend opens an :class:`AudioContext` for one byte buffer.  The context
owns a running output stream whose clock never stops while it is open
(silence is written when nothing plays), and it can start one
:class:`Voice` at a time at an arbitrary offset.
"""

from __future__ import annotations

import io
import logging
import threading
from abc import ABC, abstractmethod

import numpy as np
import soundfile as sf

log = logging.getLogger(__name__)


class Voice(ABC):
    """One scheduled playback of the context buffer."""

    @property
    @abstractmethod
    def finished(self) -> bool:
        """True once the voice ran out of samples on its own."""

    @abstractmethod
    def stop(self) -> None:
        """Silence the voice.  Calling it again is a no-op."""


class AudioContext(ABC):
    """An open hardware output with a free-running clock."""

    duration: float = 0.0

    @abstractmethod
    def now(self) -> float:
        """Current hardware clock reading in seconds."""

    @abstractmethod
    def start_voice(self, offset: float) -> Voice:
        """Start sounding the buffer from *offset* seconds."""

    @abstractmethod
    def close(self) -> None:
        """Release the output.  Safe to call more than once."""


class AudioBackend(ABC):
    """Factory for :class:`AudioContext` objects."""

    @abstractmethod
    def open(self, raw_bytes: bytes) -> AudioContext:
        """Decode *raw_bytes* for the hardware and open an output for it."""


# ---------------------------------------------------------------------------
# soundfile / sounddevice implementation
# ---------------------------------------------------------------------------

def decode_for_playback(raw_bytes: bytes) -> tuple[np.ndarray, int]:
    """Decode a whole audio file with libsndfile.

    Returns ``(frames, samplerate)`` with frames shaped (samples, channels)
    as float32, ready to be copied into an output stream.
    """
    data, samplerate = sf.read(io.BytesIO(raw_bytes), dtype="float32",
                               always_2d=True)
    return data, int(samplerate)


def fold_to_stereo(audio: np.ndarray) -> np.ndarray:
    """Fold more than two channels onto L/R (even -> left, odd -> right)."""
    if audio.shape[1] <= 2:
        return audio
    n = audio.shape[1]
    left = audio[:, 0::2].sum(axis=1) / max(1, (n + 1) // 2)
    right = audio[:, 1::2].sum(axis=1) / max(1, n // 2)
    return np.column_stack([left, right]).astype(audio.dtype)


class StreamVoice(Voice):
    """Frame cursor consumed by :class:`SoundDeviceContext`'s callback."""

    def __init__(self, start_frame: int, lock: threading.Lock):
        self._lock = lock
        self.position = start_frame
        self.stopped = False
        self._finished = False

    @property
    def finished(self) -> bool:
        with self._lock:
            return self._finished

    def mark_finished(self) -> None:
        # caller holds the lock
        self._finished = True
        self.stopped = True

    def stop(self) -> None:
        with self._lock:
            self.stopped = True


class SoundDeviceContext(AudioContext):
    """A started ``sd.OutputStream`` that plays at most one voice."""

    def __init__(self, audio: np.ndarray, samplerate: int, *,
                 blocksize: int = 1024, latency: str | float = "low"):
        import sounddevice as sd

        self._audio = np.ascontiguousarray(fold_to_stereo(audio))
        self._samplerate = samplerate
        self.duration = len(self._audio) / samplerate if samplerate else 0.0
        self._lock = threading.Lock()
        self._voice: StreamVoice | None = None

        self._stream = sd.OutputStream(
            samplerate=samplerate,
            channels=self._audio.shape[1],
            dtype="float32",
            blocksize=blocksize,
            latency=latency,
            callback=self._callback,
        )
        try:
            self._stream.start()
        except Exception:
            self._stream.close()
            self._stream = None
            raise

    def now(self) -> float:
        if self._stream is None:
            raise RuntimeError("Audio context is closed")
        return float(self._stream.time)

    def start_voice(self, offset: float) -> Voice:
        if self._stream is None:
            raise RuntimeError("Audio context is closed")
        frame = min(max(0, int(round(offset * self._samplerate))),
                    len(self._audio))
        voice = StreamVoice(frame, self._lock)
        with self._lock:
            if self._voice is not None:
                self._voice.stopped = True
            self._voice = voice
        return voice

    def _callback(self, outdata, frames, time_info, status):
        """Fill one output block (runs on the PortAudio thread)."""
        if status:
            log.debug("Output stream status: %s", status)
        with self._lock:
            voice = self._voice
            if voice is None or voice.stopped:
                outdata.fill(0)
                self._voice = None
                return
            start = voice.position
            end = min(start + frames, len(self._audio))
            n = end - start
            outdata[:n] = self._audio[start:end]
            outdata[n:] = 0
            voice.position = end
            if end >= len(self._audio):
                voice.mark_finished()
                self._voice = None

    def close(self) -> None:
        with self._lock:
            if self._voice is not None:
                self._voice.stopped = True
                self._voice = None
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()


class SoundDeviceBackend(AudioBackend):
    """Backend that plays through the default sounddevice output."""

    def __init__(self, blocksize: int = 1024, latency: str | float = "low"):
        self.blocksize = blocksize
        self.latency = latency

    def open(self, raw_bytes: bytes) -> AudioContext:
        audio, samplerate = decode_for_playback(raw_bytes)
        log.debug("Opening output: %d frames, %d ch, %d Hz",
                  audio.shape[0], audio.shape[1], samplerate)
        return SoundDeviceContext(audio, samplerate,
                                  blocksize=self.blocksize,
                                  latency=self.latency)
