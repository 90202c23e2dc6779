"""Playback clock: logical track position on top of a hardware clock.

The clock keeps one of five phases.  Only the playing phase holds a
voice, and it records the logical offset together with the hardware clock
reading taken when the voice started, so the position while playing is::

    offset + (hardware_now - started_at)

Everything the poll loop reads (phase, duration, last reported position)
is owned here and changed only by the clock's own methods.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable

from .backend import AudioBackend, AudioContext, SoundDeviceBackend, Voice
from .errors import HardwareVoiceError, PlaybackInitError
from .models import ClockState

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Idle:
    position: float = 0.0


@dataclass(frozen=True)
class _Ready:
    position: float = 0.0


@dataclass(frozen=True)
class _Playing:
    offset: float
    started_at: float
    voice: Voice


@dataclass(frozen=True)
class _Paused:
    position: float = 0.0


@dataclass(frozen=True)
class _Suspended:
    position: float = 0.0


_Phase = _Idle | _Ready | _Playing | _Paused | _Suspended

_STATE_OF: dict[type, ClockState] = {
    _Idle: ClockState.IDLE,
    _Ready: ClockState.READY,
    _Playing: ClockState.PLAYING,
    _Paused: ClockState.PAUSED,
    _Suspended: ClockState.SUSPENDED,
}


class PlaybackClock:
    """Owns the hardware context and maps it onto track time.

    Callbacks:
        on_time_update(float): position report from :meth:`tick`.
        on_playback_ended():   fired once when the track runs out.
    """

    def __init__(self, backend: AudioBackend | None = None, *,
                 on_time_update: Callable[[float], None] | None = None,
                 on_playback_ended: Callable[[], None] | None = None):
        self._backend = backend if backend is not None else SoundDeviceBackend()
        self._context: AudioContext | None = None
        self._duration: float = 0.0
        self._phase: _Phase = _Idle()
        self._last_reported: float = 0.0
        self.on_time_update = on_time_update
        self.on_playback_ended = on_playback_ended

    def __enter__(self) -> PlaybackClock:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    # -- read-only view -------------------------------------------------------

    @property
    def state(self) -> ClockState:
        return _STATE_OF[type(self._phase)]

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def is_initialized(self) -> bool:
        return self._context is not None

    @property
    def is_playing(self) -> bool:
        return isinstance(self._phase, _Playing)

    @property
    def position(self) -> float:
        """Current logical position in seconds."""
        phase = self._phase
        if isinstance(phase, _Playing):
            return self._playing_position(phase)
        return phase.position

    def _playing_position(self, phase: _Playing) -> float:
        elapsed = self._context.now() - phase.started_at
        pos = min(phase.offset + elapsed, self._duration)
        return max(pos, self._last_reported)

    # -- lifecycle ------------------------------------------------------------

    def initialize(self, raw_bytes: bytes, duration: float | None = None) -> None:
        """Open a fresh hardware context for *raw_bytes*.

        Any previous context is torn down first.  On failure the clock is
        left idle with nothing open and :class:`PlaybackInitError` is raised.
        """
        position = 0.0 if isinstance(self._phase, _Idle) else self.position
        self.cleanup()
        try:
            context = self._backend.open(raw_bytes)
        except Exception as exc:
            log.error("Failed to initialize audio: %s", exc)
            raise PlaybackInitError("Failed to initialize audio playback") from exc

        self._context = context
        self._duration = float(duration if duration is not None else context.duration)
        self._phase = _Ready(min(position, self._duration))
        log.debug("Audio context ready (%.3fs)", self._duration)

    def cleanup(self) -> None:
        """Stop any voice and release the context.  Safe in every state."""
        phase = self._phase
        if isinstance(phase, _Playing):
            try:
                phase.voice.stop()
            except Exception:
                log.warning("Voice stop failed during cleanup", exc_info=True)
        context, self._context = self._context, None
        if context is not None:
            try:
                context.close()
            except Exception:
                log.error("Closing the audio context failed", exc_info=True)
        self._phase = _Idle()
        self._duration = 0.0
        self._last_reported = 0.0

    # -- transport ------------------------------------------------------------

    def play(self, position: float) -> bool:
        """Start a voice at *position*.

        A sounding voice is stopped first.  Returns False without starting
        anything when no context is open or nothing remains to be played.
        """
        if self._context is None:
            log.warning("play() called before initialize()")
            return False

        if isinstance(self._phase, _Playing):
            self.pause()

        start = max(0.0, position)
        if self._duration - start <= 0:
            log.debug("play(%.3f) at or past the end (%.3f)", start, self._duration)
            return False

        try:
            started_at = self._context.now()
            voice = self._context.start_voice(start)
        except Exception as exc:
            self._phase = _Paused(start)
            log.error("Failed to start voice at %.3f: %s", start, exc)
            raise HardwareVoiceError(f"Could not start playback: {exc}") from exc

        self._phase = _Playing(offset=start, started_at=started_at, voice=voice)
        self._last_reported = start
        return True

    def pause(self) -> None:
        """Stop the voice and keep the position.  No-op unless playing."""
        phase = self._phase
        if not isinstance(phase, _Playing):
            return
        self._halt(phase, _Paused)

    def seek(self, position: float) -> None:
        """Move the logical position without starting or stopping a voice."""
        position = max(0.0, position)
        phase = self._phase
        if isinstance(phase, _Playing):
            self._phase = replace(phase, offset=position,
                                  started_at=self._context.now())
            self._last_reported = position
        else:
            self._phase = replace(phase, position=position)

    def suspend(self) -> None:
        """Hand the position over to an external driver (e.g. a drag)."""
        phase = self._phase
        if isinstance(phase, _Idle):
            return
        if isinstance(phase, _Playing):
            self._halt(phase, _Suspended)
        else:
            self._phase = _Suspended(phase.position)

    def release(self) -> None:
        """Leave the suspended phase; playback does not resume by itself."""
        phase = self._phase
        if isinstance(phase, _Suspended):
            self._phase = _Paused(phase.position)

    def _halt(self, phase: _Playing, target: type) -> None:
        position = self._playing_position(phase)
        self._phase = target(position)
        try:
            phase.voice.stop()
        except Exception as exc:
            log.error("Failed to stop voice: %s", exc)
            raise HardwareVoiceError(f"Could not stop playback: {exc}") from exc

    # -- polling --------------------------------------------------------------

    def tick(self) -> bool:
        """Report the playing position once.

        Returns True while playback continues, so the caller knows whether
        to schedule another tick.  When the track runs out the voice is
        stopped, the clock pauses at the end and ``on_playback_ended`` fires.
        """
        phase = self._phase
        if not isinstance(phase, _Playing):
            return False

        position = self._playing_position(phase)
        ended = position >= self._duration or phase.voice.finished
        if ended:
            position = self._duration
        self._last_reported = position
        if self.on_time_update is not None:
            self.on_time_update(position)
        if not ended:
            return True

        self._phase = _Paused(self._duration)
        try:
            phase.voice.stop()
        except Exception:
            log.warning("Voice stop failed at end of track", exc_info=True)
        if self.on_playback_ended is not None:
            self.on_playback_ended()
        return False
