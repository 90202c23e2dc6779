"""Session host: owns the session state, the playback clock and the bus.

All user-facing calls land here.  Each one is turned into state
transitions (see :mod:`tagwavelib.session`) plus the matching clock
calls.  Listeners follow along through the :class:`EventBus`.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from . import timeline
from .backend import AudioBackend, SoundDeviceBackend
from .clock import PlaybackClock
from .config import default_config, merge_configs, validate_config
from .decoder import decode
from .envelope import build_envelope
from .errors import DecodeError, InvalidContainer, PlaybackError
from .events import (
    ENVELOPE_INVALIDATED,
    PLAYBACK_ENDED,
    STATE_CHANGED,
    TIME_UPDATE,
    EventBus,
)
from .models import DecodedAudio, Envelope
from .reports import tags_to_json
from .session import (
    ClearPendingTag,
    DragEnd,
    DragMove,
    DragStart,
    FileLoadError,
    FileLoadStart,
    FileLoadSuccess,
    Pause,
    Play,
    RemoveTag,
    Resize,
    Seek,
    SessionState,
    SetStartPosition,
    TimeUpdate,
    ToggleTag,
    reduce,
)

log = logging.getLogger(__name__)

WAV_EXTENSIONS = (".wav",)


class SessionController:
    """Drives one listening/tagging session.

    Parameters
    ----------
    clock : PlaybackClock, optional
        Clock to drive.  Built from *backend* (or sounddevice) when omitted.
    backend : AudioBackend, optional
        Hardware backend for the default clock.
    config : dict, optional
        Overrides merged onto :func:`default_config`.
    bus : EventBus, optional
        Bus to publish on; a private one is created when omitted.
    """

    def __init__(self, clock: PlaybackClock | None = None, *,
                 backend: AudioBackend | None = None,
                 config: dict[str, Any] | None = None,
                 bus: EventBus | None = None):
        self.config = merge_configs(default_config(), config or {})
        validate_config(self.config)
        self.bus = bus if bus is not None else EventBus()

        if clock is None:
            if backend is None:
                backend = SoundDeviceBackend(
                    blocksize=self.config["output_blocksize"],
                    latency=self.config["output_latency"],
                )
            clock = PlaybackClock(backend)
        clock.on_time_update = self._on_time_update
        clock.on_playback_ended = self._on_playback_ended
        self._clock = clock

        self._state = SessionState(screen_width=self.config["default_screen_width"])
        self._clock_audio: DecodedAudio | None = None
        self._envelope_key: tuple[int, int] | None = None
        self._envelope: Envelope | None = None

    def __enter__(self) -> SessionController:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def clock(self) -> PlaybackClock:
        return self._clock

    def dispatch(self, action) -> SessionState:
        """Apply one action and publish the new state if it changed."""
        new_state = reduce(self._state, action)
        if new_state is not self._state:
            self._state = new_state
            self.bus.emit(STATE_CHANGED, state=new_state)
        return new_state

    # -- loading --------------------------------------------------------------

    def load(self, data: bytes, name: str) -> DecodedAudio:
        """Decode *data* and install it as the session's audio.

        On failure the previous audio stays in place, the loading flag is
        cleared and the :class:`DecodeError` is re-raised.
        """
        self.dispatch(FileLoadStart())
        try:
            audio = decode(data)
        except DecodeError as exc:
            log.error("Error loading WAV file %s: %s", name, exc)
            self.dispatch(FileLoadError())
            raise

        # the old buffer must not keep sounding
        self._clock.cleanup()
        self._clock_audio = None
        self.dispatch(FileLoadSuccess(audio, name))
        self._invalidate_envelope()
        log.info("Loaded %s: %.3fs, %d Hz, %d ch, %d-bit", name,
                 audio.duration, audio.sample_rate, audio.channels,
                 audio.bits_per_sample)
        return audio

    def load_file(self, filepath: str) -> DecodedAudio:
        """Read and :meth:`load` a ``.wav`` file from disk."""
        name = os.path.basename(filepath)
        if not name.lower().endswith(WAV_EXTENSIONS):
            raise InvalidContainer(f"Please select a .wav file (got {name})")
        with open(filepath, "rb") as f:
            data = f.read()
        return self.load(data, name)

    # -- transport ------------------------------------------------------------

    def play(self) -> bool:
        """Play from the start anchor.  Returns True if a voice started."""
        state = self._state
        if state.audio is None or state.is_dragging:
            return False
        self.dispatch(Play())
        self.dispatch(Seek(state.start_position))
        return self._start_if_still_wanted()

    def pause(self) -> None:
        """Stop playback and return the playhead to the start anchor."""
        state = self._state
        if state.audio is None:
            return
        try:
            self._clock.pause()
        finally:
            self.dispatch(Pause())
            self.dispatch(Seek(state.start_position))
            self._clock.seek(state.start_position)

    def toggle_play(self) -> None:
        if self._state.is_playing:
            self.pause()
        else:
            self.play()

    def seek(self, time: float, pause_audio: bool = False) -> None:
        """Move the playhead; keeps playing from *time* unless *pause_audio*."""
        state = self._state
        if state.audio is None:
            return
        time = self._clamp(time)
        was_playing = state.is_playing and not pause_audio

        if state.is_playing:
            try:
                self._clock.pause()
            except PlaybackError:
                self.dispatch(Pause())
                raise
        if pause_audio:
            self.dispatch(Pause())

        self.dispatch(Seek(time))
        self._clock.seek(time)

        if was_playing:
            try:
                started = self._clock.play(time)
            except PlaybackError:
                self.dispatch(Pause())
                raise
            if not started:
                self.dispatch(Pause())

    def click(self, time: float) -> None:
        """Set the start anchor at *time* and seek there."""
        if self._state.audio is None:
            return
        time = self._clamp(time)
        self.dispatch(SetStartPosition(time))
        self.seek(time)

    def drag_start(self) -> None:
        """Begin moving the playhead by hand; a sounding voice stops."""
        state = self._state
        if state.audio is None:
            return
        self.dispatch(DragStart())
        try:
            self._clock.suspend()
        finally:
            if state.is_playing:
                self.dispatch(Pause())

    def drag_move(self, time: float) -> None:
        state = self._state
        if state.audio is None or not state.is_dragging:
            return
        time = self._clamp(time)
        self.dispatch(DragMove(time))
        self._clock.seek(time)

    def drag_end(self, time: float | None = None) -> None:
        """Finish the drag at *time* (or where it is).  Does not resume."""
        state = self._state
        if not state.is_dragging:
            return
        if state.audio is not None:
            if time is None:
                time = state.current_time
            time = self._clamp(time)
            self._clock.seek(time)
            self.dispatch(Seek(time))
        self._clock.release()
        self.dispatch(DragEnd())

    # -- pointer helpers (pixel coordinates on the waveform) -------------------

    def time_at(self, x: float) -> float:
        return timeline.x_to_time(x, self._state.duration, self.display_width())

    def pointer_down(self, x: float) -> None:
        """Grab the playhead when near it, otherwise set the start anchor."""
        state = self._state
        if state.audio is None:
            return
        if timeline.is_near_playhead(x, state.current_time, state.duration,
                                     self.display_width(),
                                     self.config["playhead_tolerance_px"]):
            self.drag_start()
        else:
            self.click(self.time_at(x))

    def pointer_move(self, x: float) -> None:
        if self._state.is_dragging:
            self.drag_move(self.time_at(x))

    def pointer_up(self, x: float) -> None:
        if self._state.is_dragging:
            self.drag_end(self.time_at(x))

    # -- tags -----------------------------------------------------------------

    def toggle_tag(self) -> None:
        """Open or close a tag at the current playhead time."""
        state = self._state
        if state.audio is None:
            return
        self.dispatch(ToggleTag(state.current_time))

    def remove_tag(self, index: int) -> None:
        self.dispatch(RemoveTag(index))

    def clear_pending_tag(self) -> None:
        self.dispatch(ClearPendingTag())

    def export_tags(self) -> str:
        return tags_to_json(self._state.tags, self.config["tag_precision"])

    # -- display --------------------------------------------------------------

    def resize(self, screen_width: int) -> None:
        old_width = self.display_width()
        self.dispatch(Resize(screen_width))
        if self.display_width() != old_width:
            self._invalidate_envelope()

    def display_width(self) -> int:
        state = self._state
        available = timeline.available_width(state.screen_width,
                                             self.config["layout_padding_px"])
        return timeline.display_width(state.duration, available,
                                      self.config["full_width_seconds"])

    def envelope(self) -> Envelope | None:
        """Envelope of the loaded audio at the current display width."""
        audio = self._state.audio
        if audio is None:
            return None
        width = self.display_width()
        key = (id(audio), width)
        if self._envelope_key != key or self._envelope is None:
            self._envelope = build_envelope(audio.samples, width)
            self._envelope_key = key
        return self._envelope

    def _invalidate_envelope(self) -> None:
        self._envelope = None
        self._envelope_key = None
        self.bus.emit(ENVELOPE_INVALIDATED, width=self.display_width())

    # -- polling --------------------------------------------------------------

    def tick(self) -> bool:
        """One poll step; False means the poll loop should stop."""
        state = self._state
        if not state.is_playing or state.is_dragging:
            return False
        return self._clock.tick()

    def close(self) -> None:
        """Release the playback hardware."""
        self._clock.cleanup()
        self._clock_audio = None

    # -- internals ------------------------------------------------------------

    def _start_if_still_wanted(self) -> bool:
        audio = self._state.audio
        try:
            if self._clock_audio is not audio or not self._clock.is_initialized:
                self._clock_audio = None
                self._clock.initialize(audio.raw_bytes, audio.duration)
                self._clock_audio = audio
        except PlaybackError:
            self.dispatch(Pause())
            raise

        # intent may have changed while the context was being opened
        state = self._state
        if not state.is_playing or state.is_dragging or state.audio is not audio:
            if state.is_playing:
                self.dispatch(Pause())
            return False
        try:
            started = self._clock.play(state.start_position)
        except PlaybackError:
            self.dispatch(Pause())
            raise
        if not started:
            self.dispatch(Pause())
        return started

    def _clamp(self, time: float) -> float:
        return min(max(0.0, time), self._state.duration)

    def _on_time_update(self, time: float) -> None:
        self.dispatch(TimeUpdate(time))
        if self.bus.has_subscribers(TIME_UPDATE):
            self.bus.emit(TIME_UPDATE, time=time)

    def _on_playback_ended(self) -> None:
        state = self._state
        self.dispatch(Pause())
        if state.audio is not None and state.is_playing:
            self.dispatch(TimeUpdate(state.audio.duration))
        self.bus.emit(PLAYBACK_ENDED)
