"""Playhead poll loop driven by a QTimer."""

from __future__ import annotations

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from tagwavelib.controller import SessionController
from tagwavelib.errors import PlaybackError
from tagwavelib.events import PLAYBACK_ENDED, TIME_UPDATE

from .log import dbg


class PlaybackPoller(QObject):
    """Ticks a :class:`SessionController` once per display refresh.

    The timer only runs while the session is playing and not being
    dragged; it stops itself on the first tick that reports the end of
    playback.  :meth:`start` and :meth:`stop` may be called redundantly.

    Signals:
        time_updated(float): Position in seconds, once per tick.
        playback_finished(): The track played to its end.
        error(str): Starting playback failed.
    """

    time_updated = Signal(float)
    playback_finished = Signal()
    error = Signal(str)

    def __init__(self, controller: SessionController, interval_ms: int | None = None,
                 parent=None):
        super().__init__(parent)
        self._controller = controller
        if interval_ms is None:
            interval_ms = controller.config["poll_interval_ms"]

        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._on_timer)

        bus = controller.bus
        bus.subscribe(TIME_UPDATE, self._on_time_update)
        bus.subscribe(PLAYBACK_ENDED, self._on_playback_ended)

    @property
    def is_running(self) -> bool:
        return self._timer.isActive()

    def play(self) -> bool:
        """Start playback from the start anchor and begin polling."""
        try:
            started = self._controller.play()
        except PlaybackError as e:
            self.stop()
            self.error.emit(str(e))
            return False
        if started:
            self.start()
        return started

    def pause(self) -> None:
        self.stop()
        self._controller.pause()

    def toggle(self) -> None:
        if self._controller.state.is_playing:
            self.pause()
        else:
            self.play()

    def start(self) -> None:
        if not self._timer.isActive():
            dbg("poll loop started")
            self._timer.start()

    def stop(self) -> None:
        if self._timer.isActive():
            dbg("poll loop stopped")
            self._timer.stop()

    def detach(self) -> None:
        """Stop polling and unsubscribe from the controller's bus."""
        self.stop()
        bus = self._controller.bus
        bus.unsubscribe(TIME_UPDATE, self._on_time_update)
        bus.unsubscribe(PLAYBACK_ENDED, self._on_playback_ended)

    @Slot()
    def _on_timer(self):
        if not self._controller.tick():
            self.stop()

    def _on_time_update(self, time: float) -> None:
        self.time_updated.emit(time)

    def _on_playback_ended(self) -> None:
        self.stop()
        self.playback_finished.emit()
