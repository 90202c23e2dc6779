"""Qt event-loop bindings for tagwavelib."""

from .playback import PlaybackPoller

__all__ = ["PlaybackPoller"]
