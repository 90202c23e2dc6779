"""Session state and its transition function.

:func:`reduce` is pure: it never mutates the incoming state and returns the
same object for actions it does not know.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from .models import DecodedAudio, Tag

DEFAULT_SCREEN_WIDTH = 1920


@dataclass(frozen=True)
class SessionState:
    audio: DecodedAudio | None = None
    file_name: str = ""
    loading: bool = False
    screen_width: int = DEFAULT_SCREEN_WIDTH
    is_playing: bool = False
    current_time: float = 0.0
    start_position: float = 0.0
    is_dragging: bool = False
    tags: tuple[Tag, ...] = field(default_factory=tuple)
    pending_tag_start: float | None = None

    @property
    def duration(self) -> float:
        return self.audio.duration if self.audio is not None else 0.0


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FileLoadStart:
    pass


@dataclass(frozen=True)
class FileLoadSuccess:
    audio: DecodedAudio
    file_name: str


@dataclass(frozen=True)
class FileLoadError:
    pass


@dataclass(frozen=True)
class Play:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class Seek:
    time: float


@dataclass(frozen=True)
class SetStartPosition:
    position: float


@dataclass(frozen=True)
class DragStart:
    pass


@dataclass(frozen=True)
class DragMove:
    time: float


@dataclass(frozen=True)
class DragEnd:
    pass


@dataclass(frozen=True)
class TimeUpdate:
    time: float


@dataclass(frozen=True)
class ToggleTag:
    current_time: float


@dataclass(frozen=True)
class RemoveTag:
    index: int


@dataclass(frozen=True)
class ClearPendingTag:
    pass


@dataclass(frozen=True)
class Resize:
    screen_width: int


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def toggle_tag(state: SessionState, current_time: float) -> SessionState:
    """Open a pending tag, or close it into a committed one.

    Closing at or before the pending start drops the pending marker
    without adding a tag.
    """
    start = state.pending_tag_start
    if start is None:
        return replace(state, pending_tag_start=current_time)
    if current_time > start:
        return replace(state,
                       tags=state.tags + (Tag(start, current_time),),
                       pending_tag_start=None)
    return replace(state, pending_tag_start=None)


def remove_tag(state: SessionState, index: int) -> SessionState:
    if not 0 <= index < len(state.tags):
        return state
    return replace(state, tags=state.tags[:index] + state.tags[index + 1:])


def reduce(state: SessionState, action) -> SessionState:
    """Apply *action* to *state* and return the resulting state."""
    if isinstance(action, FileLoadStart):
        return replace(state, loading=True)
    if isinstance(action, FileLoadSuccess):
        return replace(
            state,
            audio=action.audio,
            file_name=action.file_name,
            loading=False,
            current_time=0.0,
            start_position=0.0,
            is_playing=False,
            tags=(),
            pending_tag_start=None,
        )
    if isinstance(action, FileLoadError):
        return replace(state, loading=False)
    if isinstance(action, Play):
        return replace(state, is_playing=True)
    if isinstance(action, Pause):
        return replace(state, is_playing=False)
    if isinstance(action, Seek):
        return replace(state, current_time=action.time)
    if isinstance(action, SetStartPosition):
        return replace(state, start_position=action.position)
    if isinstance(action, DragStart):
        return replace(state, is_dragging=True)
    if isinstance(action, DragMove):
        return replace(state, current_time=action.time, is_dragging=True)
    if isinstance(action, DragEnd):
        return replace(state, is_dragging=False)
    if isinstance(action, TimeUpdate):
        return replace(state, current_time=action.time)
    if isinstance(action, ToggleTag):
        return toggle_tag(state, action.current_time)
    if isinstance(action, RemoveTag):
        return remove_tag(state, action.index)
    if isinstance(action, ClearPendingTag):
        return replace(state, pending_tag_start=None)
    if isinstance(action, Resize):
        return replace(state, screen_width=action.screen_width)
    return state
