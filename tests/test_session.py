import numpy as np
import pytest

from tagwavelib.models import DecodedAudio, Tag
from tagwavelib.session import (
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


def _audio(duration=4.0):
    rate = 10
    return DecodedAudio(samples=np.zeros(int(duration * rate)), sample_rate=rate,
                        channels=1, bits_per_sample=16, duration=duration,
                        raw_bytes=b"")


def _run(state, *actions):
    for action in actions:
        state = reduce(state, action)
    return state


def test_initial_state():
    state = SessionState()
    assert state.audio is None
    assert state.duration == 0.0
    assert state.screen_width == 1920
    assert state.tags == ()
    assert state.pending_tag_start is None


def test_unknown_action_returns_same_state():
    state = SessionState()
    assert reduce(state, object()) is state


def test_reduce_does_not_mutate():
    state = SessionState()
    new = reduce(state, Seek(2.0))
    assert state.current_time == 0.0
    assert new.current_time == 2.0


def test_load_cycle():
    state = _run(SessionState(), FileLoadStart())
    assert state.loading
    state = _run(state, FileLoadError())
    assert not state.loading


def test_load_success_resets_session():
    busy = SessionState(current_time=3.0, start_position=2.0, is_playing=True,
                        tags=(Tag(0.0, 1.0),), pending_tag_start=1.5, loading=True)
    audio = _audio()
    state = reduce(busy, FileLoadSuccess(audio, "take1.wav"))
    assert state.audio is audio
    assert state.file_name == "take1.wav"
    assert state.duration == 4.0
    assert not state.loading
    assert not state.is_playing
    assert state.current_time == 0.0
    assert state.start_position == 0.0
    assert state.tags == ()
    assert state.pending_tag_start is None


def test_transport_actions():
    state = _run(SessionState(), Play(), SetStartPosition(1.0), Seek(1.0), TimeUpdate(1.5))
    assert state.is_playing
    assert state.start_position == 1.0
    assert state.current_time == 1.5
    state = reduce(state, Pause())
    assert not state.is_playing
    assert state.current_time == 1.5


def test_drag_actions():
    state = _run(SessionState(), DragStart(), DragMove(2.5))
    assert state.is_dragging
    assert state.current_time == 2.5
    state = reduce(state, DragEnd())
    assert not state.is_dragging
    assert state.current_time == 2.5


def test_toggle_tag_opens_then_closes():
    state = reduce(SessionState(), ToggleTag(5.0))
    assert state.pending_tag_start == 5.0
    assert state.tags == ()
    state = reduce(state, ToggleTag(10.0))
    assert state.pending_tag_start is None
    assert state.tags == (Tag(5.0, 10.0),)


@pytest.mark.parametrize("end", [5.0, 3.0])
def test_toggle_tag_without_forward_progress_drops_pending(end):
    state = _run(SessionState(), ToggleTag(5.0), ToggleTag(end))
    assert state.pending_tag_start is None
    assert state.tags == ()


def test_tags_keep_insertion_order():
    state = _run(SessionState(), ToggleTag(6.0), ToggleTag(8.0), ToggleTag(1.0), ToggleTag(2.0))
    assert state.tags == (Tag(6.0, 8.0), Tag(1.0, 2.0))


def test_remove_tag():
    state = _run(SessionState(), ToggleTag(1.0), ToggleTag(2.0), ToggleTag(3.0), ToggleTag(4.0))
    state = reduce(state, RemoveTag(0))
    assert state.tags == (Tag(3.0, 4.0),)


@pytest.mark.parametrize("index", [-1, 1, 5])
def test_remove_tag_out_of_range_is_noop(index):
    state = _run(SessionState(), ToggleTag(1.0), ToggleTag(2.0))
    assert reduce(state, RemoveTag(index)) is state


def test_clear_pending_tag():
    state = _run(SessionState(), ToggleTag(1.0), ClearPendingTag())
    assert state.pending_tag_start is None
    assert state.tags == ()


def test_resize():
    assert reduce(SessionState(), Resize(2560)).screen_width == 2560


def test_tag_requires_positive_length():
    with pytest.raises(ValueError):
        Tag(2.0, 2.0)
    tag = Tag(1.0, 3.5)
    assert tag.length == 2.5
    assert list(tag) == [1.0, 3.5]
