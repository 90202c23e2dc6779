import pytest

pytest.importorskip("PySide6")

from PySide6.QtCore import QCoreApplication  # noqa: E402

from tagwavelib.controller import SessionController  # noqa: E402
from tagwavelib.events import PLAYBACK_ENDED, TIME_UPDATE  # noqa: E402
from tagwaveqt import PlaybackPoller  # noqa: E402


@pytest.fixture(scope="module")
def qapp():
    return QCoreApplication.instance() or QCoreApplication([])


@pytest.fixture
def controller(backend, sine_wav):
    with SessionController(backend=backend) as c:
        c.load(sine_wav, "tone.wav")
        yield c


@pytest.fixture
def poller(qapp, controller):
    p = PlaybackPoller(controller)
    yield p
    p.detach()


def test_interval_comes_from_config(poller, controller):
    assert poller._timer.interval() == controller.config["poll_interval_ms"]


def test_play_starts_and_pause_stops_polling(poller, controller):
    assert poller.play() is True
    assert poller.is_running
    poller.pause()
    assert not poller.is_running
    assert not controller.state.is_playing


def test_toggle(poller, controller):
    poller.toggle()
    assert controller.state.is_playing
    poller.toggle()
    assert not controller.state.is_playing


def test_start_and_stop_are_idempotent(poller):
    poller.start()
    poller.start()
    assert poller.is_running
    poller.stop()
    poller.stop()
    assert not poller.is_running


def test_ticks_forward_time_and_end(poller, controller, backend):
    times, finished = [], []
    poller.time_updated.connect(times.append)
    poller.playback_finished.connect(lambda: finished.append(True))

    poller.play()
    backend.context.advance(0.25)
    poller._on_timer()
    assert times == [pytest.approx(0.25)]
    assert poller.is_running

    backend.context.advance(5.0)
    poller._on_timer()
    assert finished == [True]
    assert not poller.is_running
    assert times[-1] == controller.state.duration


def test_timer_stops_when_not_playing(poller, controller):
    poller.start()
    poller._on_timer()
    assert not poller.is_running


def test_play_failure_emits_error(poller, backend):
    errors = []
    poller.error.connect(errors.append)
    backend.fail_open = True
    assert poller.play() is False
    assert len(errors) == 1
    assert not poller.is_running


def test_detach_unsubscribes(qapp, controller):
    p = PlaybackPoller(controller)
    assert controller.bus.has_subscribers(TIME_UPDATE)
    p.detach()
    assert not controller.bus.has_subscribers(TIME_UPDATE)
    assert not controller.bus.has_subscribers(PLAYBACK_ENDED)


def test_dbg_writes_when_enabled(monkeypatch, capsys):
    from tagwaveqt import log

    monkeypatch.setattr(log, "_ENABLED", True)
    log.dbg("tick %d", 3)
    err = capsys.readouterr().err
    assert "test_playback_qt] tick 3" in err

    monkeypatch.setattr(log, "_ENABLED", False)
    log.dbg("hidden")
    assert capsys.readouterr().err == ""
