import json

import pytest

pytest.importorskip("rich")

import tagwave  # noqa: E402


@pytest.fixture
def wav_file(tmp_path, sine_wav):
    path = tmp_path / "tone.wav"
    path.write_bytes(sine_wav)
    return path


def test_info(wav_file, capsys):
    assert tagwave.main(["info", str(wav_file)]) == 0
    out = capsys.readouterr().out
    assert "44100 Hz" in out
    assert "16-bit" in out


def test_envelope(wav_file, capsys):
    assert tagwave.main(["envelope", str(wav_file), "--width", "20", "--rows", "5"]) == 0
    assert "█" in capsys.readouterr().out


def test_tags_export(wav_file, tmp_path, capsys):
    out = tmp_path / "tags.json"
    code = tagwave.main(["tags", str(wav_file), "--mark", "0.5", "--mark", "1.25",
                         "--out", str(out)])
    assert code == 0
    assert json.loads(out.read_text(encoding="utf-8")) == [[0.5, 1.25]]


def test_missing_file_is_reported(tmp_path, capsys):
    assert tagwave.main(["info", str(tmp_path / "missing.wav")]) == 1
    assert "Error" in capsys.readouterr().out


def test_bad_preset_is_reported(wav_file, tmp_path, capsys):
    preset = tmp_path / "p.json"
    preset.write_text('{"poll_interval_ms": 0}', encoding="utf-8")
    assert tagwave.main(["--preset", str(preset), "info", str(wav_file)]) == 1


def test_render_envelope_rows():
    from tagwavelib.envelope import build_envelope

    env = build_envelope([1.0, -1.0, 0.0], 4)
    rows = tagwave.render_envelope_rows(env, 3)
    assert len(rows) == 3
    assert all(len(r) == 4 for r in rows)
    assert rows[1][3] == " "
    assert rows[1][2] == "█"
