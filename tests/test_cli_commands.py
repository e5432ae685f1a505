from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Tuple

import numpy as np
import pytest
import soundfile as sf
from mutagen.flac import FLAC
from pytest import CaptureFixture, LogCaptureFixture

from smartgain.cli import main


def _write_noise(path: Path, seed: int, level: float, sample_rate: int = 44_100, fmt: str = "WAV") -> None:
    rng = np.random.default_rng(seed)
    audio = np.clip(rng.standard_normal((sample_rate, 2)) * level, -1.0, 1.0)
    if fmt == "WAV":
        sf.write(path, audio, sample_rate, format="WAV", subtype="DOUBLE")
    else:
        sf.write(path, audio, sample_rate, format=fmt)


def _prepare_album(tmp_path: Path) -> Tuple[Path, Path]:
    first = tmp_path / "01.flac"
    second = tmp_path / "02.flac"
    _write_noise(first, 1, 0.05, fmt="FLAC")
    _write_noise(second, 2, 0.2, fmt="FLAC")
    return first, second


def test_scan_prints_track_gain(capsys: CaptureFixture[str], tmp_path: Path) -> None:
    audio_path = tmp_path / "track.wav"
    _write_noise(audio_path, 3, 0.1)

    main(["scan", str(audio_path)])

    captured = capsys.readouterr().out
    assert "Track gain" in captured
    assert " dB" in captured
    assert "Album gain" not in captured


def test_scan_album_writes_json(capsys: CaptureFixture[str], tmp_path: Path) -> None:
    first, second = _prepare_album(tmp_path)
    json_path = tmp_path / "report.json"

    main(["scan", "--album", "--chunk-size", "4096", "--json", str(json_path), str(first), str(second)])

    captured = capsys.readouterr().out
    assert "Album gain" in captured
    assert len([line for line in captured.splitlines() if "Track gain" in line]) == 2
    report = json.loads(json_path.read_text(encoding="utf-8"))
    assert len(report["tracks"]) == 2
    assert report["album"]["gain_db"] is not None
    assert report["tracks"][0]["path"] == str(first)


def test_scan_write_tags(tmp_path: Path) -> None:
    first, second = _prepare_album(tmp_path)

    main(["scan", "--album", "--write-tags", str(first), str(second)])

    for path in (first, second):
        flac = FLAC(path)
        assert flac["REPLAYGAIN_TRACK_GAIN"][0].endswith(" dB")
        assert flac["REPLAYGAIN_ALBUM_GAIN"][0] == FLAC(first)["REPLAYGAIN_ALBUM_GAIN"][0]


def test_rates_command(capsys: CaptureFixture[str]) -> None:
    main(["rates"])

    lines = capsys.readouterr().out.splitlines()
    assert "44100 Hz: window 2205 samples" in lines
    assert "8000 Hz: window 400 samples" in lines
    assert len([line for line in lines if line.endswith("samples")]) == 12


def test_scan_missing_file_reports_error(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["scan", str(tmp_path / "missing.wav")])
    assert excinfo.value.code == 2


def test_chunk_size_must_be_positive(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        main(["scan", "--chunk-size", "0", str(tmp_path / "track.wav")])


def test_version_flag(capsys: CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])
    assert excinfo.value.code == 0
    assert "smartgain" in capsys.readouterr().out


def test_quiet_flag_hides_info_logs(
    capsys: CaptureFixture[str], caplog: LogCaptureFixture, tmp_path: Path
) -> None:
    audio_path = tmp_path / "track.wav"
    _write_noise(audio_path, 4, 0.1)

    try:
        main(["-q", "scan", str(audio_path)])
    finally:
        logging.getLogger().setLevel(logging.INFO)

    captured = capsys.readouterr().out
    assert "Track gain" in captured
    assert not [record for record in caplog.records if record.levelno == logging.INFO]
