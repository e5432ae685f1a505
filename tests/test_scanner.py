from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
import soundfile as sf

from smartgain.analysis import GainAnalysis
from smartgain.scanner import SAMPLE_SCALE, scan_album, scan_file
from smartgain.types import AlbumGain, TrackGain


def _write_wav(path: Path, data: np.ndarray, sample_rate: int) -> None:
    sf.write(path, data, sample_rate, format="WAV", subtype="DOUBLE")


def _stereo_noise(seed: int, frames: int, level: float) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return np.clip(rng.standard_normal((frames, 2)) * level, -1.0, 1.0)


def test_scan_file_matches_direct_analysis(tmp_path: Path) -> None:
    sample_rate = 44_100
    audio = _stereo_noise(1, sample_rate * 2, 0.1)
    audio_path = tmp_path / "track.wav"
    _write_wav(audio_path, audio, sample_rate)

    track = scan_file(audio_path, chunk_size=1_000)

    analysis = GainAnalysis()
    analysis.initialize(sample_rate)
    scaled = audio * SAMPLE_SCALE
    analysis.analyze(scaled[:, 0], scaled[:, 1])
    expected = analysis.title_gain()

    assert isinstance(track, TrackGain)
    assert track.sample_rate == sample_rate
    assert track.channels == 2
    assert track.frames == audio.shape[0]
    assert track.duration_seconds == pytest.approx(2.0)
    assert track.gain_db == expected
    assert track.peak == pytest.approx(float(np.max(np.abs(audio))))


def test_scan_file_chunk_size_does_not_matter(tmp_path: Path) -> None:
    audio_path = tmp_path / "track.wav"
    _write_wav(audio_path, _stereo_noise(2, 30_000, 0.2), 48_000)

    small = scan_file(audio_path, chunk_size=333)
    large = scan_file(audio_path, chunk_size=65_536)

    assert small.gain_db == large.gain_db


def test_scan_mono_file(tmp_path: Path) -> None:
    sample_rate = 22_050
    rng = np.random.default_rng(3)
    mono = rng.standard_normal(sample_rate) * 0.05
    audio_path = tmp_path / "mono.wav"
    _write_wav(audio_path, mono, sample_rate)

    track = scan_file(audio_path)

    assert track.channels == 1
    assert track.gain_db is not None


def test_scan_short_file_has_no_gain(tmp_path: Path) -> None:
    audio_path = tmp_path / "short.wav"
    _write_wav(audio_path, _stereo_noise(4, 500, 0.1), 44_100)

    track = scan_file(audio_path)

    assert track.gain_db is None
    assert track.frames == 500


def test_scan_rejects_multichannel(tmp_path: Path) -> None:
    audio_path = tmp_path / "surround.wav"
    _write_wav(audio_path, np.zeros((4_410, 6)), 44_100)

    with pytest.raises(ValueError):
        scan_file(audio_path)


def test_scan_rejects_bad_chunk_size(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        scan_file(tmp_path / "missing.wav", chunk_size=0)


def test_scan_album_combines_tracks(tmp_path: Path) -> None:
    quiet_path = tmp_path / "01_quiet.wav"
    loud_path = tmp_path / "02_loud.wav"
    _write_wav(quiet_path, _stereo_noise(5, 44_100, 0.01), 44_100)
    _write_wav(loud_path, _stereo_noise(6, 48_000, 0.3), 48_000)

    album = scan_album([quiet_path, loud_path])

    assert isinstance(album, AlbumGain)
    assert [Path(track.path).name for track in album.tracks] == ["01_quiet.wav", "02_loud.wav"]
    quiet, loud = album.tracks
    assert quiet.gain_db is not None and loud.gain_db is not None
    assert quiet.gain_db > loud.gain_db
    assert album.gain_db is not None
    assert loud.gain_db <= album.gain_db <= quiet.gain_db
    assert album.peak == max(quiet.peak, loud.peak)
    assert quiet.gain_db == scan_file(quiet_path).gain_db


def test_scan_album_requires_files() -> None:
    with pytest.raises(ValueError):
        scan_album([])
