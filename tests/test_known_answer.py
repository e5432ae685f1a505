from __future__ import annotations

import math

import numpy as np
import pytest
from scipy.signal import freqz

from smartgain.analysis import GainAnalysis
from smartgain.dsp.coefficients import get_rate_filters
from smartgain.dsp.histogram import PINK_REF


def _sine(amplitude: float, frequency: float, sample_rate: int, seconds: float) -> np.ndarray:
    t = np.arange(int(sample_rate * seconds)) / sample_rate
    return amplitude * np.sin(2.0 * np.pi * frequency * t)


def _track_gain(samples: np.ndarray, sample_rate: int) -> float:
    analysis = GainAnalysis()
    analysis.initialize(sample_rate)
    analysis.analyze(samples, samples, num_channels=2)
    gain = analysis.title_gain()
    assert gain is not None
    return gain


def _expected_sine_gain(amplitude: float, frequency: float, sample_rate: int) -> float:
    filters = get_rate_filters(sample_rate)
    _, yule = freqz(filters.yule.numerator, filters.yule.denominator, worN=[frequency], fs=sample_rate)
    _, butter = freqz(filters.butter.numerator, filters.butter.denominator, worN=[frequency], fs=sample_rate)
    response = abs(yule[0] * butter[0])
    mean_square = amplitude**2 / 2.0 * response**2
    return PINK_REF - 10.0 * math.log10(mean_square)


def test_full_scale_sine_1khz() -> None:
    gain = _track_gain(_sine(32_767.0, 1_000.0, 44_100, 5.0), 44_100)
    assert gain == pytest.approx(-14.17, abs=0.05)


def test_half_amplitude_is_six_db_louder_gain() -> None:
    full = _track_gain(_sine(32_767.0, 1_000.0, 44_100, 5.0), 44_100)
    half = _track_gain(_sine(16_383.5, 1_000.0, 44_100, 5.0), 44_100)
    assert half - full == pytest.approx(6.02, abs=0.02)


@pytest.mark.parametrize("sample_rate", [32_000, 44_100, 48_000, 64_000, 88_200, 96_000])
def test_sine_matches_filter_response(sample_rate: int) -> None:
    gain = _track_gain(_sine(20_000.0, 1_000.0, sample_rate, 3.0), sample_rate)
    expected = _expected_sine_gain(20_000.0, 1_000.0, sample_rate)
    assert gain == pytest.approx(expected, abs=0.03)


def test_very_quiet_signal_is_clamped() -> None:
    gain = _track_gain(_sine(1.0, 1_000.0, 44_100, 2.0), 44_100)
    assert gain == PINK_REF
