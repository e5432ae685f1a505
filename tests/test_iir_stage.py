from __future__ import annotations

from typing import List

import numpy as np
import pytest
from scipy.signal import lfilter

from smartgain.dsp.coefficients import YULE_BIAS, get_rate_filters
from smartgain.dsp.iir import IIRStage
from smartgain.dsp.pipeline import ChannelPipeline


def _split(samples: np.ndarray, sizes: List[int]) -> List[np.ndarray]:
    blocks = []
    position = 0
    for size in sizes:
        blocks.append(samples[position : position + size])
        position += size
    blocks.append(samples[position:])
    return blocks


def test_stage_matches_lfilter_without_bias() -> None:
    rng = np.random.default_rng(7)
    samples = rng.standard_normal(5_000) * 1_000.0
    coefficients = get_rate_filters(44_100).yule

    stage = IIRStage(coefficients)
    output = stage.process(samples)
    expected = lfilter(coefficients.numerator, coefficients.denominator, samples)

    assert output.shape == samples.shape
    assert np.allclose(output, expected, rtol=1e-7, atol=1e-6 * np.max(np.abs(expected)))


def test_chunked_output_is_bit_exact() -> None:
    rng = np.random.default_rng(11)
    samples = rng.standard_normal(4_000) * 5_000.0
    coefficients = get_rate_filters(48_000).yule

    whole = IIRStage(coefficients, bias=YULE_BIAS).process(samples)

    stage = IIRStage(coefficients, bias=YULE_BIAS)
    blocks = _split(samples, [1, 3, 0, 9, 10, 11, 500, 2, 1_024, 7])
    chunked = np.concatenate([stage.process(block) for block in blocks])

    assert np.array_equal(whole, chunked)


def test_history_keeps_last_input_samples() -> None:
    coefficients = get_rate_filters(44_100).yule
    stage = IIRStage(coefficients)

    stage.process(np.arange(1.0, 16.0))
    assert np.array_equal(stage.history, np.arange(6.0, 16.0))

    stage.process(np.array([100.0, 200.0, 300.0]))
    assert np.array_equal(stage.history, np.array([9.0, 10.0, 11.0, 12.0, 13.0, 14.0, 15.0, 100.0, 200.0, 300.0]))


def test_empty_block_does_not_change_state() -> None:
    stage = IIRStage(get_rate_filters(44_100).butter)
    stage.process(np.array([1.0, 2.0, 3.0]))
    before = stage.history

    output = stage.process(np.zeros(0))

    assert output.shape == (0,)
    assert np.array_equal(stage.history, before)


def test_reset_restores_initial_state() -> None:
    coefficients = get_rate_filters(32_000).yule
    samples = np.linspace(-1.0, 1.0, 300) * 10_000.0

    stage = IIRStage(coefficients, bias=YULE_BIAS)
    first = stage.process(samples)
    stage.reset()
    second = stage.process(samples)

    assert stage.history.shape == (10,)
    assert np.array_equal(first, second)


def test_stage_rejects_two_dimensional_input() -> None:
    stage = IIRStage(get_rate_filters(44_100).butter)
    with pytest.raises(ValueError):
        stage.process(np.zeros((4, 2)))


def test_pipeline_cascades_both_filters() -> None:
    filters = get_rate_filters(44_100)
    rng = np.random.default_rng(3)
    samples = rng.standard_normal(2_000) * 1_000.0

    pipeline = ChannelPipeline(filters)
    output = pipeline.process(samples)

    loudness = lfilter(filters.yule.numerator, filters.yule.denominator, samples)
    expected = lfilter(filters.butter.numerator, filters.butter.denominator, loudness)
    # Смещение 1e-10 пренебрежимо мало на фоне сигнала.
    assert np.allclose(output, expected, rtol=1e-7, atol=1e-6 * np.max(np.abs(expected)))
    assert np.array_equal(pipeline.input_history, samples[-10:])
