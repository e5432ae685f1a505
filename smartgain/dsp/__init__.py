"""DSP-компоненты анализа ReplayGain."""

from .coefficients import SUPPORTED_SAMPLE_RATES, FilterCoefficients, RateFilters, get_rate_filters
from .histogram import NOT_ENOUGH_SAMPLES, PINK_REF, LoudnessHistogram, estimate_gain
from .iir import IIRStage
from .pipeline import ChannelPipeline
from .window import RMSWindow

__all__ = [
    "ChannelPipeline",
    "FilterCoefficients",
    "IIRStage",
    "LoudnessHistogram",
    "NOT_ENOUGH_SAMPLES",
    "PINK_REF",
    "RMSWindow",
    "RateFilters",
    "SUPPORTED_SAMPLE_RATES",
    "estimate_gain",
    "get_rate_filters",
]
