"""Утилиты SmartGain для расчёта ReplayGain."""

import importlib.metadata as importlib_metadata

from .analysis import ContextState, GainAnalysis
from .dsp import NOT_ENOUGH_SAMPLES, PINK_REF, SUPPORTED_SAMPLE_RATES
from .errors import (
    ContextStateError,
    InternalConsistencyError,
    InvalidChannelCountError,
    SmartGainError,
    UnsupportedSampleRateError,
)
from .metadata import read_replaygain_tags, write_replaygain_tags
from .scanner import scan_album, scan_file
from .types import AlbumGain, TrackGain

__all__ = [
    "AlbumGain",
    "ContextState",
    "ContextStateError",
    "GainAnalysis",
    "InternalConsistencyError",
    "InvalidChannelCountError",
    "NOT_ENOUGH_SAMPLES",
    "PINK_REF",
    "SUPPORTED_SAMPLE_RATES",
    "SmartGainError",
    "TrackGain",
    "UnsupportedSampleRateError",
    "read_replaygain_tags",
    "scan_album",
    "scan_file",
    "write_replaygain_tags",
]


def get_version() -> str:
    """Возвращает версию пакета, если он установлен."""

    try:
        return importlib_metadata.version("smartgain")
    except importlib_metadata.PackageNotFoundError:
        return "0.0.0"


__version__ = get_version()
