from __future__ import annotations

import numpy as np

from .coefficients import YULE_BIAS, RateFilters
from .iir import IIRStage


class ChannelPipeline:
    """Каскад фильтров одного канала: равная громкость -> ФВЧ Баттерворта."""

    def __init__(self, filters: RateFilters) -> None:
        self.loudness = IIRStage(filters.yule, bias=YULE_BIAS)
        self.highpass = IIRStage(filters.butter)

    @property
    def input_history(self) -> np.ndarray:
        return self.loudness.history

    def reset(self) -> None:
        self.loudness.reset()
        self.highpass.reset()

    def process(self, samples: np.ndarray) -> np.ndarray:
        return self.highpass.process(self.loudness.process(samples))


__all__ = ["ChannelPipeline"]
