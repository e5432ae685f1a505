"""Гистограмма громкости RMS-окон и перцентильная оценка gain."""

from __future__ import annotations

import math
from typing import Optional, Union

import numpy as np

from smartgain.errors import InternalConsistencyError

STEPS_PER_DB = 100
MAX_DB = 120
HISTOGRAM_SIZE = STEPS_PER_DB * MAX_DB
RMS_PERCENTILE = 0.95
PINK_REF = 64.82
LEVEL_FLOOR = 1e-37
NOT_ENOUGH_SAMPLES = None


def level_to_bucket(mean_square: float) -> int:
    """Переводит средний квадрат окна в индекс корзины (0.01 dB на корзину).

    Дробная часть отбрасывается, индекс ограничивается диапазоном
    ``[0, HISTOGRAM_SIZE - 1]``.
    """

    if not math.isfinite(mean_square):
        raise InternalConsistencyError(f"нечисловая энергия RMS-окна: {mean_square}")
    level = STEPS_PER_DB * 10.0 * math.log10(mean_square + LEVEL_FLOOR)
    index = int(level)
    if index < 0:
        return 0
    if index >= HISTOGRAM_SIZE:
        return HISTOGRAM_SIZE - 1
    return index


class LoudnessHistogram:
    """Счётчики RMS-окон по квантованному уровню громкости."""

    __slots__ = ("_counts",)

    def __init__(self) -> None:
        self._counts = np.zeros(HISTOGRAM_SIZE, dtype=np.int64)

    @property
    def counts(self) -> np.ndarray:
        return self._counts.copy()

    @property
    def total(self) -> int:
        return int(self._counts.sum())

    def __len__(self) -> int:
        return HISTOGRAM_SIZE

    def add(self, index: int) -> None:
        if index < 0 or index >= HISTOGRAM_SIZE:
            raise IndexError(f"индекс корзины {index} вне диапазона 0..{HISTOGRAM_SIZE - 1}")
        self._counts[index] += 1

    def merge(self, other: "LoudnessHistogram") -> None:
        """Поэлементно прибавляет счётчики ``other``."""

        self._counts += other._counts

    def clear(self) -> None:
        self._counts.fill(0)


def estimate_gain(histogram: Union[LoudnessHistogram, np.ndarray]) -> Optional[float]:
    """Рекомендуемое изменение уровня в dB по гистограмме громкости.

    Сканирование идёт от самой громкой корзины вниз, пока накопленное число
    окон не достигнет ``ceil(E × (1 − 0.95))``; найденная корзина ``i``
    даёт ``PINK_REF − i / STEPS_PER_DB``. Так отбрасываются 5 % самых громких
    окон, короткие пики на результат не влияют.

    Returns:
        Gain в dB или ``NOT_ENOUGH_SAMPLES`` (``None``), если в гистограмме
        нет ни одного окна.
    """

    counts = histogram.counts if isinstance(histogram, LoudnessHistogram) else np.asarray(histogram)
    total = int(counts.sum())
    if total == 0:
        return NOT_ENOUGH_SAMPLES

    upper = math.ceil(total * (1.0 - RMS_PERCENTILE))
    from_top = np.cumsum(counts[::-1])
    index = counts.shape[0] - 1 - int(np.argmax(from_top >= upper))
    return float(PINK_REF - index / STEPS_PER_DB)


__all__ = [
    "HISTOGRAM_SIZE",
    "LEVEL_FLOOR",
    "LoudnessHistogram",
    "MAX_DB",
    "NOT_ENOUGH_SAMPLES",
    "PINK_REF",
    "RMS_PERCENTILE",
    "STEPS_PER_DB",
    "estimate_gain",
    "level_to_bucket",
]
