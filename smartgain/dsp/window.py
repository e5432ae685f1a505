from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from smartgain.errors import InternalConsistencyError

from .histogram import level_to_bucket


class RMSWindow:
    """Накопитель отфильтрованных сэмплов текущего RMS-окна (50 мс).

    Буферы окна выделяются один раз на ``window_size`` сэмплов. Энергия
    считается по полному буферу в момент закрытия окна, поэтому не зависит
    от того, какими порциями окно было заполнено.
    """

    def __init__(self, window_size: int) -> None:
        if window_size <= 0:
            raise ValueError("window_size должен быть положительным")
        self.window_size = window_size
        self.samples_in_window = 0
        self._left = np.zeros(window_size, dtype=np.float64)
        self._right = np.zeros(window_size, dtype=np.float64)

    @property
    def room(self) -> int:
        return self.window_size - self.samples_in_window

    @property
    def sum_of_squares(self) -> Tuple[float, float]:
        filled = self.samples_in_window
        left = self._left[:filled]
        right = self._right[:filled]
        return float(np.sum(np.square(left))), float(np.sum(np.square(right)))

    def reset(self) -> None:
        self.samples_in_window = 0
        self._left.fill(0.0)
        self._right.fill(0.0)

    def append(self, left: np.ndarray, right: np.ndarray) -> Optional[int]:
        """Добавляет отфильтрованные сэмплы обоих каналов.

        Returns:
            Индекс корзины гистограммы, если окно закрылось, иначе ``None``.

        Raises:
            InternalConsistencyError: если блок не помещается в окно.
        """

        count = left.shape[0]
        start = self.samples_in_window
        if start + count > self.window_size:
            raise InternalConsistencyError(
                f"переполнение RMS-окна: {start} + {count} > {self.window_size}"
            )
        self._left[start : start + count] = left
        self._right[start : start + count] = right
        self.samples_in_window = start + count

        if self.samples_in_window < self.window_size:
            return None

        left_sum, right_sum = self.sum_of_squares
        mean_square = (left_sum + right_sum) / self.window_size * 0.5
        bucket = level_to_bucket(mean_square)
        self.samples_in_window = 0
        return bucket


__all__ = ["RMSWindow"]
