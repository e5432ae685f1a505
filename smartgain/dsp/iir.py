from __future__ import annotations

import numpy as np
from scipy.signal import lfilter

from .coefficients import FilterCoefficients

_UNIT_NUMERATOR = np.array([1.0], dtype=np.float64)


class IIRStage:
    """Рекурсивный фильтр, состояние которого переносится между вызовами.

    Каждый выходной сэмпл считается как
    ``bias + Σ b[k]·x[n-k] − Σ a[k]·y[n-k]``. Нерекурсивная часть строится по
    явной предыстории входа (последние ``order`` сэмплов), рекурсивная
    выполняется ``scipy.signal.lfilter`` с сохранённым состоянием ``zi``.
    Обе части хранятся в массивах фиксированной длины ``order``, поэтому выход
    побитово совпадает при любом разбиении потока на блоки.

    Args:
        coefficients: Коэффициенты фильтра (``denominator[0] == 1``).
        bias: Константа, добавляемая к каждому выходному сэмплу. Для фильтра
            равной громкости это ``1e-10``: сигнал не опускается до денормалов
            на тишине.
    """

    def __init__(self, coefficients: FilterCoefficients, bias: float = 0.0) -> None:
        self.coefficients = coefficients
        self.order = coefficients.order
        self.bias = float(bias)
        self._numerator = np.asarray(coefficients.numerator, dtype=np.float64)
        self._denominator = np.asarray(coefficients.denominator, dtype=np.float64)
        self._history = np.zeros(self.order, dtype=np.float64)
        self._feedback = np.zeros(self.order, dtype=np.float64)

    @property
    def history(self) -> np.ndarray:
        """Последние ``order`` входных сэмплов, от старых к новым."""

        return self._history.copy()

    def reset(self) -> None:
        self._history.fill(0.0)
        self._feedback.fill(0.0)

    def process(self, samples: np.ndarray) -> np.ndarray:
        """Фильтрует очередной блок и обновляет состояние."""

        block = np.asarray(samples, dtype=np.float64)
        if block.ndim != 1:
            raise ValueError("IIRStage принимает только одномерный блок сэмплов")
        count = block.shape[0]
        if count == 0:
            return np.zeros(0, dtype=np.float64)

        order = self.order
        extended = np.concatenate((self._history, block))
        feedforward = np.full(count, self.bias, dtype=np.float64)
        for k, coefficient in enumerate(self._numerator):
            feedforward += coefficient * extended[order - k : order - k + count]

        output, self._feedback = lfilter(
            _UNIT_NUMERATOR, self._denominator, feedforward, zi=self._feedback
        )
        # Блок короче order: в предыстории остаётся хвост предыдущих сэмплов.
        self._history[:] = extended[-order:]
        return output


__all__ = ["IIRStage"]
