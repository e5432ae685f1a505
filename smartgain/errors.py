"""Исключения движка анализа ReplayGain."""

from __future__ import annotations


class SmartGainError(Exception):
    """Базовое исключение SmartGain."""


class UnsupportedSampleRateError(SmartGainError, ValueError):
    """Частота дискретизации отсутствует в таблице коэффициентов фильтров."""

    def __init__(self, sample_rate: object) -> None:
        super().__init__(f"неподдерживаемая частота дискретизации: {sample_rate}")
        self.sample_rate = sample_rate


class InvalidChannelCountError(SmartGainError, ValueError):
    """Число каналов отличается от 1 и 2."""

    def __init__(self, num_channels: object) -> None:
        super().__init__(f"поддерживается 1 или 2 канала, получено: {num_channels}")
        self.num_channels = num_channels


class ContextStateError(SmartGainError, RuntimeError):
    """Метод вызван до initialize() или после destroy()."""


class InternalConsistencyError(SmartGainError, AssertionError):
    """Нарушен внутренний инвариант анализатора (ошибка в программе, а не во входных данных)."""


__all__ = [
    "SmartGainError",
    "UnsupportedSampleRateError",
    "InvalidChannelCountError",
    "ContextStateError",
    "InternalConsistencyError",
]
