from __future__ import annotations

from enum import Enum
from types import TracebackType
from typing import Optional, Sequence, Type, Union

import numpy as np

from smartgain.dsp.coefficients import RateFilters, get_rate_filters, rate_index
from smartgain.dsp.histogram import LoudnessHistogram, estimate_gain
from smartgain.dsp.pipeline import ChannelPipeline
from smartgain.dsp.window import RMSWindow
from smartgain.errors import ContextStateError, InvalidChannelCountError
from smartgain.logging_utils import get_logger

logger = get_logger(__name__)

SampleBlock = Union[np.ndarray, Sequence[float]]


class ContextState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    DESTROYED = "destroyed"


def _as_block(samples: SampleBlock, name: str) -> np.ndarray:
    block = np.asarray(samples, dtype=np.float64)
    if block.ndim != 1:
        raise ValueError(f"{name} должен быть одномерным массивом сэмплов")
    if not np.isfinite(block).all():
        raise ValueError(f"{name} содержит NaN или бесконечные значения")
    return block


class GainAnalysis:
    """Потоковый анализ ReplayGain для одного трека или альбома.

    Контекст создаётся пустым и становится рабочим после :meth:`initialize`.
    Сэмплы подаются через :meth:`analyze` блоками любого размера;
    :meth:`title_gain` возвращает gain трека и переносит его статистику в
    альбом, :meth:`album_gain` возвращает gain всех прочитанных треков.

    Сэмплы ожидаются в шкале 16-битного PCM (полная шкала ≈ 32768), под
    которую откалиброван ``PINK_REF``. Экземпляры независимы, но один
    экземпляр не потокобезопасен.

    Пример::

        with GainAnalysis() as analysis:
            analysis.initialize(44_100)
            for left, right in blocks:
                analysis.analyze(left, right)
            track_db = analysis.title_gain()
            album_db = analysis.album_gain()
    """

    def __init__(self) -> None:
        self._state = ContextState.UNINITIALIZED
        self._filters: Optional[RateFilters] = None
        self._left: Optional[ChannelPipeline] = None
        self._right: Optional[ChannelPipeline] = None
        self._window: Optional[RMSWindow] = None
        self._title = LoudnessHistogram()
        self._album = LoudnessHistogram()

    def __enter__(self) -> "GainAnalysis":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.destroy()

    @property
    def state(self) -> ContextState:
        return self._state

    @property
    def sample_rate(self) -> int:
        return self._require_filters().sample_rate

    @property
    def rate_index(self) -> int:
        return rate_index(self._require_filters().sample_rate)

    @property
    def window_size(self) -> int:
        return self._require_window().window_size

    @property
    def samples_in_window(self) -> int:
        return self._require_window().samples_in_window

    @property
    def title_histogram(self) -> np.ndarray:
        self._ensure_ready()
        return self._title.counts

    @property
    def album_histogram(self) -> np.ndarray:
        self._ensure_ready()
        return self._album.counts

    def initialize(self, sample_rate: int) -> None:
        """Настраивает контекст на частоту дискретизации и сбрасывает всё состояние.

        Raises:
            UnsupportedSampleRateError: если частота не поддерживается.
                Состояние контекста при этом не меняется.
        """

        self._configure(sample_rate)
        self._album.clear()
        logger.debug(
            "Анализ инициализирован: sample_rate=%d, window_size=%d",
            sample_rate,
            self.window_size,
        )

    def reset_sample_rate(self, sample_rate: int) -> None:
        """Меняет частоту между треками, сохраняя статистику альбома."""

        self._ensure_ready()
        self._configure(sample_rate)
        logger.debug("Частота дискретизации сменена на %d, альбом сохранён", sample_rate)

    def analyze(
        self,
        left: SampleBlock,
        right: Optional[SampleBlock] = None,
        num_channels: Optional[int] = None,
    ) -> None:
        """Обрабатывает очередной блок сэмплов.

        Args:
            left: Сэмплы левого (или единственного) канала.
            right: Сэмплы правого канала той же длины.
            num_channels: 1 или 2. По умолчанию 1, если ``right`` не передан.
                При 1 канале ``right`` игнорируется и вместо него используется ``left``.

        Raises:
            InvalidChannelCountError: число каналов не 1 и не 2.
            ValueError: блоки не одномерные, разной длины или содержат NaN/inf.
        """

        self._ensure_ready()
        if num_channels is None:
            num_channels = 1 if right is None else 2
        if num_channels not in (1, 2):
            raise InvalidChannelCountError(num_channels)

        left_block = _as_block(left, "left")
        if num_channels == 1:
            right_block = left_block
        else:
            if right is None:
                raise ValueError("для двух каналов требуется right")
            right_block = _as_block(right, "right")
            if right_block.shape[0] != left_block.shape[0]:
                raise ValueError(
                    f"длины каналов не совпадают: left={left_block.shape[0]}, "
                    f"right={right_block.shape[0]}"
                )

        left_pipeline = self._left
        right_pipeline = self._right
        window = self._require_window()
        assert left_pipeline is not None and right_pipeline is not None

        total = left_block.shape[0]
        position = 0
        while position < total:
            count = min(window.room, total - position)
            end = position + count
            left_out = left_pipeline.process(left_block[position:end])
            right_out = right_pipeline.process(right_block[position:end])
            bucket = window.append(left_out, right_out)
            if bucket is not None:
                self._title.add(bucket)
            position = end

    def title_gain(self) -> Optional[float]:
        """Gain трека, проанализированного после предыдущего вызова или initialize().

        Статистика трека переносится в альбом и обнуляется вместе с фильтрами
        и незакрытым RMS-окном.

        Returns:
            Gain в dB или ``None``, если не закрыто ни одного RMS-окна.
        """

        self._ensure_ready()
        gain = estimate_gain(self._title)
        windows = self._title.total
        self._album.merge(self._title)
        self._title.clear()
        self._reset_stream()
        logger.debug("Title gain: %s (окон: %d)", gain, windows)
        return gain

    def album_gain(self) -> Optional[float]:
        """Gain всех треков, прочитанных через title_gain(); состояние не меняется."""

        self._ensure_ready()
        return estimate_gain(self._album)

    def destroy(self) -> None:
        """Освобождает буферы; дальнейшая работа возможна только после initialize()."""

        self._filters = None
        self._left = None
        self._right = None
        self._window = None
        self._title.clear()
        self._album.clear()
        self._state = ContextState.DESTROYED

    close = destroy

    def _configure(self, sample_rate: int) -> None:
        filters = get_rate_filters(sample_rate)
        self._filters = filters
        self._left = ChannelPipeline(filters)
        self._right = ChannelPipeline(filters)
        self._window = RMSWindow(filters.window_size)
        self._title.clear()
        self._state = ContextState.READY

    def _reset_stream(self) -> None:
        assert self._left is not None and self._right is not None and self._window is not None
        self._left.reset()
        self._right.reset()
        self._window.reset()

    def _ensure_ready(self) -> None:
        if self._state is ContextState.UNINITIALIZED:
            raise ContextStateError("контекст не инициализирован: вызовите initialize()")
        if self._state is ContextState.DESTROYED:
            raise ContextStateError("контекст уничтожен: вызовите initialize() заново")

    def _require_filters(self) -> RateFilters:
        self._ensure_ready()
        assert self._filters is not None
        return self._filters

    def _require_window(self) -> RMSWindow:
        self._ensure_ready()
        assert self._window is not None
        return self._window


__all__ = ["ContextState", "GainAnalysis", "SampleBlock"]
