from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

import numpy as np
import soundfile as sf

from smartgain.analysis import ContextState, GainAnalysis
from smartgain.logging_utils import get_logger
from smartgain.types import AlbumGain, TrackGain

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 65_536
# Шкала 16-битного PCM, под которую откалиброван PINK_REF.
SAMPLE_SCALE = 32_768.0


def _prepare_analysis(analysis: GainAnalysis, sample_rate: int) -> None:
    if analysis.state is not ContextState.READY:
        analysis.initialize(sample_rate)
    elif analysis.sample_rate != sample_rate:
        logger.info(
            "Частота дискретизации меняется %d -> %d, статистика альбома сохраняется",
            analysis.sample_rate,
            sample_rate,
        )
        analysis.reset_sample_rate(sample_rate)


def scan_file(
    audio_path: Path | str,
    analysis: Optional[GainAnalysis] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> TrackGain:
    """Стримингово рассчитывает ReplayGain трека.

    Файл читается блоками по ``chunk_size`` фреймов, в памяти одновременно
    находится только текущий блок. Пик считается по исходным сэмплам в шкале
    -1..1.

    Args:
        audio_path: Путь к аудиофайлу (любой формат, который читает soundfile).
        analysis: Контекст анализа альбома. Если не передан, создаётся
            отдельный контекст только для этого файла.
        chunk_size: Размер блока чтения во фреймах.

    Returns:
        TrackGain с gain трека (``None``, если файл короче одного RMS-окна).

    Raises:
        ValueError: файл содержит больше двух каналов.
        UnsupportedSampleRateError: частота файла не поддерживается.
    """

    if chunk_size <= 0:
        raise ValueError("chunk_size должен быть положительным")

    path = Path(audio_path)
    context = analysis if analysis is not None else GainAnalysis()
    peak = 0.0
    frames = 0

    try:
        with sf.SoundFile(path, mode="r") as audio_file:
            sample_rate = int(audio_file.samplerate)
            channels = int(audio_file.channels)
            if channels not in (1, 2):
                raise ValueError(
                    f"Поддерживаются только моно и стерео файлы: {path.name} содержит {channels} каналов"
                )
            logger.debug(
                "Файл: %s, samplerate=%d, channels=%d, frames=%d",
                path.name,
                sample_rate,
                channels,
                audio_file.frames,
            )
            _prepare_analysis(context, sample_rate)

            while True:
                block = audio_file.read(frames=chunk_size, dtype="float64", always_2d=True)
                if block.shape[0] == 0:
                    break
                frames += block.shape[0]
                peak = max(peak, float(np.max(np.abs(block))))
                scaled = block * SAMPLE_SCALE
                if channels == 1:
                    context.analyze(scaled[:, 0], num_channels=1)
                else:
                    context.analyze(scaled[:, 0], scaled[:, 1], num_channels=2)

        gain_db = context.title_gain()
    finally:
        if analysis is None:
            context.destroy()

    if gain_db is None:
        logger.warning("Недостаточно сэмплов для расчёта gain: %s", path.name)
    else:
        logger.info("%s: track gain %+.2f dB, peak %.6f", path.name, gain_db, peak)

    return TrackGain(
        path=str(path),
        sample_rate=sample_rate,
        channels=channels,
        frames=frames,
        gain_db=gain_db,
        peak=peak,
    )


def scan_album(audio_paths: Iterable[Path | str], chunk_size: int = DEFAULT_CHUNK_SIZE) -> AlbumGain:
    """Рассчитывает gain каждого трека и общий gain альбома за один проход.

    Все файлы анализируются одним контекстом: gain альбома учитывает RMS-окна
    всех треков, а не усредняет их gain. Треки с разной частотой
    дискретизации допускаются.
    """

    paths: List[Path] = [Path(path) for path in audio_paths]
    if not paths:
        raise ValueError("Список файлов альбома пуст")

    logger.info("Анализ альбома: %d файлов", len(paths))
    with GainAnalysis() as analysis:
        tracks = [scan_file(path, analysis=analysis, chunk_size=chunk_size) for path in paths]
        album_db = analysis.album_gain()

    album_peak = max(track.peak for track in tracks)
    if album_db is not None:
        logger.info("Album gain %+.2f dB, peak %.6f", album_db, album_peak)
    return AlbumGain(tracks=tracks, gain_db=album_db, peak=album_peak)


__all__ = ["DEFAULT_CHUNK_SIZE", "SAMPLE_SCALE", "scan_album", "scan_file"]
