from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

import mutagen
from mutagen.flac import FLAC
from mutagen.id3 import ID3, TXXX
from mutagen.mp3 import MP3
from mutagen.mp4 import MP4, AtomDataType, MP4FreeForm
from mutagen.oggopus import OggOpus
from mutagen.oggvorbis import OggVorbis
from mutagen.wave import WAVE

from smartgain.types import AlbumGain, TrackGain

TagMapping = Dict[str, str]

REFERENCE_LOUDNESS = "89.0 dB"
_MP4_FREEFORM_PREFIX = "----:com.apple.iTunes:"
_REPLAYGAIN_PREFIX = "replaygain_"


def format_gain(gain_db: float) -> str:
    """Форматирует gain так, как его записывают в теги: ``-6.50 dB``."""

    return f"{gain_db:+.2f} dB"


def format_peak(peak: float) -> str:
    return f"{peak:.6f}"


def build_tag_values(track: TrackGain, album: Optional[AlbumGain] = None) -> TagMapping:
    """Собирает значения тегов ReplayGain; треки без gain не получают тегов."""

    values: TagMapping = {}
    if track.gain_db is not None:
        values["REPLAYGAIN_TRACK_GAIN"] = format_gain(track.gain_db)
        values["REPLAYGAIN_TRACK_PEAK"] = format_peak(track.peak)
    if album is not None and album.gain_db is not None:
        values["REPLAYGAIN_ALBUM_GAIN"] = format_gain(album.gain_db)
        values["REPLAYGAIN_ALBUM_PEAK"] = format_peak(album.peak)
    if values:
        values["REPLAYGAIN_REFERENCE_LOUDNESS"] = REFERENCE_LOUDNESS
    return values


def _ensure_id3(target: MP3 | WAVE) -> ID3:
    if target.tags is None:
        target.add_tags()
    if not isinstance(target.tags, ID3):
        raise TypeError("Ожидались ID3-теги для MP3/WAV")
    return target.tags


def _write_vorbis_comments(target: FLAC | OggVorbis, values: TagMapping) -> None:
    if target.tags is None:
        target.add_tags()
    for key, value in values.items():
        target.tags[key] = [value]
    target.save()


def _write_id3(target: MP3 | WAVE, values: TagMapping) -> None:
    tags = _ensure_id3(target)
    for key, value in values.items():
        tags.delall(f"TXXX:{key}")
        tags.delall(f"TXXX:{key.lower()}")
        tags.add(TXXX(encoding=3, desc=key, text=[value]))
    target.save()


def _write_mp4(target: MP4, values: TagMapping) -> None:
    if target.tags is None:
        target.add_tags()
    for key, value in values.items():
        atom = f"{_MP4_FREEFORM_PREFIX}{key.lower()}"
        target.tags[atom] = [MP4FreeForm(value.encode("utf-8"), dataformat=AtomDataType.UTF8)]
    target.save()


def _read_vorbis_comments(source: FLAC | OggVorbis) -> TagMapping:
    tags: TagMapping = {}
    if not source.tags:
        return tags
    for key, values in source.tags.items():
        name = key.lower()
        if name.startswith(_REPLAYGAIN_PREFIX) and values:
            tags[name] = str(values[0])
    return tags


def _read_id3(source: MP3 | WAVE) -> TagMapping:
    tags: TagMapping = {}
    if not isinstance(source.tags, ID3):
        return tags
    for frame in source.tags.getall("TXXX"):
        name = str(frame.desc).lower()
        if name.startswith(_REPLAYGAIN_PREFIX) and frame.text:
            tags[name] = str(frame.text[0])
    return tags


def _read_mp4(source: MP4) -> TagMapping:
    tags: TagMapping = {}
    if not source.tags:
        return tags
    for key, values in source.tags.items():
        if not key.startswith(_MP4_FREEFORM_PREFIX) or not values:
            continue
        name = key[len(_MP4_FREEFORM_PREFIX) :].lower()
        if name.startswith(_REPLAYGAIN_PREFIX):
            tags[name] = bytes(values[0]).decode("utf-8", errors="replace")
    return tags


def write_replaygain_tags(
    audio_path: Path | str,
    track: TrackGain,
    album: Optional[AlbumGain] = None,
    logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Записывает теги ReplayGain трека (и альбома, если передан) в файл.
    Поддерживает: FLAC, OGG/Vorbis (Vorbis comments), MP3 и WAV (ID3 TXXX), M4A (freeform-атомы).
    Если формат не поддерживается или запись не удалась — логируем warning и возвращаем False.
    """

    log = logger or logging.getLogger(__name__)
    path = Path(audio_path)
    values = build_tag_values(track, album)
    if not values:
        log.warning("Нет рассчитанного gain для %s, теги не записаны", path.name)
        return False

    try:
        target = mutagen.File(path, easy=False)
    except Exception as exc:  # noqa: BLE001
        log.warning("Не удалось записать теги ReplayGain для %s: %s", path.name, exc)
        return False

    if target is None:
        log.warning("Не удалось записать теги ReplayGain для %s: неподдерживаемый формат", path.name)
        return False

    try:
        if isinstance(target, (FLAC, OggVorbis)):
            _write_vorbis_comments(target, values)
        elif isinstance(target, (MP3, WAVE)):
            _write_id3(target, values)
        elif isinstance(target, MP4):
            _write_mp4(target, values)
        elif isinstance(target, OggOpus):
            log.warning("Opus использует теги R128, ReplayGain для %s не записан", path.name)
            return False
        else:
            log.warning(
                "Не удалось записать теги ReplayGain для %s: формат %s не поддерживается",
                path.name,
                type(target).__name__,
            )
            return False
    except Exception as exc:  # noqa: BLE001
        log.warning("Не удалось записать теги ReplayGain для %s: %s", path.name, exc)
        return False

    log.debug("Теги ReplayGain записаны: %s (%s)", path.name, ", ".join(sorted(values)))
    return True


def read_replaygain_tags(audio_path: Path | str) -> TagMapping:
    """Читает теги ``replaygain_*`` (ключи в нижнем регистре)."""

    source = mutagen.File(Path(audio_path), easy=False)
    if isinstance(source, (FLAC, OggVorbis)):
        return _read_vorbis_comments(source)
    if isinstance(source, (MP3, WAVE)):
        return _read_id3(source)
    if isinstance(source, MP4):
        return _read_mp4(source)
    return {}


__all__ = [
    "REFERENCE_LOUDNESS",
    "build_tag_values",
    "format_gain",
    "format_peak",
    "read_replaygain_tags",
    "write_replaygain_tags",
]
