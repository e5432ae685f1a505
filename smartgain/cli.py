from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__
from .dsp.coefficients import SUPPORTED_SAMPLE_RATES, window_size_for
from .logging_utils import get_logger, set_verbosity
from .metadata import format_gain, format_peak, write_replaygain_tags
from .scanner import DEFAULT_CHUNK_SIZE, scan_album, scan_file
from .types import AlbumGain, TrackGain

logger = get_logger(__name__)


def _positive_int(value: str) -> int:
    result = int(value)
    if result <= 0:
        raise argparse.ArgumentTypeError("значение должно быть положительным целым числом")
    return result


def _build_scan_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    scan_parser = subparsers.add_parser(
        "scan",
        help="Рассчитать ReplayGain треков (и альбома)",
        description="Потоковый анализ файлов и расчёт рекомендуемого изменения уровня в dB.",
    )
    scan_parser.add_argument(
        "files",
        nargs="+",
        type=Path,
        metavar="FILE",
        help="Аудиофайлы для анализа",
    )
    scan_parser.add_argument(
        "--album",
        action="store_true",
        help="Считать файлы одним альбомом и рассчитать album gain",
    )
    scan_parser.add_argument(
        "--chunk-size",
        type=_positive_int,
        default=DEFAULT_CHUNK_SIZE,
        metavar="N",
        help=f"Размер блока чтения во фреймах (по умолчанию {DEFAULT_CHUNK_SIZE})",
    )
    scan_parser.add_argument(
        "--json",
        type=Path,
        metavar="OUT.json",
        help="Сохранить отчёт в JSON",
    )
    scan_parser.add_argument(
        "--write-tags",
        action="store_true",
        help="Записать теги REPLAYGAIN_* в файлы",
    )


def _build_rates_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    subparsers.add_parser(
        "rates",
        help="Показать поддерживаемые частоты дискретизации",
        description="Список частот дискретизации и размеров RMS-окна (50 мс).",
    )


def build_parser() -> argparse.ArgumentParser:
    """Создает корневой парсер CLI."""

    parser = argparse.ArgumentParser(
        prog="smartgain",
        description="Расчёт ReplayGain (консольные команды).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Показать версию",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Включить подробный вывод (уровень DEBUG)",
    )
    verbosity.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Показывать только предупреждения и ошибки (уровень WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    _build_scan_parser(subparsers)
    _build_rates_parser(subparsers)

    return parser


def _format_gain_value(gain_db: Optional[float]) -> str:
    if gain_db is None:
        return "not enough samples"
    return format_gain(gain_db)


def _format_track(track: TrackGain) -> str:
    return (
        f"{track.path} ({track.sample_rate} Hz, {track.duration_seconds:.2f} s): "
        f"Track gain: {_format_gain_value(track.gain_db)}, peak: {format_peak(track.peak)}"
    )


def _format_report(tracks: List[TrackGain], album: Optional[AlbumGain]) -> str:
    lines = [_format_track(track) for track in tracks]
    if album is not None:
        lines.append(
            f"Album gain: {_format_gain_value(album.gain_db)}, peak: {format_peak(album.peak)}"
        )
    return "\n".join(lines)


def _write_json(path: Path, report: Dict[str, Any]) -> None:
    import json

    with path.open("w", encoding="utf-8") as handle:
        json.dump(report, handle, ensure_ascii=False, indent=2)


def run_scan(args: argparse.Namespace) -> int:
    """Запускает команду scan."""

    logger.info("Команда scan: %d файлов, album=%s", len(args.files), args.album)
    album: Optional[AlbumGain] = None
    if args.album:
        album = scan_album(args.files, chunk_size=args.chunk_size)
        tracks = album.tracks
    else:
        tracks = [scan_file(path, chunk_size=args.chunk_size) for path in args.files]

    print(_format_report(tracks, album))

    if args.json:
        report: Dict[str, Any] = {
            "tracks": [track.to_dict() for track in tracks],
            "album": None if album is None else {"gain_db": album.gain_db, "peak": album.peak},
        }
        _write_json(args.json, report)

    failed = 0
    if args.write_tags:
        for track in tracks:
            if not write_replaygain_tags(track.path, track, album, logger=logger):
                failed += 1
        if failed:
            logger.warning("Теги не записаны для %d файлов", failed)
    return 1 if failed else 0


def run_rates() -> int:
    """Запускает команду rates."""

    for rate in sorted(SUPPORTED_SAMPLE_RATES):
        print(f"{rate} Hz: window {window_size_for(rate)} samples")
    return 0


def _dispatch(args: argparse.Namespace) -> int:
    if args.command == "scan":
        return run_scan(args)
    if args.command == "rates":
        return run_rates()
    return 1


def main(argv: Optional[List[str]] = None) -> None:
    """Точка входа CLI."""

    parser = build_parser()
    args = parser.parse_args(argv)
    level = set_verbosity(verbose=args.verbose, quiet=args.quiet)
    logger.debug("Уровень логирования: %s", logging.getLevelName(level))

    if not args.command:
        parser.print_help()
        return

    try:
        exit_code = _dispatch(args)
    except Exception as exc:  # noqa: BLE001
        parser.error(str(exc))
        return

    if exit_code != 0:
        parser.exit(exit_code)


if __name__ == "__main__":
    main()
