from __future__ import annotations

import logging
import os
import sys
from typing import Optional

_LOGGER_NAME = "smartgain"
_LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
_configured = False


def _determine_level() -> int:
    env_value = os.getenv("SMARTGAIN_DEBUG", "").strip()
    if env_value == "1":
        return logging.DEBUG
    return logging.INFO


def _configure_root(default_level: int) -> None:
    global _configured
    if _configured:
        return
    root_logger = logging.getLogger()
    has_stdout_handler = any(
        isinstance(handler, logging.StreamHandler)
        and getattr(handler, "_smartgain_managed", False)
        for handler in root_logger.handlers
    )
    if not root_logger.handlers or not has_stdout_handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._smartgain_managed = True  # type: ignore[attr-defined]
        root_logger.addHandler(handler)
    root_logger.setLevel(default_level)
    _configured = True


def _refresh_stream_handlers() -> None:
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if isinstance(handler, logging.StreamHandler) and getattr(handler, "_smartgain_managed", False):
            handler.setStream(sys.stdout)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Возвращает сконфигурированный логгер SmartGain.

    Root-логгер настраивается один раз. По умолчанию уровень INFO,
    при ``SMARTGAIN_DEBUG=1`` — DEBUG. Хендлер пишет в текущий ``sys.stdout``,
    поэтому вывод корректно перехватывается в тестах.
    """

    default_level = _determine_level()
    _configure_root(default_level)
    _refresh_stream_handlers()
    return logging.getLogger(name or _LOGGER_NAME)


def set_verbosity(verbose: bool = False, quiet: bool = False) -> int:
    """Применяет уровень логирования из флагов CLI и возвращает его.

    ``verbose`` включает DEBUG, ``quiet`` оставляет только WARNING и выше,
    без флагов действует уровень из ``SMARTGAIN_DEBUG``.
    """

    if verbose and quiet:
        raise ValueError("verbose и quiet взаимоисключающие")
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = _determine_level()
    _configure_root(level)
    logging.getLogger().setLevel(level)
    return level


__all__ = ["get_logger", "set_verbosity"]
