from __future__ import annotations

import logging

import pytest
from pytest import MonkeyPatch

from smartgain.logging_utils import get_logger, set_verbosity


def test_set_verbosity_levels(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.delenv("SMARTGAIN_DEBUG", raising=False)
    root_logger = logging.getLogger()
    previous = root_logger.level
    try:
        assert set_verbosity(verbose=True) == logging.DEBUG
        assert root_logger.level == logging.DEBUG

        assert set_verbosity(quiet=True) == logging.WARNING
        assert root_logger.level == logging.WARNING

        assert set_verbosity() == logging.INFO

        monkeypatch.setenv("SMARTGAIN_DEBUG", "1")
        assert set_verbosity() == logging.DEBUG
    finally:
        root_logger.setLevel(previous)


def test_set_verbosity_rejects_both_flags() -> None:
    with pytest.raises(ValueError):
        set_verbosity(verbose=True, quiet=True)


def test_get_logger_names() -> None:
    assert get_logger().name == "smartgain"
    assert get_logger("smartgain.scanner").name == "smartgain.scanner"
