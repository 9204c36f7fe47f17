"""setup_logging tests"""

import logging

import pytest

from lifequest.core.logging import get_logger, setup_logging


@pytest.fixture(autouse=True)
def _restore_levels():
    names = ("lifequest", "uvicorn.access", "httpx")
    saved = {n: logging.getLogger(n).level for n in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


def test_package_logger_follows_level():
    setup_logging("debug")
    assert logging.getLogger("lifequest").level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.DEBUG


def test_noisy_loggers_quiet_above_debug():
    setup_logging("INFO")
    assert logging.getLogger("lifequest").level == logging.INFO
    assert logging.getLogger("uvicorn.access").level == logging.WARNING


def test_unknown_level_rejected():
    with pytest.raises(ValueError):
        setup_logging("LOUD")


def test_get_logger_is_namespaced():
    assert get_logger("lifequest.services.quest_service").name == "lifequest.services.quest_service"
