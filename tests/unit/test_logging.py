"""Tests for log level configuration."""

import logging

import pydantic
import pytest

from app.core.config import Settings, settings
from app.services.relations import relation_service
from app.utils.logging import get_logger, set_log_level


@pytest.fixture
def restore_log_level():
    yield
    set_log_level(settings.log_level)


def test_module_loggers_follow_configured_level():
    assert relation_service.LOGGER.level == getattr(logging, settings.log_level)


def test_set_log_level_updates_existing_and_new_loggers(restore_log_level):
    existing = get_logger("app.tests.existing")

    set_log_level("WARNING")
    created = get_logger("app.tests.created")

    assert existing.level == logging.WARNING
    assert created.level == logging.WARNING
    assert all(handler.level == logging.WARNING for handler in existing.handlers)


def test_explicit_level_is_not_overridden(restore_log_level):
    pinned = get_logger("app.tests.pinned", level="ERROR")

    set_log_level("DEBUG")

    assert pinned.level == logging.ERROR


def test_log_level_setting_is_normalized():
    assert Settings(LOG_LEVEL="debug").log_level == "DEBUG"


def test_unknown_log_level_rejected():
    with pytest.raises(pydantic.ValidationError):
        Settings(LOG_LEVEL="verbose")
