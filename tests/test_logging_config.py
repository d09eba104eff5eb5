"""Tests for logging_config.py utility functions."""

import os
import logging
from unittest.mock import patch

from media_variants.core.logging_config import (
    NOISY_LOGGERS,
    get_logger,
    quiet_third_party_loggers,
    set_debug_logging,
    setup_logger,
    logger,
)


class TestSetupLogger:
    """Tests for setup_logger function."""

    def test_setup_logger_default_parameters(self):
        """Test setup_logger with default parameters."""
        with patch.dict(os.environ, {"LOG_LEVEL": "INFO"}):
            test_logger = setup_logger()
        assert test_logger.name == "media-variants"
        assert test_logger.level == logging.INFO
        assert len(test_logger.handlers) == 1
        assert not test_logger.propagate

    def test_setup_logger_custom_level_by_parameter(self):
        """Test setup_logger with custom level via parameter."""
        test_logger = setup_logger(name="test-param-level", level="DEBUG")
        assert test_logger.level == logging.DEBUG

    def test_setup_logger_custom_level_by_env_var(self):
        """Test setup_logger with custom level via environment variable."""
        with patch.dict(os.environ, {"LOG_LEVEL": "WARNING"}):
            test_logger = setup_logger(name="test-env-level")
        assert test_logger.level == logging.WARNING

    def test_setup_logger_invalid_level_falls_back_to_info(self):
        test_logger = setup_logger(name="test-bad-level", level="LOUD")
        assert test_logger.level == logging.INFO

    def test_setup_logger_no_duplicate_handlers(self):
        """Calling setup_logger twice must not stack handlers."""
        setup_logger(name="test-no-dupes")
        test_logger = setup_logger(name="test-no-dupes")
        assert len(test_logger.handlers) == 1

    def test_setup_logger_simple_format(self):
        with patch.dict(os.environ, {"LOG_FORMAT": "simple"}):
            test_logger = setup_logger(name="test-simple-format")
        fmt = test_logger.handlers[0].formatter._fmt
        assert fmt == "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def test_setup_logger_structured_format(self):
        with patch.dict(os.environ, {"LOG_FORMAT": "structured"}):
            test_logger = setup_logger(name="test-structured-format")
        assert "%(funcName)s()" in test_logger.handlers[0].formatter._fmt


def test_get_logger_returns_configured_logger():
    test_logger = get_logger("test-get-logger")
    assert test_logger.name == "test-get-logger"
    assert len(test_logger.handlers) == 1


def test_set_debug_logging():
    test_logger = setup_logger(name="test-debug-switch", level="WARNING")
    root_level = logging.getLogger().level
    try:
        set_debug_logging(test_logger)
        assert test_logger.level == logging.DEBUG
        assert logging.getLogger().level == logging.DEBUG
    finally:
        logging.getLogger().setLevel(root_level)


def test_module_logger():
    assert logger.name == "media-variants"


def test_quiet_third_party_loggers():
    saved = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    try:
        logging.getLogger("botocore").setLevel(logging.DEBUG)
        quiet_third_party_loggers()
        assert logging.getLogger("botocore").level == logging.WARNING
        assert logging.getLogger("urllib3").level == logging.WARNING
        assert logging.getLogger("PIL").level == logging.WARNING

        quiet_third_party_loggers(logging.ERROR, names=["s3transfer"])
        assert logging.getLogger("s3transfer").level == logging.ERROR
        assert logging.getLogger("boto3").level == logging.WARNING
    finally:
        for name, level in saved.items():
            logging.getLogger(name).setLevel(level)
