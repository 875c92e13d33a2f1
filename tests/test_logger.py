# tests/test_logger.py
"""Test logging setup and the import warnings report"""

import logging

import pytest

from itunes_import.core.logger import (
    TqdmLoggingHandler,
    get_logger,
    log_import_warning,
    setup_logging,
    shutdown_logging,
)


@pytest.fixture
def logs_dir(temp_dir):
    logs_dir = setup_logging(temp_dir, console_level=logging.CRITICAL)
    yield logs_dir
    shutdown_logging()


def read_log(logs_dir, prefix):
    (path,) = logs_dir.glob(f"{prefix}_*.log")
    return path.read_text(encoding="utf-8")


class TestSetupLogging:
    """Test setup_logging and shutdown_logging"""

    def test_creates_log_files(self, temp_dir, logs_dir):
        assert logs_dir == temp_dir / "logs"
        names = sorted(path.name.rsplit("_", 2)[0] for path in logs_dir.iterdir())
        assert names == ["import_warnings", "log_errors", "log_full"]

    def test_error_log_only_has_errors(self, logs_dir):
        logger = get_logger("itunes_import.test")
        logger.info("just info")
        logger.error("something broke")
        shutdown_logging()

        errors = read_log(logs_dir, "log_errors")
        assert "something broke" in errors
        assert "just info" not in errors
        assert "just info" in read_log(logs_dir, "log_full")

    def test_warnings_report(self, logs_dir):
        logger = get_logger("itunes_import.test")
        logger.warning("an ordinary warning")
        log_import_warning(
            logger,
            '[Queen - Innuendo] Missing recommended field "composer"',
            track_label="[Queen - Innuendo]",
        )
        shutdown_logging()

        report = read_log(logs_dir, "import_warnings")
        assert report == '[Queen - Innuendo] Missing recommended field "composer"\n'

    def test_console_skips_import_warnings(self, logs_dir):
        """Import warnings are shown by the progress display, not the console handler"""
        (console,) = [
            handler for handler in logging.getLogger().handlers
            if isinstance(handler, TqdmLoggingHandler)
        ]
        logger = get_logger("itunes_import.test")
        plain = logger.makeRecord(logger.name, logging.WARNING, __file__, 1, "plain", None, None)
        tagged = logger.makeRecord(
            logger.name, logging.WARNING, __file__, 1, "tagged", None, None,
            extra={"import_warning": "tagged"},
        )
        assert console.filter(plain)
        assert not console.filter(tagged)

    def test_shutdown_removes_handlers(self, logs_dir):
        shutdown_logging()
        assert logging.getLogger().handlers == []
        shutdown_logging()
