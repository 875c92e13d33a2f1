"""
Logging configuration for itunes-import.

This module sets up the logging system with multiple outputs:
    - Console: Real-time messages with tqdm-compatible formatting
    - log_full.log: Complete log of all events (DEBUG and above)
    - log_errors.log: Only ERROR and CRITICAL level messages
    - import_warnings.log: Every non-fatal import warning, one per line

The logging system follows the principle: everything to screen is also saved
to file, then filtered into specialized files.

Log File Locations:
    All log files are created in a 'logs' subdirectory of the directory
    passed to setup_logging(). The CLI uses the working directory, so the
    library directory is never written to by a dry run. Each run gets its
    own timestamped files.

Usage:
    from itunes_import.core.logger import setup_logging, get_logger

    setup_logging(Path.cwd())  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Starting import")
    log_import_warning(logger, "Missing recommended field", track_label="[A - B]")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


LOG_FULL_FILENAME = "log_full"
LOG_ERRORS_FILENAME = "log_errors"
IMPORT_WARNINGS_FILENAME = "import_warnings"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Custom formatter that adds colors to console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        colored_levelname = f"{color}{record.levelname}{Colors.RESET}"
        return f"{colored_levelname}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to console without breaking progress bars.

    Standard logging to stderr can interfere with an active progress
    display. This handler uses tqdm.write() which prints above it.

    Attributes:
        stream: The output stream (defaults to sys.stderr).
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class ImportWarningHandler(logging.Handler):
    """
    Handler that collects import warnings into a report file.

    This handler listens for log records carrying the 'import_warning'
    extra field and writes them to import_warnings.log in a simple,
    human-readable format, one warning per line:

        [Queen - Bohemian Rhapsody] Missing recommended field "composer"
        [AC/DC - Back In Black] Found multiple unique artworks. Using the first one

    Records without the extra field are ignored, so the report only ever
    contains what the user was warned about during the import.

    Attributes:
        report_path: Path to the import_warnings.log file.
        report_file: Open file handle (opened by open()).

    Usage:
        logger.warning(
            "Missing recommended field",
            extra={'import_warning': '[A - B] Missing recommended field "name"'}
        )
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """
        Open the report file for writing.

        Called by setup_logging() after handler is created.
        File is opened in write mode (overwrites existing content).
        """
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "import_warning"):
            return

        if self.report_file is None:
            return

        try:
            self.report_file.write(f"{record.import_warning}\n")
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """
        Close the report file handle.

        Called automatically when logging is shut down.
        Safe to call multiple times.
        """
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """
    Filter that only allows ERROR and CRITICAL level records.

    Used by the error log file handler to exclude DEBUG, INFO, and WARNING.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


class SkipImportWarningFilter(logging.Filter):
    """
    Filter that drops records carrying the 'import_warning' extra field.

    Used by the console handler: import warnings reach the screen through
    the warn sink, and the files through the other handlers.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return not hasattr(record, "import_warning")


def setup_logging(base_dir: Path, console_level: int = logging.INFO) -> Path:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before the import starts.

    Args:
        base_dir: Directory that receives the 'logs' subdirectory.
        console_level: Minimum level shown on the console. Default INFO.

    Returns:
        Path to the logs directory.

    Behavior:
        1. Create base_dir/logs if it doesn't exist
        2. Generate timestamp for this run's log files
        3. Configure root logger level to DEBUG
        4. Console handler (TqdmLoggingHandler), colored, at console_level,
           without import warnings (the progress display prints those)
        5. Full log file handler (DEBUG, timestamped format)
        6. Error log file handler (ERROR+ via ErrorOnlyFilter)
        7. Import warnings report handler

    Note:
        Even a dry run writes log files, so base_dir must not be one of
        the import destinations.
    """
    logs_dir = base_dir / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Remove any existing handlers
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ColoredConsoleFormatter())
    console_handler.addFilter(SkipImportWarningFilter())
    root_logger.addHandler(console_handler)

    full_log_path = logs_dir / f"{LOG_FULL_FILENAME}_{timestamp}.log"
    full_handler = logging.FileHandler(full_log_path, mode="w", encoding="utf-8")
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_log_path = logs_dir / f"{LOG_ERRORS_FILENAME}_{timestamp}.log"
    error_handler = logging.FileHandler(error_log_path, mode="w", encoding="utf-8")
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    warnings_path = logs_dir / f"{IMPORT_WARNINGS_FILENAME}_{timestamp}.log"
    warnings_handler = ImportWarningHandler(warnings_path)
    warnings_handler.open()
    root_logger.addHandler(warnings_handler)

    return logs_dir


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.
              This creates a hierarchy like 'itunes_import.importer.tree'.

    Returns:
        logging.Logger: A logger instance configured by setup_logging().

    Note:
        Loggers obtained before setup_logging() is called have no
        handlers of their own. Library code never configures logging.
    """
    return logging.getLogger(name)


def log_import_warning(
    logger: logging.Logger,
    message: str,
    track_label: str | None = None
) -> None:
    """
    Log a non-fatal import warning.

    Attaches the extra fields ImportWarningHandler picks up, so the
    warning lands both in the full log and in the report. The console
    handler skips it; callers show warnings through their warn sink.

    Args:
        logger: The logger to use for the message.
        message: The warning as shown to the user.
        track_label: Optional "[Artist - Name]" of the track involved.

    Example:
        log_import_warning(
            logger,
            '[Queen - Bohemian Rhapsody] Missing recommended field "composer"',
            track_label="[Queen - Bohemian Rhapsody]"
        )
    """
    logger.warning(
        message,
        extra={
            "import_warning": message,
            "import_warning_track": track_label,
        }
    )


def shutdown_logging() -> None:
    """
    Properly shut down the logging system.

    Flushes and closes every handler of the root logger and removes it.
    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except (OSError, ValueError):
            pass
        root_logger.removeHandler(handler)
