"""
Logging infrastructure for the civic triage engine.

Provides:
- Aligned, millisecond-precision console output
- Optional file output
- key=value structured suffixes
- Error and warning tracking for end-of-run summaries
"""

import logging
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

# Third-party loggers that are chatty at INFO
NOISY_LIBRARIES = ["google_genai", "google.genai", "httpx", "httpcore", "urllib3"]


class MillisecondsFormatter(logging.Formatter):
    """Formatter that includes milliseconds and aligns log levels."""

    def formatTime(self, record, datefmt=None):  # noqa: N802 - must match parent class method name
        ct = datetime.fromtimestamp(record.created)
        if datefmt and "%f" in datefmt:
            s = ct.strftime(datefmt.replace(",%f", ""))
            return s + f",{int(record.msecs):03d}"
        elif datefmt:
            return ct.strftime(datefmt)
        else:
            return ct.strftime("%Y-%m-%d %H:%M:%S") + f",{int(record.msecs):03d}"


def _format_fields(message: str, fields: dict) -> str:
    if not fields:
        return message
    formatted = " ".join(f"{k}={v}" for k, v in fields.items())
    return f"{message} [{formatted}]"


class EngineLogger:
    """
    Centralized logger for the engine and CLI with structured output.
    """

    def __init__(
        self,
        name: str = "civic_triage",
        log_level: str = "INFO",
        log_file: Optional[str] = None,
        log_dir: Optional[Path] = None,
    ):
        """
        Initialize the engine logger.

        Args:
            name: Logger name
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
            log_file: Optional log file name
            log_dir: Directory for log files (defaults to logs/ at the repo root)
        """
        level = getattr(logging, log_level.upper())
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        # Prevent propagation to root logger to avoid duplicate logs
        self.logger.propagate = False

        if self.logger.handlers:
            self.logger.handlers.clear()

        fmt_str = "%(asctime)s | %(levelname)-8s | %(filename)s:%(lineno)d | %(message)s"
        formatter = MillisecondsFormatter(fmt_str, datefmt="%Y-%m-%d %H:%M:%S,%f")

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        if log_file:
            if log_dir is None:
                log_dir = Path(__file__).parent.parent.parent / "logs"

            log_dir.mkdir(parents=True, exist_ok=True)
            log_path = log_dir / log_file

            file_handler = logging.FileHandler(log_path)
            file_handler.setLevel(logging.DEBUG)  # Log everything to file
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

            self.info(f"Logging to file: {log_path}")

        self._configure_external_loggers(level, formatter)

        self.errors = []
        self.warnings = []

    def _configure_external_loggers(self, level: int, formatter: logging.Formatter):
        """
        Route module loggers (``logging.getLogger(__name__)`` in the services)
        through the same format, and quiet the Gemini SDK's HTTP chatter.
        """
        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        root_handler = logging.StreamHandler(sys.stdout)
        root_handler.setLevel(level)
        root_handler.setFormatter(formatter)
        root_logger.addHandler(root_handler)

        for lib_name in NOISY_LIBRARIES:
            lib_logger = logging.getLogger(lib_name)
            lib_logger.handlers.clear()
            lib_logger.propagate = True
            lib_logger.setLevel(max(level, logging.WARNING))

    def debug(self, message: str, **kwargs):
        self.logger.debug(_format_fields(message, kwargs), stacklevel=2)

    def info(self, message: str, **kwargs):
        self.logger.info(_format_fields(message, kwargs), stacklevel=2)

    def warning(self, message: str, **kwargs):
        """Log warning message and track for reporting."""
        message = _format_fields(message, kwargs)
        self.logger.warning(message, stacklevel=2)
        self.warnings.append(
            {
                "message": message,
                "timestamp": datetime.now().isoformat(),
                "data": kwargs,
            }
        )

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs):
        """Log error message and track for reporting."""
        if exception:
            message = f"{message} | Exception: {str(exception)}"
        message = _format_fields(message, kwargs)

        self.logger.error(message, exc_info=exception is not None, stacklevel=2)
        self.errors.append(
            {
                "message": message,
                "exception": str(exception) if exception else None,
                "timestamp": datetime.now().isoformat(),
                "data": kwargs,
            }
        )

    def log_triage_complete(self, report_id: str, category: str, priority_score: int, duration_seconds: float):
        """Log a report reaching the complete triage state."""
        message = (
            f"Triage complete [report_id={report_id} category={category} "
            f"priority_score={priority_score} duration_seconds={round(duration_seconds, 2)}]"
        )
        self.logger.info(message, stacklevel=2)

    def log_triage_failed(self, report_id: str, error_message: str):
        """Log a report ending in the error triage state."""
        message = f"Triage failed [report_id={report_id} error={error_message}]"
        self.logger.warning(message, stacklevel=2)
        self.warnings.append(
            {
                "message": message,
                "timestamp": datetime.now().isoformat(),
                "data": {"report_id": report_id, "error": error_message},
            }
        )

    def log_badge_awarded(self, user_id: str, badge_id: str, badge_title: str):
        """Log a badge award."""
        message = f"Badge awarded: {badge_title} [user_id={user_id} badge_id={badge_id}]"
        self.logger.info(message, stacklevel=2)

    @contextmanager
    def time_operation(self, operation: str, **kwargs):
        """
        Context manager to time and log a single operation.

        Usage:
            with logger.time_operation("predictions", lat=40.7):
                ...
        """
        start_time = datetime.now()
        self.debug(f"Starting {operation}", **kwargs)
        try:
            yield
            duration = (datetime.now() - start_time).total_seconds()
            self.info(f"Completed {operation}", duration_seconds=round(duration, 2), **kwargs)
        except Exception as e:
            duration = (datetime.now() - start_time).total_seconds()
            self.error(f"Failed {operation}", exception=e, duration_seconds=round(duration, 2), **kwargs)
            raise

    def get_error_summary(self) -> dict:
        """Get summary of errors and warnings for reporting."""
        return {
            "total_errors": len(self.errors),
            "total_warnings": len(self.warnings),
            "errors": self.errors,
            "warnings": self.warnings,
        }

    def clear_tracking(self):
        """Clear tracked errors and warnings."""
        self.errors = []
        self.warnings = []
