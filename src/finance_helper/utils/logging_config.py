"""Logging configuration for finance helper."""

import logging
import time
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

# Root logger name shared by every module in the package
ROOT_LOGGER_NAME = "finance_helper"

# Default log file name
DEFAULT_LOG_FILE = "finance_helper.log"

# Context keys masked in log output (card numbers appear in statement exports)
SENSITIVE_FIELDS = {"card", "card_number", "account_number", "password", "token", "secret"}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _sanitize_context(context: dict[str, object]) -> dict[str, object]:
    """Mask sensitive values in a logging context dict.

    Args:
        context: Dictionary of context values.

    Returns:
        Copy of the dictionary with sensitive values replaced by ``***``.
    """
    return {k: "***" if k.lower() in SENSITIVE_FIELDS else v for k, v in context.items()}


def setup_logging(
    level: str = "INFO",
    log_file: str | None = DEFAULT_LOG_FILE,
    console_output: bool = True,
) -> logging.Logger:
    """Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Path to a log file, or None to disable file logging.
        console_output: Whether to also log to stderr through rich.

    Returns:
        The package root logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

    if console_output:
        console_handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
        console_handler.setLevel(numeric_level)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Module name (typically __name__).

    Returns:
        A child of the package root logger.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class LogContext:
    """Context manager that logs the start, end, and failure of an operation."""

    def __init__(self, logger: logging.Logger, operation: str, **context: object):
        """Initialize log context.

        Args:
            logger: Logger instance to use.
            operation: Name of the operation being performed.
            **context: Additional context to include in log messages.
        """
        self.logger = logger
        self.operation = operation
        self.context = context
        self._started = 0.0

    def __enter__(self) -> "LogContext":
        sanitized = _sanitize_context(self.context)
        context_str = ", ".join(f"{k}={v}" for k, v in sanitized.items())
        self.logger.debug(f"Starting {self.operation}: {context_str}")
        self._started = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> bool:
        elapsed = time.perf_counter() - self._started
        if exc_type is not None:
            self.logger.error(
                f"{self.operation} failed after {elapsed:.3f}s: {exc_type.__name__}: {exc_val}",
                exc_info=True,
            )
        else:
            self.logger.debug(f"Completed {self.operation} in {elapsed:.3f}s")
        return False
