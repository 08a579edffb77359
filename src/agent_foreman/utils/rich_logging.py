"""Console and file logging with feature context."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "agent_foreman"


class ForemanLogFormatter(logging.Formatter):
    """Formatter that prefixes records with the active feature id."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        feature_context = ""
        if getattr(record, "feature_id", None):
            feature_context = f"[{record.feature_id}] "

        if self.use_colors:
            level_color = self.LEVEL_COLORS.get(record.levelname, "")
            reset = "\033[0m"
        else:
            level_color = ""
            reset = ""

        message = (
            f"{timestamp} {level_color}{record.levelname:8s}{reset} "
            f"{feature_context}{record.getMessage()}"
        )
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


class FeatureLogger(logging.LoggerAdapter):
    """Logger adapter that tags every record with the feature being worked on."""

    def __init__(self, logger: logging.Logger, feature_id: Optional[str] = None):
        super().__init__(logger, {})
        self.feature_id = feature_id

    def process(self, msg, kwargs):
        extra = kwargs.get("extra", {})
        if self.feature_id:
            extra["feature_id"] = self.feature_id
        kwargs["extra"] = extra
        return msg, kwargs


def setup_logging(
    workspace: Path,
    verbose: bool = False,
    use_file: bool = True,
) -> logging.Logger:
    """
    Configure the package logger for a CLI invocation.

    Console output goes to stderr so stdout stays clean for ``--json``
    output. When the project has an ``ai/`` directory, a plain-text copy
    is appended to ``ai/logs/foreman.log``.

    Args:
        workspace: Project root
        verbose: Emit DEBUG records on the console
        use_file: Also log to the project log file

    Returns:
        The configured ``agent_foreman`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # Close existing handlers before clearing (prevents file descriptor leak)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(
        ForemanLogFormatter(use_colors=hasattr(sys.stderr, "isatty") and sys.stderr.isatty())
    )
    logger.addHandler(console_handler)

    ai_dir = workspace / "ai"
    if use_file and ai_dir.is_dir():
        log_dir = ai_dir / "logs"
        log_dir.mkdir(exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "foreman.log", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(ForemanLogFormatter(use_colors=False))
        logger.addHandler(file_handler)

    return logger


def get_feature_logger(name: str, feature_id: Optional[str] = None) -> FeatureLogger:
    """Return a FeatureLogger wrapping ``logging.getLogger(name)``."""
    return FeatureLogger(logging.getLogger(name), feature_id)
