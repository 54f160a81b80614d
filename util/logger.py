import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Dict
from config.settings import settings

logging.captureWarnings(True)

# Third-party loggers that are chatty at INFO (model loads, HTTP request lines)
_QUIET: Dict[str, int] = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "sentence_transformers": logging.WARNING,
    "nltk": logging.WARNING,
}


class ColoredFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[37m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[41m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        if not getattr(record, "_colorize", False):
            return super().format(record)
        # Records are shared between handlers; restore the plain name afterwards
        plain = record.levelname
        record.levelname = f"{self.COLORS.get(plain, self.RESET)}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


class _ConsoleTag(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record._colorize = sys.stdout.isatty()  # type: ignore[attr-defined]
        return True


def init_logger(level_name: str | None = None) -> logging.Logger:
    """
    Idempotent logger init for the compliance pipeline:
    - Always logs to stdout, colored only when stdout is a terminal.
    - Writes to LOG_DIR/LOG_FILE_NAME only when settings.LOG_TO_FILE is True,
      rotated by size (LOG_MAX_BYTES / LOG_BACKUP_COUNT).
    - `level_name` overrides settings.LOG_LEVEL (used by batch jobs and tests).
    """
    root = logging.getLogger()
    if getattr(root, "_compliance_inited", False):
        return logging.getLogger(settings.LOGGER_NAME)

    level = getattr(
        logging, (level_name or settings.LOG_LEVEL or "INFO").upper(), logging.INFO
    )
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)

    text_fmt = "%(asctime)s %(levelname)s %(name)s - %(message)s"
    date_fmt = "%Y-%m-%dT%H:%M:%S%z"

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(ColoredFormatter(text_fmt, datefmt=date_fmt))
    console.addFilter(_ConsoleTag())
    root.addHandler(console)

    if settings.LOG_TO_FILE:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        fh = RotatingFileHandler(
            os.path.join(settings.LOG_DIR, settings.LOG_FILE_NAME),
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(text_fmt, datefmt=date_fmt))
        root.addHandler(fh)

    for name, quiet_level in _QUIET.items():
        logging.getLogger(name).setLevel(quiet_level)

    root._compliance_inited = True  # type: ignore[attr-defined]
    logger = logging.getLogger(settings.LOGGER_NAME)
    logger.debug(
        "logger.init level=%s file=%s", logging.getLevelName(level), settings.LOG_TO_FILE
    )
    return logger
