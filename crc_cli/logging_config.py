from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

import structlog

from crc_cli.config import AppSettings

LOG_FILE_NAME = "crc.log"
ROOT_LOGGER_NAME = "crc"

_CONSOLE_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(settings: AppSettings, *, console_stream: TextIO | None = None) -> Path:
    """
    Route ``crc.*`` loggers to the console and to ``<log_dir>/crc.log``.

    The console handler writes to stderr at the configured level so that
    ``--output json`` on stdout stays machine-readable. The file keeps every
    record at DEBUG as one JSON object per line. Calling this again replaces
    the handlers installed by a previous call.
    """
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    log_file = settings.log_dir / LOG_FILE_NAME

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream = console_stream if console_stream is not None else sys.stderr
    console_handler = logging.StreamHandler(stream=stream)
    console_handler.setLevel(_CONSOLE_LEVELS.get(settings.log_level, logging.INFO))
    console_handler.setFormatter(_console_formatter(colors=_is_tty(stream)))

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(_file_formatter())

    logger.addHandler(console_handler)
    logger.addHandler(file_handler)
    logger.debug("writing debug log to %s", log_file)
    return log_file


def _console_formatter(*, colors: bool) -> structlog.stdlib.ProcessorFormatter:
    # Level and message only; the JSON file carries the rest.
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[structlog.stdlib.add_log_level],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=colors, pad_event=0),
        ],
    )


def _file_formatter() -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
    )


def _is_tty(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty()) if callable(isatty) else False
