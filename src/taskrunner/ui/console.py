"""Console and log-file output for taskrunner."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from typing import Any, Optional

import click

from taskrunner.model import Settings

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "success": SUCCESS,
    "debug": logging.DEBUG,
}

LEVEL_LABELS = {
    logging.DEBUG: ("DEBUG", None),
    logging.INFO: ("INFO", "blue"),
    SUCCESS: ("SUCCESS", "green"),
    logging.WARNING: ("WARN", "yellow"),
    logging.ERROR: ("ERROR", "red"),
    logging.CRITICAL: ("ERROR", "red"),
}

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _context(record: logging.LogRecord) -> dict:
    return getattr(record, "context", None) or {}


def _level_name(levelno: int) -> str:
    return LEVEL_LABELS.get(levelno, (logging.getLevelName(levelno), None))[0].lower()


class ConsoleFormatter(logging.Formatter):
    """`<timestamp> LEVEL: [task] message`, with coloured level labels."""

    def __init__(self, color: bool = True):
        super().__init__()
        self.color = color

    def _paint(self, text: str, fg: Optional[str]) -> str:
        return click.style(text, fg=fg) if self.color and fg else text

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime(TIMESTAMP_FORMAT)
        label, colour = LEVEL_LABELS.get(record.levelno, (record.levelname, None))
        task = _context(record).get("task")
        task_label = f"[{task}] " if task else ""
        line = (
            f"{self._paint(timestamp, 'bright_black')} "
            f"{self._paint(label, colour)}: {task_label}{record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class JsonFormatter(logging.Formatter):
    """One JSON object per line, context fields included."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).strftime(TIMESTAMP_FORMAT),
            "level": _level_name(record.levelno),
            "message": record.getMessage(),
        }
        payload.update(_context(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TaskLogger(logging.LoggerAdapter):
    """
    Leveled logger carrying structured context.

    `child(task="build")` returns a new logger whose lines are tagged with
    the extra context; the parent is not affected.
    """

    def __init__(self, logger: logging.Logger, context: Optional[dict] = None):
        super().__init__(logger, dict(context or {}))

    def process(self, msg, kwargs):
        context = dict(self.extra)
        extra = kwargs.pop("extra", None) or {}
        context.update(extra)
        kwargs["extra"] = {"context": context}
        return msg, kwargs

    def child(self, **context: Any) -> "TaskLogger":
        return TaskLogger(self.logger, {**self.extra, **context})

    def success(self, msg, *args, **kwargs) -> None:
        self.log(SUCCESS, msg, *args, **kwargs)

    def warn(self, msg, *args, **kwargs) -> None:
        self.warning(msg, *args, **kwargs)


def create_logger(
    settings: Settings,
    *,
    debug: bool = False,
    name: str = "taskrunner",
    stream=None,
) -> TaskLogger:
    """
    Build the run's logger from the `settings` block.

    The console follows `settings.log_level` (or `debug` when the CLI asked
    for it); the log file always records everything down to debug.
    """
    level = logging.DEBUG if debug else LEVELS.get(settings.log_level, logging.INFO)

    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    stream = stream or sys.stdout
    console = logging.StreamHandler(stream)
    console.setLevel(level)
    console.setFormatter(ConsoleFormatter(color=hasattr(stream, "isatty") and stream.isatty()))
    logger.addHandler(console)

    file_handler = logging.FileHandler(settings.log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(JsonFormatter())
    logger.addHandler(file_handler)

    return TaskLogger(logger)


def close_logger(logger: TaskLogger) -> None:
    for handler in list(logger.logger.handlers):
        logger.logger.removeHandler(handler)
        handler.close()


def print_error(
    title: str,
    message: str,
    details: Optional[list[str]] = None,
    suggestion: Optional[str] = None,
) -> None:
    """
    Print a structured error to stderr.

    Used for failures that happen before a logger exists, such as an
    unreadable configuration file.
    """
    click.echo(click.style(f"\nERROR: {title}", fg="red"), err=True)
    click.echo(message, err=True)
    if details:
        for detail in details:
            click.echo(f"  {detail}", err=True)
    if suggestion:
        click.echo(f"\n{suggestion}", err=True)
