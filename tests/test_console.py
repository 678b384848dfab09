from __future__ import annotations

import io
import json
import logging

import click

from taskrunner.model import Settings
from taskrunner.ui.console import ConsoleFormatter, close_logger, create_logger


def _records(path) -> list[dict]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_child_logger_tags_lines_without_touching_parent(tmp_path) -> None:
    stream = io.StringIO()
    log_file = tmp_path / "run.log"
    logger = create_logger(Settings(log_file=str(log_file)), stream=stream)

    child = logger.child(task="build")
    child.info("compiling")
    child.child(git=True).success("pushed")
    logger.warn("top level")
    close_logger(logger)

    lines = stream.getvalue().splitlines()
    assert lines[0].endswith("INFO: [build] compiling")
    assert lines[1].endswith("SUCCESS: [build] pushed")
    assert lines[2].endswith("WARN: top level")

    records = _records(log_file)
    assert records[0]["task"] == "build"
    assert (records[1]["level"], records[1]["task"], records[1]["git"]) == ("success", "build", True)
    assert "task" not in records[2]
    assert records[2]["level"] == "warn"


def test_level_threshold_applies_to_console_only(tmp_path) -> None:
    stream = io.StringIO()
    log_file = tmp_path / "run.log"
    logger = create_logger(Settings(log_file=str(log_file), log_level="warn"), stream=stream)

    logger.debug("hidden")
    logger.info("hidden too")
    logger.success("also hidden")
    logger.error("shown")
    close_logger(logger)

    assert "hidden" not in stream.getvalue()
    assert "ERROR: shown" in stream.getvalue()
    records = _records(log_file)
    assert [r["message"] for r in records] == ["hidden", "hidden too", "also hidden", "shown"]
    assert [r["level"] for r in records] == ["debug", "info", "success", "error"]


def test_debug_flag_overrides_configured_level(tmp_path) -> None:
    stream = io.StringIO()
    logger = create_logger(Settings(log_file=str(tmp_path / "run.log"), log_level="error"), debug=True, stream=stream)

    logger.debug("details")
    close_logger(logger)

    assert "DEBUG: details" in stream.getvalue()


def test_console_formatter_renders_coloured_line() -> None:
    record = logging.LogRecord("taskrunner", logging.INFO, __file__, 1, "hello %s", ("there",), None)
    record.context = {"task": "build"}

    line = ConsoleFormatter(color=True).format(record)

    assert "\x1b[" in line
    assert click.unstyle(line).endswith("INFO: [build] hello there")
