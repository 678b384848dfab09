"""Shared test fixtures."""

from __future__ import annotations

import io
import json
import textwrap
from pathlib import Path

import pytest

from taskrunner.config import load_config
from taskrunner.model import Settings
from taskrunner.ui.console import close_logger, create_logger


@pytest.fixture()
def logger(tmp_path):
    """A logger writing to an in-memory console and a temp log file."""
    stream = io.StringIO()
    log = create_logger(Settings(log_file=str(tmp_path / "test.log"), log_level="debug"), stream=stream)
    log.stream = stream
    yield log
    close_logger(log)


def write_handler(tasks_root: Path, task_id: str, body: str) -> Path:
    path = tasks_root / task_id / "task.py"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path


# Appends its own id to the file named in params["trace"].
TRACE_HANDLER = """
from pathlib import Path

async def run(params, config, logger):
    with open(params["trace"], "a", encoding="utf-8") as fh:
        fh.write(params["name"] + "\\n")
"""

FAILING_HANDLER = """
async def run(params, config, logger):
    raise RuntimeError("boom")
"""


@pytest.fixture()
def project(tmp_path):
    """
    Build a project directory: config.json plus tasks/<id>/task.py handlers.

    Returns a function taking the task definitions and a dict of
    {task_id: handler source}; it returns the loaded RunnerConfig.
    """
    def _make(tasks, handlers=None, **project_extra):
        for task_id, body in (handlers or {}).items():
            write_handler(tmp_path / "tasks", task_id, body)
        document = {
            "project": {"name": "demo", "basePath": str(tmp_path), **project_extra},
            "settings": {"logFile": str(tmp_path / "runner.log"), "logLevel": "debug"},
            "tasks": tasks,
        }
        path = tmp_path / "config.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        return load_config(path)

    return _make


def trace_task(task_id: str, trace: Path, **extra) -> dict:
    return {"id": task_id, "params": {"trace": str(trace), "name": task_id}, **extra}


def read_trace(trace: Path) -> list[str]:
    if not trace.exists():
        return []
    return trace.read_text(encoding="utf-8").splitlines()
