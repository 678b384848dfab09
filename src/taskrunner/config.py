# config.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from .errors import ConfigError
from .model import ProjectInfo, RunnerConfig, Settings, TaskDefinition

DEFAULT_CONFIG_FILE = "config.json"


def parse_config(data: Any, source: Path | None = None) -> RunnerConfig:
    """
    Build a RunnerConfig from an already-parsed JSON document.

    Raises:
        ConfigError: on a wrong top-level shape, invalid task entries or
            duplicate task ids.
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be an object")

    project = data.get("project", {})
    if not isinstance(project, dict):
        raise ConfigError("'project' must be an object")

    settings = data.get("settings", {})
    if not isinstance(settings, dict):
        raise ConfigError("'settings' must be an object")

    raw_tasks = data.get("tasks", [])
    if not isinstance(raw_tasks, list):
        raise ConfigError("'tasks' must be a list")

    tasks = []
    seen: Dict[str, int] = {}
    for index, entry in enumerate(raw_tasks):
        task = TaskDefinition.from_dict(entry, index)
        if task.id in seen:
            raise ConfigError(f"Duplicate task id {task.id!r} (tasks[{seen[task.id]}] and tasks[{index}])")
        seen[task.id] = index
        tasks.append(task)

    return RunnerConfig(
        project=ProjectInfo.from_dict(project),
        settings=Settings.from_dict(settings),
        tasks=tasks,
        raw=data,
        source=source,
    )


def load_config(path: str | Path = DEFAULT_CONFIG_FILE) -> RunnerConfig:
    """
    Load the configuration document from a JSON file.

    Any problem here is fatal to the whole run, so everything surfaces as
    ConfigError for the CLI to report.
    """
    config_path = Path(path).expanduser().resolve()
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")
    if not config_path.is_file():
        raise ConfigError(f"Configuration path is not a file: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Could not read {config_path}: {e}") from e

    return parse_config(data, source=config_path)
