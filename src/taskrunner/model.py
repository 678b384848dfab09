# model.py
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import ConfigError

VALID_LOG_LEVELS = ("error", "warn", "info", "success", "debug")

_SAFE_ID = re.compile(r"^[A-Za-z0-9._-]+$")


def is_safe_task_id(task_id: str) -> bool:
    """A task id doubles as a directory name, so it must be a single path segment."""
    return bool(_SAFE_ID.match(task_id)) and task_id not in (".", "..")


@dataclass(frozen=True)
class GitConfig:
    """
    Post-task git actions.

    Values are kept exactly as written in the configuration; type checks
    happen when the actions run so a malformed block only fails its own task.
    """
    add: Any = None
    commit: Any = None
    push: Any = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GitConfig":
        return cls(add=data.get("add"), commit=data.get("commit"), push=data.get("push"))


@dataclass(frozen=True)
class TaskDefinition:
    """
    One entry of the `tasks` list.

    Only the id is checked at load time. The other fields keep whatever the
    document holds; `validate()` rejects bad shapes when the task runs, so a
    malformed entry fails that task alone.
    """
    id: str
    description: Any = None
    enabled: Any = True
    params: Any = field(default_factory=dict)
    git: Any = None

    @classmethod
    def from_dict(cls, data: Any, index: int) -> "TaskDefinition":
        if not isinstance(data, dict):
            raise ConfigError(f"tasks[{index}] must be an object")

        task_id = data.get("id")
        if not isinstance(task_id, str) or not task_id:
            raise ConfigError(f"tasks[{index}] is missing a string 'id'")
        if not is_safe_task_id(task_id):
            raise ConfigError(
                f"tasks[{index}] id {task_id!r} is not filesystem-safe "
                "(use letters, digits, '.', '_' or '-')"
            )

        git = data.get("git")
        return cls(
            id=task_id,
            description=data.get("description"),
            enabled=data.get("enabled", True),
            params=data.get("params", {}),
            git=GitConfig.from_dict(git) if isinstance(git, dict) else git,
        )

    def validate(self) -> None:
        """
        Raises:
            ConfigError: `description` is not a string or `git` is not an object.
        """
        if self.description is not None and not isinstance(self.description, str):
            raise ConfigError(f"Task {self.id!r}: 'description' must be a string")
        if self.git is not None and not isinstance(self.git, GitConfig):
            raise ConfigError(f"Task {self.id!r}: 'git' must be an object")

    def with_params(self, params: Any) -> "TaskDefinition":
        """Return a copy carrying `params`; the original definition is untouched."""
        return replace(self, params=params)


@dataclass(frozen=True)
class ProjectInfo:
    name: str = ""
    base_path: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectInfo":
        name = data.get("name", "")
        base_path = data.get("basePath")
        extra = {k: v for k, v in data.items() if k not in ("name", "basePath")}
        return cls(name=str(name), base_path=base_path, extra=extra)


@dataclass(frozen=True)
class Settings:
    """The `settings` block: where and how much to log, and where handlers live."""
    log_file: str = "runner.log"
    log_level: str = "info"
    tasks_dir: str = "tasks"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        log_level = data.get("logLevel") or "info"
        # Unknown levels fall back to the default instead of failing the run
        if log_level not in VALID_LOG_LEVELS:
            log_level = "info"
        return cls(
            log_file=data.get("logFile") or "runner.log",
            log_level=log_level,
            tasks_dir=data.get("tasksDir") or "tasks",
        )


@dataclass(frozen=True)
class RunnerConfig:
    """
    A loaded configuration document.

    `raw` is the document exactly as parsed. It is what placeholders are
    resolved against and what task handlers receive; nothing may mutate it.
    """
    project: ProjectInfo
    settings: Settings
    tasks: List[TaskDefinition]
    raw: Dict[str, Any]
    source: Optional[Path] = None

    @property
    def tasks_root(self) -> Path:
        root = Path(self.settings.tasks_dir).expanduser()
        if not root.is_absolute() and self.source is not None:
            root = self.source.parent / root
        return root.resolve()


class RunState(str, Enum):
    IDLE = "idle"
    SELECTING = "selecting"
    CONFIRMING = "confirming"
    RESOLVING = "resolving"
    EXECUTING = "executing"
    FINISHED = "finished"
    HALTED = "halted"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class TaskResult:
    task_id: str
    status: str  # "ok" | "failed" | "skipped"


@dataclass
class RunOutcome:
    state: RunState = RunState.IDLE
    results: List[TaskResult] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 1 if self.state is RunState.HALTED else 0

    def record(self, task_id: str, status: str) -> None:
        self.results.append(TaskResult(task_id=task_id, status=status))
