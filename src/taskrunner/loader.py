# loader.py
from __future__ import annotations

import inspect
import runpy
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from .errors import ConfigError, HandlerError
from .git import run_git_actions
from .model import RunnerConfig, TaskDefinition, is_safe_task_id

HANDLER_FILENAME = "task.py"

# run(params, config, logger)
TaskEntryPoint = Callable[[Any, Mapping[str, Any], Any], Awaitable[None]]


@dataclass(frozen=True)
class TaskHandler:
    """
    Where a task's `run` comes from: a handler file on disk, or a callable
    registered in-process.
    """
    task_id: str
    path: Optional[Path] = None
    entry_point: Optional[TaskEntryPoint] = None

    def exists(self) -> bool:
        return self.entry_point is not None or (self.path is not None and self.path.is_file())

    def load(self) -> TaskEntryPoint:
        """
        Return the handler's async `run` function.

        Handler files are executed with runpy each time they are loaded, so
        edits between runs are picked up.

        Raises:
            HandlerError: the handler does not define an async `run`.
        """
        if self.entry_point is not None:
            run = self.entry_point
        else:
            module_name = f"taskrunner_task_{self.task_id.replace('-', '_').replace('.', '_')}"
            globals_dict = runpy.run_path(str(self.path), run_name=module_name)
            run = globals_dict.get("run")

        if not inspect.iscoroutinefunction(run):
            raise HandlerError('Task module must define an async function named "run".')
        return run


class HandlerRegistry:
    """
    Task handlers by task id.

    `discover()` scans `<tasks_root>/<id>/task.py` once; `register()` adds
    in-process handlers, which win over files with the same id.
    """

    def __init__(self, tasks_root: str | Path):
        self.tasks_root = Path(tasks_root)
        self._handlers: Dict[str, TaskHandler] = {}

    @classmethod
    def discover(cls, tasks_root: str | Path) -> "HandlerRegistry":
        registry = cls(tasks_root)
        if registry.tasks_root.is_dir():
            for child in sorted(registry.tasks_root.iterdir()):
                path = child / HANDLER_FILENAME
                if child.is_dir() and is_safe_task_id(child.name) and path.is_file():
                    registry._handlers[child.name] = TaskHandler(task_id=child.name, path=path)
        return registry

    def handler_path(self, task_id: str) -> Path:
        return self.tasks_root / task_id / HANDLER_FILENAME

    def register(self, task_id: str, entry_point: TaskEntryPoint) -> None:
        self._handlers[task_id] = TaskHandler(task_id=task_id, entry_point=entry_point)

    def get(self, task_id: str) -> Optional[TaskHandler]:
        return self._handlers.get(task_id)

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._handlers

    def ids(self) -> list[str]:
        return sorted(self._handlers)


async def execute_task(
    task: TaskDefinition,
    config: RunnerConfig,
    registry: HandlerRegistry,
    logger,
) -> bool:
    """
    Load and run one (already resolved) task.

    Returns True on success, False on any failure. Errors raised by the
    handler or its git actions are logged here and never propagate.
    """
    task_logger = logger.child(task=task.id)

    try:
        task.validate()
    except ConfigError as e:
        task_logger.error(f"Invalid task definition: {e}")
        return False

    handler = registry.get(task.id)
    if handler is None or not handler.exists():
        task_logger.error(
            f"Task directory or {HANDLER_FILENAME} not found at: {registry.handler_path(task.id)}"
        )
        return False

    try:
        run = handler.load()

        task_logger.info(f"Starting task execution... ({task.description or task.id})")
        await run(task.params, config.raw, task_logger)

        if task.git is not None:
            await run_git_actions(task, config.raw, task_logger)

        task_logger.success("Task completed successfully.")
        return True
    except Exception as e:
        task_logger.error("Task failed with an error:")
        task_logger.error("".join(traceback.format_exception(type(e), e, e.__traceback__)).rstrip())
        return False
