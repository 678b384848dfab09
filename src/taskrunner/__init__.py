from .config import load_config, parse_config
from .loader import HandlerRegistry, execute_task
from .model import GitConfig, RunnerConfig, RunOutcome, RunState, TaskDefinition
from .placeholders import resolve
from .runner import confirm_task, run_tasks, select_tasks

__all__ = [
    "load_config", "parse_config", "HandlerRegistry", "execute_task",
    "GitConfig", "RunnerConfig", "RunOutcome", "RunState", "TaskDefinition",
    "resolve", "confirm_task", "run_tasks", "select_tasks",
]
