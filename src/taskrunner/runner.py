# runner.py
from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Sequence

import click

from .errors import PromptCancelled
from .loader import HandlerRegistry, execute_task
from .model import RunnerConfig, RunOutcome, RunState, TaskDefinition
from .placeholders import resolve

Prompt = Callable[..., bool]


# ----------------------------------------------------------------------
# Selection
# ----------------------------------------------------------------------

def parse_task_ids(value: str | Iterable[str] | None) -> Optional[List[str]]:
    """
    Turn the comma-separated `--tasks` value into a list of ids.

    Returns None when nothing usable was given, which means "no override".
    """
    if value is None:
        return None
    items = value.split(",") if isinstance(value, str) else list(value)
    ids = [item.strip() for item in items if item and item.strip()]
    return ids or None


def select_tasks(
    tasks: Sequence[TaskDefinition],
    task_ids: Optional[Iterable[str]] = None,
) -> List[TaskDefinition]:
    """
    Pick the tasks to run.

    Disabled tasks are always dropped. With `task_ids`, only those ids are
    kept. Configuration order is preserved either way.
    """
    selected = [t for t in tasks if t.enabled is not False]
    if task_ids is not None:
        wanted = set(task_ids)
        selected = [t for t in selected if t.id in wanted]
    return selected


# ----------------------------------------------------------------------
# Confirmation
# ----------------------------------------------------------------------

def confirm_message(task: TaskDefinition) -> str:
    task_id = click.style(task.id, fg="cyan")
    if task.description:
        return f"Run task '{task_id}' ({task.description})?"
    return f"Run task '{task_id}'?"


def confirm_task(task: TaskDefinition, *, assume_yes: bool = False, prompt: Optional[Prompt] = None) -> bool:
    """
    Ask whether `task` should run (default: yes).

    Raises:
        PromptCancelled: the operator aborted the prompt (Ctrl-C / EOF)
            instead of answering it.
    """
    if assume_yes:
        return True
    prompt = prompt or click.confirm
    try:
        return bool(prompt(confirm_message(task), default=True))
    except click.Abort as e:
        raise PromptCancelled("Wizard cancelled by user.") from e


# ----------------------------------------------------------------------
# Run controller
# ----------------------------------------------------------------------

def _transition(outcome: RunOutcome, state: RunState, logger) -> None:
    logger.debug(f"state: {outcome.state.value} -> {state.value}")
    outcome.state = state


async def run_tasks(
    config: RunnerConfig,
    registry: HandlerRegistry,
    logger,
    *,
    task_ids: Optional[Iterable[str]] = None,
    assume_yes: bool = False,
    prompt: Optional[Prompt] = None,
) -> RunOutcome:
    """
    Run the selected tasks one after another, stopping at the first failure.

    A declined task is skipped and the run continues; an aborted prompt ends
    the whole run cleanly (state CANCELLED, exit code 0); a failed task ends
    it with state HALTED (exit code 1).
    """
    outcome = RunOutcome()
    logger.info(f'Starting Task Runner for project: "{config.project.name}"')

    _transition(outcome, RunState.SELECTING, logger)
    wanted = list(task_ids) if task_ids is not None else None
    tasks = select_tasks(config.tasks, wanted)

    if wanted is not None:
        found = {t.id for t in tasks}
        for task_id in wanted:
            if task_id not in found:
                logger.warn(f"Requested task '{task_id}' is not an enabled task in the configuration.")
        logger.info(f"Running selected tasks: {', '.join(t.id for t in tasks)}")
    else:
        logger.info(f"Running all tasks in order: {', '.join(t.id for t in tasks)}")

    if not tasks:
        logger.warn("No tasks to run. Exiting.")
        _transition(outcome, RunState.FINISHED, logger)
        return outcome

    if assume_yes:
        logger.info("'-y' flag detected. Running in non-interactive mode.")

    for task in tasks:
        _transition(outcome, RunState.CONFIRMING, logger)
        try:
            should_run = confirm_task(task, assume_yes=assume_yes, prompt=prompt)
        except PromptCancelled:
            logger.warn("Wizard cancelled by user. Exiting.")
            _transition(outcome, RunState.CANCELLED, logger)
            return outcome

        if not should_run:
            logger.warn(f"Skipping task: '{task.id}' as requested by user.")
            outcome.record(task.id, "skipped")
            continue

        _transition(outcome, RunState.RESOLVING, logger)
        resolved = task.with_params(resolve(task.params, config.raw))

        _transition(outcome, RunState.EXECUTING, logger)
        ok = await execute_task(resolved, config, registry, logger)
        outcome.record(task.id, "ok" if ok else "failed")

        if not ok:
            logger.error("Stopping runner due to a failed task.")
            _transition(outcome, RunState.HALTED, logger)
            return outcome

    _transition(outcome, RunState.FINISHED, logger)
    logger.info("Task runner finished.")
    return outcome
