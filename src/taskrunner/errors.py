# errors.py
from __future__ import annotations

from dataclasses import dataclass


class TaskRunnerError(Exception):
    """Base class for every error raised by taskrunner."""


class ConfigError(TaskRunnerError):
    """The configuration document (or one task definition in it) is invalid."""


class HandlerError(TaskRunnerError):
    """A task handler could not be located or does not expose `run`."""


class PromptCancelled(TaskRunnerError):
    """The operator aborted the confirmation prompt instead of answering it."""


class GitActionError(TaskRunnerError):
    """Summarized failure of the post-task git actions."""


@dataclass
class GitCommandError(TaskRunnerError):
    """
    A single git command failed.

    Carries the captured streams so the caller can log them before
    summarizing the failure.
    """
    command: str
    exit_code: int | None
    stdout: str = ""
    stderr: str = ""

    def __str__(self) -> str:
        if self.exit_code is None:
            return f"'{self.command}' could not be started: {self.stderr}"
        return f"'{self.command}' failed (exit={self.exit_code})"
