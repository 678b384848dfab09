# git.py
# Post-task git actions: add -> commit -> push.
#
# Commands are run as shell strings in the project's base directory. The
# commit message only has its double quotes escaped; shell metacharacters in
# messages or file names are NOT neutralized.

from __future__ import annotations

import asyncio
import subprocess
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from .errors import ConfigError, GitActionError, GitCommandError
from .model import GitConfig, TaskDefinition


def _shell(command: str, cwd: Path) -> subprocess.CompletedProcess:
    return subprocess.run(
        command,
        shell=True,
        cwd=str(cwd),
        text=True,
        capture_output=True,
    )


async def _run_git(command: str, cwd: Path) -> Tuple[str, str]:
    """
    Run one git command line and return (stdout, stderr).

    Raises:
        GitCommandError: the command exited non-zero or could not be started.
    """
    try:
        proc = await asyncio.to_thread(_shell, command, cwd)
    except OSError as e:
        # e.g. the working directory does not exist
        raise GitCommandError(command=command, exit_code=None, stderr=str(e)) from e

    if proc.returncode != 0:
        raise GitCommandError(
            command=command,
            exit_code=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )
    return proc.stdout or "", proc.stderr or ""


def add_command(files: Any) -> str:
    if isinstance(files, (list, tuple)):
        files = " ".join(files)
    return f"git add {files}"


def commit_command(message: str) -> str:
    sanitized = message.replace('"', '\\"')
    return f'git commit -m "{sanitized}"'


def commit_message(commit: Any, task: TaskDefinition) -> str:
    """`commit: true` means "use the task description"."""
    if commit is True:
        if not task.description:
            raise ConfigError("Cannot use 'commit: true' when the task has no description.")
        return task.description
    return commit


async def git_add(files: Any, working_dir: Path, logger) -> None:
    command = add_command(files)
    logger.info(f"Executing: {command}")
    stdout, _stderr = await _run_git(command, working_dir)
    if stdout:
        logger.info(stdout)


async def git_commit(message: str, working_dir: Path, logger) -> None:
    command = commit_command(message)
    logger.info(f"Executing: {command}")
    stdout, _stderr = await _run_git(command, working_dir)
    if stdout:
        logger.info(f"Commit successful:\n{stdout}")


async def git_push(working_dir: Path, logger) -> None:
    command = "git push"
    logger.info(f"Executing: {command}")
    stdout, stderr = await _run_git(command, working_dir)
    if stdout:
        logger.info(stdout)
    # git reports push progress on stderr
    if stderr:
        logger.info(stderr)


def _validate(git: GitConfig, task: TaskDefinition) -> Optional[str]:
    """Check the git block and return the commit message (if committing)."""
    add = git.add
    if add is not None and not (
        isinstance(add, str)
        or (isinstance(add, list) and all(isinstance(f, str) for f in add))
    ):
        raise ConfigError(f"Task {task.id!r}: git.add must be a string or a list of strings")

    if git.commit is not None and not isinstance(git.commit, (str, bool)):
        raise ConfigError(f"Task {task.id!r}: git.commit must be a string or a boolean")

    if git.push is not None and not isinstance(git.push, bool):
        raise ConfigError(f"Task {task.id!r}: git.push must be a boolean")

    if not git.commit:
        return None
    return commit_message(git.commit, task)


def working_directory(global_config: Mapping[str, Any]) -> Path:
    project = global_config.get("project") or {}
    base_path = project.get("basePath") if isinstance(project, Mapping) else None
    if not isinstance(base_path, str) or not base_path:
        raise ConfigError("Git actions need 'project.basePath' in the configuration.")
    return Path(base_path).expanduser().resolve()


async def run_git_actions(task: TaskDefinition, global_config: Mapping[str, Any], logger) -> None:
    """
    Run the task's git actions in the fixed order add -> commit -> push.

    Only the steps present in the git block run. Configuration problems are
    raised before any command starts. The first failing command stops the
    sequence; its output is logged and a single GitActionError is raised.
    """
    git = task.git
    if git is None:
        return

    task.validate()
    message = _validate(git, task)
    working_dir = working_directory(global_config)

    git_logger = logger.child(git=True)
    git_logger.info("Starting post-task Git actions...")

    try:
        if git.add:
            await git_add(git.add, working_dir, git_logger)
        if message:
            await git_commit(message, working_dir, git_logger)
        if git.push:
            await git_push(working_dir, git_logger)
    except GitCommandError as e:
        logger.error("A Git command failed:")
        logger.error(f"COMMAND: {e.command}")
        logger.error(f"STDOUT: {e.stdout or 'N/A'}")
        logger.error(f"STDERR: {e.stderr or 'N/A'}")
        raise GitActionError("Git operation failed. See logs for details.") from e

    git_logger.success("Git actions completed successfully.")
