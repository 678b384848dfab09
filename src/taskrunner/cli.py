# cli.py
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from taskrunner.config import DEFAULT_CONFIG_FILE, load_config
from taskrunner.errors import ConfigError
from taskrunner.loader import HandlerRegistry
from taskrunner.model import RunnerConfig
from taskrunner.runner import parse_task_ids, run_tasks, select_tasks
from taskrunner.ui.console import close_logger, create_logger, print_error


def _run_async(coro):
    """
    Drive `coro` to completion on a fresh event loop.

    Ctrl-C must reach the confirmation prompt as KeyboardInterrupt (which
    click turns into Abort), so the loop runs without the SIGINT handler
    that asyncio.run() installs.
    """
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        return loop.run_until_complete(coro)
    finally:
        asyncio.set_event_loop(None)
        loop.close()


def _load(config_path: str) -> RunnerConfig:
    """Load the configuration or exit with a readable error."""
    try:
        return load_config(config_path)
    except ConfigError as e:
        print_error(
            "Invalid configuration",
            str(e),
            suggestion="Fix the configuration file or point to another one:\n  taskrunner run --config path/to/config.json",
        )
        sys.exit(1)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (log everything, including state transitions)",
)
@click.pass_context
def cli(ctx, debug):
    """taskrunner: run the tasks declared in a JSON configuration, in order."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="Configuration file",
)
@click.option("--tasks", "-t", default=None, help="Run specific tasks by ID (comma-separated)")
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    default=False,
    help="Skip the wizard and run all selected tasks automatically",
)
@click.pass_context
def run(ctx, config_path, tasks, yes):
    """Run the configured tasks, asking before each one."""
    config = _load(config_path)
    try:
        logger = create_logger(config.settings, debug=ctx.obj.get("debug", False))
    except OSError as e:
        print_error("Could not open log file", f"{config.settings.log_file}: {e}")
        sys.exit(1)

    try:
        registry = HandlerRegistry.discover(config.tasks_root)
        logger.debug(f"Handlers found in {registry.tasks_root}: {', '.join(registry.ids()) or 'none'}")

        outcome = _run_async(
            run_tasks(
                config,
                registry,
                logger,
                task_ids=parse_task_ids(tasks),
                assume_yes=yes,
            )
        )
    except KeyboardInterrupt:
        logger.warn("Interrupted by user")
        sys.exit(130)
    finally:
        close_logger(logger)

    sys.exit(outcome.exit_code)


@cli.command(name="list")
@click.option(
    "--config",
    "-c",
    "config_path",
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="Configuration file",
)
@click.option("--tasks", "-t", default=None, help="Only show these task IDs (comma-separated)")
def list_tasks(config_path, tasks):
    """Show the configured tasks and whether each would run."""
    config = _load(config_path)
    registry = HandlerRegistry.discover(config.tasks_root)
    selected = {t.id for t in select_tasks(config.tasks, parse_task_ids(tasks))}

    click.echo(f"Project: {config.project.name or Path(config.source).parent.name}")
    click.echo(f"Tasks root: {registry.tasks_root}")
    for task in config.tasks:
        if task.id in selected:
            marker = "✓"
            reason = "will run"
        elif task.enabled is False:
            marker = "⏭"
            reason = "disabled"
        else:
            marker = "⏭"
            reason = "not selected"
        if task.id not in registry:
            reason += ", handler missing"
        line = f"{marker} {task.id} ({reason})"
        if task.description:
            line += f" - {task.description}"
        click.echo(line)


if __name__ == "__main__":
    cli()
