"""tasktree CLI entrypoint."""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import click

from .config.loader import (
    ConfigError,
    apply_overrides,
    create_default_config,
    default_config_path,
    load_config_or_default,
)
from .config.models import TaskTreeConfig
from .core.lint import lint_tree
from .core.models import Task
from .tasksets.store import (
    TasksetError,
    load_tasksets,
    read_taskset,
    save_taskset,
    taskset_path,
)
from .utils.formatting import format_finding, render_graph, task_to_json, tasks_to_json
from .utils.logging import setup_logging
from .utils.timeparse import DateParseError, DurationParseError, parse_due, parse_duration

CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
}


def _duration_option(ctx: click.Context, param: click.Parameter, value) -> Optional[timedelta]:
    if value is None:
        return None
    try:
        return parse_duration(value)
    except DurationParseError as e:
        raise click.BadParameter(str(e))


def _due_option(ctx: click.Context, param: click.Parameter, value) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return parse_due(value)
    except DateParseError as e:
        raise click.BadParameter(str(e))


def _fail(message: str) -> None:
    click.echo(f"✗ {message}", err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--config",
    "-c",
    default=None,
    help="Path to configuration file [default: $XDG_CONFIG_HOME/tasktree.yml]",
    type=click.Path(exists=False, path_type=Path),
)
@click.option(
    "--tasksets-path",
    "-T",
    envvar="TASKTREE_TASKSETS_PATH",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory containing the task sets",
)
@click.option(
    "--taskset",
    "-s",
    "tasksets",
    multiple=True,
    envvar="TASKTREE_DEFAULT_TASKSET",
    help="Task set to use, stored at $TASKSETS/$TASKSET.yml (repeatable)",
)
@click.option(
    "--pomodoro-length",
    "-p",
    envvar="TASKTREE_POMODORO_LENGTH",
    callback=_duration_option,
    help="Length of a pomodoro session",
)
@click.option(
    "--short-break-length",
    "-b",
    envvar="TASKTREE_SHORT_BREAK_LENGTH",
    callback=_duration_option,
    help="Length of a short break",
)
@click.option(
    "--long-break-length",
    "-B",
    envvar="TASKTREE_LONG_BREAK_LENGTH",
    callback=_duration_option,
    help="Length of a long break",
)
@click.option(
    "--long-break-frequency",
    "-f",
    envvar="TASKTREE_LONG_BREAK_FREQUENCY",
    type=click.IntRange(min=1),
    help="Number of pomodoros before a long break",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    tasksets_path: Optional[Path],
    tasksets: tuple[str, ...],
    pomodoro_length: Optional[timedelta],
    short_break_length: Optional[timedelta],
    long_break_length: Optional[timedelta],
    long_break_frequency: Optional[int],
    verbose: bool,
) -> None:
    """tasktree - Manage task dependency trees and check they are achievable."""
    setup_logging(level="DEBUG" if verbose else "WARNING")

    config_path = config or default_config_path()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    # init writes the file, so it must not require a valid one
    if ctx.invoked_subcommand == "init":
        return

    try:
        settings = load_config_or_default(config_path)
        settings = apply_overrides(
            settings,
            tasksets_path=tasksets_path,
            default_tasksets=list(tasksets) or None,
            pomodoro_length=pomodoro_length,
            short_break_length=short_break_length,
            long_break_length=long_break_length,
            long_break_after=long_break_frequency,
        )
    except ConfigError as e:
        _fail(f"Configuration error: {e}")

    setup_logging(
        level="DEBUG" if verbose else settings.logging.level,
        log_dir=settings.logging.log_dir,
        rotation_mb=settings.logging.rotation_mb,
        retention_days=settings.logging.retention_days,
    )

    ctx.obj["config"] = settings


def _selected_paths(config: TaskTreeConfig) -> list[Path]:
    return [taskset_path(config.tasksets_path, name) for name in config.default_tasksets]


@cli.command()
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite existing configuration",
)
@click.pass_context
def init(ctx: click.Context, force: bool) -> None:
    """Create a default configuration file."""
    config_path: Path = ctx.obj["config_path"]

    if config_path.exists() and not force:
        click.echo(f"Configuration already exists: {config_path}")
        click.echo("Use --force to overwrite")
        sys.exit(1)

    try:
        create_default_config(config_path)
    except OSError as e:
        _fail(f"Failed to create configuration: {e}")
    click.echo(f"✓ Created configuration: {config_path}")


@cli.command("list-tasks")
@click.pass_context
def list_tasks(ctx: click.Context) -> None:
    """List all tasks in the selected task sets."""
    config: TaskTreeConfig = ctx.obj["config"]
    tree = load_tasksets(config.tasksets_path, config.default_tasksets)
    click.echo(tasks_to_json(tree.tasks))


@cli.command("show-tree")
@click.pass_context
def show_tree(ctx: click.Context) -> None:
    """Print the tree of tasks."""
    config: TaskTreeConfig = ctx.obj["config"]
    tree = load_tasksets(config.tasksets_path, config.default_tasksets)
    click.echo(render_graph(tree.graph))


@cli.command("show-task")
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def show_task(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Show tasks by name."""
    config: TaskTreeConfig = ctx.obj["config"]
    tree = load_tasksets(config.tasksets_path, config.default_tasksets)
    for name in names:
        task = tree.tasks.get(name)
        if task is None:
            click.echo(f"No such task: {name}", err=True)
            continue
        click.echo(task_to_json(task))


@cli.command("add-task")
@click.argument("name")
@click.argument("description")
@click.option(
    "--duration",
    "-t",
    callback=_duration_option,
    help="Expected duration of the task",
)
@click.option(
    "--depends",
    "-r",
    "depends_on",
    multiple=True,
    help="A dependency of the task (repeatable)",
)
@click.option(
    "--symbolic",
    "-s",
    is_flag=True,
    help="The task is symbolic; it is complete when its dependencies are complete",
)
@click.option(
    "--complete",
    "-c",
    is_flag=True,
    help="The task is already complete",
)
@click.option(
    "--due",
    "-d",
    callback=_due_option,
    help="Due date of the task",
)
@click.pass_context
def add_task(
    ctx: click.Context,
    name: str,
    description: str,
    duration: Optional[timedelta],
    depends_on: tuple[str, ...],
    symbolic: bool,
    complete: bool,
    due: Optional[datetime],
) -> None:
    """Add a task, replacing any task with the same name."""
    config: TaskTreeConfig = ctx.obj["config"]
    paths = _selected_paths(config)
    if len(paths) != 1:
        _fail("Exactly one taskset must be specified for add-task")

    path = paths[0]
    try:
        tree = read_taskset(path, strict=True)
        tree.insert_task(
            name,
            Task(
                description=description,
                estimated_time=duration,
                depends_on=list(depends_on),
                symbolic=symbolic,
                complete=complete,
                due=due,
            ),
        )
        save_taskset(tree, path)
    except (TasksetError, OSError) as e:
        _fail(str(e))
    click.echo(f"✓ Added task: {name}")


@cli.command("remove-task")
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def remove_task(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Remove tasks from every selected task set."""
    config: TaskTreeConfig = ctx.obj["config"]
    for path in _selected_paths(config):
        try:
            tree = read_taskset(path, strict=True)
            removed = [name for name in names if name in tree.tasks]
            for name in removed:
                tree.remove_task(name)
                click.echo(f"✓ Removed {name} from {path.stem}")
            if removed:
                save_taskset(tree, path)
        except (TasksetError, OSError) as e:
            _fail(str(e))


@cli.command("complete-task")
@click.argument("names", nargs=-1, required=True)
@click.option(
    "--complete/--incomplete",
    "-c/-i",
    default=True,
    help="Whether the task is complete",
)
@click.pass_context
def complete_task(ctx: click.Context, names: tuple[str, ...], complete: bool) -> None:
    """Mark tasks complete (or incomplete) in every selected task set."""
    config: TaskTreeConfig = ctx.obj["config"]
    state = "complete" if complete else "incomplete"
    for path in _selected_paths(config):
        try:
            tree = read_taskset(path, strict=True)
            updated = [name for name in names if tree.set_complete(name, complete)]
            for name in updated:
                click.echo(f"✓ Marked {name} {state} in {path.stem}")
            if updated:
                save_taskset(tree, path)
        except (TasksetError, OSError) as e:
            _fail(str(e))


@cli.command()
@click.pass_context
def lint(ctx: click.Context) -> None:
    """Lint the task tree."""
    config: TaskTreeConfig = ctx.obj["config"]
    tree = load_tasksets(config.tasksets_path, config.default_tasksets)
    findings = lint_tree(tree)

    if not findings:
        click.echo("no errors found.")
        return

    for finding in findings:
        click.echo(format_finding(finding))
    sys.exit(1)


if __name__ == "__main__":
    cli()
