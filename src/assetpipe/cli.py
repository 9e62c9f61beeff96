"""
CLI module - Command line interface for assetpipe

Entry point for the `assetpipe` command using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.tree import Tree

from . import __version__
from .config import BuildConfig, load_config
from .errors import AssetPipeError, ConfigError
from .runners import AsyncRunner, RunnerCallbacks, RunResult
from .tools import TOOL_HINTS, check_tools_status
from .workflow import NodeKind, Task, concurrent, sequential
from .workflow.pipelines import Pipeline, create_pipeline

console = Console()
app = typer.Typer(
    name="assetpipe",
    help="assetpipe - static asset build pipeline with watch mode and live reload.",
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    if value:
        console.print(f"assetpipe version {__version__}")
        raise typer.Exit()


def configure_logging(level: str) -> None:
    """Route library logging through Rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )


def format_seconds(seconds: float) -> str:
    """Format a duration the way the task log shows it."""
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    return f"{seconds:.2f} s"


def make_callbacks() -> RunnerCallbacks:
    """Callbacks printing task progress to the console."""

    def on_task_start(name: str):
        console.print(f"[dim]Starting[/dim] '[cyan]{name}[/cyan]'...")

    def on_task_complete(name: str, success: bool, seconds: float):
        if success:
            console.print(f"[green]✓[/green] '[cyan]{name}[/cyan]' after {format_seconds(seconds)}")
        else:
            console.print(f"[red]✗[/red] '[cyan]{name}[/cyan]' failed after {format_seconds(seconds)}")

    def on_watch_error(pattern: str, error: Exception):
        console.print(f"[yellow]Rebuild failed[/yellow] ({pattern}): {error}")
        console.print("[dim]Still watching - fix the error and save again.[/dim]")

    return RunnerCallbacks(
        on_task_start=on_task_start,
        on_task_complete=on_task_complete,
        on_watch_error=on_watch_error,
    )


def _load(ctx: typer.Context) -> BuildConfig:
    obj = ctx.ensure_object(dict)
    if "config" not in obj:
        try:
            obj["config"] = load_config(obj.get("config_path"), obj.get("production"))
        except ConfigError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from None
        if not obj.get("verbose"):
            logging.getLogger().setLevel(obj["config"].logging.level.upper())
    return obj["config"]


def _pipeline(ctx: typer.Context) -> Pipeline:
    obj = ctx.ensure_object(dict)
    if "pipeline" not in obj:
        try:
            obj["pipeline"] = create_pipeline(_load(ctx), callbacks=make_callbacks())
        except AssetPipeError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from None
    return obj["pipeline"]


def execute(pipeline: Pipeline, task: Task) -> RunResult:
    """Run a task tree to completion, stopping the dev server on the way out."""
    runner = AsyncRunner(make_callbacks())
    try:
        return asyncio.run(runner.run(task))
    finally:
        if pipeline.server.running:
            pipeline.server.stop()


def report(result: RunResult) -> None:
    """Print the run summary and exit non-zero on failure."""
    console.print()
    if result.success:
        console.print(
            f"[bold green]Finished[/bold green] '{result.task_name}': "
            f"{result.tasks_completed} task(s) in {format_seconds(result.duration_seconds)}"
        )
        return

    console.print(f"[bold red]Failed[/bold red] '{result.task_name}': {result.tasks_failed} task(s) failed")
    for err in result.errors:
        console.print(f"  {err}")
    raise typer.Exit(result.exit_code)


def run_names(ctx: typer.Context, names: list[str], series: bool = False) -> None:
    """Resolve task names and run them."""
    pipeline = _pipeline(ctx)
    tasks = []
    for name in names:
        if name not in pipeline.registry:
            console.print(f"[red]Error:[/red] Unknown task: {name}")
            console.print(f"Available: {', '.join(pipeline.registry.names())}")
            console.print("\nRun [cyan]assetpipe tasks[/cyan] to see the task tree")
            raise typer.Exit(2)
        tasks.append(pipeline.registry.get(name))

    if len(tasks) == 1:
        root = tasks[0]
    elif series:
        root = sequential(*tasks, name=" ".join(names))
    else:
        root = concurrent(*tasks, name=" ".join(names))

    console.print(f"[bold]{root.name}[/bold] ({pipeline.config.mode})")
    try:
        result = execute(pipeline, root)
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted by user[/dim]")
        raise typer.Exit(130) from None
    report(result)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool, typer.Option("--version", "-v", callback=version_callback, is_eager=True, help="Show version")
    ] = False,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config file", exists=True, dir_okay=False),
    ] = None,
    production: Annotated[
        bool | None,
        typer.Option("--production/--development", help="Override the ASSETPIPE_ENV mode switch"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Show debug logging")] = False,
):
    """
    assetpipe - static asset build pipeline.

    Without a command, runs the [cyan]default[/cyan] task: build, serve and watch.
    """
    configure_logging("DEBUG" if verbose else "INFO")
    obj = ctx.ensure_object(dict)
    obj["config_path"] = config
    obj["production"] = production
    obj["verbose"] = verbose

    if ctx.invoked_subcommand is None:
        run_names(ctx, ["default"])


@app.command()
def run(
    ctx: typer.Context,
    names: Annotated[list[str] | None, typer.Argument(help="Task names (see `assetpipe tasks`)")] = None,
    series: Annotated[bool, typer.Option("--series", help="Run several tasks one after another")] = False,
    production: Annotated[
        bool | None,
        typer.Option("--production/--development", help="Override the ASSETPIPE_ENV mode switch"),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config file", exists=True, dir_okay=False),
    ] = None,
):
    """
    Run one or more tasks by name.

    Several names run concurrently unless [cyan]--series[/cyan] is given.

    [bold]Examples:[/bold]

        assetpipe run build

        assetpipe run build --production

        assetpipe run clean styles --series
    """
    obj = ctx.ensure_object(dict)
    if production is not None:
        obj["production"] = production
    if config is not None:
        obj["config_path"] = config
    run_names(ctx, names or ["default"], series=series)


@app.command()
def tasks(ctx: typer.Context):
    """Show every invocable task and its composition."""
    pipeline = _pipeline(ctx)
    root = Tree(f"[bold]Tasks[/bold] ({pipeline.config.mode})")

    def add(branch: Tree, task: Task) -> None:
        if task.kind is NodeKind.LEAF:
            desc = f" [dim]{task.description}[/dim]" if task.description else ""
            branch.add(f"[cyan]{task.name}[/cyan]{desc}")
            return
        label = "series" if task.kind is NodeKind.SEQUENTIAL else "parallel"
        node = branch.add(f"[magenta]<{label}>[/magenta] {task.name}")
        for child in task.children:
            add(node, child)

    for name in pipeline.registry.names():
        add(root, pipeline.registry.get(name))

    console.print(root)


@app.command()
def check():
    """Check external tools and show their locations."""
    tools = check_tools_status()

    table = Table(title="External Tools")
    table.add_column("Tool", style="cyan")
    table.add_column("Status")
    table.add_column("Path", style="dim")

    missing = []
    for tool, path in tools.items():
        if path:
            table.add_row(tool, "[green]Available[/green]", str(path))
        else:
            table.add_row(tool, "[red]Missing[/red]", "-")
            missing.append(tool)

    console.print(table)
    console.print("[dim]Vendor prefixes are not added to compiled CSS.[/dim]")

    if missing:
        console.print("\n[yellow]Install the missing tools:[/yellow]")
        for tool in missing:
            console.print(f"  {TOOL_HINTS[tool]}")


def main_cli():
    """Entry point for the assetpipe command."""
    app()


if __name__ == "__main__":
    main_cli()
