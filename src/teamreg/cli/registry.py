"""
Teamreg CLI - team registry commands.

Add or remove the workspace's team registry, inspect per-file status, and
commit, push, or pull registry changes.
"""

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from teamreg.cli.errors import (
    ExitCode,
    print_error,
    print_no_registry_error,
    print_registry_error,
)
from teamreg.core.config import load_config
from teamreg.core.errors import NoActiveRegistryError, RegistryError
from teamreg.core.registry import (
    DetailedFileStatus,
    ProjectionAction,
    RegistryManager,
    StatusColor,
    repository_name,
)

console = Console()

COLOR_STYLES = {
    StatusColor.GREEN: "green",
    StatusColor.YELLOW: "yellow",
    StatusColor.RED: "red",
    StatusColor.GRAY: "dim",
}


def get_manager(ctx: typer.Context) -> RegistryManager:
    """Build and initialize the registry manager for the selected workspace."""
    obj = ctx.obj or {}
    workspace = obj.get("workspace") or Path.cwd()
    config = load_config(project_dir=workspace, use_cache=False)
    manager = RegistryManager(workspace, config.registry)
    manager.initialize()
    return manager


def _fail(action: str, error: Exception) -> None:
    if isinstance(error, NoActiveRegistryError):
        print_no_registry_error()
        raise typer.Exit(ExitCode.USER_ERROR)
    if isinstance(error, RegistryError):
        print_registry_error(action, error)
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    print_error(f"{action} failed", reason=str(error))
    raise typer.Exit(ExitCode.USER_ERROR)


def add(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Git URL of the team registry repository"),
) -> None:
    """
    Add a team registry to this workspace.

    Clones the registry's rules subtree into private storage and links each
    rule file into the workspace. Existing local files are never replaced.

    Examples:
        teamreg add git@github.com:acme/rules.git
        teamreg add https://github.com/acme/rules.git
    """
    manager = get_manager(ctx)
    try:
        with console.status(f"Cloning {url}..."):
            registry = manager.add_registry(url)
    except (RegistryError, ValueError) as e:
        _fail("Adding registry", e)
        return

    console.print(
        f"[green]✓[/green] Added team registry [bold]{repository_name(registry.remote_url)}[/bold] "
        f"({len(registry.files)} files)"
    )


def remove(ctx: typer.Context) -> None:
    """
    Remove the team registry from this workspace.

    Deletes the projected links and the private checkout. Local files at
    registry paths are kept.
    """
    manager = get_manager(ctx)
    try:
        removed = manager.remove_registry()
    except RegistryError as e:
        _fail("Removing registry", e)
        return

    if removed:
        console.print("[green]✓[/green] Team registry removed")
    else:
        console.print("[blue]No team registry to remove[/blue]")


def info(ctx: typer.Context) -> None:
    """Show the active team registry."""
    manager = get_manager(ctx)
    registry = manager.get_active_registry()
    if registry is None:
        print_no_registry_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    table = Table(title="Team Registry", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Repository", repository_name(registry.remote_url))
    table.add_row("URL", registry.remote_url)
    table.add_row("Storage", registry.storage_location)
    table.add_row("Files", str(len(registry.files)))
    console.print(table)

    for file in registry.files:
        console.print(f"  {file}")


def _status_row(file: str, status: DetailedFileStatus) -> list[str]:
    style = COLOR_STYLES[status.color]
    return [
        f"[{style}]●[/{style}] {file}",
        status.local_status.value,
        status.remote_status.value,
        status.commit_message or "",
    ]


def status(
    ctx: typer.Context,
    path: str | None = typer.Argument(None, help="Registry file to inspect (default: all)"),
    as_json: bool = typer.Option(False, "--json", help="Print status as JSON"),
) -> None:
    """
    Show local and remote status of registry files.

    Examples:
        teamreg status
        teamreg status .cursor/rules/style.mdc
        teamreg status --json
    """
    manager = get_manager(ctx)
    if manager.get_active_registry() is None:
        print_no_registry_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    if path is None:
        statuses = manager.get_all_file_statuses()
    else:
        try:
            relative = manager.normalize_path(path)
        except RegistryError as e:
            _fail("Status", e)
            return
        statuses = {relative: manager.get_detailed_file_status(relative)}

    if as_json:
        payload = {
            file: {**detail.model_dump(mode="json", by_alias=True), "color": detail.color.value}
            for file, detail in statuses.items()
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    table = Table(title="Registry Status")
    table.add_column("File")
    table.add_column("Local")
    table.add_column("Remote")
    table.add_column("Last commit", style="dim")
    for file, detail in statuses.items():
        table.add_row(*_status_row(file, detail))
    console.print(table)


def commit(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Registry file to commit"),
    message: str = typer.Option(..., "--message", "-m", help="Commit message"),
) -> None:
    """
    Stage and commit one registry file in the registry checkout.

    Examples:
        teamreg commit .cursor/rules/style.mdc -m "Tighten naming rule"
    """
    manager = get_manager(ctx)
    try:
        commit_sha = manager.stage_and_commit_file(path, message)
    except (RegistryError, ValueError) as e:
        _fail("Commit", e)
        return
    console.print(f"[green]✓[/green] Committed: {commit_sha[:8]}")


def push(ctx: typer.Context) -> None:
    """Push committed registry changes to the remote."""
    manager = get_manager(ctx)
    try:
        with console.status("Pushing to remote..."):
            manager.push_changes()
    except RegistryError as e:
        _fail("Push", e)
        return
    console.print("[green]✓[/green] Pushed to remote")


def pull(ctx: typer.Context) -> None:
    """Pull remote registry changes."""
    manager = get_manager(ctx)
    try:
        with console.status("Pulling remote changes..."):
            manager.pull_changes()
    except RegistryError as e:
        _fail("Pull", e)
        return
    console.print("[green]✓[/green] Pulled remote changes")


def sync(ctx: typer.Context) -> None:
    """
    Fetch, rebase local commits onto the remote, then push.

    Resolves a diverged registry. If the rebase hits a conflict the
    checkout is left mid-rebase for manual resolution.
    """
    manager = get_manager(ctx)
    try:
        with console.status("Fetching, rebasing and pushing..."):
            manager.fetch_and_rebase_then_push()
    except RegistryError as e:
        _fail("Sync", e)
        return
    console.print("[green]✓[/green] Registry synced with remote")


def repair(ctx: typer.Context) -> None:
    """Recreate missing or stale links for the active registry."""
    manager = get_manager(ctx)
    try:
        report = manager.repair()
    except RegistryError as e:
        _fail("Repair", e)
        return

    console.print(
        f"[green]✓[/green] {report.count(ProjectionAction.CREATED)} created, "
        f"{report.count(ProjectionAction.REPAIRED)} repaired, "
        f"{report.count(ProjectionAction.UNCHANGED)} unchanged"
    )
    for file in report.paths_with(ProjectionAction.PRESERVED_FILE):
        console.print(f"[yellow]⚠[/yellow]  Local file kept: {file}")
    for file in report.paths_with(ProjectionAction.MISSING_SOURCE):
        console.print(f"[red]✗[/red] Missing in checkout: {file}")
