"""
Teamreg CLI - Main application entry point.

Sets up the Typer CLI application with all registry commands.
"""

import logging
import sys
from pathlib import Path

import typer

from teamreg import __version__
from teamreg.cli import registry
from teamreg.core.config.env import load_layered_env

app = typer.Typer(
    name="teamreg",
    help="Mirror a team rules repository into your workspace",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for CLI commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"teamreg {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Workspace directory (default: current directory)",
        file_okay=False,
        resolve_path=True,
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    Teamreg - Team Registry Synchronization.

    Links the rule files of a shared git repository into this workspace and
    keeps them in sync with the team.

    Quick Start:
        teamreg add git@github.com:acme/rules.git
        teamreg status
        teamreg commit .cursor/rules/style.mdc -m "Update style rule"
        teamreg push
    """
    workspace = workspace or Path.cwd()

    setup_logging(debug)
    # Precedence: OS env > project .env > user .env
    load_layered_env(project_dir=workspace)

    ctx.obj = {"workspace": workspace, "debug": debug}


app.command(name="add")(registry.add)
app.command(name="remove")(registry.remove)
app.command(name="info")(registry.info)
app.command(name="status")(registry.status)
app.command(name="commit")(registry.commit)
app.command(name="push")(registry.push)
app.command(name="pull")(registry.pull)
app.command(name="sync")(registry.sync)
app.command(name="repair")(registry.repair)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
