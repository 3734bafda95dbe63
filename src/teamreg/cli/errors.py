"""
Standardized error handling and exit codes for the teamreg CLI.

Consistent error messages with actionable guidance and standardized exit
codes across all commands.
"""

from enum import IntEnum

from rich.console import Console

from teamreg.core.errors import GitError, RegistryError

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for teamreg CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, including git failures."""

    USER_ERROR = 2
    """User configuration or input error (actionable by user)."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "Push failed",
        ...     reason="! [rejected] main -> main (fetch first)",
        ...     solution="teamreg sync",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(reason, style="dim", markup=False, highlight=False)

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_no_registry_error() -> None:
    """Print error when the workspace has no active registry."""
    print_error(
        "No team registry is active for this workspace",
        reason="Status and sync commands operate on the registry checkout",
        solution="teamreg add <git-url>",
    )


def print_git_error(action: str, error: GitError) -> None:
    """Print a git failure with git's own stderr, which is usually the actionable part."""
    hint = None
    stderr = error.stderr.lower()
    if "rejected" in stderr or "fetch first" in stderr or "non-fast-forward" in stderr:
        hint = "teamreg sync  # fetch, rebase onto the remote, then push"
    elif "conflict" in stderr:
        hint = "resolve the conflicts in the registry checkout, then run teamreg sync"

    print_error(f"{action} failed", reason=error.stderr or error.message, solution=hint)


def print_registry_error(action: str, error: RegistryError) -> None:
    """Print any registry failure, delegating git failures to print_git_error."""
    if isinstance(error, GitError):
        print_git_error(action, error)
    else:
        print_error(f"{action} failed", reason=str(error))
