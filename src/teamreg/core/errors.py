"""
Exception hierarchy for registry operations.

Everything the engine raises on purpose derives from RegistryError so
callers can catch one type and still see the raw git stderr when a
subprocess was involved.
"""

from __future__ import annotations


class RegistryError(Exception):
    """Base exception for team registry operations."""

    pass


class GitError(RegistryError):
    """Exception raised when a git invocation fails."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        exit_code: int | None = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.message = message
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr

    def __str__(self) -> str:
        if self.stderr:
            return f"{self.message}: {self.stderr}"
        return self.message


class SubtreeNotFoundError(RegistryError):
    """Raised when a cloned repository does not contain the tracked subtree."""

    pass


class NoActiveRegistryError(RegistryError):
    """Raised when an operation needs an active registry and there is none."""

    pass


class InvalidRegistryPathError(RegistryError):
    """Raised when a path does not belong to the tracked subtree."""

    pass
