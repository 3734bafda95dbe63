"""
Git process runner.

Spawns the git binary once per call with an explicit argument vector,
buffers stdout/stderr in memory and returns stdout when the process exits
with status zero. Any other outcome raises GitError carrying the captured
stderr. There is no retry; callers decide what a failure means.

The registry components receive a runner instance instead of calling
subprocess themselves, so tests can substitute a fake.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from teamreg.core.errors import GitError

logger = logging.getLogger(__name__)


class GitRunner:
    """
    Run git commands and return their output.

    Example:
        >>> runner = GitRunner(timeout=60)
        >>> runner.run(["status", "--porcelain", "--", "rules/a.mdc"], cwd=repo)
        ' M rules/a.mdc'
    """

    DEFAULT_TIMEOUT = 300

    def __init__(self, binary: str = "git", timeout: int = DEFAULT_TIMEOUT) -> None:
        """
        Initialize the runner.

        Args:
            binary: Name or path of the git executable.
            timeout: Seconds to wait for a single command before giving up.
        """
        self.binary = binary
        self.timeout = timeout

    def _environment(self) -> dict[str, str]:
        env = dict(os.environ)
        # Never block on an interactive credential prompt
        env["GIT_TERMINAL_PROMPT"] = "0"
        return env

    def run(self, args: list[str], cwd: Path | None = None) -> str:
        """
        Run a git command and return its stdout.

        Args:
            args: Git command arguments (without the binary name).
            cwd: Working directory for the command.

        Returns:
            Command stdout with trailing whitespace removed. Leading
            whitespace is preserved because porcelain formats depend on it.

        Raises:
            GitError: If the command exits non-zero, times out, or the
                binary cannot be started.
        """
        cmd = [self.binary, *args]
        logger.debug("Running git command: %s (cwd=%s)", " ".join(cmd), cwd)

        if cwd is not None and not Path(cwd).is_dir():
            raise GitError(f"Working directory does not exist: {cwd}", command=cmd)

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                stdin=subprocess.DEVNULL,
                env=self._environment(),
            )
        except subprocess.TimeoutExpired as e:
            raise GitError(f"Git command timed out: {' '.join(cmd)}", command=cmd) from e
        except FileNotFoundError as e:
            raise GitError(f"{self.binary} not found in PATH", command=cmd) from e

        if result.returncode != 0:
            stderr = result.stderr.strip() if result.stderr else ""
            raise GitError(
                f"Git command failed: {' '.join(cmd)}",
                command=cmd,
                exit_code=result.returncode,
                stderr=stderr,
            )

        return result.stdout.rstrip() if result.stdout else ""
