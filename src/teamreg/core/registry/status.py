"""
Per-file git status and the mutating sync operations.

All commands run inside the private checkout. Read operations never raise:
a failed lookup degrades to UNMODIFIED / NO_REMOTE so a caller always has
something to render. Mutating operations propagate GitError with the raw
stderr, because the tool's own wording (conflicts, auth, network) is the
most useful thing to show the user.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

from teamreg.core.errors import GitError, InvalidRegistryPathError
from teamreg.core.git.runner import GitRunner
from teamreg.core.registry.models import DetailedFileStatus, FileStatus, RemoteStatus

logger = logging.getLogger(__name__)

UNTRACKED_CODE = "??"


def classify_local_status(code: str) -> FileStatus:
    """
    Map a two-character porcelain status code to a FileStatus.

    Example:
        >>> classify_local_status("")
        <FileStatus.UNMODIFIED: 'unmodified'>
        >>> classify_local_status(" M")
        <FileStatus.MODIFIED: 'modified'>
    """
    if not code.strip():
        return FileStatus.UNMODIFIED
    if code == UNTRACKED_CODE:
        return FileStatus.UNTRACKED
    return FileStatus.MODIFIED


def classify_remote_status(ahead: int, behind: int, has_upstream: bool = True) -> RemoteStatus:
    """
    Classify ahead/behind commit counts relative to an upstream.

    Example:
        >>> classify_remote_status(ahead=1, behind=1)
        <RemoteStatus.DIVERGED: 'diverged'>
    """
    if not has_upstream:
        return RemoteStatus.NO_REMOTE
    if ahead > 0 and behind > 0:
        return RemoteStatus.DIVERGED
    if ahead > 0:
        return RemoteStatus.AHEAD
    if behind > 0:
        return RemoteStatus.BEHIND
    return RemoteStatus.UP_TO_DATE


def parse_left_right_count(output: str) -> tuple[int, int]:
    """
    Parse ``rev-list --left-right --count <upstream>...HEAD`` output.

    Returns:
        (behind, ahead) tuple.

    Raises:
        ValueError: If the output is not two integers.
    """
    parts = output.split()
    if len(parts) != 2:
        raise ValueError(f"Unexpected rev-list output: {output!r}")
    return int(parts[0]), int(parts[1])


class StatusEngine:
    """
    Query and change the git state of registry files.

    Paths are workspace-relative (``.cursor/rules/a.mdc``). Because the
    checkout mirrors the subtree at the same location, the repo-relative
    path is the same string once it is confirmed to lie under the subtree.
    """

    def __init__(self, runner: GitRunner, repo_path: Path, subtree: str = ".cursor") -> None:
        self.runner = runner
        self.repo_path = repo_path
        self.subtree = PurePosixPath(subtree).as_posix().strip("/")

    def _git(self, args: list[str]) -> str:
        return self.runner.run(args, cwd=self.repo_path)

    def repo_relative_path(self, file: str) -> str:
        """
        Map a workspace-relative path to its path inside the checkout.

        Raises:
            InvalidRegistryPathError: If the path escapes or lies outside
                the tracked subtree.
        """
        path = PurePosixPath(file.replace("\\", "/"))
        if path.is_absolute() or ".." in path.parts:
            raise InvalidRegistryPathError(f"Not a workspace-relative path: {file}")

        parts = [part for part in path.parts if part != "."]
        subtree_parts = PurePosixPath(self.subtree).parts
        if len(parts) <= len(subtree_parts) or tuple(parts[: len(subtree_parts)]) != subtree_parts:
            raise InvalidRegistryPathError(f"{file} is not inside {self.subtree}/")
        return "/".join(parts)

    def _status_code(self, repo_file: str) -> str:
        output = self._git(["status", "--porcelain", "--", repo_file])
        if not output.strip():
            return ""
        return output.splitlines()[0][:2]

    def get_file_status(self, file: str) -> FileStatus:
        """Coarse local status of one file; UNMODIFIED if it cannot be determined."""
        try:
            return classify_local_status(self._status_code(self.repo_relative_path(file)))
        except (GitError, InvalidRegistryPathError) as e:
            logger.warning("Could not determine status of %s: %s", file, e)
            return FileStatus.UNMODIFIED

    def get_detailed_file_status(self, file: str) -> DetailedFileStatus:
        """
        Local and remote status of one file.

        Remote fields are best-effort: without an upstream (or when any
        lookup fails) the result reports NO_REMOTE with no hashes or
        message.
        """
        try:
            repo_file = self.repo_relative_path(file)
        except InvalidRegistryPathError as e:
            logger.warning("Could not determine status of %s: %s", file, e)
            return DetailedFileStatus()

        try:
            code = self._status_code(repo_file)
        except GitError as e:
            logger.warning("Local status lookup failed for %s: %s", file, e)
            code = ""

        status = DetailedFileStatus(
            local_status=classify_local_status(code),
            has_uncommitted_changes=bool(code.strip()),
            has_unstaged_changes=code == UNTRACKED_CODE or (len(code) == 2 and code[1] != " "),
        )

        try:
            branch = self._git(["rev-parse", "--abbrev-ref", "HEAD"]).strip()
            upstream = self._git(["rev-parse", "--abbrev-ref", f"{branch}@{{upstream}}"]).strip()
        except GitError:
            logger.debug("No upstream configured for %s", self.repo_path)
            return status

        try:
            behind, ahead = parse_left_right_count(
                self._git(["rev-list", "--left-right", "--count", f"{upstream}...HEAD"])
            )
            head = self._git(["rev-parse", "HEAD"]).strip()
            remote_head = self._git(["rev-parse", upstream]).strip()
        except (GitError, ValueError) as e:
            logger.warning("Remote status lookup failed for %s: %s", file, e)
            return status

        status.last_commit_hash = head
        status.remote_commit_hash = remote_head
        status.remote_status = classify_remote_status(ahead, behind)
        status.commit_message = self._last_commit_message(repo_file)
        return status

    def _last_commit_message(self, repo_file: str) -> str | None:
        try:
            message = self._git(["log", "-1", "--pretty=format:%s", "--", repo_file]).strip()
        except GitError as e:
            logger.debug("Commit message lookup failed for %s: %s", repo_file, e)
            return None
        return message or None

    def stage_and_commit_file(self, file: str, message: str) -> str:
        """
        Stage exactly one file and commit it.

        Returns:
            SHA of the new HEAD commit.

        Raises:
            ValueError: If the message is blank.
            InvalidRegistryPathError: If the path is outside the subtree.
            GitError: If staging or committing fails.
        """
        if not message or not message.strip():
            raise ValueError("Commit message cannot be empty")

        repo_file = self.repo_relative_path(file)
        self._git(["add", "--", repo_file])
        self._git(["commit", "-m", message])
        commit_sha = self._git(["rev-parse", "HEAD"]).strip()
        logger.info("Committed %s: %s (%s)", repo_file, commit_sha[:8], message)
        return commit_sha

    def push_changes(self) -> None:
        """Push the checkout branch to its upstream."""
        self._git(["push"])
        logger.info("Pushed registry changes from %s", self.repo_path)

    def pull_changes(self) -> None:
        """Pull upstream changes into the checkout."""
        self._git(["pull"])
        logger.info("Pulled registry changes into %s", self.repo_path)

    def fetch_and_rebase_then_push(self) -> None:
        """
        Fetch, rebase local commits onto the upstream, then push.

        Stops at the first failing step. A failed rebase leaves the checkout
        mid-rebase for the user to resolve; the GitError carries git's
        explanation.
        """
        for args in (["fetch"], ["rebase"], ["push"]):
            logger.info("Running git %s in %s", args[0], self.repo_path)
            self._git(args)
        logger.info("Rebased and pushed registry changes from %s", self.repo_path)
