"""
Sparse checkout of a remote registry repository.

Clones without a working tree, restricts the checkout to the tracked
subtree, and materializes only that subtree on the remote's default
branch:

    git clone --no-checkout <url> <storage>/repo
    git sparse-checkout set <subtree>
    git symbolic-ref refs/remotes/origin/HEAD
    git checkout <branch>

Any failure removes the partial clone before the error propagates.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from teamreg.core.errors import GitError, SubtreeNotFoundError
from teamreg.core.git.runner import GitRunner

logger = logging.getLogger(__name__)

REMOTE_HEAD_REF = "refs/remotes/origin/HEAD"
REMOTE_REF_PREFIX = "refs/remotes/origin/"


class SparseFetcher:
    """
    Populate a private sparse checkout of a registry repository.

    Example:
        >>> fetcher = SparseFetcher(GitRunner(), subtree=".cursor")
        >>> repo_path = fetcher.clone("git@github.com:acme/rules.git", storage)
        >>> (repo_path / ".cursor").is_dir()
        True
    """

    def __init__(
        self,
        runner: GitRunner,
        subtree: str = ".cursor",
        default_branch: str = "main",
    ) -> None:
        self.runner = runner
        self.subtree = subtree
        self.default_branch = default_branch

    def clone(self, remote_url: str, storage_location: Path) -> Path:
        """
        Clone a remote into ``{storage_location}/repo`` with only the subtree.

        Args:
            remote_url: Repository to clone.
            storage_location: Private directory that will hold the checkout.

        Returns:
            Path of the checkout.

        Raises:
            GitError: If any git step fails.
            SubtreeNotFoundError: If the checked-out branch has no subtree.
        """
        repo_path = storage_location / "repo"
        storage_location.mkdir(parents=True, exist_ok=True)

        if repo_path.exists():
            logger.warning("Removing leftover checkout before clone: %s", repo_path)
            shutil.rmtree(repo_path)

        logger.info("Cloning %s into %s", remote_url, repo_path)
        try:
            self.runner.run(["clone", "--no-checkout", remote_url, str(repo_path)])
            self.runner.run(["sparse-checkout", "set", self.subtree], cwd=repo_path)

            branch = self.resolve_default_branch(repo_path)
            self.runner.run(["checkout", branch], cwd=repo_path)

            if not (repo_path / self.subtree).is_dir():
                raise SubtreeNotFoundError(
                    f"No {self.subtree} folder found in repository {remote_url} "
                    f"(branch {branch})"
                )
        except Exception:
            logger.info("Clone of %s failed, removing partial checkout", remote_url)
            self._remove_partial_clone(repo_path)
            raise

        logger.info("Sparse checkout of %s ready on branch %s", self.subtree, branch)
        return repo_path

    def resolve_default_branch(self, repo_path: Path) -> str:
        """
        Resolve the remote's default branch from ``origin/HEAD``.

        Falls back to the configured default branch if the symbolic ref is
        missing or unparseable.
        """
        try:
            ref = self.runner.run(["symbolic-ref", REMOTE_HEAD_REF], cwd=repo_path).strip()
        except GitError as e:
            logger.debug(
                "Could not resolve remote HEAD, using %s: %s", self.default_branch, e
            )
            return self.default_branch

        if ref.startswith(REMOTE_REF_PREFIX) and len(ref) > len(REMOTE_REF_PREFIX):
            return ref[len(REMOTE_REF_PREFIX) :]

        logger.debug("Unexpected remote HEAD ref %r, using %s", ref, self.default_branch)
        return self.default_branch

    def _remove_partial_clone(self, repo_path: Path) -> None:
        try:
            shutil.rmtree(repo_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove partial clone at %s: %s", repo_path, e)
