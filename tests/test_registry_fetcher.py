"""
Tests for the sparse registry checkout.

Tests cover:
- Cloning a real remote with only the subtree checked out
- Cleanup when the subtree is missing or a git step fails
- Command sequence and default branch resolution (fake runner)
"""

from __future__ import annotations

from pathlib import Path

import pytest

from teamreg.core.errors import GitError, SubtreeNotFoundError
from teamreg.core.git import GitRunner
from teamreg.core.registry import SparseFetcher


class TestSparseFetcherClone:
    """Clone against real bare repositories."""

    def test_clone_checks_out_subtree(self, remote_repo: Path, tmp_path: Path) -> None:
        """The checkout contains the subtree on the remote's default branch."""
        storage = tmp_path / "storage"
        fetcher = SparseFetcher(GitRunner())

        repo_path = fetcher.clone(str(remote_repo), storage)

        assert repo_path == storage / "repo"
        assert (repo_path / ".cursor" / "rules" / "a.mdc").read_text().endswith("Use snake_case.\n")
        assert (repo_path / ".cursor" / "rules" / "b.mdc").exists()
        assert GitRunner().run(["rev-parse", "--abbrev-ref", "HEAD"], cwd=repo_path) == "main"

    def test_sparse_excludes_other_directories(
        self, remote_factory, tmp_path: Path
    ) -> None:
        """Directories outside the subtree are not materialized."""
        remote = remote_factory(
            {
                ".cursor/rules/a.mdc": "rule\n",
                "src/app/main.py": "print('hi')\n",
            }
        )

        repo_path = SparseFetcher(GitRunner()).clone(str(remote), tmp_path / "storage")

        assert (repo_path / ".cursor" / "rules" / "a.mdc").exists()
        assert not (repo_path / "src").exists()

    def test_missing_subtree_cleans_up(self, remote_factory, tmp_path: Path) -> None:
        """A repository without the subtree fails and leaves no checkout."""
        remote = remote_factory({"docs/readme.md": "hello\n"})
        storage = tmp_path / "storage"

        with pytest.raises(SubtreeNotFoundError, match=".cursor"):
            SparseFetcher(GitRunner()).clone(str(remote), storage)

        assert not (storage / "repo").exists()

    def test_bad_remote_cleans_up(self, tmp_path: Path) -> None:
        storage = tmp_path / "storage"

        with pytest.raises(GitError):
            SparseFetcher(GitRunner()).clone(str(tmp_path / "missing.git"), storage)

        assert not (storage / "repo").exists()

    def test_custom_subtree(self, remote_factory, tmp_path: Path) -> None:
        remote = remote_factory({"team-rules/a.mdc": "rule\n"})

        repo_path = SparseFetcher(GitRunner(), subtree="team-rules").clone(
            str(remote), tmp_path / "storage"
        )

        assert (repo_path / "team-rules" / "a.mdc").exists()

    def test_replaces_leftover_checkout(self, remote_repo: Path, tmp_path: Path) -> None:
        storage = tmp_path / "storage"
        (storage / "repo").mkdir(parents=True)
        (storage / "repo" / "junk").write_text("left behind\n")

        repo_path = SparseFetcher(GitRunner()).clone(str(remote_repo), storage)

        assert not (repo_path / "junk").exists()
        assert (repo_path / ".cursor").is_dir()


class TestSparseFetcherCommands:
    """Command sequence, verified with a recording runner."""

    def test_command_sequence(self, fake_runner, tmp_path: Path) -> None:
        runner = fake_runner({("symbolic-ref",): "refs/remotes/origin/trunk"})
        storage = tmp_path / "storage"
        fetcher = SparseFetcher(runner)
        original_run = runner.run

        # Materialize the subtree the way a real checkout would
        def run(args, cwd=None):
            output = original_run(args, cwd)
            if args[0] == "checkout":
                (storage / "repo" / ".cursor").mkdir(parents=True, exist_ok=True)
            return output

        runner.run = run

        fetcher.clone("git@github.com:acme/rules.git", storage)

        repo = str(storage / "repo")
        assert runner.invocations == [
            ("clone", "--no-checkout", "git@github.com:acme/rules.git", repo),
            ("sparse-checkout", "set", ".cursor"),
            ("symbolic-ref", "refs/remotes/origin/HEAD"),
            ("checkout", "trunk"),
        ]
        assert runner.cwds[0] is None
        assert all(cwd == storage / "repo" for cwd in runner.cwds[1:])

    def test_default_branch_fallback(self, fake_runner, tmp_path: Path) -> None:
        """Without origin/HEAD the configured branch is used."""
        runner = fake_runner({("symbolic-ref",): GitError("no such ref", stderr="fatal")})
        fetcher = SparseFetcher(runner, default_branch="develop")

        assert fetcher.resolve_default_branch(tmp_path) == "develop"

    def test_unexpected_ref_falls_back(self, fake_runner, tmp_path: Path) -> None:
        runner = fake_runner({("symbolic-ref",): "refs/heads/weird"})

        assert SparseFetcher(runner).resolve_default_branch(tmp_path) == "main"

    def test_branch_with_slash(self, fake_runner, tmp_path: Path) -> None:
        runner = fake_runner({("symbolic-ref",): "refs/remotes/origin/release/2024"})

        assert SparseFetcher(runner).resolve_default_branch(tmp_path) == "release/2024"

    def test_failed_step_stops(self, fake_runner, tmp_path: Path) -> None:
        """A failing sparse-checkout aborts before checkout."""
        runner = fake_runner({("sparse-checkout",): GitError("sparse failed", stderr="boom")})

        with pytest.raises(GitError, match="boom"):
            SparseFetcher(runner).clone("git@github.com:acme/rules.git", tmp_path / "storage")

        assert [args[0] for args in runner.invocations] == ["clone", "sparse-checkout"]
