"""
Pytest configuration and shared fixtures.

Provides isolated XDG/git environments, throwaway registry remotes built
with real git, a workspace directory, and a recording fake git runner.
"""

import subprocess
from pathlib import Path

import pytest

from teamreg.core.config import RegistryConfig, clear_cache
from teamreg.core.git.runner import GitRunner
from teamreg.core.registry import RegistryManager

SEED_FILES = {
    ".cursor/rules/a.mdc": "---\nrule: always\n---\nUse snake_case.\n",
    ".cursor/rules/b.mdc": "---\nrule: auto\n---\nPrefer pathlib.\n",
    ".cursor/notes.txt": "not a rule\n",
    "README.md": "# Team rules\n",
}


def run_git(cwd: Path, *args: str) -> str:
    """Run git for test setup, failing the test on error."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def make_remote(base: Path, files: dict[str, str], name: str = "remote.git") -> Path:
    """Create a bare repository on branch main containing the given files."""
    seed = base / f"{name}-seed"
    seed.mkdir(parents=True)
    run_git(seed, "init", "-q")
    run_git(seed, "symbolic-ref", "HEAD", "refs/heads/main")
    for relative, content in files.items():
        path = seed / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    run_git(seed, "add", "-A")
    run_git(seed, "commit", "-q", "-m", "Seed registry")

    remote = base / name
    run_git(base, "clone", "-q", "--bare", str(seed), str(remote))
    return remote


# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point HOME, XDG dirs and git identity at throwaway locations."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    for name in (
        "TEAMREG_SUBTREE",
        "TEAMREG_EXTENSIONS",
        "TEAMREG_GIT_BINARY",
        "TEAMREG_GIT_TIMEOUT",
        "TEAMREG_DATA_DIR",
        "TEAMREG_MANAGE_GITIGNORE",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_cache()
    yield
    clear_cache()


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def workspace(tmp_path) -> Path:
    """Provide an empty workspace directory."""
    path = tmp_path / "workspace"
    path.mkdir()
    return path


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """Provide the private data directory for state and checkouts."""
    return tmp_path / "data"


@pytest.fixture
def remote_repo(tmp_path) -> Path:
    """Bare registry remote with two rules under .cursor/rules."""
    return make_remote(tmp_path / "remotes", SEED_FILES)


# ==============================================================================
# Registry Fixtures
# ==============================================================================


@pytest.fixture
def registry_config(data_dir) -> RegistryConfig:
    """Registry settings restricted to .mdc rules and a temp data dir."""
    return RegistryConfig(rule_extensions=[".mdc"], data_dir=data_dir)


@pytest.fixture
def manager(workspace, registry_config) -> RegistryManager:
    """Initialized manager with no registry yet."""
    registry_manager = RegistryManager(workspace, registry_config)
    registry_manager.initialize()
    return registry_manager


@pytest.fixture
def active_manager(manager, remote_repo) -> RegistryManager:
    """Manager with the seed registry added."""
    manager.add_registry(str(remote_repo))
    return manager


# ==============================================================================
# Fake Runner
# ==============================================================================


class FakeGitRunner(GitRunner):
    """
    Test double that records invocations and replays canned results.

    Responses are keyed by argument prefix; the longest matching prefix wins.
    A response that is an exception instance is raised instead of returned.
    Unmatched commands succeed with empty output.
    """

    def __init__(self, responses: dict[tuple[str, ...], object] | None = None) -> None:
        super().__init__(binary="git")
        self.responses = dict(responses or {})
        self.invocations: list[tuple[str, ...]] = []
        self.cwds: list[Path | None] = []

    def run(self, args: list[str], cwd: Path | None = None) -> str:
        self.invocations.append(tuple(args))
        self.cwds.append(cwd)

        best: tuple[str, ...] | None = None
        for prefix in self.responses:
            if tuple(args[: len(prefix)]) == prefix and (best is None or len(prefix) > len(best)):
                best = prefix

        if best is None:
            return ""
        response = self.responses[best]
        if isinstance(response, Exception):
            raise response
        return str(response)

    def commands(self) -> list[str]:
        """First argument of every invocation, in order."""
        return [args[0] for args in self.invocations]


@pytest.fixture
def git():
    """Run git for test setup: ``git(cwd, "commit", "-m", "msg")``."""
    return run_git


@pytest.fixture
def remote_factory(tmp_path):
    """Build additional bare remotes: ``remote_factory(files, name)``."""

    def factory(files: dict[str, str], name: str = "other.git") -> Path:
        return make_remote(tmp_path / "remotes", files, name)

    return factory


@pytest.fixture
def fake_runner():
    """Build a FakeGitRunner from a prefix -> response mapping."""

    def factory(responses: dict[tuple[str, ...], object] | None = None) -> FakeGitRunner:
        return FakeGitRunner(responses)

    return factory
