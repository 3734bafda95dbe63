"""
Ignore-file upkeep for the workspace's own repository.

While a registry is active its subtree is listed in the workspace's
.gitignore so projected links are not committed by accident. Nothing is
written when the workspace is not under version control.
"""

from __future__ import annotations

import logging
from pathlib import Path

from git import InvalidGitRepositoryError, NoSuchPathError, Repo

logger = logging.getLogger(__name__)

GITIGNORE = ".gitignore"


def ignore_entry(subtree: str) -> str:
    """Ignore-file line for a subtree (``.cursor`` -> ``.cursor/``)."""
    return f"{subtree.strip('/')}/"


def is_version_controlled(workspace_root: Path) -> bool:
    """Check whether the workspace lives inside a git working tree."""
    try:
        repo = Repo(workspace_root, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return False
    return not repo.bare


def add_ignore_entry(workspace_root: Path, subtree: str) -> bool:
    """
    Append the subtree entry to the workspace .gitignore.

    Returns:
        True if the file was changed.
    """
    if not is_version_controlled(workspace_root):
        logger.debug("Workspace is not a git repository, leaving ignore file alone")
        return False

    entry = ignore_entry(subtree)
    path = workspace_root / GITIGNORE
    content = path.read_text() if path.exists() else ""

    if entry in (line.strip() for line in content.splitlines()):
        return False

    if content and not content.endswith("\n"):
        content += "\n"
    path.write_text(f"{content}{entry}\n")
    logger.info("Added %s to %s", entry, path)
    return True


def remove_ignore_entry(workspace_root: Path, subtree: str) -> bool:
    """
    Remove the subtree entry from the workspace .gitignore.

    Returns:
        True if the file was changed.
    """
    path = workspace_root / GITIGNORE
    if not path.exists() or not is_version_controlled(workspace_root):
        return False

    entry = ignore_entry(subtree)
    lines = path.read_text().splitlines(keepends=True)
    kept = [line for line in lines if line.strip() != entry]
    if len(kept) == len(lines):
        return False

    path.write_text("".join(kept))
    logger.info("Removed %s from %s", entry, path)
    return True
