"""
Environment file loading.

TEAMREG_* settings (and anything git's credential helpers read) may live in
.env files next to a project or in the user's config directory. They are
applied to ``os.environ`` before configuration is loaded:

    exported shell variables > project .env.local > project .env > user .env

A .env file never replaces a variable that was already exported.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)


def read_env_file(path: Path) -> dict[str, str]:
    """Parse one .env file, skipping keys without a value."""
    if not path.is_file():
        return {}
    return {key: value for key, value in dotenv_values(path).items() if key and value is not None}


def user_env_path() -> Path:
    """Location of the user-wide .env file."""
    return get_xdg_config_home() / "teamreg" / ".env"


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> dict[str, str]:
    """
    Apply user and project .env files to the process environment.

    Args:
        project_dir: Directory holding the project .env files (defaults to cwd)
        user_env_paths: Override the user-level files
        project_env_paths: Override the project-level files, lowest first

    Returns:
        The variables that were set.
    """
    base = project_dir or Path.cwd()
    user_paths = list(user_env_paths) if user_env_paths is not None else [user_env_path()]
    project_paths = (
        list(project_env_paths)
        if project_env_paths is not None
        else [base / ".env", base / ".env.local"]
    )

    merged: dict[str, str] = {}
    for path in [*user_paths, *project_paths]:
        merged.update(read_env_file(Path(path)))

    applied = {key: value for key, value in merged.items() if key not in os.environ}
    os.environ.update(applied)
    if applied:
        logger.debug("Loaded %d variables from .env files", len(applied))
    return applied
