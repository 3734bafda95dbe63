"""
Remote URL validation and display helpers.
"""

from __future__ import annotations

import re
from pathlib import Path
from urllib.parse import urlparse

_REMOTE_URL_RE = re.compile(r"^(git@|ssh://|https?://|file://|git://)|\.git/?$")


def validate_git_url(url: str) -> str:
    """
    Check that a string looks like a clonable git remote.

    Accepts scp-style ``git@host:path``, ssh/http(s)/git/file URLs, anything
    ending in ``.git`` and existing local directories.

    Returns:
        The URL with surrounding whitespace removed; a local directory comes
        back with ``~`` expanded, since git does not expand it.

    Raises:
        ValueError: If the URL is blank or not recognizable.
    """
    trimmed = url.strip() if url else ""
    if not trimmed:
        raise ValueError("Please enter a git repository URL")

    if _REMOTE_URL_RE.search(trimmed):
        return trimmed

    local = Path(trimmed).expanduser()
    if local.is_dir():
        return str(local)

    raise ValueError(
        f"Not a valid git repository URL: {trimmed} "
        "(expected git@host:user/repo.git or https://host/user/repo.git)"
    )


def repository_name(url: str) -> str:
    """
    Short ``owner/repo`` name for a remote URL.

    Example:
        >>> repository_name("git@github.com:acme/rules.git")
        'acme/rules'
        >>> repository_name("https://github.com/acme/rules")
        'acme/rules'
    """
    path = url.strip()
    if path.endswith(".git"):
        path = path[: -len(".git")]

    if "://" in path:
        parsed = urlparse(path)
        path = parsed.path.lstrip("/")
    elif "@" in path and ":" in path:
        path = path.rsplit(":", 1)[-1]

    return path or url
