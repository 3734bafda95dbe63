"""
Rule file discovery inside a checkout.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath
from typing import Iterable

logger = logging.getLogger(__name__)


def normalize_extensions(extensions: Iterable[str]) -> set[str]:
    """
    Lowercase extensions and make sure each one starts with a dot.

    Example:
        >>> sorted(normalize_extensions(["MDC", ".rule", "", "."]))
        ['.mdc', '.rule']
    """
    normalized: set[str] = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext or ext == ".":
            continue
        normalized.add(ext if ext.startswith(".") else f".{ext}")
    return normalized


def is_rule_file(name: str, extensions: Iterable[str]) -> bool:
    """Check whether a file name carries one of the allowed extensions."""
    return PurePosixPath(name).suffix.lower() in normalize_extensions(extensions)


def enumerate_rule_files(
    subtree_root: Path,
    allowed_extensions: Iterable[str],
    relative_to: Path | None = None,
) -> list[str]:
    """
    Walk a subtree and list every rule file in it.

    Args:
        subtree_root: Directory to walk recursively.
        allowed_extensions: Extensions to keep, matched case-insensitively.
        relative_to: Base the returned paths are relative to. Defaults to
            the parent of ``subtree_root`` so results keep the subtree
            prefix (``.cursor/rules/a.mdc``).

    Returns:
        Sorted forward-slash relative paths.

    Example:
        >>> enumerate_rule_files(Path("/data/repo/.cursor"), [".mdc"])
        ['.cursor/rules/a.mdc', '.cursor/rules/b.mdc']
    """
    extensions = normalize_extensions(allowed_extensions)
    base = relative_to if relative_to is not None else subtree_root.parent
    files: list[str] = []

    if not subtree_root.is_dir():
        logger.warning("Subtree to enumerate does not exist: %s", subtree_root)
        return files

    for dirpath, dirnames, filenames in os.walk(subtree_root):
        dirnames.sort()
        for filename in sorted(filenames):
            if PurePosixPath(filename).suffix.lower() not in extensions:
                continue
            full_path = Path(dirpath) / filename
            files.append(full_path.relative_to(base).as_posix())

    logger.debug("Found %d rule files under %s", len(files), subtree_root)
    return sorted(files)
