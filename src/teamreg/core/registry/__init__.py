"""
Team registry synchronization.

Mirrors the rules subtree of a shared git repository into the workspace
through symbolic links, keeps that mirror consistent across restarts, and
reports local/remote divergence per file.

A sparse checkout of the registry lives in a private data directory. Each
rule file in it is projected into the workspace as a link; a real file the
user already has at the same path always takes precedence and is never
touched.

Example:
    >>> from teamreg.core.registry import RegistryManager
    >>> manager = RegistryManager(Path("."))
    >>> manager.initialize()
    >>> manager.add_registry("git@github.com:acme/rules.git")
    >>> manager.get_detailed_file_status(".cursor/rules/style.mdc").remote_status
    <RemoteStatus.UP_TO_DATE: 'up-to-date'>
"""

from teamreg.core.errors import (
    GitError,
    InvalidRegistryPathError,
    NoActiveRegistryError,
    RegistryError,
    SubtreeNotFoundError,
)
from teamreg.core.registry.enumerator import enumerate_rule_files
from teamreg.core.registry.events import RegistryEventBus
from teamreg.core.registry.fetcher import SparseFetcher
from teamreg.core.registry.locks import WorkspaceLock, file_lock
from teamreg.core.registry.manager import RegistryManager
from teamreg.core.registry.models import (
    DetailedFileStatus,
    FileStatus,
    ProjectionAction,
    ProjectionReport,
    RegistryDescriptor,
    RegistryEvent,
    RegistryEventKind,
    RemoteStatus,
    StatusColor,
)
from teamreg.core.registry.projector import SymlinkProjector
from teamreg.core.registry.status import StatusEngine
from teamreg.core.registry.store import StateStore, workspace_key
from teamreg.core.registry.urls import repository_name, validate_git_url

__all__ = [
    "RegistryManager",
    "SparseFetcher",
    "SymlinkProjector",
    "StateStore",
    "StatusEngine",
    "RegistryEventBus",
    "WorkspaceLock",
    "file_lock",
    "enumerate_rule_files",
    "workspace_key",
    "repository_name",
    "validate_git_url",
    # Models
    "DetailedFileStatus",
    "FileStatus",
    "ProjectionAction",
    "ProjectionReport",
    "RegistryDescriptor",
    "RegistryEvent",
    "RegistryEventKind",
    "RemoteStatus",
    "StatusColor",
    # Errors
    "GitError",
    "InvalidRegistryPathError",
    "NoActiveRegistryError",
    "RegistryError",
    "SubtreeNotFoundError",
]
