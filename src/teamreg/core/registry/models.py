"""
Data models for the team registry.

Defines the persisted registry descriptor, per-file status values, and the
small result types produced by projection and change notification.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FileStatus(str, Enum):
    """Coarse local state of a registry file inside the checkout."""

    MODIFIED = "modified"
    UNMODIFIED = "unmodified"
    UNTRACKED = "untracked"


class RemoteStatus(str, Enum):
    """Relationship between the checkout branch and its upstream."""

    AHEAD = "ahead"
    BEHIND = "behind"
    DIVERGED = "diverged"
    UP_TO_DATE = "up-to-date"
    NO_REMOTE = "no-remote"


class StatusColor(str, Enum):
    """Traffic-light summary of a file's sync state for decoration layers."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    GRAY = "gray"


class RegistryDescriptor(BaseModel):
    """
    The durable unit of registry state.

    Serialized with camelCase keys (``remoteUrl``, ``storageLocation``,
    ``files``) so persisted records keep a stable external shape.

    Example:
        >>> descriptor = RegistryDescriptor(
        ...     remote_url="git@github.com:acme/rules.git",
        ...     storage_location="/home/me/.local/share/teamreg/storage/teamRegistry_1a2b3c4d",
        ...     files=[".cursor/rules/a.mdc"],
        ... )
        >>> descriptor.model_dump(by_alias=True)["remoteUrl"]
        'git@github.com:acme/rules.git'
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    remote_url: str = Field(description="Origin location of the tracked repository")
    storage_location: str = Field(
        description="Absolute path to the private sparse checkout",
    )
    files: list[str] = Field(
        default_factory=list,
        description="Workspace-relative, forward-slash paths of every rule file",
    )

    @property
    def repo_path(self) -> Path:
        """Location of the git checkout inside the storage directory."""
        return Path(self.storage_location) / "repo"


class DetailedFileStatus(BaseModel):
    """
    Local and remote status for one registry file, computed on demand.

    When ``remote_status`` is NO_REMOTE the commit hashes and message are
    always None.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    local_status: FileStatus = FileStatus.UNMODIFIED
    remote_status: RemoteStatus = RemoteStatus.NO_REMOTE
    has_unstaged_changes: bool = False
    has_uncommitted_changes: bool = False
    last_commit_hash: str | None = None
    remote_commit_hash: str | None = None
    commit_message: str | None = None

    @property
    def color(self) -> StatusColor:
        """
        Summarize the status as a single colour.

        Uncommitted work and divergence need attention (red), unpushed or
        unpulled commits are pending (yellow), a synced file is green and
        anything without an upstream is gray.
        """
        if self.has_unstaged_changes or self.has_uncommitted_changes:
            return StatusColor.RED
        if self.remote_status in (RemoteStatus.AHEAD, RemoteStatus.BEHIND):
            return StatusColor.YELLOW
        if self.remote_status == RemoteStatus.DIVERGED:
            return StatusColor.RED
        if self.remote_status == RemoteStatus.UP_TO_DATE:
            return StatusColor.GREEN
        return StatusColor.GRAY


class ProjectionAction(str, Enum):
    """What the projector did for one file."""

    CREATED = "created"
    REPAIRED = "repaired"
    UNCHANGED = "unchanged"
    PRESERVED_FILE = "preserved_file"
    DIRECTORY_CONFLICT = "directory_conflict"
    MISSING_SOURCE = "missing_source"


@dataclass
class ProjectionReport:
    """
    Outcome of a projection pass.

    Attributes:
        actions: Mapping of workspace-relative path to the action taken.
    """

    actions: dict[str, ProjectionAction] = field(default_factory=dict)

    def record(self, path: str, action: ProjectionAction) -> None:
        self.actions[path] = action

    def paths_with(self, action: ProjectionAction) -> list[str]:
        return [path for path, taken in self.actions.items() if taken == action]

    def count(self, action: ProjectionAction) -> int:
        return len(self.paths_with(action))

    @property
    def changed(self) -> bool:
        """True if any link was created or replaced."""
        return any(
            action in (ProjectionAction.CREATED, ProjectionAction.REPAIRED)
            for action in self.actions.values()
        )


class RegistryEventKind(str, Enum):
    """Kinds of registry change notifications."""

    ADDED = "added"
    REMOVED = "removed"
    RESTORED = "restored"


@dataclass(frozen=True)
class RegistryEvent:
    """
    Change notification emitted by the registry manager.

    Attributes:
        kind: What happened.
        registry: The active descriptor after the change (None on removal).
    """

    kind: RegistryEventKind
    registry: RegistryDescriptor | None
