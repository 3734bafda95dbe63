"""
Team registry manager.

The single entry point collaborators use: add or remove the workspace's
registry, restore it after a restart, query per-file status, and run the
commit/push/pull operations. Every operation that writes to the checkout,
the projection, or the persisted state holds the workspace lock, a lock
file next to the checkout, so threads and separate teamreg processes
working on one workspace take turns.
"""

from __future__ import annotations

import logging
import os
import shutil
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import Callable, Iterator

from teamreg.core.config.models import RegistryConfig
from teamreg.core.errors import InvalidRegistryPathError, NoActiveRegistryError, RegistryError
from teamreg.core.git.runner import GitRunner
from teamreg.core.registry.enumerator import enumerate_rule_files
from teamreg.core.registry.events import RegistryEventBus, RegistryListener
from teamreg.core.registry.fetcher import SparseFetcher
from teamreg.core.registry.ignore import add_ignore_entry, remove_ignore_entry
from teamreg.core.registry.locks import WorkspaceLock
from teamreg.core.registry.models import (
    DetailedFileStatus,
    FileStatus,
    ProjectionReport,
    RegistryDescriptor,
    RegistryEventKind,
)
from teamreg.core.registry.projector import SymlinkProjector
from teamreg.core.registry.status import StatusEngine
from teamreg.core.registry.store import StateStore, workspace_key
from teamreg.core.registry.urls import validate_git_url

logger = logging.getLogger(__name__)


class RegistryManager:
    """
    Manage the team registry of one workspace.

    Example:
        >>> manager = RegistryManager(Path("/work/project"))
        >>> manager.initialize()
        >>> registry = manager.add_registry("git@github.com:acme/rules.git")
        >>> manager.get_file_status(registry.files[0])
        <FileStatus.UNMODIFIED: 'unmodified'>
        >>> manager.remove_registry()
        True
    """

    STORAGE_DIR = "storage"

    def __init__(
        self,
        workspace_root: Path,
        config: RegistryConfig | None = None,
        runner: GitRunner | None = None,
        store: StateStore | None = None,
    ) -> None:
        """
        Initialize the manager.

        Args:
            workspace_root: The user's working directory.
            config: Registry settings (defaults apply if omitted).
            runner: git runner; injected by tests.
            store: Persisted state store; defaults to the configured data dir.
        """
        self.workspace_root = Path(os.path.abspath(workspace_root))
        self.config = config or RegistryConfig()
        self.runner = runner or GitRunner(
            binary=self.config.git_binary,
            timeout=self.config.git_timeout,
        )
        self.data_dir = self.config.resolved_data_dir
        self.store = store or StateStore(self.data_dir)
        self.key = workspace_key(self.workspace_root)

        self.fetcher = SparseFetcher(
            self.runner,
            subtree=self.config.subtree,
            default_branch=self.config.default_branch,
        )
        self.projector = SymlinkProjector(self.workspace_root)
        self.events = RegistryEventBus()

        self._registry: RegistryDescriptor | None = None
        self._initialized = False
        self._lock = WorkspaceLock(self.data_dir / self.STORAGE_DIR / f"{self.key}.lock")

    @property
    def storage_location(self) -> Path:
        """Private directory that holds this workspace's checkout."""
        return self.data_dir / self.STORAGE_DIR / self.key

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """
        Run a block under the workspace lock.

        Another process may have added or removed the registry since this
        manager last looked, so the outermost entry re-reads the record.
        """
        with self._lock as outermost:
            if outermost and self._initialized:
                self._registry = self._reload_descriptor()
            yield

    def _reload_descriptor(self) -> RegistryDescriptor | None:
        descriptor = self.store.load(self.key)
        if descriptor is None or not Path(descriptor.storage_location).exists():
            return None
        return descriptor

    def on_did_change_registry(self, listener: RegistryListener) -> Callable[[], None]:
        """Subscribe to added/removed/restored events; returns an unsubscribe callable."""
        return self.events.subscribe(listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> RegistryDescriptor | None:
        """
        Restore persisted state for this workspace.

        Returns:
            The active registry, or None if there is none.
        """
        registry = self.restore()
        logger.info(
            "Registry manager initialized for %s (active registry: %s)",
            self.workspace_root,
            registry.remote_url if registry else None,
        )
        return registry

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            self.restore()

    def restore(self) -> RegistryDescriptor | None:
        """
        Reload the persisted descriptor and repair its projection.

        A descriptor whose storage directory has disappeared is stale: the
        record is cleared and no registry is active. Otherwise missing or
        wrong links are recreated and a RESTORED event is emitted.
        """
        with self._exclusive():
            self._initialized = True
            descriptor = self.store.load(self.key)

            if descriptor is None:
                self._registry = None
                return None

            if not Path(descriptor.storage_location).exists():
                logger.warning(
                    "Persisted registry storage missing, clearing state: %s",
                    descriptor.storage_location,
                )
                self.store.clear(self.key)
                self._registry = None
                return None

            self._registry = descriptor
            logger.info(
                "Restored team registry %s (%d files)",
                descriptor.remote_url,
                len(descriptor.files),
            )

            try:
                report = self.projector.verify_and_repair(
                    Path(descriptor.storage_location), descriptor.files
                )
                if report.changed:
                    logger.info("Repaired projected links after restart")
            except RegistryError as e:
                logger.warning("Could not repair projected links: %s", e)

            self.events.emit(RegistryEventKind.RESTORED, descriptor)
            return descriptor

    def add_registry(self, remote_url: str) -> RegistryDescriptor:
        """
        Clone a registry and project its rule files into the workspace.

        Any existing registry is removed first.

        Raises:
            ValueError: If the URL is not a recognizable git remote.
            GitError: If cloning fails.
            SubtreeNotFoundError: If the repository lacks the subtree.
        """
        url = validate_git_url(remote_url)

        with self._exclusive():
            self._ensure_initialized()
            logger.info("Adding team registry %s", url)
            self.remove_registry()

            storage = self.storage_location
            files: list[str] = []
            try:
                repo_path = self.fetcher.clone(url, storage)
                files = enumerate_rule_files(
                    repo_path / self.config.subtree,
                    self.config.rule_extensions,
                    relative_to=repo_path,
                )
                self.projector.project(storage, files)

                descriptor = RegistryDescriptor(
                    remote_url=url,
                    storage_location=str(storage),
                    files=files,
                )
                self.store.save(self.key, descriptor)
            except Exception:
                self._discard(storage, files)
                raise

            self._registry = descriptor
            if self.config.manage_gitignore:
                add_ignore_entry(self.workspace_root, self.config.subtree)

            logger.info("Team registry added: %s (%d files)", url, len(files))
            self.events.emit(RegistryEventKind.ADDED, descriptor)
            return descriptor

    def _discard(self, storage: Path, files: list[str]) -> None:
        try:
            self.projector.unproject(files)
        except RegistryError as e:
            logger.warning("Failed to remove links of a failed add: %s", e)
        shutil.rmtree(storage, ignore_errors=True)

    def remove_registry(self) -> bool:
        """
        Remove the active registry, its links, and its checkout.

        Real files at registry paths are left untouched.

        Returns:
            True if a registry was removed, False if none was active.
        """
        with self._exclusive():
            self._ensure_initialized()
            registry = self._registry
            if registry is None:
                logger.info("No team registry to remove")
                return False

            logger.info("Removing team registry %s", registry.remote_url)
            self.projector.unproject(registry.files)

            storage = Path(registry.storage_location)
            if storage.exists():
                shutil.rmtree(storage)
                logger.info("Registry storage cleared: %s", storage)
            else:
                logger.info("Registry storage already missing: %s", storage)

            self._registry = None
            self.store.clear(self.key)
            if self.config.manage_gitignore:
                remove_ignore_entry(self.workspace_root, self.config.subtree)

            logger.info("Team registry removed: %s", registry.remote_url)
            self.events.emit(RegistryEventKind.REMOVED, None)
            return True

    def repair(self) -> ProjectionReport:
        """Recreate missing links of the active registry."""
        with self._exclusive():
            registry = self._require_registry()
            return self.projector.verify_and_repair(
                Path(registry.storage_location), registry.files
            )

    def get_active_registry(self) -> RegistryDescriptor | None:
        """Return a copy of the active descriptor, or None."""
        if self._registry is None:
            return None
        return self._registry.model_copy(deep=True)

    def _require_registry(self) -> RegistryDescriptor:
        if self._registry is None:
            raise NoActiveRegistryError("No team registry is active for this workspace")
        return self._registry

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def normalize_path(self, path: str | Path) -> str:
        """
        Convert a path to workspace-relative forward-slash form.

        Accepts absolute paths inside the workspace as well as relative
        paths with ``./`` prefixes or backslash separators. Links are not
        followed.

        Raises:
            InvalidRegistryPathError: If an absolute path lies outside the workspace.
        """
        text = str(path).replace("\\", "/")
        if os.path.isabs(text):
            absolute = Path(os.path.abspath(text))
            try:
                relative = absolute.relative_to(self.workspace_root)
            except ValueError as e:
                raise InvalidRegistryPathError(
                    f"{path} is outside the workspace {self.workspace_root}"
                ) from e
            return relative.as_posix()

        parts = [part for part in PurePosixPath(text).parts if part != "."]
        return "/".join(parts)

    def is_registry_file(self, path: str | Path) -> bool:
        """Check whether a path is one of the active registry's files."""
        if self._registry is None:
            return False
        try:
            return self.normalize_path(path) in self._registry.files
        except InvalidRegistryPathError:
            return False

    def resolve_real_path(self, path: str | Path) -> Path:
        """
        Locate the file that actually holds a workspace path's content.

        A projected link resolves to its checkout target, a real file to
        itself, and a missing registry file to its checkout location.
        """
        relative = self.normalize_path(path)
        workspace_path = self.projector.link_path(relative)

        if workspace_path.is_symlink():
            return Path(os.readlink(workspace_path))
        if workspace_path.exists():
            return workspace_path

        if self._registry is not None and relative in self._registry.files:
            return SymlinkProjector.target_path(
                Path(self._registry.storage_location), relative
            )
        return workspace_path

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def _status_engine(self, registry: RegistryDescriptor) -> StatusEngine:
        return StatusEngine(self.runner, registry.repo_path, subtree=self.config.subtree)

    def get_file_status(self, path: str | Path) -> FileStatus:
        """Local status of a registry file; UNMODIFIED when unknown."""
        registry = self._registry
        if registry is None:
            return FileStatus.UNMODIFIED
        try:
            relative = self.normalize_path(path)
        except InvalidRegistryPathError as e:
            logger.warning("Cannot report status: %s", e)
            return FileStatus.UNMODIFIED
        return self._status_engine(registry).get_file_status(relative)

    def get_detailed_file_status(self, path: str | Path) -> DetailedFileStatus:
        """Local and remote status of a registry file; NO_REMOTE when unknown."""
        registry = self._registry
        if registry is None:
            return DetailedFileStatus()
        try:
            relative = self.normalize_path(path)
        except InvalidRegistryPathError as e:
            logger.warning("Cannot report status: %s", e)
            return DetailedFileStatus()
        return self._status_engine(registry).get_detailed_file_status(relative)

    def get_all_file_statuses(self) -> dict[str, DetailedFileStatus]:
        """Detailed status of every registry file, in registry order."""
        registry = self._registry
        if registry is None:
            return {}
        engine = self._status_engine(registry)
        return {file: engine.get_detailed_file_status(file) for file in registry.files}

    # ------------------------------------------------------------------
    # Mutating git operations
    # ------------------------------------------------------------------

    def stage_and_commit_file(self, path: str | Path, message: str) -> str:
        """
        Stage and commit one registry file in the checkout.

        Returns:
            SHA of the new commit.
        """
        with self._exclusive():
            registry = self._require_registry()
            relative = self.normalize_path(path)
            return self._status_engine(registry).stage_and_commit_file(relative, message)

    def push_changes(self) -> None:
        """Push committed registry changes."""
        with self._exclusive():
            self._status_engine(self._require_registry()).push_changes()

    def pull_changes(self) -> None:
        """Pull remote registry changes."""
        with self._exclusive():
            self._status_engine(self._require_registry()).pull_changes()

    def fetch_and_rebase_then_push(self) -> None:
        """Fetch, rebase onto the upstream, and push."""
        with self._exclusive():
            self._status_engine(self._require_registry()).fetch_and_rebase_then_push()
