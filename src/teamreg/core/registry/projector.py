"""
Projection of registry files into the workspace as symbolic links.

For every registry file ``f`` the projector maintains a link
``{workspace}/{f} -> {storage}/repo/{f}``. A regular file already at the
link path always wins: it is never replaced, modified, or removed, neither
when projecting nor when tearing the projection down.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath

from teamreg.core.errors import RegistryError
from teamreg.core.registry.models import ProjectionAction, ProjectionReport

logger = logging.getLogger(__name__)


class SymlinkProjector:
    """
    Create, repair, and remove projected links under a workspace root.

    Example:
        >>> projector = SymlinkProjector(Path("/work/project"))
        >>> report = projector.project(storage, [".cursor/rules/a.mdc"])
        >>> report.count(ProjectionAction.CREATED)
        1
    """

    def __init__(self, workspace_root: Path) -> None:
        self.workspace_root = workspace_root

    def link_path(self, file: str) -> Path:
        """Workspace location of the link for a registry file."""
        return self.workspace_root.joinpath(*PurePosixPath(file).parts)

    @staticmethod
    def target_path(storage_location: Path, file: str) -> Path:
        """Checkout location a registry file's link points at."""
        return storage_location.joinpath("repo", *PurePosixPath(file).parts)

    def project(self, storage_location: Path, files: list[str]) -> ProjectionReport:
        """
        Link every registry file into the workspace.

        Args:
            storage_location: Storage directory holding ``repo/``.
            files: Workspace-relative forward-slash paths.

        Returns:
            ProjectionReport with the action taken for each file.

        Raises:
            RegistryError: If a directory or link cannot be written.
        """
        report = ProjectionReport()
        for file in files:
            report.record(file, self._project_file(storage_location, file))

        logger.info(
            "Projection complete: %d created, %d repaired, %d unchanged, "
            "%d real files preserved, %d missing in checkout",
            report.count(ProjectionAction.CREATED),
            report.count(ProjectionAction.REPAIRED),
            report.count(ProjectionAction.UNCHANGED),
            report.count(ProjectionAction.PRESERVED_FILE),
            report.count(ProjectionAction.MISSING_SOURCE),
        )
        return report

    def verify_and_repair(self, storage_location: Path, files: list[str]) -> ProjectionReport:
        """
        Recreate missing links and fix links pointing elsewhere.

        Idempotent: on a healthy projection every file reports UNCHANGED and
        nothing on disk is touched.
        """
        logger.info("Verifying %d projected links under %s", len(files), self.workspace_root)
        return self.project(storage_location, files)

    def _project_file(self, storage_location: Path, file: str) -> ProjectionAction:
        target = self.target_path(storage_location, file)
        link = self.link_path(file)

        try:
            link.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RegistryError(f"Cannot create directory for {file}: {e}") from e

        replacing = False
        if link.is_symlink():
            current = os.readlink(link)
            if current == str(target):
                logger.debug("Link already correct: %s", link)
                return ProjectionAction.UNCHANGED
            replacing = True
        elif link.is_dir():
            logger.warning("Expected a file but found a directory, skipping: %s", link)
            return ProjectionAction.DIRECTORY_CONFLICT
        elif link.exists():
            logger.warning("Real file exists, preserving local version: %s", link)
            return ProjectionAction.PRESERVED_FILE

        if not target.exists():
            logger.warning("Registry file missing from checkout, no link created: %s", target)
            return ProjectionAction.MISSING_SOURCE

        try:
            if replacing:
                logger.debug("Replacing link %s -> %s (was %s)", link, target, current)
                link.unlink()
            link.symlink_to(target)
        except OSError as e:
            raise RegistryError(f"Cannot link {file} to {target}: {e}") from e

        logger.debug("Linked %s -> %s", link, target)
        return ProjectionAction.REPAIRED if replacing else ProjectionAction.CREATED

    def unproject(self, files: list[str]) -> list[str]:
        """
        Remove projected links.

        Only symbolic links are removed; regular files and directories at a
        registry path are left in place.

        Returns:
            Registry paths whose links were removed.
        """
        removed: list[str] = []
        for file in files:
            link = self.link_path(file)
            if link.is_symlink():
                try:
                    link.unlink()
                except OSError as e:
                    raise RegistryError(f"Cannot remove link {link}: {e}") from e
                removed.append(file)
                logger.debug("Removed link %s", link)
            elif link.is_dir():
                logger.warning("Expected a link but found a directory, leaving it: %s", link)
            elif link.exists():
                logger.info("Preserving real file during cleanup: %s", link)
            else:
                logger.debug("Link already absent: %s", link)

        logger.info("Removed %d of %d projected links", len(removed), len(files))
        return removed
