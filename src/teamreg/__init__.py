"""
Teamreg - Team Registry Synchronization

Mirrors the rules subtree of a shared git repository into a local workspace
through symbolic links and reports per-file sync status.
"""

__version__ = "0.4.0-dev"

# Re-export core models for convenience
from teamreg.core.config.models import TeamregConfig
from teamreg.core.registry.models import (
    DetailedFileStatus,
    FileStatus,
    RegistryDescriptor,
    RemoteStatus,
)

__all__ = [
    "DetailedFileStatus",
    "FileStatus",
    "RegistryDescriptor",
    "RemoteStatus",
    "TeamregConfig",
    "__version__",
]
