"""
Configuration data models for teamreg.

These models define the structure of .teamreg.json and
~/.config/teamreg/config.json files, with validation via Pydantic.
"""

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_RULE_EXTENSIONS = [".rule", ".md", ".mdc", ".yml", ".yaml", ".json"]


def get_xdg_data_home() -> Path:
    """
    Get XDG data home directory.

    Returns:
        Path to data directory (defaults to ~/.local/share)
    """
    if xdg_home := os.environ.get("XDG_DATA_HOME"):
        return Path(xdg_home)
    return Path.home() / ".local" / "share"


class RegistryConfig(BaseModel):
    """
    Team registry behavior.

    Controls which part of the remote repository is mirrored, which files
    count as rules, and how git is invoked.
    """
    model_config = ConfigDict(extra="ignore")

    subtree: str = Field(
        default=".cursor",
        min_length=1,
        description="Directory of the remote repository mirrored into the workspace"
    )
    rule_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RULE_EXTENSIONS),
        description="File extensions treated as rule files (case-insensitive)"
    )
    default_branch: str = Field(
        default="main",
        min_length=1,
        description="Branch to check out when the remote HEAD cannot be resolved"
    )
    git_binary: str = Field(
        default="git",
        description="git executable name or path"
    )
    git_timeout: int = Field(
        default=300,
        ge=1,
        description="Seconds before a single git command is abandoned"
    )
    manage_gitignore: bool = Field(
        default=True,
        description="Add the subtree to the workspace .gitignore while a registry is active"
    )
    data_dir: Optional[Path] = Field(
        default=None,
        description="Directory for persisted state and private checkouts"
    )

    @field_validator('subtree')
    @classmethod
    def validate_subtree(cls, v: str) -> str:
        """Strip slashes and reject paths that leave the repository."""
        subtree = v.replace("\\", "/").strip("/")
        if not subtree or ".." in subtree.split("/"):
            raise ValueError(f"subtree must be a relative directory, got '{v}'")
        return subtree

    @field_validator('rule_extensions', mode='before')
    @classmethod
    def validate_rule_extensions(cls, v: Any) -> list[str]:
        """Accept a comma-separated string, add leading dots, lowercase, dedupe."""
        if isinstance(v, str):
            v = v.split(",")
        normalized: list[str] = []
        for ext in v:
            ext = str(ext).strip().lower()
            if not ext or ext == ".":
                continue
            if not ext.startswith("."):
                ext = f".{ext}"
            if ext not in normalized:
                normalized.append(ext)
        return normalized

    @property
    def resolved_data_dir(self) -> Path:
        """Absolute data directory with the XDG default applied."""
        if self.data_dir is not None:
            return Path(os.path.abspath(self.data_dir.expanduser()))
        return Path(os.path.abspath(get_xdg_data_home() / "teamreg"))


class TeamregConfig(BaseModel):
    """
    Top-level teamreg configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = TeamregConfig(registry=RegistryConfig(subtree="rules"))
        >>> config.registry.subtree
        'rules'
    """
    model_config = ConfigDict(extra="ignore")

    registry: RegistryConfig = Field(
        default_factory=RegistryConfig,
        description="Team registry settings"
    )
