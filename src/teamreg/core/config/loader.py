"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import DEFAULT_RULE_EXTENSIONS, TeamregConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILE = ".teamreg.json"

# Global cache to avoid reloading config multiple times per session
_config_cache: TeamregConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """
    Get path to user configuration file.

    Returns:
        Path to ~/.config/teamreg/config.json (or XDG equivalent)
    """
    return get_xdg_config_home() / "teamreg" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Workspace directory (defaults to current directory)

    Returns:
        Path to .teamreg.json in the workspace root
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / PROJECT_CONFIG_FILE


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`.
    Nested dicts are merged, not replaced.

    Example:
        >>> deep_merge({"registry": {"subtree": ".cursor"}}, {"registry": {"git_timeout": 60}})
        {'registry': {'subtree': '.cursor', 'git_timeout': 60}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Read a JSON config layer.

    Returns:
        The parsed object, or None when the file is absent, unreadable, or
        not a JSON object. Broken files are logged and skipped.
    """
    if not path.is_file():
        return None

    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring config at %s: expected a JSON object", path)
        return None
    return data


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Env vars have the highest precedence and override all config files.

    Supported env vars:
        TEAMREG_SUBTREE - overrides registry.subtree
        TEAMREG_EXTENSIONS - overrides registry.rule_extensions (comma-separated)
        TEAMREG_GIT_BINARY - overrides registry.git_binary
        TEAMREG_GIT_TIMEOUT - overrides registry.git_timeout
        TEAMREG_DATA_DIR - overrides registry.data_dir
        TEAMREG_MANAGE_GITIGNORE - overrides registry.manage_gitignore

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()
    registry = dict(result.get("registry") or {})

    if subtree := os.environ.get("TEAMREG_SUBTREE"):
        registry["subtree"] = subtree

    if extensions := os.environ.get("TEAMREG_EXTENSIONS"):
        registry["rule_extensions"] = extensions

    if binary := os.environ.get("TEAMREG_GIT_BINARY"):
        registry["git_binary"] = binary

    if timeout_str := os.environ.get("TEAMREG_GIT_TIMEOUT"):
        try:
            timeout = int(timeout_str)
            if timeout < 1:
                logger.warning("TEAMREG_GIT_TIMEOUT must be >= 1, got %d, ignoring", timeout)
            else:
                registry["git_timeout"] = timeout
        except ValueError:
            logger.warning("Invalid TEAMREG_GIT_TIMEOUT value '%s', ignoring", timeout_str)

    if data_dir := os.environ.get("TEAMREG_DATA_DIR"):
        registry["data_dir"] = data_dir

    if manage_str := os.environ.get("TEAMREG_MANAGE_GITIGNORE"):
        registry["manage_gitignore"] = manage_str.lower() not in ("false", "0", "")

    if registry:
        result["registry"] = registry
    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "registry": {
            "subtree": ".cursor",
            "rule_extensions": list(DEFAULT_RULE_EXTENSIONS),
            "default_branch": "main",
            "git_binary": "git",
            "git_timeout": 300,
            "manage_gitignore": True,
        },
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> TeamregConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (TEAMREG_*)
        2. Project config (.teamreg.json)
        3. User config (~/.config/teamreg/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Workspace directory to load .teamreg.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated TeamregConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = TeamregConfig(**merged)

    _config_cache = config

    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
