"""
Configuration models and loading.

Pydantic models for teamreg configuration with multi-layer merging:
defaults < user < project < env vars.
"""

from .env import load_layered_env
from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import RegistryConfig, TeamregConfig, get_xdg_data_home

__all__ = [
    # Models
    "RegistryConfig",
    "TeamregConfig",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "get_xdg_data_home",
    "load_config",
    "load_layered_env",
]
