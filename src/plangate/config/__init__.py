"""Configuration module: load engine settings and the approval environment."""

import os
from pathlib import Path
from typing import Dict, Any, Optional
from pydantic import ValidationError
from ..utils.errors import ConfigError
from ..utils.logging import get_logger
from .environment import EnvironmentConfig, load_environment_config
from .manager import load_config, read_yaml, deep_merge
from .models import Settings, StalePlanPolicy
from .paths import get_defaults_path, get_user_config_path, get_project_config_path

logger = get_logger("config")

ENV_OVERRIDES = {
    "PLANGATE_WORKSPACE": "workspace_dir",
    "PLANGATE_NAMESPACE": "namespace",
    "PLANGATE_WORKERS": "workers",
}


def load_settings(config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> Settings:
    """
    Load engine settings.
    
    Layers, lowest precedence first: packaged defaults.yaml, user config,
    project config, *config_path*, PLANGATE_* variables, *overrides*.
    
    Args:
        config_path: Optional extra settings YAML file
        overrides: Values from CLI flags; None values are ignored
        
    Returns:
        Validated Settings
        
    Raises:
        ConfigError: If any layer is unreadable or the result is invalid
    """
    config = read_yaml(get_defaults_path())
    deep_merge(config, load_config())
    
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        deep_merge(config, read_yaml(path))
    
    for variable, key in ENV_OVERRIDES.items():
        value = os.getenv(variable)
        if value:
            config[key] = value
    
    for key, value in (overrides or {}).items():
        if value is not None:
            config[key] = value
    
    try:
        settings = Settings(**config)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}")
    
    logger.debug(f"Loaded settings (namespace={settings.namespace}, workspace={settings.workspace_dir})")
    return settings


__all__ = [
    "Settings",
    "StalePlanPolicy",
    "EnvironmentConfig",
    "load_settings",
    "load_environment_config",
    "load_config",
    "get_user_config_path",
    "get_project_config_path",
]
