"""Environment configuration for the approval gate."""

import os
from typing import List, Optional
from pathlib import Path
import yaml
from ..utils.errors import ConfigError
from ..utils.logging import get_logger

logger = get_logger("config.environment")

ENFORCEMENT_MODES = ["auto", "manual"]
VETO_POLICIES = ["single_veto", "majority"]
DEFAULT_APPROVAL_TIMEOUT = 86400.0


class EnvironmentConfig:
    """Who must approve plans for an environment, and how."""
    
    def __init__(
        self,
        name: str,
        enforcement_mode: str,
        required_approvers: Optional[List[str]] = None,
        quorum: Optional[int] = None,
        policy: str = "single_veto",
        approval_timeout: float = DEFAULT_APPROVAL_TIMEOUT
    ):
        """
        Initialize environment configuration.
        
        Args:
            name: Environment name (development, staging, production)
            enforcement_mode: "auto" approves on plan, "manual" waits for people
            required_approvers: Actors allowed to decide; empty means anyone
            quorum: Approvals needed (default: every required approver, or 1)
            policy: "single_veto" or "majority"
            approval_timeout: Seconds before a pending approval expires
        """
        self.name = name
        self.enforcement_mode = enforcement_mode
        self.required_approvers = sorted(set(required_approvers or []))
        self.policy = policy
        self.approval_timeout = approval_timeout
        if quorum is None:
            quorum = len(self.required_approvers) or 1
        if quorum < 1:
            raise ConfigError(f"Environment '{name}': quorum must be at least 1")
        if self.required_approvers and quorum > len(self.required_approvers):
            raise ConfigError(
                f"Environment '{name}': quorum {quorum} exceeds {len(self.required_approvers)} required approvers"
            )
        self.quorum = quorum
    
    def __repr__(self) -> str:
        return (
            f"EnvironmentConfig(name={self.name}, enforcement_mode={self.enforcement_mode}, "
            f"approvers={self.required_approvers}, quorum={self.quorum}, policy={self.policy})"
        )


def load_environment_config(env_config_path: Optional[str] = None) -> EnvironmentConfig:
    """
    Load environment configuration from file or environment variable.
    
    Priority:
    1. Config file path (if provided)
    2. .plangate-env.yaml in current directory or up to 3 parents
    3. PLANGATE_ENV environment variable ("name" or "name:mode")
    4. Default to development/auto
    
    Args:
        env_config_path: Optional path to environment config file
        
    Returns:
        EnvironmentConfig
        
    Raises:
        ConfigError: If an explicitly given file is missing or invalid
    """
    if env_config_path:
        config_file = Path(env_config_path)
        if not config_file.exists():
            raise ConfigError(f"Environment config not found: {env_config_path}")
        return _load_from_file(config_file)
    
    current_dir = Path.cwd()
    for directory in [current_dir, *list(current_dir.parents)[:3]]:
        config_file = directory / ".plangate-env.yaml"
        if config_file.exists():
            return _load_from_file(config_file)
    
    env_var = os.getenv("PLANGATE_ENV")
    if env_var:
        if ":" in env_var:
            name, mode = env_var.split(":", 1)
            name = name.strip().lower()
            mode = mode.strip().lower()
            if mode not in ENFORCEMENT_MODES:
                logger.warning(f"Invalid enforcement_mode '{mode}' in PLANGATE_ENV, defaulting to 'manual'")
                mode = "manual"
            return EnvironmentConfig(name=name, enforcement_mode=mode)
        return EnvironmentConfig(name=env_var.strip().lower(), enforcement_mode="manual")
    
    logger.debug("No environment config found, defaulting to development/auto")
    return EnvironmentConfig(name="development", enforcement_mode="auto")


def _load_from_file(config_file: Path) -> EnvironmentConfig:
    """Load environment config from YAML file."""
    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse environment config {config_file}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read environment config {config_file}: {e}")
    
    if not isinstance(data, dict) or not isinstance(data.get("environment"), dict):
        raise ConfigError(f"Environment config {config_file} missing 'environment' mapping")
    
    env_data = data["environment"]
    name = str(env_data.get("name", "development")).lower()
    enforcement_mode = str(env_data.get("enforcement_mode", "manual")).lower()
    policy = str(env_data.get("policy", "single_veto")).lower()
    
    if enforcement_mode not in ENFORCEMENT_MODES:
        raise ConfigError(f"Invalid enforcement_mode '{enforcement_mode}' in {config_file}")
    if policy not in VETO_POLICIES:
        raise ConfigError(f"Invalid policy '{policy}' in {config_file}. Expected one of: {', '.join(VETO_POLICIES)}")
    
    approvers = env_data.get("required_approvers") or []
    if not isinstance(approvers, list):
        raise ConfigError(f"required_approvers must be a list in {config_file}")
    
    logger.debug(f"Loaded environment config: {name} ({enforcement_mode})")
    return EnvironmentConfig(
        name=name,
        enforcement_mode=enforcement_mode,
        required_approvers=[str(a) for a in approvers],
        quorum=env_data.get("quorum"),
        policy=policy,
        approval_timeout=float(env_data.get("approval_timeout", DEFAULT_APPROVAL_TIMEOUT)),
    )
