"""Load and validate declarative resource configuration (YAML or JSON)."""

import hashlib
import json
from pathlib import Path
from typing import Dict, Any
import yaml
from pydantic import ValidationError
from .models import ResourceConfig, ResourceDeclaration
from .config_validator import validate_config_structure, get_config_summary
from ..utils.errors import ConfigError
from ..utils.logging import get_logger

logger = get_logger("ingest.config_loader")


def load_resource_config(config_path: str) -> ResourceConfig:
    """
    Load resource configuration from a YAML or JSON file.
    
    Args:
        config_path: Path to configuration file
        
    Returns:
        Parsed ResourceConfig with the source digest
        
    Raises:
        ConfigError: If the file cannot be loaded or is invalid
    """
    path = Path(config_path)
    
    if not path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}. "
            "Please check the file path and ensure the file exists."
        )
    
    if not path.is_file():
        raise ConfigError(f"Path is not a file: {config_path}.")
    
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ConfigError(f"Error reading configuration file: {e}")
    
    config_data = parse_config_document(raw.decode("utf-8", errors="replace"), path.suffix.lower())
    config = build_resource_config(config_data)
    config.digest = hashlib.sha256(raw).hexdigest()
    
    summary = get_config_summary(config_data)
    logger.info(
        f"Loaded configuration from {config_path} "
        f"(resources: {summary['resource_count']}, types: {len(summary['type_counts'])})"
    )
    return config


def parse_config_document(text: str, suffix: str = ".yaml") -> Dict[str, Any]:
    """Parse JSON for ``.json`` files, YAML otherwise."""
    if suffix == ".json":
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file: {e}")
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file: {e}")


def build_resource_config(config_data: Any) -> ResourceConfig:
    """Validate a parsed document and turn it into a ResourceConfig."""
    validate_config_structure(config_data)
    
    declarations = []
    for idx, raw in enumerate(config_data["resources"]):
        fields = {key: raw[key] for key in ("type", "name", "attributes", "depends_on") if key in raw}
        if fields.get("attributes") is None:
            fields.pop("attributes", None)
        if fields.get("depends_on") is None:
            fields.pop("depends_on", None)
        try:
            declarations.append(ResourceDeclaration(**fields))
        except ValidationError as e:
            raise ConfigError(f"Invalid resource at index {idx}: {e}")
    
    return ResourceConfig(resources=declarations)
