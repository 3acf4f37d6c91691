"""Validate resource configuration document structure."""

from typing import Dict, Any, List
from ..utils.errors import ConfigError
from ..utils.logging import get_logger

logger = get_logger("ingest.config_validator")

KNOWN_DECLARATION_KEYS = {"type", "name", "attributes", "depends_on"}


def validate_config_structure(config_data: Dict[str, Any]) -> None:
    """
    Validate top-level configuration structure.
    
    Args:
        config_data: Parsed configuration document
        
    Raises:
        ConfigError: If the document structure is invalid
    """
    if not isinstance(config_data, dict):
        raise ConfigError(
            "Configuration must be a mapping with a 'resources' key."
        )
    
    if "resources" not in config_data:
        raise ConfigError(
            "Configuration missing required 'resources' key. "
            "Declare resources as a list of {type, name, attributes, depends_on}."
        )
    
    resources = config_data["resources"]
    if resources is None:
        config_data["resources"] = []
        logger.warning("Configuration declares no resources - every applied resource will be deleted")
        return
    
    if not isinstance(resources, list):
        raise ConfigError("'resources' must be a list of resource declarations.")
    
    for idx, declaration in enumerate(resources):
        if not isinstance(declaration, dict):
            raise ConfigError(f"Resource at index {idx} must be a mapping")
        
        missing = [key for key in ("type", "name") if key not in declaration]
        if missing:
            raise ConfigError(f"Resource at index {idx} missing required fields: {', '.join(missing)}")
        
        for warning in validate_declaration(declaration):
            logger.warning(f"Resource {declaration.get('type')}.{declaration.get('name')}: {warning}")
    
    logger.debug("Configuration structure validation passed")


def validate_declaration(declaration: Dict[str, Any]) -> List[str]:
    """
    Validate a single declaration beyond its required fields.
    
    Args:
        declaration: Raw resource declaration
        
    Returns:
        List of validation warnings (empty if clean)
    """
    warnings = []
    
    unknown = sorted(set(declaration) - KNOWN_DECLARATION_KEYS)
    if unknown:
        warnings.append(f"Unknown keys ignored: {', '.join(unknown)}")
    
    depends_on = declaration.get("depends_on", [])
    if isinstance(depends_on, list):
        address = f"{declaration.get('type')}.{declaration.get('name')}"
        if address in depends_on:
            warnings.append("Resource lists itself in depends_on")
    
    return warnings


def get_config_summary(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract summary information from a configuration document.
    
    Args:
        config_data: Parsed configuration document
        
    Returns:
        Dictionary with resource count and per-type counts
    """
    resources = config_data.get("resources") or []
    type_counts: Dict[str, int] = {}
    for declaration in resources:
        resource_type = declaration.get("type", "unknown")
        type_counts[resource_type] = type_counts.get(resource_type, 0) + 1
    
    return {
        "resource_count": len(resources),
        "type_counts": type_counts,
    }
