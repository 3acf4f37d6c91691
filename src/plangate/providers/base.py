"""Abstract base class for provider adapters."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class ProviderAdapter(ABC):
    """
    Capability set the orchestrator needs from one resource kind.
    
    Adapters own every provider-specific concern: schema, authentication
    and retry policy. The core only ever calls these three methods, and never
    retries apply or destroy on its own since idempotency is provider-specific.
    """
    
    def validate(self, attributes: Dict[str, Any]) -> List[str]:
        """
        Read-only check of desired attributes during planning.
        
        Attributes may still hold ``${...}`` placeholders.
        
        Returns:
            List of validation errors (empty if valid)
        """
        return []
    
    @abstractmethod
    def apply(self, attributes: Dict[str, Any], external_id: Optional[str] = None) -> str:
        """
        Create (no *external_id*) or update a resource.
        
        Args:
            attributes: Desired attributes with references resolved
            external_id: Existing provider ID when updating
            
        Returns:
            Provider-assigned external ID
            
        Raises:
            ProviderError: If the provider call fails
        """
        pass
    
    @abstractmethod
    def destroy(self, external_id: str) -> None:
        """
        Destroy the resource identified by *external_id*.
        
        Raises:
            ProviderError: If the provider call fails
        """
        pass
