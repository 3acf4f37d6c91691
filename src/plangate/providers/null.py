"""Side-effect-free provider that only hands out identifiers."""

import threading
import uuid
from typing import Any, Dict, List, Optional
from .base import ProviderAdapter
from ..utils.logging import get_logger

logger = get_logger("providers.null")


class NullProvider(ProviderAdapter):
    """
    Accepts every resource and remembers it in memory.
    
    Useful for dry runs of the plan/apply flow and for tests. IDs are
    ``<prefix>-<hex>``; updates keep the existing ID.
    """
    
    def __init__(self, prefix: str = "null"):
        self.prefix = prefix
        self.resources: Dict[str, Dict[str, Any]] = {}
        self.calls: List[tuple] = []
        self._lock = threading.Lock()
    
    def apply(self, attributes: Dict[str, Any], external_id: Optional[str] = None) -> str:
        with self._lock:
            resource_id = external_id or f"{self.prefix}-{uuid.uuid4().hex[:12]}"
            self.resources[resource_id] = dict(attributes)
            self.calls.append(("apply", resource_id))
        logger.debug(f"Applied {resource_id}")
        return resource_id
    
    def destroy(self, external_id: str) -> None:
        with self._lock:
            self.resources.pop(external_id, None)
            self.calls.append(("destroy", external_id))
        logger.debug(f"Destroyed {external_id}")
