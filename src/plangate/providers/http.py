"""JSON-over-HTTP provider adapter (generic REST endpoint)."""

from typing import Any, Dict, List, Optional
import requests
from .base import ProviderAdapter
from ..utils.errors import ProviderError
from ..utils.logging import get_logger

logger = get_logger("providers.http")


class HttpProvider(ProviderAdapter):
    """
    Provider backed by a REST collection endpoint.
    
    - ``POST {endpoint}`` with the attributes creates and returns ``{"id": ...}``
    - ``PUT {endpoint}/{id}`` updates
    - ``DELETE {endpoint}/{id}`` destroys (404 counts as already gone)
    - ``POST {endpoint}/validate`` returns ``{"errors": [...]}`` when enabled
    """
    
    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        validate_remotely: bool = False
    ):
        """
        Initialize HTTP provider.
        
        Args:
            endpoint: Collection URL for this resource kind
            timeout: Per-request timeout in seconds
            headers: Extra headers (e.g. Authorization)
            validate_remotely: Call the /validate endpoint during planning
        """
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self.validate_remotely = validate_remotely
    
    def validate(self, attributes: Dict[str, Any]) -> List[str]:
        if not self.validate_remotely:
            return []
        response = self._request("post", f"{self.endpoint}/validate", attributes)
        errors = response.json().get("errors", [])
        return [str(error) for error in errors]
    
    def apply(self, attributes: Dict[str, Any], external_id: Optional[str] = None) -> str:
        if external_id:
            response = self._request("put", f"{self.endpoint}/{external_id}", attributes)
        else:
            response = self._request("post", self.endpoint, attributes)
        
        try:
            body = response.json() if response.content else {}
        except ValueError as e:
            raise ProviderError(f"Provider returned invalid JSON: {e}")
        
        resource_id = body.get("id") or external_id
        if not resource_id:
            raise ProviderError(f"Provider at {self.endpoint} returned no resource id")
        return str(resource_id)
    
    def destroy(self, external_id: str) -> None:
        try:
            response = requests.delete(
                f"{self.endpoint}/{external_id}",
                headers=self.headers,
                timeout=self.timeout
            )
            if response.status_code == 404:
                logger.warning(f"Resource {external_id} already absent at {self.endpoint}")
                return
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Provider API error: {e}")
            raise ProviderError(f"DELETE {self.endpoint}/{external_id} failed: {e}")
    
    def _request(self, method: str, url: str, payload: Dict[str, Any]) -> requests.Response:
        try:
            response = getattr(requests, method)(
                url,
                json=payload,
                headers=self.headers,
                timeout=self.timeout
            )
            response.raise_for_status()
            return response
        except requests.exceptions.RequestException as e:
            logger.error(f"Provider API error: {e}")
            raise ProviderError(f"{method.upper()} {url} failed: {e}")
