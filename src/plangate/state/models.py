"""Persisted state models."""

from datetime import datetime
from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field


class StateRecord(BaseModel):
    """Last successfully applied form of one resource."""
    address: str = Field(..., description="Resource address (type.name)")
    type: str = Field(..., description="Resource kind")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Last-applied attributes, references resolved")
    external_id: str = Field(..., description="Provider-assigned identifier")
    dependencies: List[str] = Field(default_factory=list, description="Dependency addresses at apply time")
    version: int = Field(..., ge=1, description="Monotonic version / CAS token")
    updated_at: Optional[datetime] = Field(default=None, description="Commit time (UTC)")


class StateSnapshot(BaseModel):
    """Consistent view of a namespace at one serial."""
    namespace: str
    serial: int = Field(default=0, ge=0, description="Bumped on every commit in the namespace")
    records: Dict[str, StateRecord] = Field(default_factory=dict)
    
    def version_of(self, address: str) -> int:
        """Version token of *address*, 0 when absent."""
        record = self.records.get(address)
        return record.version if record else 0


class LockInfo(BaseModel):
    """Holder of a namespace advisory lock."""
    namespace: str
    owner: str
    acquired_at: datetime
    expires_at: datetime
