"""Plan handle model."""

from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field
from ..engine.models import ChangeSet
from ..graph.models import ResourceNode


class PlanHandle(BaseModel):
    """Reviewed change-set plus everything apply needs to re-validate it."""
    id: str = Field(..., description="Plan identifier")
    namespace: str = Field(..., description="State namespace the plan targets")
    environment: str = Field(default="development", description="Approval environment name")
    config_path: Optional[str] = Field(None, description="Source configuration file")
    config_digest: str = Field(default="", description="sha256 of the source configuration")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    expires_at: datetime = Field(..., description="Apply is refused after this instant")
    state_serial: int = Field(..., ge=0, description="Namespace serial observed when diffing")
    nodes: List[ResourceNode] = Field(default_factory=list, description="Desired graph, for re-diffing")
    change_set: ChangeSet = Field(default_factory=ChangeSet)
    
    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at
