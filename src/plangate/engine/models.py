"""Change-set models produced by the diff engine."""

from enum import Enum
from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field


class ChangeAction(str, Enum):
    """Per-resource action types."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    NO_OP = "no-op"


class ChangeEntry(BaseModel):
    """One resource's planned change."""
    address: str = Field(..., description="Resource address (type.name)")
    type: str = Field(..., description="Resource kind")
    action: ChangeAction = Field(..., description="Planned action")
    before: Optional[Dict[str, Any]] = Field(None, description="Last-applied attributes, None when absent")
    after: Optional[Dict[str, Any]] = Field(None, description="Desired attributes, None for deletes")
    dependencies: List[str] = Field(default_factory=list, description="Desired dependencies (applied ones for deletes)")
    prior_dependencies: List[str] = Field(default_factory=list, description="Dependencies recorded in state")
    prior_version: int = Field(default=0, ge=0, description="State version seen when diffing, 0 when absent")


class ChangeSet(BaseModel):
    """Dependency-ordered change entries."""
    entries: List[ChangeEntry] = Field(default_factory=list)
    
    def actionable(self) -> List[ChangeEntry]:
        """Entries that need provider work (everything but no-op)."""
        return [entry for entry in self.entries if entry.action != ChangeAction.NO_OP]
    
    def summary(self) -> Dict[str, int]:
        counts = {action.value: 0 for action in ChangeAction}
        for entry in self.entries:
            counts[ChangeAction(entry.action).value] += 1
        return counts
    
    def get(self, address: str) -> Optional[ChangeEntry]:
        for entry in self.entries:
            if entry.address == address:
                return entry
        return None
    
    @property
    def has_changes(self) -> bool:
        return bool(self.actionable())
