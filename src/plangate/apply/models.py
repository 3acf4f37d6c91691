"""Apply run result models."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field
from ..engine.models import ChangeAction


class EntryStatus(str, Enum):
    """Outcome of one change entry in an apply run."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    NOT_ATTEMPTED = "not_attempted"


class EntryResult(BaseModel):
    """What happened to one actionable change entry."""
    address: str
    action: ChangeAction
    status: EntryStatus = EntryStatus.NOT_ATTEMPTED
    external_id: Optional[str] = Field(None, description="Provider ID after a successful create/update")
    error: Optional[str] = Field(None, description="Failure detail (identity, action, provider message)")
    error_type: Optional[str] = Field(None, description="Exception class name of the failure")


class ApplyResult(BaseModel):
    """Result of one apply run, possibly partial."""
    plan_id: str
    namespace: str
    entries: List[EntryResult] = Field(default_factory=list, description="Actionable entries in execution order")
    rediffed: bool = Field(default=False, description="State had changed since planning and the diff was recomputed")
    cancelled: bool = Field(default=False, description="Cancellation stopped the run between entries")
    lock_lost: bool = Field(default=False, description="The namespace lock expired mid-run and scheduling stopped")
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    
    def with_status(self, status: EntryStatus) -> List[EntryResult]:
        return [entry for entry in self.entries if entry.status == status]
    
    @property
    def succeeded(self) -> List[EntryResult]:
        return self.with_status(EntryStatus.SUCCEEDED)
    
    @property
    def failed(self) -> List[EntryResult]:
        return self.with_status(EntryStatus.FAILED)
    
    @property
    def not_attempted(self) -> List[EntryResult]:
        return self.with_status(EntryStatus.NOT_ATTEMPTED)
    
    @property
    def success(self) -> bool:
        """Every entry committed."""
        return all(entry.status == EntryStatus.SUCCEEDED for entry in self.entries)
    
    @property
    def partial(self) -> bool:
        return not self.success
