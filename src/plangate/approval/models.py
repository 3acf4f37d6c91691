"""Approval record models."""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Set
from pydantic import BaseModel, Field


class Decision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class ApprovalOutcome(str, Enum):
    """Approval state machine: pending -> approved | rejected | expired."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


class VetoPolicy(str, Enum):
    SINGLE_VETO = "single_veto"
    MAJORITY = "majority"


class DecisionRecord(BaseModel):
    """One actor's decision."""
    actor: str
    decision: Decision
    decided_at: datetime
    comment: Optional[str] = None


class ApprovalRecord(BaseModel):
    """Durable approval checkpoint for one plan handle."""
    plan_id: str
    environment: str = "development"
    required_approvers: List[str] = Field(default_factory=list, description="Empty means any actor may decide")
    quorum: int = Field(default=1, ge=1)
    policy: VetoPolicy = VetoPolicy.SINGLE_VETO
    decisions: List[DecisionRecord] = Field(default_factory=list)
    outcome: ApprovalOutcome = ApprovalOutcome.PENDING
    created_at: datetime
    expires_at: datetime
    decided_at: Optional[datetime] = None
    
    @property
    def is_terminal(self) -> bool:
        return self.outcome != ApprovalOutcome.PENDING
    
    def actors_with(self, decision: Decision) -> Set[str]:
        return {record.actor for record in self.decisions if record.decision == decision}
    
    @property
    def approvals(self) -> Set[str]:
        return self.actors_with(Decision.APPROVE)
    
    @property
    def rejections(self) -> Set[str]:
        return self.actors_with(Decision.REJECT)
