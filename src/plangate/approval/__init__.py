"""Approval gate: durable quorum checkpoint between plan and apply."""

from .gate import ApprovalGate, evaluate
from .models import ApprovalOutcome, ApprovalRecord, Decision, DecisionRecord, VetoPolicy
from .store import ApprovalStore

__all__ = [
    "ApprovalGate",
    "ApprovalStore",
    "ApprovalRecord",
    "ApprovalOutcome",
    "Decision",
    "DecisionRecord",
    "VetoPolicy",
    "evaluate",
]
