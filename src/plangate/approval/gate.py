"""Approval gate - durable, resumable human checkpoint between plan and apply."""

import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from .models import (
    ApprovalOutcome,
    ApprovalRecord,
    Decision,
    DecisionRecord,
    VetoPolicy,
)
from .store import ApprovalStore
from ..config.environment import EnvironmentConfig
from ..utils.errors import ApprovalError
from ..utils.logging import get_logger

logger = get_logger("approval.gate")

AUTO_ACTOR = "auto"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ApprovalGate:
    """
    State machine over durable approval records.

    Nothing is held in memory while a plan waits: every call re-reads the
    record, so decisions survive process restarts and may arrive from any
    transport that calls ``decide``.
    """

    def __init__(
        self,
        store: ApprovalStore,
        environment: EnvironmentConfig,
        clock: Callable[[], datetime] = _utc_now
    ):
        self.store = store
        self.environment = environment
        self.clock = clock

    def open(self, plan_id: str) -> ApprovalRecord:
        """Create the record for a newly issued plan (approved at once in auto mode)."""
        now = self.clock()
        record = ApprovalRecord(
            plan_id=plan_id,
            environment=self.environment.name,
            required_approvers=self.environment.required_approvers,
            quorum=self.environment.quorum,
            policy=VetoPolicy(self.environment.policy),
            created_at=now,
            expires_at=now + timedelta(seconds=self.environment.approval_timeout),
        )
        if self.environment.enforcement_mode == "auto":
            record.decisions.append(DecisionRecord(actor=AUTO_ACTOR, decision=Decision.APPROVE, decided_at=now))
            record.outcome = ApprovalOutcome.APPROVED
            record.decided_at = now
            logger.warning(f"Plan {plan_id} auto-approved ({self.environment.name}), no human review required")
        else:
            logger.info(
                f"Plan {plan_id} awaiting approval: quorum {record.quorum} "
                f"of {record.required_approvers or 'any actor'} ({record.policy.value})"
            )
        self.store.create(record)
        return record

    def decide(
        self,
        plan_id: str,
        actor: str,
        decision: Decision,
        comment: Optional[str] = None
    ) -> ApprovalRecord:
        """
        Record *actor*'s decision and evaluate the transition.

        Raises:
            ApprovalError: If the actor is not a required approver or the
                record is already terminal (including by expiring now)
        """
        decision = Decision(decision)
        if not actor:
            raise ApprovalError("Actor identity is required")

        current = self.store.load(plan_id)
        if current.required_approvers and actor not in current.required_approvers:
            raise ApprovalError(
                f"{actor} is not an approver for plan {plan_id}. "
                f"Required approvers: {', '.join(current.required_approvers)}"
            )

        recorded = False

        def apply_decision(record: ApprovalRecord) -> ApprovalRecord:
            nonlocal recorded
            now = self.clock()
            self._expire_if_due(record, now)
            if record.is_terminal:
                return record
            record.decisions = [d for d in record.decisions if d.actor != actor]
            record.decisions.append(DecisionRecord(actor=actor, decision=decision, decided_at=now, comment=comment))
            evaluate(record, now)
            recorded = True
            return record

        record = self.store.update(plan_id, apply_decision)
        if not recorded:
            raise ApprovalError(
                f"Approval for plan {plan_id} is already {record.outcome.value}; run plan again for a new approval"
            )

        logger.info(f"{actor} decided {decision.value} on plan {plan_id} -> {record.outcome.value}")
        return record

    def status(self, plan_id: str) -> ApprovalRecord:
        """Current record, persisting an expiry that became due since the last call."""
        record = self.store.load(plan_id)
        if record.is_terminal or self.clock() < record.expires_at:
            return record

        def expire(stored: ApprovalRecord) -> ApprovalRecord:
            self._expire_if_due(stored, self.clock())
            return stored

        return self.store.update(plan_id, expire)

    def wait(
        self,
        plan_id: str,
        timeout: Optional[float] = None,
        poll_interval: float = 1.0
    ) -> ApprovalRecord:
        """
        Block until the record is terminal or *timeout* seconds pass.

        Returns:
            The latest record, which is still pending only when timing out
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            record = self.status(plan_id)
            if record.is_terminal:
                return record
            if deadline is not None and time.monotonic() >= deadline:
                return record
            time.sleep(poll_interval)

    def _expire_if_due(self, record: ApprovalRecord, now: datetime) -> None:
        if not record.is_terminal and now >= record.expires_at:
            record.outcome = ApprovalOutcome.EXPIRED
            record.decided_at = now
            logger.warning(f"Approval for plan {record.plan_id} expired without quorum")


def evaluate(record: ApprovalRecord, now: datetime) -> ApprovalOutcome:
    """
    Move a pending record to its next state given its decisions.

    single_veto: any rejection rejects; quorum approvals approve.
    majority: quorum approvals approve; rejected once quorum is unreachable.
    """
    if record.is_terminal:
        return record.outcome

    approvals = len(record.approvals)
    rejections = len(record.rejections)
    outcome = ApprovalOutcome.PENDING

    if record.policy == VetoPolicy.SINGLE_VETO:
        if rejections:
            outcome = ApprovalOutcome.REJECTED
        elif approvals >= record.quorum:
            outcome = ApprovalOutcome.APPROVED
    else:
        if approvals >= record.quorum:
            outcome = ApprovalOutcome.APPROVED
        elif record.required_approvers:
            if len(record.required_approvers) - rejections < record.quorum:
                outcome = ApprovalOutcome.REJECTED
        elif rejections >= record.quorum:
            outcome = ApprovalOutcome.REJECTED

    if outcome != ApprovalOutcome.PENDING:
        record.outcome = outcome
        record.decided_at = now
    return outcome
