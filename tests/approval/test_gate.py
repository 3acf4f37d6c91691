"""Tests for the approval gate state machine."""

from datetime import datetime, timedelta, timezone
import pytest
from plangate.approval.gate import ApprovalGate
from plangate.approval.models import ApprovalOutcome, Decision
from plangate.approval.store import ApprovalStore
from plangate.config.environment import EnvironmentConfig
from plangate.utils.errors import ApprovalError, PlanNotFoundError


class FakeClock:
    """Controllable clock for expiry tests."""
    
    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    
    def __call__(self):
        return self.now
    
    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


def _gate(tmp_path, clock, **environment):
    env = EnvironmentConfig(
        name=environment.pop("name", "production"),
        enforcement_mode=environment.pop("enforcement_mode", "manual"),
        **environment
    )
    return ApprovalGate(ApprovalStore(tmp_path / "approvals"), env, clock=clock)


class TestOpen:
    
    def test_manual_starts_pending(self, tmp_path, clock):
        gate = _gate(tmp_path, clock, required_approvers=["alice"], approval_timeout=60)
        record = gate.open("p1")
        
        assert record.outcome == ApprovalOutcome.PENDING
        assert record.expires_at == clock.now + timedelta(seconds=60)
        assert gate.status("p1").outcome == ApprovalOutcome.PENDING
    
    def test_auto_mode_approves_immediately(self, tmp_path, clock):
        gate = _gate(tmp_path, clock, name="development", enforcement_mode="auto")
        record = gate.open("p1")
        
        assert record.outcome == ApprovalOutcome.APPROVED
        assert record.decisions[0].actor == "auto"
    
    def test_open_twice_is_refused(self, tmp_path, clock):
        gate = _gate(tmp_path, clock)
        gate.open("p1")
        with pytest.raises(ApprovalError, match="already exists"):
            gate.open("p1")
    
    def test_unknown_plan(self, tmp_path, clock):
        with pytest.raises(PlanNotFoundError):
            _gate(tmp_path, clock).status("nope")


class TestSingleVeto:
    
    def test_quorum_of_approvals(self, tmp_path, clock):
        gate = _gate(tmp_path, clock, required_approvers=["alice", "bob", "carol"], quorum=2)
        gate.open("p1")
        
        assert gate.decide("p1", "alice", Decision.APPROVE).outcome == ApprovalOutcome.PENDING
        assert gate.decide("p1", "bob", Decision.APPROVE).outcome == ApprovalOutcome.APPROVED
    
    def test_any_rejection_rejects(self, tmp_path, clock):
        gate = _gate(tmp_path, clock, required_approvers=["alice", "bob", "carol"], quorum=2)
        gate.open("p1")
        gate.decide("p1", "alice", Decision.APPROVE)
        
        record = gate.decide("p1", "bob", Decision.REJECT, comment="not during freeze")
        
        assert record.outcome == ApprovalOutcome.REJECTED
        assert record.decisions[-1].comment == "not during freeze"
    
    def test_repeated_approval_counts_once(self, tmp_path, clock):
        gate = _gate(tmp_path, clock, required_approvers=["alice", "bob"], quorum=2)
        gate.open("p1")
        gate.decide("p1", "alice", Decision.APPROVE)
        record = gate.decide("p1", "alice", Decision.APPROVE)
        
        assert record.outcome == ApprovalOutcome.PENDING
        assert len(record.decisions) == 1


class TestMajority:
    
    def test_rejections_below_threshold_stay_pending(self, tmp_path, clock):
        gate = _gate(tmp_path, clock, required_approvers=["a", "b", "c"], quorum=2, policy="majority")
        gate.open("p1")
        
        assert gate.decide("p1", "a", Decision.REJECT).outcome == ApprovalOutcome.PENDING
        assert gate.decide("p1", "b", Decision.APPROVE).outcome == ApprovalOutcome.PENDING
        assert gate.decide("p1", "c", Decision.APPROVE).outcome == ApprovalOutcome.APPROVED
    
    def test_rejected_once_quorum_unreachable(self, tmp_path, clock):
        gate = _gate(tmp_path, clock, required_approvers=["a", "b", "c"], quorum=2, policy="majority")
        gate.open("p1")
        gate.decide("p1", "a", Decision.REJECT)
        
        assert gate.decide("p1", "b", Decision.REJECT).outcome == ApprovalOutcome.REJECTED


class TestDecisionRules:
    
    def test_non_approver_is_refused(self, tmp_path, clock):
        gate = _gate(tmp_path, clock, required_approvers=["alice"])
        gate.open("p1")
        
        with pytest.raises(ApprovalError, match="mallory is not an approver"):
            gate.decide("p1", "mallory", Decision.APPROVE)
        assert gate.status("p1").decisions == []
    
    def test_anyone_may_decide_without_approver_list(self, tmp_path, clock):
        gate = _gate(tmp_path, clock)
        gate.open("p1")
        assert gate.decide("p1", "anyone", Decision.APPROVE).outcome == ApprovalOutcome.APPROVED
    
    def test_terminal_record_refuses_decisions(self, tmp_path, clock):
        gate = _gate(tmp_path, clock, required_approvers=["alice", "bob"], quorum=1)
        gate.open("p1")
        gate.decide("p1", "alice", Decision.REJECT)
        
        with pytest.raises(ApprovalError, match="already rejected"):
            gate.decide("p1", "bob", Decision.APPROVE)
    
    def test_empty_actor(self, tmp_path, clock):
        gate = _gate(tmp_path, clock)
        gate.open("p1")
        with pytest.raises(ApprovalError, match="Actor"):
            gate.decide("p1", "", Decision.APPROVE)


class TestExpiry:
    
    def test_status_expires_lazily(self, tmp_path, clock):
        gate = _gate(tmp_path, clock, approval_timeout=60)
        gate.open("p1")
        clock.advance(61)
        
        record = gate.status("p1")
        
        assert record.outcome == ApprovalOutcome.EXPIRED
        assert gate.store.load("p1").outcome == ApprovalOutcome.EXPIRED
    
    def test_late_decision_is_refused(self, tmp_path, clock):
        gate = _gate(tmp_path, clock, approval_timeout=60)
        gate.open("p1")
        clock.advance(60)
        
        with pytest.raises(ApprovalError, match="expired"):
            gate.decide("p1", "alice", Decision.APPROVE)
    
    def test_wait_returns_pending_after_timeout(self, tmp_path, clock):
        gate = _gate(tmp_path, clock)
        gate.open("p1")
        
        record = gate.wait("p1", timeout=0.05, poll_interval=0.01)
        
        assert record.outcome == ApprovalOutcome.PENDING
    
    def test_decisions_survive_a_new_gate(self, tmp_path, clock):
        """State lives in the store, not the gate instance."""
        gate = _gate(tmp_path, clock, required_approvers=["alice", "bob"])
        gate.open("p1")
        gate.decide("p1", "alice", Decision.APPROVE)
        
        restarted = _gate(tmp_path, clock, required_approvers=["alice", "bob"])
        
        assert restarted.decide("p1", "bob", Decision.APPROVE).outcome == ApprovalOutcome.APPROVED
