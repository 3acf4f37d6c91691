"""Orchestrator facade: wires settings, state, plans, approvals and providers together."""

from typing import Optional
from pydantic import BaseModel
from .apply.models import ApplyResult
from .apply.stage import ApplyStage
from .approval.gate import ApprovalGate
from .approval.models import ApprovalRecord, Decision
from .approval.store import ApprovalStore
from .config import EnvironmentConfig, Settings, load_environment_config, load_settings
from .ingest.models import ResourceConfig
from .plan.models import PlanHandle
from .plan.stage import PlanStage
from .plan.store import PlanStore
from .providers.registry import ProviderRegistry, build_registry
from .state.base import StateStore
from .state.sqlite import SqliteStateStore
from .utils.logging import get_logger

logger = get_logger("orchestrator")


class PlanStatus(BaseModel):
    """Everything known about one plan."""
    plan: PlanHandle
    approval: ApprovalRecord
    apply_result: Optional[ApplyResult] = None


class Orchestrator:
    """config -> graph -> diff -> plan -> approval -> apply, for one namespace."""

    def __init__(
        self,
        settings: Settings,
        environment: EnvironmentConfig,
        registry: Optional[ProviderRegistry] = None,
        state: Optional[StateStore] = None
    ):
        self.settings = settings
        self.environment = environment
        self.state = state or SqliteStateStore(
            str(settings.state_db_path),
            namespace=settings.namespace,
            lock_ttl=settings.lock_ttl,
            lock_poll_interval=settings.lock_poll_interval,
        )
        self.registry = registry or build_registry(settings.providers, settings.default_provider)
        self.plans = PlanStore(settings.plans_dir)
        self.gate = ApprovalGate(ApprovalStore(settings.approvals_dir), environment)
        self.plan_stage = PlanStage(
            self.state,
            self.plans,
            self.gate,
            self.registry,
            plan_ttl=settings.plan_ttl,
            validate=settings.validate_on_plan,
        )
        self.apply_stage = ApplyStage(
            self.state,
            self.plans,
            self.gate,
            self.registry,
            workers=settings.workers,
            lock_timeout=settings.lock_timeout,
            stale_plan_policy=settings.stale_plan_policy,
            max_conflict_retries=settings.max_conflict_retries,
        )

    @classmethod
    def from_files(
        cls,
        settings_path: Optional[str] = None,
        environment_path: Optional[str] = None,
        **overrides
    ) -> "Orchestrator":
        """Build from layered settings files and the approval environment."""
        settings = load_settings(settings_path, overrides)
        environment = load_environment_config(environment_path)
        return cls(settings, environment)

    def plan(self, config_path: str) -> PlanHandle:
        return self.plan_stage.plan(config_path)

    def plan_config(self, config: ResourceConfig) -> PlanHandle:
        return self.plan_stage.plan_config(config)

    def decide(self, plan_id: str, actor: str, decision: Decision, comment: Optional[str] = None) -> ApprovalRecord:
        return self.gate.decide(plan_id, actor, decision, comment)

    def status(self, plan_id: str) -> PlanStatus:
        return PlanStatus(
            plan=self.plans.load(plan_id),
            approval=self.gate.status(plan_id),
            apply_result=self.plans.load_apply_result(plan_id),
        )

    def apply(self, plan_id: str) -> ApplyResult:
        return self.apply_stage.apply(plan_id)

    def cancel(self) -> None:
        self.apply_stage.cancel()

    def close(self) -> None:
        close = getattr(self.state, "close", None)
        if close is not None:
            close()
