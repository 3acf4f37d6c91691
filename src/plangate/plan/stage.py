"""Plan stage: diff desired configuration against state and issue a plan handle."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from .models import PlanHandle
from .store import PlanStore
from ..approval.gate import ApprovalGate
from ..engine.diff import diff
from ..engine.models import ChangeAction, ChangeSet
from ..graph.dependency_graph import build_graph
from ..ingest.config_loader import load_resource_config
from ..ingest.models import ResourceConfig
from ..providers.registry import ProviderRegistry
from ..state.base import StateStore
from ..utils.errors import ConfigError, ProviderError
from ..utils.logging import get_logger

logger = get_logger("plan.stage")


class PlanStage:
    """
    Produces reviewable plans. Never mutates state or calls provider writes.
    
    Side effects are limited to the durable plan handle and its pending
    approval record.
    """
    
    def __init__(
        self,
        state: StateStore,
        plans: PlanStore,
        gate: ApprovalGate,
        registry: ProviderRegistry,
        plan_ttl: float = 86400.0,
        validate: bool = True
    ):
        self.state = state
        self.plans = plans
        self.gate = gate
        self.registry = registry
        self.plan_ttl = plan_ttl
        self.validate = validate
    
    def plan(self, config_path: str) -> PlanHandle:
        """Load *config_path* and plan it."""
        config = load_resource_config(config_path)
        return self.plan_config(config, config_path=config_path)
    
    def plan_config(self, config: ResourceConfig, config_path: Optional[str] = None) -> PlanHandle:
        """
        Plan an already parsed configuration.
        
        Raises:
            ConfigError: On graph errors or failed provider validation
        """
        graph = build_graph(config)
        snapshot = self.state.snapshot()
        change_set = diff(graph, snapshot)
        
        if self.validate:
            self._validate(change_set)
        
        now = datetime.now(timezone.utc)
        handle = PlanHandle(
            id=uuid.uuid4().hex[:12],
            namespace=snapshot.namespace,
            environment=self.gate.environment.name,
            config_path=config_path,
            config_digest=config.digest,
            created_at=now,
            expires_at=now + timedelta(seconds=self.plan_ttl),
            state_serial=snapshot.serial,
            nodes=graph.get_all_nodes(),
            change_set=change_set,
        )
        self.plans.save(handle)
        self.gate.open(handle.id)
        
        logger.info(f"Issued plan {handle.id} at state serial {snapshot.serial}: {change_set.summary()}")
        return handle
    
    def _validate(self, change_set: ChangeSet) -> None:
        """Run read-only provider validation for every create/update."""
        problems: List[str] = []
        for entry in change_set.actionable():
            if entry.action == ChangeAction.DELETE:
                continue
            try:
                adapter = self.registry.get(entry.type)
            except ProviderError as e:
                problems.append(f"{entry.address}: {e}")
                continue
            for error in adapter.validate(entry.after or {}):
                problems.append(f"{entry.address}: {error}")
        
        if problems:
            raise ConfigError("Provider validation failed:\n  " + "\n  ".join(problems))
