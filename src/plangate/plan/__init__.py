"""Plan stage and durable plan handles."""

from .models import PlanHandle
from .stage import PlanStage
from .store import PlanStore

__all__ = ["PlanHandle", "PlanStage", "PlanStore"]
