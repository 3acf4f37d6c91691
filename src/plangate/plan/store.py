"""Durable plan handle and apply result storage (JSON documents)."""

import json
import re
from pathlib import Path
from typing import List, Optional
from pydantic import ValidationError
from .models import PlanHandle
from ..apply.models import ApplyResult
from ..utils.errors import PlanGateError, PlanNotFoundError
from ..utils.files import atomic_write_text, locked_file
from ..utils.logging import get_logger

logger = get_logger("plan.store")

PLAN_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class PlanStore:
    """
    One ``<id>.json`` per plan handle plus ``<id>.apply.json`` once applied.
    
    Plan documents are write-once: a handle is read-only after issuance.
    """
    
    def __init__(self, plans_dir: Path):
        self.plans_dir = Path(plans_dir)
        self.plans_dir.mkdir(parents=True, exist_ok=True)
    
    def save(self, handle: PlanHandle) -> Path:
        path = self._plan_path(handle.id)
        with locked_file(path):
            if path.exists():
                raise PlanGateError(f"Plan {handle.id} already exists and is read-only")
            atomic_write_text(path, json.dumps(handle.model_dump(mode="json"), indent=2))
        logger.debug(f"Written plan handle: {path}")
        return path
    
    def load(self, plan_id: str) -> PlanHandle:
        path = self._plan_path(plan_id)
        if not path.is_file():
            raise PlanNotFoundError(f"Plan not found: {plan_id}")
        try:
            return PlanHandle.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise PlanGateError(f"Plan {plan_id} is corrupt: {e}")
    
    def exists(self, plan_id: str) -> bool:
        return self._plan_path(plan_id).is_file()
    
    def list_ids(self) -> List[str]:
        return sorted(
            path.name[:-len(".json")]
            for path in self.plans_dir.glob("*.json")
            if not path.name.endswith(".apply.json")
        )
    
    def save_apply_result(self, result: ApplyResult) -> Path:
        path = self._apply_path(result.plan_id)
        with locked_file(path):
            atomic_write_text(path, json.dumps(result.model_dump(mode="json"), indent=2))
        logger.debug(f"Written apply result: {path}")
        return path
    
    def load_apply_result(self, plan_id: str) -> Optional[ApplyResult]:
        path = self._apply_path(plan_id)
        if not path.is_file():
            return None
        try:
            return ApplyResult.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise PlanGateError(f"Apply result for {plan_id} is corrupt: {e}")
    
    def _plan_path(self, plan_id: str) -> Path:
        return self.plans_dir / f"{_checked_id(plan_id)}.json"
    
    def _apply_path(self, plan_id: str) -> Path:
        return self.plans_dir / f"{_checked_id(plan_id)}.apply.json"


def _checked_id(plan_id: str) -> str:
    if not PLAN_ID_PATTERN.match(plan_id or ""):
        raise PlanNotFoundError(f"Invalid plan id: {plan_id!r}")
    return plan_id
