"""Durable approval record storage: one JSON file per plan."""

import json
from pathlib import Path
from typing import Callable
from pydantic import ValidationError
from .models import ApprovalRecord
from ..utils.errors import ApprovalError, PlanNotFoundError
from ..utils.files import atomic_write_text, locked_file
from ..utils.logging import get_logger

logger = get_logger("approval.store")


class ApprovalStore:
    """
    Approval records under ``<approvals_dir>/<plan_id>.json``.
    
    Updates are read-modify-write under an exclusive file lock, so decisions
    from concurrent transports are never lost.
    """
    
    def __init__(self, approvals_dir: Path):
        self.approvals_dir = Path(approvals_dir)
        self.approvals_dir.mkdir(parents=True, exist_ok=True)
    
    def create(self, record: ApprovalRecord) -> None:
        path = self._path(record.plan_id)
        with locked_file(path):
            if path.exists():
                raise ApprovalError(f"Approval record for plan {record.plan_id} already exists")
            self._write(path, record)
    
    def load(self, plan_id: str) -> ApprovalRecord:
        path = self._path(plan_id)
        if not path.is_file():
            raise PlanNotFoundError(f"No approval record for plan {plan_id}")
        return self._read(path)
    
    def update(self, plan_id: str, mutate: Callable[[ApprovalRecord], ApprovalRecord]) -> ApprovalRecord:
        """Apply *mutate* to the stored record atomically and persist the result."""
        path = self._path(plan_id)
        with locked_file(path):
            if not path.is_file():
                raise PlanNotFoundError(f"No approval record for plan {plan_id}")
            record = mutate(self._read(path))
            self._write(path, record)
        return record
    
    def _path(self, plan_id: str) -> Path:
        if not plan_id or "/" in plan_id or plan_id.startswith("."):
            raise PlanNotFoundError(f"Invalid plan id: {plan_id!r}")
        return self.approvals_dir / f"{plan_id}.json"
    
    def _read(self, path: Path) -> ApprovalRecord:
        try:
            return ApprovalRecord.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise ApprovalError(f"Approval record {path.name} is corrupt: {e}")
    
    def _write(self, path: Path, record: ApprovalRecord) -> None:
        atomic_write_text(path, json.dumps(record.model_dump(mode="json"), indent=2))
        logger.debug(f"Written approval record: {path}")
