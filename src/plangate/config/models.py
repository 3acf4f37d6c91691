"""Settings model validated from merged YAML configuration."""

from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class StalePlanPolicy(str, Enum):
    """What apply does when state changed since planning."""
    REDIFF = "rediff"
    FAIL = "fail"


class Settings(BaseModel):
    """Engine settings."""
    workspace_dir: str = Field(default=".plangate", description="Directory holding state.db, plans and approvals")
    namespace: str = Field(default="default", min_length=1, description="State namespace")
    workers: int = Field(default=4, ge=1, description="Parallel apply workers")
    max_conflict_retries: int = Field(default=3, ge=0, description="Commit retries after a version conflict")
    stale_plan_policy: StalePlanPolicy = Field(default=StalePlanPolicy.REDIFF)
    lock_timeout: float = Field(default=10.0, ge=0, description="Seconds to wait for the namespace lock")
    lock_ttl: float = Field(default=3600.0, gt=0, description="Seconds before an abandoned lock is ignored")
    lock_poll_interval: float = Field(default=0.2, gt=0)
    plan_ttl: float = Field(default=86400.0, gt=0, description="Seconds a plan handle stays valid")
    validate_on_plan: bool = Field(default=True, description="Call provider validation while planning")
    providers: Dict[str, Dict[str, Any]] = Field(default_factory=dict, description="Resource kind -> provider settings")
    default_provider: Optional[Dict[str, Any]] = Field(default_factory=lambda: {"kind": "null"})
    
    @property
    def workspace_path(self) -> Path:
        return Path(self.workspace_dir)
    
    @property
    def state_db_path(self) -> Path:
        return self.workspace_path / "state.db"
    
    @property
    def plans_dir(self) -> Path:
        return self.workspace_path / "plans"
    
    @property
    def approvals_dir(self) -> Path:
        return self.workspace_path / "approvals"
