"""Graph node model."""

from typing import List, Dict, Any
from pydantic import BaseModel, Field


class ResourceNode(BaseModel):
    """A resolved resource: identity, desired attributes, dependency addresses."""
    type: str = Field(..., description="Resource kind")
    name: str = Field(..., description="Logical name")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Desired attributes, may hold placeholders")
    depends_on: List[str] = Field(default_factory=list, description="Sorted dependency addresses")
    
    class Config:
        frozen = True
    
    @property
    def address(self) -> str:
        return f"{self.type}.{self.name}"
