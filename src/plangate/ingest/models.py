"""Pydantic models for declarative resource configuration."""

from typing import List, Dict, Any
from pydantic import BaseModel, Field, TypeAdapter, field_validator

IDENTIFIER_PATTERN = r"^[A-Za-z_][A-Za-z0-9_-]*$"

_ATTRIBUTES = TypeAdapter(Dict[str, Any])


class ResourceDeclaration(BaseModel):
    """One resource as declared by the user, before references are resolved."""
    type: str = Field(..., pattern=IDENTIFIER_PATTERN, description="Resource kind, selects the provider adapter")
    name: str = Field(..., pattern=IDENTIFIER_PATTERN, description="Logical name, unique per type")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Desired attribute mapping")
    depends_on: List[str] = Field(default_factory=list, description="Explicit dependency addresses (type.name)")

    @field_validator("attributes", mode="after")
    @classmethod
    def _json_attributes(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        # YAML timestamps and sets become their JSON form, as stored in plans and state
        return _ATTRIBUTES.dump_python(value, mode="json")

    @property
    def address(self) -> str:
        return f"{self.type}.{self.name}"


class ResourceConfig(BaseModel):
    """Parsed configuration - collection of resource declarations."""
    resources: List[ResourceDeclaration] = Field(default_factory=list, description="Declared resources")
    digest: str = Field(default="", description="sha256 of the source document")
