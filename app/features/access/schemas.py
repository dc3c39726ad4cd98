"""
Pydantic schemas for access control.

Role definition input (consumed once when a registry is built) and the
request/response models of the access routes.
"""
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, TypeAdapter

from app.features.access.models import ActionScope, Scope


# ============================================================================
# Role Definition Schemas
# ============================================================================

class GrantDefinition(BaseModel):
    """Actions granted on one resource. Resource names are free-form; "*" matches every resource."""
    resource: str = Field(..., min_length=1, description="Resource name, or '*' for every resource")
    actions: List[ActionScope] = Field(..., min_length=1, description="e.g. ['readOwn', 'updateAny']")

    model_config = ConfigDict(extra="forbid")


class RoleDefinition(BaseModel):
    """One role: its name, the roles it extends and its direct grants."""
    name: str = Field(..., min_length=1, description="Unique role name")
    extends: List[str] = Field(default_factory=list, description="Names of parent roles")
    grants: List[GrantDefinition] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


RoleDefinitionList = TypeAdapter(List[RoleDefinition])


# ============================================================================
# Role Response Schemas
# ============================================================================

class CapabilityResponse(BaseModel):
    resource: str
    action: ActionScope


class RoleResponse(BaseModel):
    """Schema for a role with its resolved capabilities."""
    name: str
    extends: List[str] = []
    capabilities: List[CapabilityResponse] = []


# ============================================================================
# Access Check Schemas
# ============================================================================

class AccessCheckRequest(BaseModel):
    """Schema for checking whether the caller may perform an action."""
    resource: str = Field(..., min_length=1, description="Resource name")
    action: ActionScope = Field(..., description="Action, e.g. 'readOwn'")


class AccessCheckResponse(BaseModel):
    """Schema for access check response. Never carries the denial reason."""
    granted: bool
    scope: Optional[Scope] = None


class ReloadResponse(BaseModel):
    roles: int
    source: str
