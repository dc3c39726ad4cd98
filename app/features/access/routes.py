"""
Access control API routes.

Inspect the role catalogue, check the caller's own access, and reload the
role definitions without restarting the process.
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.core import config
from app.core.rate_limit import limiter
from app.features.access.defaults import build_registry, definitions_source
from app.features.access.dependencies import get_registry, install_registry, require_access
from app.features.access.exceptions import ConfigurationError, UnknownRoleError
from app.features.access.middleware import AccessGrant, Allowed, authorize
from app.features.access.models import Capability, Principal, Role
from app.features.access.registry import PermissionRegistry
from app.features.access.schemas import (
    AccessCheckRequest,
    AccessCheckResponse,
    CapabilityResponse,
    ReloadResponse,
    RoleResponse,
)
from app.features.users.dependencies import get_current_principal
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter()


def capability_responses(capabilities: frozenset[Capability]) -> List[CapabilityResponse]:
    ordered = sorted(capabilities, key=lambda c: (c.resource, c.action_scope.value))
    return [CapabilityResponse(resource=c.resource, action=c.action_scope) for c in ordered]


def role_response(role: Role) -> RoleResponse:
    return RoleResponse(
        name=role.name,
        extends=list(role.parents),
        capabilities=capability_responses(role.effective),
    )


# ============================================================================
# Role Routes
# ============================================================================

@router.get("/roles", response_model=List[RoleResponse])
async def list_roles(
    grant: AccessGrant = Depends(require_access("roles", "readAny")),
    registry: PermissionRegistry = Depends(get_registry),
):
    """List every declared role with its effective capabilities."""
    return [role_response(registry.get_role(name)) for name in registry.roles]


@router.get("/roles/{role_name}", response_model=RoleResponse)
async def get_role(
    role_name: str,
    grant: AccessGrant = Depends(require_access("roles", "readAny")),
    registry: PermissionRegistry = Depends(get_registry),
):
    """Get one role with its effective capabilities."""
    try:
        role = registry.get_role(role_name)
    except UnknownRoleError:
        raise HTTPException(status_code=404, detail="Role not found")
    return role_response(role)


# ============================================================================
# Access Check
# ============================================================================

@router.post("/check", response_model=AccessCheckResponse)
@limiter.limit(config.ACCESS_CHECK_RATE_LIMIT)
async def check_access(
    request: Request,
    check: AccessCheckRequest,
    principal: Principal = Depends(get_current_principal),
    registry: PermissionRegistry = Depends(get_registry),
):
    """
    Check whether the caller may perform an action on a resource.

    Only the outcome is returned; why access was denied stays in the logs.
    """
    outcome = authorize(registry, principal, check.resource, check.action)
    if isinstance(outcome, Allowed):
        return AccessCheckResponse(granted=True, scope=outcome.scope)
    return AccessCheckResponse(granted=False)


# ============================================================================
# Reload
# ============================================================================

@router.post("/reload", response_model=ReloadResponse)
async def reload_roles(
    request: Request,
    grant: AccessGrant = Depends(require_access("access-control", "updateAny")),
):
    """
    Rebuild the registry from the configured role definitions and swap it in.

    A failed build leaves the current registry in place.
    """
    source = definitions_source()
    try:
        registry = build_registry()
    except ConfigurationError as e:
        log.error("Role definition reload from %s failed: %s", source, e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    install_registry(request.app, registry)
    log.warning("Role definitions reloaded from %s by %s", source, grant.principal.id)
    return ReloadResponse(roles=len(registry), source=source)
