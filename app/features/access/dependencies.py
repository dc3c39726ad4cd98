"""
FastAPI dependencies for route protection.

The registry lives on app.state and is read per request, so replacing it
(install_registry) is a single reference swap that in-flight requests never
observe half-done.
"""
from typing import List, Optional, Tuple, Union
from fastapi import Depends, FastAPI, HTTPException, Request, status

from app.features.access.middleware import AccessGrant, Allowed, authorize
from app.features.access.models import ActionScope, Principal
from app.features.access.registry import PermissionRegistry
from app.features.users.dependencies import get_current_principal


ACCESS_DENIED_DETAIL = "Access denied"


def install_registry(app: FastAPI, registry: PermissionRegistry) -> None:
    """Make `registry` the one every later request sees."""
    app.state.access_registry = registry


def get_registry(request: Request) -> PermissionRegistry:
    """Dependency returning the registry installed on the application."""
    return request.app.state.access_registry


def access_denied() -> HTTPException:
    # Same body for every denial reason
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=ACCESS_DENIED_DETAIL,
    )


def require_access(resource: str, action: Union[ActionScope, str]):
    """
    FastAPI dependency to require an action on a resource.

    Usage:
        @router.get("/leads/{lead_id}")
        async def get_lead(
            lead_id: str,
            grant: AccessGrant = Depends(require_access("leads", "readOwn"))
        ):
            lead = ...
            ensure_owner(grant, lead.owner_id)

    Args:
        resource: Resource name
        action: ActionScope or its spelling

    Returns:
        Dependency function that returns an AccessGrant when allowed

    Raises:
        HTTPException: 401 if unauthenticated, 403 if denied
    """
    action = ActionScope(action)

    async def access_dependency(
        principal: Principal = Depends(get_current_principal),
        registry: PermissionRegistry = Depends(get_registry),
    ) -> AccessGrant:
        outcome = authorize(registry, principal, resource, action)
        if not isinstance(outcome, Allowed):
            raise access_denied()
        return AccessGrant(principal=principal, resource=resource, action=action, scope=outcome.scope)

    return access_dependency


def require_any_access(permissions: List[Tuple[str, Union[ActionScope, str]]]):
    """
    FastAPI dependency to require ANY of the specified (resource, action) pairs.

    Usage:
        @router.get("/reports")
        async def get_reports(
            grant: AccessGrant = Depends(require_any_access([("reports", "readAny"), ("reports", "readOwn")]))
        ):
            pass

    Returns:
        Dependency function that returns the grant of the first allowed pair
    """
    checks = [(resource, ActionScope(action)) for resource, action in permissions]

    async def access_dependency(
        principal: Principal = Depends(get_current_principal),
        registry: PermissionRegistry = Depends(get_registry),
    ) -> AccessGrant:
        for resource, action in checks:
            outcome = authorize(registry, principal, resource, action)
            if isinstance(outcome, Allowed):
                return AccessGrant(principal=principal, resource=resource, action=action, scope=outcome.scope)
        raise access_denied()

    return access_dependency


def require_all_access(permissions: List[Tuple[str, Union[ActionScope, str]]]):
    """
    FastAPI dependency to require EVERY one of the specified (resource, action) pairs.

    Usage:
        @router.post("/leads/{lead_id}/convert")
        async def convert_lead(
            grants: List[AccessGrant] = Depends(require_all_access([("leads", "updateOwn"), ("invoices", "createAny")]))
        ):
            pass

    Returns:
        Dependency function that returns one grant per pair, in the order given
    """
    checks = [(resource, ActionScope(action)) for resource, action in permissions]

    async def access_dependency(
        principal: Principal = Depends(get_current_principal),
        registry: PermissionRegistry = Depends(get_registry),
    ) -> List[AccessGrant]:
        grants = []
        for resource, action in checks:
            outcome = authorize(registry, principal, resource, action)
            if not isinstance(outcome, Allowed):
                raise access_denied()
            grants.append(AccessGrant(principal=principal, resource=resource, action=action, scope=outcome.scope))
        return grants

    return access_dependency


def ensure_owner(grant: AccessGrant, owner_id: Optional[str]) -> None:
    """
    Reject Own-scoped access to a record the caller does not own.

    Raises:
        HTTPException: 403 with the generic access denied detail
    """
    if not grant.permits(owner_id):
        raise access_denied()
