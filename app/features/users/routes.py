"""
User feature routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends

from app.features.access.dependencies import get_registry
from app.features.access.middleware import role_of
from app.features.access.models import Principal
from app.features.access.registry import PermissionRegistry
from app.features.access.routes import capability_responses
from app.features.users.dependencies import get_current_principal
from app.features.users.schemas import PrincipalResponse
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["users"])


@router.get("/me", response_model=PrincipalResponse)
async def get_current_user_profile(
    principal: Annotated[Principal, Depends(get_current_principal)],
    registry: Annotated[PermissionRegistry, Depends(get_registry)],
):
    """Get the current caller and the capabilities its role grants."""
    role = role_of(principal)
    capabilities = []
    if role is not None:
        if registry.has_role(role):
            capabilities = capability_responses(registry.capabilities(role))
        else:
            log.warning("User %s has undeclared role %r", principal.id, role)

    return PrincipalResponse(
        id=principal.id,
        email=principal.email,
        role=principal.role,
        capabilities=capabilities,
    )
