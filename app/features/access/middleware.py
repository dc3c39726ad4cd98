"""
Access middleware: turn (principal, resource, action) into Allowed or Denied.

authorize() never raises for a bad principal or an unknown role; both end as
Denied so a stale role assignment cannot crash the request pipeline. The
reason on Denied is for logs only and must not be sent to clients.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from app.features.access.exceptions import UnknownRoleError
from app.features.access.models import ActionScope, Principal, Scope
from app.features.access.registry import PermissionRegistry
from app.utils import get_logger


log = get_logger(__name__)


REASON_NO_ROLE = "no role"
REASON_UNKNOWN_ROLE = "unknown role"
REASON_INSUFFICIENT = "insufficient permissions"


@dataclass(frozen=True)
class Allowed:
    scope: Scope

    @property
    def allowed(self) -> bool:
        return True


@dataclass(frozen=True)
class Denied:
    reason: str

    @property
    def allowed(self) -> bool:
        return False


AuthorizationOutcome = Union[Allowed, Denied]


@dataclass(frozen=True)
class AccessGrant:
    """
    What a protected route receives once access is allowed.

    For Own scope the route still has to compare the owner of the record it
    loads with the principal; permits() does that comparison.
    """
    principal: Principal
    resource: str
    action: ActionScope
    scope: Scope

    def permits(self, owner_id: Optional[str]) -> bool:
        if self.scope is Scope.ANY:
            return True
        return owner_id is not None and owner_id == self.principal.id


def role_of(principal: Any) -> Optional[str]:
    """Read the role from a Principal, any object with .role, or a mapping."""
    if principal is None:
        return None
    if isinstance(principal, Mapping):
        role = principal.get("role")
    else:
        role = getattr(principal, "role", None)
    if not isinstance(role, str) or not role.strip():
        return None
    return role


def _id_of(principal: Any) -> Optional[str]:
    if isinstance(principal, Mapping):
        return principal.get("id")
    return getattr(principal, "id", None)


def authorize(
    registry: PermissionRegistry,
    principal: Any,
    resource: str,
    action: Union[ActionScope, str],
) -> AuthorizationOutcome:
    """
    Decide whether a principal may perform an action on a resource.

    Args:
        registry: The registry to consult
        principal: Authenticated caller (Principal, object with .role, or mapping)
        resource: Resource name (e.g. "leads")
        action: ActionScope or its spelling (e.g. "readOwn")

    Returns:
        Allowed(scope) or Denied(reason)
    """
    role = role_of(principal)
    if role is None:
        log.info(
            "Access denied: principal=%s resource=%s action=%s reason=%s",
            _id_of(principal), resource, action, REASON_NO_ROLE,
        )
        return Denied(REASON_NO_ROLE)

    try:
        decision = registry.can(role, resource, action)
    except UnknownRoleError:
        log.warning(
            "Access denied: principal=%s has role %r which is not declared; "
            "role assignments and role definitions are out of sync",
            _id_of(principal), role,
        )
        return Denied(REASON_UNKNOWN_ROLE)

    if not decision.granted:
        log.info(
            "Access denied: principal=%s role=%s resource=%s action=%s reason=%s",
            _id_of(principal), role, resource, action, REASON_INSUFFICIENT,
        )
        return Denied(REASON_INSUFFICIENT)

    log.debug(
        "Access allowed: principal=%s role=%s resource=%s action=%s scope=%s",
        _id_of(principal), role, resource, action, decision.scope,
    )
    return Allowed(decision.scope)
