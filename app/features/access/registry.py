"""
Permission registry: role -> capability table with role inheritance.

A registry is built once from declarative role definitions and never mutated
afterwards. Inheritance is resolved at build time into each role's effective
capability set, so lookups are a couple of set membership tests.

Usage:
    registry = PermissionRegistry.build([
        {"name": "viewer", "grants": [{"resource": "reports", "actions": ["readAny"]}]},
        {"name": "editor", "extends": ["viewer"],
         "grants": [{"resource": "reports", "actions": ["updateOwn"]}]},
    ])
    registry.can("editor", "reports", "readOwn")   # Decision(granted=True, scope=Scope.ANY)
"""
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Union

from pydantic import ValidationError

from app.features.access.exceptions import ConfigurationError, UnknownRoleError
from app.features.access.models import (
    ActionScope,
    Capability,
    Decision,
    DENIED,
    Role,
    Scope,
    WILDCARD_RESOURCE,
)
from app.features.access.schemas import RoleDefinition, RoleDefinitionList
from app.utils import get_logger


log = get_logger(__name__)


# ============================================================================
# Definition Parsing
# ============================================================================

def parse_definitions(definitions: Iterable[Union[RoleDefinition, Mapping[str, Any]]]) -> list[RoleDefinition]:
    """
    Validate raw role definitions.

    Accepts RoleDefinition instances or plain mappings (e.g. loaded from JSON).

    Raises:
        ConfigurationError: if any record has the wrong shape
    """
    items = list(definitions)
    if all(isinstance(item, RoleDefinition) for item in items):
        return items
    raw = [item.model_dump() if isinstance(item, RoleDefinition) else item for item in items]
    try:
        return RoleDefinitionList.validate_python(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid role definitions: {e}") from e


def _direct_capabilities(definition: RoleDefinition) -> frozenset[Capability]:
    # Granting the same (resource, action) twice collapses here
    return frozenset(
        Capability(grant.resource, action_scope.action, action_scope.scope)
        for grant in definition.grants
        for action_scope in grant.actions
    )


def _check_parents(by_name: Mapping[str, RoleDefinition]) -> None:
    for definition in by_name.values():
        for parent in definition.extends:
            if parent not in by_name:
                raise ConfigurationError(
                    f"Role {definition.name!r} extends undeclared role {parent!r}"
                )


def _resolution_order(by_name: Mapping[str, RoleDefinition]) -> list[str]:
    """
    Order roles so every parent comes before its children.

    Depth-first walk with an explicit "in progress" path; meeting a role that
    is still on the path means the graph has a cycle.

    Raises:
        ConfigurationError: on cyclic inheritance
    """
    done: set[str] = set()
    order: list[str] = []

    for root in by_name:
        if root in done:
            continue
        path: list[str] = [root]
        on_path: set[str] = {root}
        stack = [iter(by_name[root].extends)]
        while stack:
            parent = next(stack[-1], None)
            if parent is None:
                stack.pop()
                finished = path.pop()
                on_path.discard(finished)
                done.add(finished)
                order.append(finished)
                continue
            if parent in done:
                continue
            if parent in on_path:
                cycle = path[path.index(parent):] + [parent]
                raise ConfigurationError(
                    f"Cyclic role inheritance: {' -> '.join(cycle)}"
                )
            path.append(parent)
            on_path.add(parent)
            stack.append(iter(by_name[parent].extends))

    return order


# ============================================================================
# Registry
# ============================================================================

class PermissionRegistry:
    """
    Immutable role -> capability table.

    Build with PermissionRegistry.build(); the constructor expects already
    resolved roles and is not meant to be called directly.
    """

    __slots__ = ("_roles",)

    def __init__(self, roles: Mapping[str, Role]):
        self._roles = MappingProxyType(dict(roles))

    @classmethod
    def build(cls, definitions: Iterable[Union[RoleDefinition, Mapping[str, Any]]]) -> "PermissionRegistry":
        """
        Build a registry from an ordered list of role definitions.

        Each definition is {name, extends: [names], grants: [{resource, actions}]}.
        Parents may be declared before or after the roles extending them.

        Raises:
            ConfigurationError: invalid shape, duplicate role, undeclared
                parent, or cyclic inheritance
        """
        parsed = parse_definitions(definitions)

        by_name: dict[str, RoleDefinition] = {}
        for definition in parsed:
            if definition.name in by_name:
                raise ConfigurationError(f"Role {definition.name!r} is declared more than once")
            by_name[definition.name] = definition

        _check_parents(by_name)
        order = _resolution_order(by_name)

        resolved: dict[str, Role] = {}
        for name in order:
            definition = by_name[name]
            direct = _direct_capabilities(definition)
            effective = set(direct)
            for parent in definition.extends:
                effective |= resolved[parent].effective
            resolved[name] = Role(
                name=name,
                parents=tuple(dict.fromkeys(definition.extends)),
                direct=direct,
                effective=frozenset(effective),
            )

        # Keep declaration order for listings
        roles = {name: resolved[name] for name in by_name}
        log.info(
            "Built permission registry with %d roles and %d direct grants",
            len(roles),
            sum(len(role.direct) for role in roles.values()),
        )
        return cls(roles)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def roles(self) -> tuple[str, ...]:
        """Declared role names in declaration order."""
        return tuple(self._roles)

    def has_role(self, role_name: str) -> bool:
        return role_name in self._roles

    def get_role(self, role_name: str) -> Role:
        try:
            return self._roles[role_name]
        except KeyError:
            raise UnknownRoleError(role_name) from None

    def capabilities(self, role_name: str) -> frozenset[Capability]:
        """Effective capabilities of a role, inherited ones included."""
        return self.get_role(role_name).effective

    def can(self, role_name: str, resource: str, action: Union[ActionScope, str]) -> Decision:
        """
        Check whether a role may perform an action on a resource.

        Args:
            role_name: Declared role name
            resource: Concrete resource name (e.g. "leads")
            action: ActionScope or its spelling (e.g. "readOwn")

        Returns:
            Decision(granted=True, scope=...) with the broadest matching scope,
            or a denied Decision when nothing matches

        Raises:
            UnknownRoleError: role_name was never declared
            ValueError: action is not a known action spelling
        """
        action_scope = ActionScope(action)
        effective = self.get_role(role_name).effective
        resources = (resource, WILDCARD_RESOURCE)

        # Any grants satisfy both Own and Any checks
        for candidate in resources:
            if Capability(candidate, action_scope.action, Scope.ANY) in effective:
                return Decision(granted=True, scope=Scope.ANY)

        if action_scope.scope is Scope.OWN:
            for candidate in resources:
                if Capability(candidate, action_scope.action, Scope.OWN) in effective:
                    return Decision(granted=True, scope=Scope.OWN)

        return DENIED

    def __len__(self) -> int:
        return len(self._roles)

    def __contains__(self, role_name: object) -> bool:
        return role_name in self._roles

    def __repr__(self) -> str:
        return f"<PermissionRegistry(roles={list(self._roles)!r})>"
