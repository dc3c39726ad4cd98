"""
Domain types for role-based access control.

These are plain immutable values: a built registry and the decisions it hands
out are shared across concurrent requests without locking.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


WILDCARD_RESOURCE = "*"


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Scope(str, Enum):
    """
    How far an action reaches.

    OWN: only instances owned by the caller.
    ANY: every instance of the resource.
    """
    OWN = "own"
    ANY = "any"


class ActionScope(str, Enum):
    """
    The closed set of checkable actions, spelled the way role definitions
    and route guards write them (e.g. "readOwn", "deleteAny").
    """
    CREATE_OWN = "createOwn"
    CREATE_ANY = "createAny"
    READ_OWN = "readOwn"
    READ_ANY = "readAny"
    UPDATE_OWN = "updateOwn"
    UPDATE_ANY = "updateAny"
    DELETE_OWN = "deleteOwn"
    DELETE_ANY = "deleteAny"

    @property
    def action(self) -> Action:
        return Action(self.value[:-3])

    @property
    def scope(self) -> Scope:
        return Scope(self.value[-3:].lower())

    @classmethod
    def of(cls, action: Action, scope: Scope) -> "ActionScope":
        return cls(f"{action.value}{scope.value.capitalize()}")


@dataclass(frozen=True)
class Capability:
    """A granted (resource, action, scope) triple. resource may be "*"."""
    resource: str
    action: Action
    scope: Scope

    @property
    def action_scope(self) -> ActionScope:
        return ActionScope.of(self.action, self.scope)

    def __str__(self) -> str:
        return f"{self.action_scope.value}:{self.resource}"


@dataclass(frozen=True)
class Role:
    """
    A declared role after inheritance has been resolved.

    Attributes:
        name: Unique role name
        parents: Names of the roles this one extends, as declared
        direct: Capabilities granted on the role itself
        effective: direct plus everything inherited transitively
    """
    name: str
    parents: tuple[str, ...] = ()
    direct: frozenset[Capability] = field(default_factory=frozenset)
    effective: frozenset[Capability] = field(default_factory=frozenset)


@dataclass(frozen=True)
class Decision:
    """Result of a registry lookup. scope is only set when granted."""
    granted: bool
    scope: Optional[Scope] = None


DENIED = Decision(granted=False)


@dataclass(frozen=True)
class Principal:
    """
    The authenticated caller of a request.

    Produced by the authentication layer per request; access checks only read
    `role`, ownership checks compare `id`.
    """
    id: Optional[str] = None
    role: Optional[str] = None
    email: Optional[str] = None
