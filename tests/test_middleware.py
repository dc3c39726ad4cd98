import logging
from types import SimpleNamespace

import pytest

from app.features.access.middleware import (
    AccessGrant,
    Allowed,
    Denied,
    REASON_INSUFFICIENT,
    REASON_NO_ROLE,
    REASON_UNKNOWN_ROLE,
    authorize,
    role_of,
)
from app.features.access.models import ActionScope, Principal, Scope
from app.features.access.registry import PermissionRegistry


def test_sales_reads_own_leads_only(registry: PermissionRegistry) -> None:
    sales = {"role": "sales"}

    assert authorize(registry, sales, "leads", "readOwn") == Allowed(Scope.OWN)
    assert authorize(registry, sales, "leads", "readAny") == Denied(REASON_INSUFFICIENT)


def test_admin_gets_any_scope_on_every_resource(registry: PermissionRegistry) -> None:
    admin = Principal(id="u-admin", role="admin")

    assert authorize(registry, admin, "marketing-plans", "deleteAny") == Allowed(Scope.ANY)
    assert authorize(registry, admin, "never-declared-resource", ActionScope.CREATE_ANY).allowed


def test_reports_viewer_cannot_update(registry: PermissionRegistry) -> None:
    viewer = Principal(id="u-2", role="reports-viewer")

    assert authorize(registry, viewer, "reports", "readAny") == Allowed(Scope.ANY)
    assert authorize(registry, viewer, "reports", "updateAny") == Denied(REASON_INSUFFICIENT)


@pytest.mark.parametrize("principal", [{}, {"role": None}, {"role": ""}, {"role": "  "}, Principal(id="u-3"), None])
def test_principal_without_role_is_denied(registry: PermissionRegistry, principal: object) -> None:
    outcome = authorize(registry, principal, "leads", "readOwn")

    assert outcome == Denied(REASON_NO_ROLE)
    assert not outcome.allowed


@pytest.mark.parametrize("action", list(ActionScope))
def test_unknown_role_is_denied_without_raising(registry: PermissionRegistry, action: ActionScope) -> None:
    outcome = authorize(registry, {"role": "wizard"}, "leads", action)

    assert outcome == Denied(REASON_UNKNOWN_ROLE)


def test_unknown_role_is_logged_as_configuration_drift(
    registry: PermissionRegistry, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING, logger="app"):
        authorize(registry, Principal(id="u-9", role="wizard"), "leads", "readOwn")

    assert any("not declared" in record.getMessage() for record in caplog.records)


def test_role_is_read_from_attribute_objects(registry: PermissionRegistry) -> None:
    user = SimpleNamespace(id="u-4", role="logistics")

    assert role_of(user) == "logistics"
    assert authorize(registry, user, "inquiries", "updateAny") == Allowed(Scope.ANY)


def test_inherited_department_permissions(registry: PermissionRegistry) -> None:
    marketer = Principal(id="u-5", role="marketing")
    accountant = Principal(id="u-6", role="accounting")

    # marketing extends intern, accounting extends reports-viewer
    assert authorize(registry, marketer, "products", "readAny").allowed
    assert authorize(registry, accountant, "reports", "readOwn") == Allowed(Scope.ANY)


def test_grant_permits_owner_for_own_scope() -> None:
    principal = Principal(id="u-1", role="sales")
    grant = AccessGrant(principal=principal, resource="leads", action=ActionScope.READ_OWN, scope=Scope.OWN)

    assert grant.permits("u-1")
    assert not grant.permits("u-2")
    assert not grant.permits(None)


def test_grant_permits_everyone_for_any_scope() -> None:
    principal = Principal(id="u-1", role="manager")
    grant = AccessGrant(principal=principal, resource="leads", action=ActionScope.READ_OWN, scope=Scope.ANY)

    assert grant.permits("u-2")
    assert grant.permits(None)
