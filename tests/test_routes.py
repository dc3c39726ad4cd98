import json
from collections.abc import Iterator
from pathlib import Path
from typing import List

import pytest
from fastapi import APIRouter, Depends, FastAPI
from fastapi.testclient import TestClient

from app.core import config
from app.features.access.dependencies import (
    ACCESS_DENIED_DETAIL,
    ensure_owner,
    install_registry,
    require_access,
    require_all_access,
    require_any_access,
)
from app.features.access.middleware import AccessGrant
from app.features.access.registry import PermissionRegistry
from app.main import app


# Routes standing in for the business features that consume grants
feature_router = APIRouter()


@feature_router.get("/leads/{owner_id}")
async def read_lead(owner_id: str, grant: AccessGrant = Depends(require_access("leads", "readOwn"))):
    ensure_owner(grant, owner_id)
    return {"owner_id": owner_id, "scope": grant.scope}


@feature_router.get("/reports")
async def read_reports(
    grant: AccessGrant = Depends(require_any_access([("reports", "readAny"), ("reports", "readOwn")]))
):
    return {"action": grant.action, "scope": grant.scope}


@feature_router.post("/leads/{owner_id}/convert")
async def convert_lead(
    owner_id: str,
    grants: List[AccessGrant] = Depends(require_all_access([("leads", "updateOwn"), ("companies", "createAny")])),
):
    lead_grant = grants[0]
    ensure_owner(lead_grant, owner_id)
    return {"scopes": [grant.scope for grant in grants]}


@pytest.fixture()
def feature_client(registry: PermissionRegistry) -> Iterator[TestClient]:
    feature_app = FastAPI()
    feature_app.include_router(feature_router)
    install_registry(feature_app, registry)
    yield TestClient(feature_app)


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_missing_token_is_unauthorized(client: TestClient) -> None:
    assert client.get("/users/me").status_code == 401
    assert client.get("/access/roles").status_code == 401


def test_invalid_token_is_unauthorized(client: TestClient) -> None:
    response = client.get("/users/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


def test_me_lists_role_capabilities(client: TestClient, auth_headers) -> None:
    response = client.get("/users/me", headers=auth_headers("reports-viewer", user_id="u-7"))

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == "u-7"
    assert body["role"] == "reports-viewer"
    assert body["capabilities"] == [{"resource": "reports", "action": "readAny"}]


def test_me_with_unknown_role_has_no_capabilities(client: TestClient, auth_headers) -> None:
    response = client.get("/user/me", headers=auth_headers("wizard"))

    assert response.status_code == 200
    assert response.json()["capabilities"] == []


def test_owner_reads_own_lead(feature_client: TestClient, auth_headers) -> None:
    response = feature_client.get("/leads/u-1", headers=auth_headers("sales", user_id="u-1"))

    assert response.status_code == 200
    assert response.json()["scope"] == "own"


def test_sales_cannot_read_someone_elses_lead(feature_client: TestClient, auth_headers) -> None:
    response = feature_client.get("/leads/u-2", headers=auth_headers("sales", user_id="u-1"))

    assert response.status_code == 403
    assert response.json() == {"detail": ACCESS_DENIED_DETAIL}


def test_manager_reads_any_lead(feature_client: TestClient, auth_headers) -> None:
    response = feature_client.get("/leads/u-2", headers=auth_headers("manager", user_id="u-1"))

    assert response.status_code == 200
    assert response.json()["scope"] == "any"


@pytest.mark.parametrize("role", [None, "wizard", "intern"])
def test_denials_look_the_same_to_clients(feature_client: TestClient, auth_headers, role: str | None) -> None:
    response = feature_client.get("/leads/u-1", headers=auth_headers(role, user_id="u-1"))

    assert response.status_code == 403
    assert response.json() == {"detail": ACCESS_DENIED_DETAIL}


def test_require_any_access_uses_first_allowed_pair(feature_client: TestClient, auth_headers) -> None:
    viewer = feature_client.get("/reports", headers=auth_headers("reports-viewer"))
    sales = feature_client.get("/reports", headers=auth_headers("sales"))
    intern = feature_client.get("/reports", headers=auth_headers("intern"))

    assert viewer.json() == {"action": "readAny", "scope": "any"}
    assert sales.json() == {"action": "readOwn", "scope": "own"}
    assert intern.status_code == 403


def test_require_all_access_returns_every_grant(feature_client: TestClient, auth_headers) -> None:
    sales = feature_client.post("/leads/u-1/convert", headers=auth_headers("sales", user_id="u-1"))
    manager = feature_client.post("/leads/u-2/convert", headers=auth_headers("manager", user_id="u-1"))

    assert sales.status_code == 200
    assert sales.json() == {"scopes": ["own", "any"]}
    assert manager.status_code == 200
    assert manager.json() == {"scopes": ["any", "any"]}


def test_require_all_access_keeps_narrow_scope_for_ownership(feature_client: TestClient, auth_headers) -> None:
    response = feature_client.post("/leads/u-2/convert", headers=auth_headers("sales", user_id="u-1"))

    assert response.status_code == 403
    assert response.json() == {"detail": ACCESS_DENIED_DETAIL}


@pytest.mark.parametrize("role", ["marketing", "accounting", "wizard", None])
def test_require_all_access_denies_when_any_pair_is_missing(
    feature_client: TestClient, auth_headers, role: str | None
) -> None:
    response = feature_client.post("/leads/u-1/convert", headers=auth_headers(role, user_id="u-1"))

    assert response.status_code == 403
    assert response.json() == {"detail": ACCESS_DENIED_DETAIL}


def test_list_roles_requires_permission(client: TestClient, auth_headers) -> None:
    assert client.get("/access/roles", headers=auth_headers("sales")).status_code == 403

    response = client.get("/access/roles", headers=auth_headers("admin"))
    assert response.status_code == 200
    names = [role["name"] for role in response.json()]
    assert "sales" in names
    assert "admin" in names


def test_get_role(client: TestClient, auth_headers) -> None:
    response = client.get("/access/roles/marketing", headers=auth_headers("admin"))

    assert response.status_code == 200
    body = response.json()
    assert body["extends"] == ["intern"]
    assert {"resource": "social-media", "action": "readAny"} in body["capabilities"]


def test_get_unknown_role_is_not_found(client: TestClient, auth_headers) -> None:
    response = client.get("/access/roles/wizard", headers=auth_headers("admin"))

    assert response.status_code == 404


@pytest.mark.parametrize(
    "role, resource, action, expected",
    [
        ("sales", "leads", "readOwn", {"granted": True, "scope": "own"}),
        ("sales", "leads", "readAny", {"granted": False, "scope": None}),
        ("admin", "marketing-plans", "deleteAny", {"granted": True, "scope": "any"}),
        ("reports-viewer", "reports", "updateAny", {"granted": False, "scope": None}),
        ("wizard", "leads", "readOwn", {"granted": False, "scope": None}),
        (None, "leads", "readOwn", {"granted": False, "scope": None}),
    ],
)
def test_check_access(client: TestClient, auth_headers, role, resource, action, expected) -> None:
    response = client.post(
        "/access/check",
        json={"resource": resource, "action": action},
        headers=auth_headers(role),
    )

    assert response.status_code == 200
    assert response.json() == expected


def test_check_access_rejects_unknown_action(client: TestClient, auth_headers) -> None:
    response = client.post(
        "/access/check",
        json={"resource": "leads", "action": "read"},
        headers=auth_headers("sales"),
    )

    assert response.status_code == 400
    assert "action" in response.json()


def test_reload_swaps_registry(
    client: TestClient, auth_headers, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = tmp_path / "roles.json"
    path.write_text(json.dumps([
        {"name": "admin", "grants": [{"resource": "*", "actions": ["readAny", "updateAny"]}]},
        {"name": "auditor", "grants": [{"resource": "leads", "actions": ["readAny"]}]},
    ]), encoding="utf-8")
    monkeypatch.setattr(config, "ROLE_DEFINITIONS_FILE", str(path))
    before = app.state.access_registry

    response = client.post("/access/reload", headers=auth_headers("admin"))

    assert response.status_code == 200
    assert response.json() == {"roles": 2, "source": str(path)}
    assert app.state.access_registry is not before
    check = client.post(
        "/access/check",
        json={"resource": "leads", "action": "readAny"},
        headers=auth_headers("auditor"),
    )
    assert check.json()["granted"] is True


def test_failed_reload_keeps_current_registry(
    client: TestClient, auth_headers, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = tmp_path / "roles.json"
    path.write_text(json.dumps([
        {"name": "a", "extends": ["b"]},
        {"name": "b", "extends": ["a"]},
    ]), encoding="utf-8")
    monkeypatch.setattr(config, "ROLE_DEFINITIONS_FILE", str(path))
    before = app.state.access_registry

    response = client.post("/access/reload", headers=auth_headers("admin"))

    assert response.status_code == 400
    assert "Cyclic" in response.json()["detail"]
    assert app.state.access_registry is before


def test_reload_requires_permission(client: TestClient, auth_headers) -> None:
    response = client.post("/access/reload", headers=auth_headers("manager"))

    assert response.status_code == 403
