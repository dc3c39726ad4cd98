import os
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from typing import Any

# Must be set before app.main is imported; startup refuses to run without it
os.environ.setdefault("JWT_SECRET", "test-secret-for-the-suite-only-0123456789abcdef")

import jwt  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core import config  # noqa: E402
from app.core.rate_limit import limiter  # noqa: E402
from app.features.access.defaults import DEFAULT_ROLE_DEFINITIONS  # noqa: E402
from app.features.access.registry import PermissionRegistry  # noqa: E402
from app.main import app  # noqa: E402


TokenFactory = Callable[..., str]


@pytest.fixture()
def registry() -> PermissionRegistry:
    return PermissionRegistry.build(DEFAULT_ROLE_DEFINITIONS)


@pytest.fixture()
def client() -> Iterator[TestClient]:
    original = app.state.access_registry
    limiter.reset()
    yield TestClient(app)
    app.state.access_registry = original


@pytest.fixture()
def make_token() -> TokenFactory:
    def _make(
        role: str | None = None,
        user_id: str | None = "user-1",
        expires_in: timedelta = timedelta(minutes=5),
        secret: str | None = None,
        **claims: Any,
    ) -> str:
        payload: dict[str, Any] = {"exp": datetime.now(timezone.utc) + expires_in, **claims}
        if user_id is not None:
            payload["userId"] = user_id
        if role is not None:
            payload["role"] = role
        return jwt.encode(payload, secret or config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)

    return _make


@pytest.fixture()
def auth_headers(make_token: TokenFactory) -> Callable[..., dict[str, str]]:
    def _headers(role: str | None = None, **kwargs: Any) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(role, **kwargs)}"}

    return _headers
