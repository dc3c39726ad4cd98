"""
Authentication utilities for bearer JWT verification.

Tokens are issued by the identity provider; this service only verifies them
and reads the caller's identity and role claims.
"""
import jwt
from fastapi import HTTPException, status

from app.core import config
from app.features.access.exceptions import ConfigurationError
from app.features.access.models import Principal


def ensure_jwt_secret() -> None:
    """
    Refuse to run without a token secret. There is no built-in default.

    Raises:
        ConfigurationError: JWT_SECRET is unset or blank
    """
    if not config.JWT_SECRET or not config.JWT_SECRET.strip():
        raise ConfigurationError("JWT_SECRET must be set to verify bearer tokens")


def verify_jwt_token(token: str) -> dict:
    """
    Verify a JWT and return its payload.

    Args:
        token: JWT token from Authorization header

    Returns:
        Decoded JWT payload containing user information

    Raises:
        HTTPException: If token is invalid or expired
    """
    if not config.JWT_SECRET:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = jwt.decode(
            token,
            config.JWT_SECRET,
            algorithms=[config.JWT_ALGORITHM],
            options={"verify_exp": True},
        )

        return payload

    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def principal_from_payload(payload: dict) -> Principal:
    """
    Build a Principal from token claims.

    The user id comes from "userId" (falling back to "sub"). A missing role
    claim is kept as None; the access middleware denies such callers.

    Raises:
        HTTPException: 401 if the payload carries no user id
    """
    user_id = payload.get("userId") or payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    role = payload.get("role")
    return Principal(
        id=str(user_id),
        role=role if isinstance(role, str) else None,
        email=payload.get("email"),
    )
