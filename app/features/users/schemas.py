"""
Pydantic schemas for user-related responses.
"""
from pydantic import BaseModel

from app.features.access.schemas import CapabilityResponse


class PrincipalResponse(BaseModel):
    """The authenticated caller and what its role allows."""
    id: str
    email: str | None = None
    role: str | None = None
    capabilities: list[CapabilityResponse] = []
