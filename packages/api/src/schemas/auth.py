# This project was developed with assistance from AI tools.
"""Authentication schemas."""

from db.enums import UserRole
from pydantic import BaseModel, ConfigDict, Field


class UserContext(BaseModel):
    """Caller identity resolved from the bearer token."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: UserRole
    email: str = ""
    name: str = ""


class TokenPayload(BaseModel):
    """Keycloak access token claims we read."""

    sub: str
    email: str = ""
    preferred_username: str = ""
    name: str = ""
    realm_access: dict = Field(default_factory=dict)
