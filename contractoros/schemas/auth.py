"""Auth request/response schemas."""

from pydantic import Field

from contractoros.schemas.common import CamelModel


class TokenRequest(CamelModel):
    email: str
    password: str


class RegisterRequest(CamelModel):
    org_name: str = Field(min_length=1)
    name: str = Field(min_length=1)
    email: str
    password: str = Field(min_length=8)


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    org_id: str
    role: str
    default_path: str
