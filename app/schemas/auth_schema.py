"""Authentication request/response schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoginRequest(BaseModel):
    """Login with an allow-listed username and the shared password."""

    username: str = Field(default="", max_length=64, description="Username")
    password: str = Field(default="", max_length=256, description="Shared password")

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        return v.strip()


class IdentityResponse(BaseModel):
    """The identity bound to the current session."""

    model_config = ConfigDict(frozen=True)

    username: str
    is_admin: bool


class LoginResult(BaseModel):
    """Successful login: who logged in and the session token to set."""

    model_config = ConfigDict(frozen=True)

    username: str
    token: str


class MessageResponse(BaseModel):
    """Simple message response."""

    model_config = ConfigDict(frozen=True)

    message: str
