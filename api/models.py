"""
API request and response models for the identity service REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.

Wire names are camelCase (userId, usernameOrEmail, firstName) via the
to_camel alias generator; Python attribute names stay snake_case.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)
_CAMEL_FROZEN = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /auth/signup.

    password max_length stays at 72 because bcrypt reads at most 72 bytes;
    longer input would be silently ignored past that point.
    """

    model_config = _CAMEL

    username: str = Field(min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=6, max_length=72)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)


class LoginRequest(BaseModel):
    """Request body for POST /auth/login. The identifier may be a username or an email."""

    model_config = _CAMEL

    username_or_email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class SignupResponse(BaseModel):
    model_config = _CAMEL_FROZEN

    user_id: int
    username: str
    message: str


class LoginResponse(BaseModel):
    """Body of a successful login. The token itself travels in the Authorization header."""

    model_config = _CAMEL_FROZEN

    user_id: int
    username: str


class ValidateResponse(BaseModel):
    model_config = _CAMEL_FROZEN

    user_id: int


class ErrorDetail(BaseModel):
    """Machine-readable error payload.

    code is the error kind (validation, conflict, unauthorized, internal).
    fields is present only for validation errors and maps field -> message.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    fields: Optional[dict[str, str]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
