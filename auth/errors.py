"""
auth/errors.py -- Failure types for the identity core.

Two tiers:

  Component failures -- narrow exceptions raised by the password hasher,
      token service, and credential store. They describe WHAT went wrong at
      that layer and never reach an HTTP client.

  Taxonomy -- AuthError subclasses, one per externally visible kind
      (validation, conflict, unauthorized, internal). Only auth/service.py
      raises these from component failures. The HTTP layer renders them by
      status_code and kind without inspecting the message.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar

# ---------------------------------------------------------------------------
# Component failures
# ---------------------------------------------------------------------------


class MalformedHashError(ValueError):
    """The stored password hash is not a valid bcrypt hash."""


class TokenFailure(str, Enum):
    TAMPERED = "tampered"
    EXPIRED = "expired"
    MALFORMED = "malformed"


class TokenError(Exception):
    """A bearer token failed verification.

    reason is kept for logging and tests only. The orchestrator collapses all
    reasons into one Unauthorized message so callers cannot tell an expired
    token from a forged one.
    """

    def __init__(self, reason: TokenFailure, detail: str = "") -> None:
        super().__init__(f"{reason.value}: {detail}" if detail else reason.value)
        self.reason = reason


class StoreError(Exception):
    """The credential store could not complete an operation."""


class DuplicateAccountError(StoreError):
    """An insert hit the UNIQUE constraint on username or email.

    field is "email" or "username". When the driver message names both, email
    wins, matching the order of the registration pre-checks.
    """

    def __init__(self, field: str) -> None:
        super().__init__(f"duplicate {field}")
        self.field = field


# ---------------------------------------------------------------------------
# Taxonomy
# ---------------------------------------------------------------------------


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    INTERNAL = "internal"


class AuthError(Exception):
    """Base for every failure that may cross the orchestrator boundary."""

    kind: ClassVar[ErrorKind]
    status_code: ClassVar[int]

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(AuthError):
    """Required input is missing or malformed. fields maps name -> message."""

    kind = ErrorKind.VALIDATION
    status_code = 400

    def __init__(self, fields: dict[str, str]) -> None:
        super().__init__("Request validation failed.")
        self.fields = fields


class Conflict(AuthError):
    kind = ErrorKind.CONFLICT
    status_code = 409


class Unauthorized(AuthError):
    kind = ErrorKind.UNAUTHORIZED
    status_code = 401


class InternalError(AuthError):
    """Anything unanticipated. The message is fixed so no internal detail leaks."""

    kind = ErrorKind.INTERNAL
    status_code = 500

    def __init__(self) -> None:
        super().__init__("An unexpected error occurred.")
