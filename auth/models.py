"""
auth/models.py -- Domain dataclasses for identity entities.

Pattern: Data class (pure data container, zero logic). The store and the
orchestrator do the work; these only carry shape.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Account:
    """A registered identity.

    id is assigned by the store on insert and never changes afterwards.
    username and email are each unique and compared case-sensitively.
    password_hash is a bcrypt hash; the raw password is never kept.
    last_login is an ISO 8601 UTC timestamp, None until the first login.
    """

    username: str
    email: str
    password_hash: str
    id: int | None = None
    first_name: str | None = None
    last_name: str | None = None
    is_active: bool = True
    last_login: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class RegisteredAccount:
    account_id: int
    username: str
    message: str


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login. token is the signed bearer token."""

    token: str
    account_id: int
    username: str
