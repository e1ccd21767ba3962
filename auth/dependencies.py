"""
auth/dependencies.py -- FastAPI Depends() helpers for bearer authentication.

bearer_token() extracts the token from "Authorization: Bearer <token>".
require_account_id() wraps it and validates the token through the AuthService
stored on app.state, returning the caller's account id.

Services that trust this identity core mount require_account_id() on their
protected routes:
    @router.get("/submissions")
    def list_submissions(account_id: int = Depends(require_account_id)): ...

Both raise Unauthorized (rendered as 401 by api/main.py) rather than
HTTPException, so the error body uses the same envelope as every other auth
failure.

Layer rule: no imports from api/ or core/.
  This module may import from fastapi because it is part of the FastAPI
  dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, Request

from auth.errors import Unauthorized
from auth.service import AuthService

MISSING_BEARER = "Missing or malformed Authorization header"

_BEARER_PREFIX = "Bearer "


def bearer_token(request: Request) -> str:
    """Return the bearer token from the Authorization header, or raise Unauthorized."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith(_BEARER_PREFIX):
        raise Unauthorized(MISSING_BEARER)
    token = auth_header[len(_BEARER_PREFIX) :].strip()
    if not token:
        raise Unauthorized(MISSING_BEARER)
    return token


def require_account_id(request: Request, token: str = Depends(bearer_token)) -> int:
    """Require a valid bearer token. Returns the account id it was issued for."""
    auth_service: AuthService = request.app.state.auth_service
    return auth_service.validate_token(token)
