"""
api/routes/auth.py -- Identity REST endpoints.

Routes:
  POST /auth/signup    -- register an account; 201
  POST /auth/login     -- password login; token in the Authorization header
  GET  /auth/validate  -- resolve a bearer token to the account id it carries

Security:
  Generic credential errors come from AuthService -- never inline store
  lookups plus verify_password() here, that would skip timing equalization.
  Cache-Control: no-store on login responses so proxies never keep a token.

Handlers are plain `def`: bcrypt is CPU-bound and the store is synchronous,
so FastAPI runs them in its threadpool instead of blocking the event loop.
Failures propagate as AuthError and are rendered by api/main.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, SignupRequest, SignupResponse, ValidateResponse
from auth.dependencies import require_account_id
from auth.service import AuthService

# Auth policy:
# - POST /auth/signup:    public
# - POST /auth/login:     public
# - GET  /auth/validate:  requires a bearer token (require_account_id)
router = APIRouter()


@router.post("/auth/signup", response_model=SignupResponse, status_code=201)
def signup(request: Request, body: SignupRequest) -> SignupResponse:
    """Register a new account.

    Returns 409 if the email or username is taken (email is checked first).
    """
    auth_service: AuthService = request.app.state.auth_service
    registered = auth_service.register(
        username=body.username,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    return SignupResponse(
        user_id=registered.account_id,
        username=registered.username,
        message=registered.message,
    )


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with a username or email plus password.

    The signed token is returned as "Authorization: Bearer <token>"; the body
    only identifies the account.
    """
    auth_service: AuthService = request.app.state.auth_service
    result = auth_service.login(body.username_or_email, body.password)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(user_id=result.account_id, username=result.username).model_dump(by_alias=True),
    )
    resp.headers["Authorization"] = f"Bearer {result.token}"
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/validate", response_model=ValidateResponse)
def validate(account_id: int = Depends(require_account_id)) -> ValidateResponse:
    """Return the account id of a valid bearer token, 401 otherwise."""
    return ValidateResponse(user_id=account_id)
