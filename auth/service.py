"""
auth/service.py -- AuthService: register, login, validate_token.

This is the only place where component failures (MalformedHashError,
TokenError, StoreError) are translated into the AuthError taxonomy. Anything
that escapes these methods is an AuthError subclass.

Security design decisions:
  Generic credential errors: an unknown identifier and a wrong password both
      raise Unauthorized with the same message, so the response does not
      reveal which part was wrong.

  Timing equalization: when the identifier matches no account, bcrypt still
      runs against a dummy hash. Response time then does not reveal whether
      the account exists.

  Token errors: expired, tampered, and malformed tokens all raise the same
      Unauthorized message. The specific reason is logged at DEBUG only.

  No locks: the exists checks in register() give friendly messages; the
      store's UNIQUE constraints are what enforce uniqueness. A
      DuplicateAccountError from a concurrent writer maps to the same Conflict.

Known limitation: validate_token() does not look the account up. A
deactivated account's tokens keep working until they expire.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from auth.errors import (
    Conflict,
    DuplicateAccountError,
    InternalError,
    MalformedHashError,
    StoreError,
    TokenError,
    Unauthorized,
    ValidationFailed,
)
from auth.models import Account, LoginResult, RegisteredAccount
from auth.passwords import DEFAULT_ROUNDS, hash_password, verify_password
from auth.store import CredentialStore
from auth.tokens import TokenService

logger = logging.getLogger("identity.auth")

EMAIL_TAKEN = "Email is already registered"
USERNAME_TAKEN = "Username is already taken"
BAD_CREDENTIALS = "Invalid username, email, or password"
ACCOUNT_DEACTIVATED = "Account is deactivated"
INVALID_TOKEN = "Invalid or expired token"
SIGNUP_OK = "Signup successful"

_CONFLICT_MESSAGES = {"email": EMAIL_TAKEN, "username": USERNAME_TAKEN}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require(**values: str | None) -> None:
    missing = {name: f"{name} is required" for name, value in values.items() if not value or not value.strip()}
    if missing:
        raise ValidationFailed(missing)


class AuthService:
    """Identity operations over a credential store and a token service.

    Usage:
        service = AuthService(store, TokenService(secret_key, 3600))
        registered = service.register("alice", "a@b.com", "Secr3t!")
        result = service.login("alice", "Secr3t!")
        account_id = service.validate_token(result.token)
    """

    def __init__(
        self,
        store: CredentialStore,
        tokens: TokenService,
        *,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.tokens = tokens
        self.bcrypt_rounds = bcrypt_rounds
        self.clock = clock
        # Same cost factor as real hashes so the dummy check takes as long.
        self._dummy_hash = hash_password("identity_timing_dummy", rounds=bcrypt_rounds)

    def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> RegisteredAccount:
        """Create an account. Raises ValidationFailed, Conflict, or InternalError."""
        _require(username=username, email=email, password=password)
        try:
            if self.store.email_exists(email):
                raise Conflict(EMAIL_TAKEN)
            if self.store.username_exists(username):
                raise Conflict(USERNAME_TAKEN)

            account = Account(
                username=username,
                email=email,
                password_hash=hash_password(password, rounds=self.bcrypt_rounds),
                first_name=first_name,
                last_name=last_name,
                is_active=True,
            )
            account_id = self.store.create_account(account)
        except DuplicateAccountError as exc:
            logger.info("Signup lost a uniqueness race on %s", exc.field)
            raise Conflict(_CONFLICT_MESSAGES[exc.field]) from exc
        except StoreError as exc:
            logger.exception("Credential store failure during signup")
            raise InternalError() from exc

        logger.info("Account %d registered", account_id)
        return RegisteredAccount(account_id=account_id, username=username, message=SIGNUP_OK)

    def login(self, username_or_email: str, password: str) -> LoginResult:
        """Authenticate and issue a token. Raises ValidationFailed, Unauthorized, or InternalError."""
        _require(usernameOrEmail=username_or_email, password=password)
        try:
            account = self.store.get_by_username_or_email(username_or_email)
            if account is None:
                # Equalize timing -- do NOT return before running bcrypt.
                verify_password(password, self._dummy_hash)
                logger.info("Login failed: unknown identifier")
                raise Unauthorized(BAD_CREDENTIALS)
            if not account.is_active:
                logger.info("Login refused for deactivated account %d", account.id)
                raise Unauthorized(ACCOUNT_DEACTIVATED)
            if not verify_password(password, account.password_hash):
                logger.info("Login failed for account %d: bad password", account.id)
                raise Unauthorized(BAD_CREDENTIALS)

            now = self.clock()
            self.store.update_last_login(account.id, now)
            token = self.tokens.issue(account.id, now)
        except MalformedHashError as exc:
            logger.exception("Stored password hash is unreadable")
            raise InternalError() from exc
        except StoreError as exc:
            logger.exception("Credential store failure during login")
            raise InternalError() from exc

        logger.info("Account %d logged in", account.id)
        return LoginResult(token=token, account_id=account.id, username=account.username)

    def validate_token(self, token: str) -> int:
        """Return the account id carried by a valid token. Raises Unauthorized otherwise."""
        try:
            return self.tokens.verify(token, self.clock())
        except TokenError as exc:
            logger.debug("Token rejected: %s", exc.reason.value)
            raise Unauthorized(INVALID_TOKEN) from exc
