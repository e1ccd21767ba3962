"""
auth/tokens.py -- Signed bearer tokens (JWT, HS256).

Security design decisions:
  JWT: python-jose with HS256. A token carries only the subject (account id
       as a string), issued-at, and expiry. Validity is a pure function of the
       token text, the signing key, and the current time. Nothing is stored
       server-side and there is no revocation list.

  Key: TokenService is a frozen dataclass built once at startup from
       Settings.secret_key and Settings.token_expire_seconds. There is no
       mutation path; a new key means a new process.

  Failure reasons: verify() raises TokenError with TAMPERED, EXPIRED, or
       MALFORMED. The reason exists for logs and tests. auth/service.py
       collapses all three into one Unauthorized message [no oracle].

  Canonical base64: Python's base64 decoder ignores the unused low bits in
       the final character of a segment, so two different signature strings
       can decode to the same bytes. verify() rejects any signature segment
       that does not re-encode to itself, which makes every single-character
       change to a token detectable.

Timestamps keep the issue time exactly, fractional seconds included (JWT
NumericDate allows non-integer values). A token is valid while now < exp.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from jose import JWTError, jws, jwt
from jose.exceptions import JWSError
from jose.utils import base64url_decode, base64url_encode

from auth.errors import TokenError, TokenFailure

_ALGORITHM = "HS256"

# Longest decimal form of a signed 64-bit row id.
_MAX_SUBJECT_DIGITS = 19


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_canonical_segment(segment: str) -> bool:
    try:
        raw = base64url_decode(segment.encode("ascii"))
    except (ValueError, UnicodeEncodeError):
        return False
    return base64url_encode(raw).decode("ascii") == segment


@dataclass(frozen=True)
class TokenService:
    """Issues and verifies signed tokens with a process-wide key.

    Usage:
        tokens = TokenService(secret_key=settings.secret_key, ttl_seconds=3600)
        token = tokens.issue(42)
        account_id = tokens.verify(token)  # 42, or raises TokenError
    """

    secret_key: str = field(repr=False)
    ttl_seconds: int

    def __post_init__(self) -> None:
        if not self.secret_key:
            raise ValueError("TokenService requires a non-empty secret key")
        if self.ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

    def issue(self, subject_id: int, now: datetime | None = None) -> str:
        """Return a signed token for subject_id, expiring ttl_seconds after now."""
        issued = now or _utcnow()
        # exp comes from the same timestamp() path verify() applies to its
        # own clock, so verify(issue(id, t), t + ttl) lands exactly on exp.
        claims = {
            "sub": str(subject_id),
            "iat": issued.timestamp(),
            "exp": (issued + timedelta(seconds=self.ttl_seconds)).timestamp(),
        }
        return jwt.encode(claims, self.secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str, now: datetime | None = None) -> int:
        """Verify a token and return the subject id it carries.

        Checks run in order: structure, signature, claim shape, expiry. The
        first failure raises TokenError with the matching TokenFailure.
        """
        segments = token.split(".")
        if len(segments) != 3 or not _is_canonical_segment(segments[2]):
            raise TokenError(TokenFailure.MALFORMED, "not a compact JWS")
        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise TokenError(TokenFailure.MALFORMED, str(exc)) from exc

        try:
            payload = jws.verify(token, self.secret_key, algorithms=[_ALGORITHM])
        except JWSError as exc:
            raise TokenError(TokenFailure.TAMPERED, str(exc)) from exc

        claims = json.loads(payload)
        subject = claims.get("sub")
        expires_at = claims.get("exp")
        if (
            not isinstance(subject, str)
            or not (subject.isascii() and subject.isdigit())
            or len(subject) > _MAX_SUBJECT_DIGITS
        ):
            raise TokenError(TokenFailure.MALFORMED, "subject is not a numeric id")
        if (
            not isinstance(expires_at, (int, float))
            or isinstance(expires_at, bool)
            or (isinstance(expires_at, float) and not math.isfinite(expires_at))
        ):
            raise TokenError(TokenFailure.MALFORMED, "missing or non-numeric exp")

        if (now or _utcnow()).timestamp() >= expires_at:
            raise TokenError(TokenFailure.EXPIRED)
        return int(subject)
