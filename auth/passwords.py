"""
auth/passwords.py -- bcrypt password hashing.

bcrypt is used directly rather than through passlib: passlib's wrap-bug
detection feeds bcrypt a password longer than 72 bytes, which bcrypt 4.x
rejects. Direct usage has no compatibility shim.

bcrypt only reads the first 72 bytes of its input. Older releases truncate
silently, newer ones raise. Both functions below truncate explicitly so a
hash produced under one bcrypt release verifies under another.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import bcrypt

from auth.errors import MalformedHashError

DEFAULT_ROUNDS = 12
_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    A fresh salt is generated on every call, so hashing the same password
    twice yields two different strings. Both verify against the original.
    """
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    bcrypt.checkpw compares in constant time. A wrong password returns False;
    only a hash that bcrypt cannot parse raises MalformedHashError.
    """
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
    except ValueError as exc:
        raise MalformedHashError("stored password hash is not a valid bcrypt hash") from exc
