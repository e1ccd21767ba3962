"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper.
AccountStore is the repository; _row_to_account is the mapper. The
orchestrator and routes never touch SQL directly.

CredentialStore is the interface auth/service.py depends on. AccountStore is
the shipped implementation; any object with the same methods can replace it.

Uniqueness:
  username and email carry named UNIQUE constraints. These constraints, not
  the exists checks in AuthService.register(), are what keep two concurrent
  signups with the same email from both succeeding. create_account() turns
  the resulting IntegrityError into DuplicateAccountError(field).

Errors:
  Every SQLAlchemyError is wrapped as StoreError so callers only deal with
  auth.errors types.

Security:
  All queries use bound parameters. No f-strings in SQL.

DB path: auth/identity.db unless DATABASE_URL says otherwise.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from sqlalchemy import (
    Column,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    event,
    or_,
    select,
    text,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import DuplicateAccountError, StoreError
from auth.models import Account

DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'identity.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(50), nullable=False),
    Column("email", String(255), nullable=False),
    Column("password_hash", Text, nullable=False),
    Column("first_name", String(100)),
    Column("last_name", String(100)),
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("last_login", String(32)),  # ISO 8601, NULL until first login
    Column("created_at", String(32), nullable=False),
    UniqueConstraint("username", name="uq_accounts_username"),
    UniqueConstraint("email", name="uq_accounts_email"),
)


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class CredentialStore(Protocol):
    def create_account(self, account: Account) -> int: ...

    def get_by_id(self, account_id: int) -> Account | None: ...

    def get_by_username_or_email(self, identifier: str) -> Account | None: ...

    def email_exists(self, email: str) -> bool: ...

    def username_exists(self, username: str) -> bool: ...

    def update_last_login(self, account_id: int, at: datetime) -> None: ...

    def ping(self) -> bool: ...


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _duplicate_field(exc: IntegrityError) -> str | None:
    # SQLite: "UNIQUE constraint failed: accounts.email"
    # PostgreSQL: 'duplicate key value violates unique constraint "uq_accounts_email"'
    message = str(exc.orig)
    for field in ("email", "username"):
        if f"accounts.{field}" in message or f"uq_accounts_{field}" in message:
            return field
    return None


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities.

    Usage:
        store = AccountStore()
        account_id = store.create_account(Account(username="alice", email="a@b.com", password_hash=h))
        account = store.get_by_username_or_email("a@b.com")
        store.close()
    """

    def __init__(self, db_url: str = DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        try:
            with self.engine.connect() as conn:
                yield conn
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            raise StoreError(f"{type(exc).__name__} in credential store") from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_account(self, account: Account) -> int:
        """Insert a new account and return its assigned ID.

        Raises DuplicateAccountError if the username or email is taken,
        including when a concurrent request inserted it after the caller's
        exists check.
        """
        try:
            with self._connect() as conn:
                result = conn.execute(
                    _accounts.insert().values(
                        username=account.username,
                        email=account.email,
                        password_hash=account.password_hash,
                        first_name=account.first_name,
                        last_name=account.last_name,
                        is_active=1 if account.is_active else 0,
                        last_login=account.last_login,
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
                return result.inserted_primary_key[0]
        except IntegrityError as exc:
            field = _duplicate_field(exc)
            if field is None:
                raise StoreError("integrity error in credential store") from exc
            raise DuplicateAccountError(field) from exc

    def update_last_login(self, account_id: int, at: datetime) -> None:
        """Stamp last_login after a successful authentication."""
        with self._connect() as conn:
            conn.execute(_accounts.update().where(_accounts.c.id == account_id).values(last_login=at.isoformat()))
            conn.commit()

    def set_active(self, account_id: int, active: bool) -> bool:
        """Activate or deactivate an account. Returns False if account_id was not found.

        Deactivation blocks future logins only. Tokens issued earlier stay
        valid until they expire.
        """
        with self._connect() as conn:
            result = conn.execute(
                _accounts.update().where(_accounts.c.id == account_id).values(is_active=1 if active else 0)
            )
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, account_id: int) -> Account | None:
        with self._connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_username(self, username: str) -> Account | None:
        """Look up an account by exact username (case-sensitive)."""
        with self._connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.username == username)).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_email(self, email: str) -> Account | None:
        """Look up an account by exact email (case-sensitive)."""
        with self._connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.email == email)).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_username_or_email(self, identifier: str) -> Account | None:
        """Look up an account whose username OR email equals identifier.

        The two columns are unique separately, not jointly, so one identifier
        can match two accounts (one by email, another by username). The email
        match wins in that case.
        """
        with self._connect() as conn:
            rows = conn.execute(
                _accounts.select()
                .where(or_(_accounts.c.username == identifier, _accounts.c.email == identifier))
                .order_by(_accounts.c.id)
            ).fetchall()
        if not rows:
            return None
        for row in rows:
            if row.email == identifier:
                return _row_to_account(row)
        return _row_to_account(rows[0])

    def email_exists(self, email: str) -> bool:
        with self._connect() as conn:
            found = conn.execute(select(_accounts.c.id).where(_accounts.c.email == email).limit(1)).first()
        return found is not None

    def username_exists(self, username: str) -> bool:
        with self._connect() as conn:
            found = conn.execute(select(_accounts.c.id).where(_accounts.c.username == username).limit(1)).first()
        return found is not None

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self._connect() as conn:
                conn.execute(text("SELECT 1"))
        except StoreError:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        username=row.username,
        email=row.email,
        password_hash=row.password_hash,
        first_name=row.first_name,
        last_name=row.last_name,
        is_active=bool(row.is_active),
        last_login=row.last_login,
        created_at=row.created_at,
    )
