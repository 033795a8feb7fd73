"""Database repository for account data."""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

import psycopg
from psycopg import errors as pg_errors
from psycopg.rows import tuple_row
from psycopg.types.json import Json
from psycopg_pool import ConnectionPool

from .domain.account import Account
from .domain.contracts import AccountChanges, NewAccountRecord
from .domain.errors import DuplicateEmail, StorageError

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = (
    "account_id, email, credential_hash, first_name, last_name, created_at, updated_at, deleted_at"
)


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    """Translate psycopg failures into domain errors for ``operation``."""
    try:
        yield
    except pg_errors.UniqueViolation as exc:
        raise DuplicateEmail() from exc
    except psycopg.Error as exc:
        logger.error("account storage failure during %s", operation, exc_info=True)
        raise StorageError(f"{operation} failed") from exc


def _parse_account_id(account_id: str) -> uuid.UUID | None:
    """Return ``account_id`` as a UUID, or ``None`` when it cannot match a row."""
    try:
        return uuid.UUID(str(account_id))
    except ValueError:
        return None


class AccountRepository:
    """Postgres-backed account persistence with soft-delete semantics.

    Email uniqueness among live rows comes from the partial unique index
    ``accounts_email_live_key``; inserts and updates rely on it instead of
    checking first. Every account write records its audit row in the same
    transaction, so the two commit or roll back together.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def insert_account(self, record: NewAccountRecord) -> Account:
        """Persist a new account row plus its ``account.created`` audit entry."""
        account_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        with _storage_errors("insert_account"):
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO accounts (account_id, email, credential_hash, first_name, last_name, created_at, updated_at)
                        VALUES (%s, %s, %s, %s, %s, %s, %s)
                        RETURNING {_ACCOUNT_COLUMNS}
                        """,
                        (
                            account_id,
                            record.email,
                            record.credential_hash,
                            record.first_name,
                            record.last_name,
                            now,
                            now,
                        ),
                    )
                    row = cur.fetchone()
                    self._insert_audit(cur, account_id, "account.created", {"email": record.email})
                conn.commit()
        return self._map_record(row)

    def get_account(self, account_id: str) -> Account | None:
        """Fetch a live account by identifier or return ``None``."""
        if _parse_account_id(account_id) is None:
            return None
        with _storage_errors("get_account"):
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"""
                        SELECT {_ACCOUNT_COLUMNS}
                        FROM accounts
                        WHERE account_id = %s AND deleted_at IS NULL
                        """,
                        (account_id,),
                    )
                    row = cur.fetchone()
        if not row:
            return None
        return self._map_record(row)

    def find_by_email(self, email: str) -> Account | None:
        """Fetch the live account holding ``email`` (exact, case-sensitive match)."""
        with _storage_errors("find_by_email"):
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"""
                        SELECT {_ACCOUNT_COLUMNS}
                        FROM accounts
                        WHERE email = %s AND deleted_at IS NULL
                        """,
                        (email,),
                    )
                    row = cur.fetchone()
        if not row:
            return None
        return self._map_record(row)

    def update_account(self, account_id: str, changes: AccountChanges) -> Account | None:
        """Apply ``changes`` to a live account and return it, or ``None`` if absent."""
        if _parse_account_id(account_id) is None:
            return None
        columns = changes.as_columns()
        assignments = [f"{name} = %s" for name in columns]
        params: list[Any] = list(columns.values())
        assignments.append("updated_at = %s")
        params.append(datetime.now(timezone.utc))
        params.append(account_id)

        set_sql = ", ".join(assignments)
        with _storage_errors("update_account"):
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"""
                        UPDATE accounts
                        SET {set_sql}
                        WHERE account_id = %s AND deleted_at IS NULL
                        RETURNING {_ACCOUNT_COLUMNS}
                        """,
                        params,
                    )
                    row = cur.fetchone()
                    if row:
                        self._insert_audit(
                            cur, account_id, "account.updated", {"fields": sorted(columns)}
                        )
                conn.commit()
        if not row:
            return None
        return self._map_record(row)

    def soft_delete(self, account_id: str) -> bool:
        """Mark a live account as deleted; return ``False`` when nothing matched."""
        if _parse_account_id(account_id) is None:
            return False
        with _storage_errors("soft_delete"):
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        UPDATE accounts
                        SET deleted_at = NOW(), updated_at = NOW()
                        WHERE account_id = %s AND deleted_at IS NULL
                        """,
                        (account_id,),
                    )
                    deleted = cur.rowcount == 1
                    if deleted:
                        self._insert_audit(cur, account_id, "account.deleted", {})
                conn.commit()
        return deleted

    def write_audit_event(
        self,
        *,
        account_id: str | None,
        event_type: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Record a standalone audit entry, for events with no accompanying row change."""
        with _storage_errors("write_audit_event"):
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    self._insert_audit(cur, account_id, event_type, metadata)
                conn.commit()

    def _insert_audit(
        self,
        cur: psycopg.Cursor,
        account_id: str | None,
        event_type: str,
        metadata: dict[str, Any] | None,
    ) -> None:
        cur.execute(
            """
            INSERT INTO account_audit_log (account_id, event_type, metadata)
            VALUES (%s, %s, %s)
            """,
            (account_id, event_type, Json(metadata or {})),
        )

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            account_id=str(row[0]),
            email=row[1],
            credential_hash=row[2],
            first_name=row[3],
            last_name=row[4],
            created_at=row[5],
            updated_at=row[6],
            deleted_at=row[7],
        )
