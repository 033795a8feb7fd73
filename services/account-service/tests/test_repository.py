"""Tests for the Postgres repository against a scripted connection pool."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone

import psycopg
import pytest
from psycopg import errors as pg_errors

from app.domain.contracts import AccountChanges, NewAccountRecord
from app.domain.errors import DuplicateEmail, StorageError
from app.repository import AccountRepository

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)
ACCOUNT_ID = "0b6f2c1e-0000-4000-8000-000000000001"


class FakeCursor:
    def __init__(self, pool: "FakePool") -> None:
        self._pool = pool
        self.rowcount = pool.rowcount

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, query, params=None):
        self._pool.executed.append((" ".join(query.split()), params))
        if self._pool.error is not None and len(self._pool.executed) > self._pool.fail_after:
            raise self._pool.error

    def fetchone(self):
        return self._pool.row


class FakeConnection:
    def __init__(self, pool: "FakePool") -> None:
        self._pool = pool

    def cursor(self, row_factory=None):
        return FakeCursor(self._pool)

    def commit(self):
        self._pool.commits += 1


class FakePool:
    def __init__(self, *, row=None, error=None, rowcount=0, fail_after=0) -> None:
        self.fail_after = fail_after
        self.row = row
        self.error = error
        self.rowcount = rowcount
        self.executed: list[tuple[str, object]] = []
        self.commits = 0

    @contextmanager
    def connection(self):
        yield FakeConnection(self)


def _row(**overrides):
    values = {
        "account_id": ACCOUNT_ID,
        "email": "jane@example.com",
        "credential_hash": "$2b$04$hash",
        "first_name": "Jane",
        "last_name": None,
        "created_at": NOW,
        "updated_at": NOW,
        "deleted_at": None,
    }
    values.update(overrides)
    return tuple(values.values())


def _record():
    return NewAccountRecord(email="jane@example.com", credential_hash="$2b$04$hash", first_name="Jane")


def test_insert_maps_returned_row():
    pool = FakePool(row=_row())
    account = AccountRepository(pool).insert_account(_record())

    assert account.email == "jane@example.com"
    assert account.credential_hash == "$2b$04$hash"
    assert pool.commits == 1
    query, params = pool.executed[0]
    assert query.startswith("INSERT INTO accounts")
    assert params[1:4] == ("jane@example.com", "$2b$04$hash", "Jane")


def test_unique_violation_becomes_duplicate_email():
    pool = FakePool(error=pg_errors.UniqueViolation("duplicate key value violates unique constraint"))
    with pytest.raises(DuplicateEmail):
        AccountRepository(pool).insert_account(_record())


def test_other_database_errors_become_storage_error():
    pool = FakePool(error=psycopg.OperationalError("connection refused"))
    with pytest.raises(StorageError) as excinfo:
        AccountRepository(pool).find_by_email("jane@example.com")
    assert isinstance(excinfo.value.__cause__, psycopg.OperationalError)


def test_lookups_exclude_deleted_rows():
    pool = FakePool(row=None)
    repository = AccountRepository(pool)

    assert repository.get_account(ACCOUNT_ID) is None
    assert repository.find_by_email("jane@example.com") is None
    for query, _ in pool.executed:
        assert "deleted_at IS NULL" in query


def test_update_only_writes_supplied_columns():
    pool = FakePool(row=_row(last_name="Doe"))
    account = AccountRepository(pool).update_account(ACCOUNT_ID, AccountChanges(last_name="Doe"))

    assert account.last_name == "Doe"
    query, params = pool.executed[0]
    assert "SET last_name = %s, updated_at = %s" in query
    assert params[0] == "Doe"
    assert params[-1] == ACCOUNT_ID


def test_soft_delete_reports_rowcount():
    assert AccountRepository(FakePool(rowcount=1)).soft_delete(ACCOUNT_ID) is True
    assert AccountRepository(FakePool(rowcount=0)).soft_delete(ACCOUNT_ID) is False


def test_insert_writes_audit_row_in_same_transaction():
    pool = FakePool(row=_row())
    AccountRepository(pool).insert_account(_record())

    assert [query.split(" (")[0] for query, _ in pool.executed] == [
        "INSERT INTO accounts",
        "INSERT INTO account_audit_log",
    ]
    assert pool.executed[1][1][1] == "account.created"
    assert pool.commits == 1


def test_failed_audit_insert_rolls_back_account():
    pool = FakePool(row=_row(), error=psycopg.OperationalError("audit table locked"), fail_after=1)
    with pytest.raises(StorageError):
        AccountRepository(pool).insert_account(_record())

    assert len(pool.executed) == 2
    assert pool.commits == 0


def test_update_and_delete_are_audited_with_the_change():
    pool = FakePool(row=_row(last_name="Doe"), rowcount=1)
    repository = AccountRepository(pool)
    repository.update_account(ACCOUNT_ID, AccountChanges(last_name="Doe"))
    repository.soft_delete(ACCOUNT_ID)

    audits = [params for query, params in pool.executed if query.startswith("INSERT INTO account_audit_log")]
    assert [params[1] for params in audits] == ["account.updated", "account.deleted"]
    assert pool.commits == 2


@pytest.mark.parametrize("account_id", ["missing", "", "acct-123"])
def test_non_uuid_ids_match_nothing_without_querying(account_id):
    pool = FakePool(row=_row(), rowcount=1)
    repository = AccountRepository(pool)

    assert repository.get_account(account_id) is None
    assert repository.update_account(account_id, AccountChanges(first_name="X")) is None
    assert repository.soft_delete(account_id) is False
    assert pool.executed == []
