from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api import routes
from app.api.errors import register_exception_handlers
from app.domain.account import Account
from app.domain.contracts import AccountChanges, NewAccountRecord
from app.domain.errors import DuplicateEmail
from app.domain.service import AccountService
from app.security.passwords import PasswordHasher
from app.security.tokens import TokenIssuer

TEST_SECRET = "test-secret"
TEST_ISSUER = "accounts.test"


class FakeRepository:
    """In-memory repository mimicking the Postgres partial unique index and soft delete."""

    def __init__(self) -> None:
        self.rows: dict[str, Account] = {}
        self.audit_log: list[FakeAuditLogRecord] = []

    def _email_taken(self, email: str, exclude: str | None = None) -> bool:
        return any(
            row.email == email and not row.deleted and row.account_id != exclude
            for row in self.rows.values()
        )

    def insert_account(self, record: NewAccountRecord) -> Account:
        if self._email_taken(record.email):
            raise DuplicateEmail()
        now = datetime.now(timezone.utc)
        account = Account(
            account_id=str(uuid.uuid4()),
            email=record.email,
            credential_hash=record.credential_hash,
            first_name=record.first_name,
            last_name=record.last_name,
            created_at=now,
            updated_at=now,
        )
        self.rows[account.account_id] = account
        self._audit(account.account_id, "account.created", {"email": record.email})
        return replace(account)

    def get_account(self, account_id: str) -> Account | None:
        row = self.rows.get(account_id)
        if row is None or row.deleted:
            return None
        return replace(row)

    def find_by_email(self, email: str) -> Account | None:
        for row in self.rows.values():
            if row.email == email and not row.deleted:
                return replace(row)
        return None

    def update_account(self, account_id: str, changes: AccountChanges) -> Account | None:
        row = self.rows.get(account_id)
        if row is None or row.deleted:
            return None
        columns = changes.as_columns()
        if "email" in columns and self._email_taken(columns["email"], exclude=account_id):
            raise DuplicateEmail()
        for name, value in columns.items():
            setattr(row, name, value)
        row.updated_at = datetime.now(timezone.utc)
        self._audit(account_id, "account.updated", {"fields": sorted(columns)})
        return replace(row)

    def soft_delete(self, account_id: str) -> bool:
        row = self.rows.get(account_id)
        if row is None or row.deleted:
            return False
        row.deleted_at = datetime.now(timezone.utc)
        self._audit(account_id, "account.deleted", {})
        return True

    def write_audit_event(
        self,
        *,
        account_id: str | None,
        event_type: str,
        metadata: dict | None = None,
    ) -> None:
        self._audit(account_id, event_type, metadata)

    def _audit(self, account_id: str | None, event_type: str, metadata: dict | None) -> None:
        self.audit_log.append(
            FakeAuditLogRecord(
                account_id=account_id,
                event_type=event_type,
                metadata=metadata or {},
            )
        )


@dataclass
class FakeAuditLogRecord:
    account_id: str | None
    event_type: str
    metadata: dict


@pytest.fixture
def hasher() -> PasswordHasher:
    # Minimum bcrypt cost keeps the suite fast.
    return PasswordHasher(rounds=4)


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def service(repository: FakeRepository, hasher: PasswordHasher) -> AccountService:
    return AccountService(repository, hasher)


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(secret=TEST_SECRET, issuer=TEST_ISSUER, ttl_seconds=300)


def build_app(service: AccountService, token_issuer: TokenIssuer) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(routes.router)
    app.state.account_service = service
    app.state.token_issuer = token_issuer
    return app


@pytest.fixture
def api_client(service: AccountService, token_issuer: TokenIssuer):
    """Provide a FastAPI test client with isolated state."""
    with TestClient(build_app(service, token_issuer)) as client:
        yield client
