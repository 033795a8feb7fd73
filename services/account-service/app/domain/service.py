"""Account service orchestrating validation, hashing, persistence, and auditing."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from .account import Account
from .contracts import AccountChanges, CreateAccountInput, NewAccountRecord, UpdateAccountInput
from .errors import InvalidCredentials, StorageError, ValidationError
from .normalization import normalize_name, validate_email
from ..security.passwords import PasswordHasher

logger = logging.getLogger(__name__)


class AccountStore(Protocol):
    """Persistence operations the service needs from a repository."""

    def insert_account(self, record: NewAccountRecord) -> Account:
        """Insert the row and its `account.created` audit entry in one transaction."""

    def get_account(self, account_id: str) -> Account | None: ...

    def find_by_email(self, email: str) -> Account | None: ...

    def update_account(self, account_id: str, changes: AccountChanges) -> Account | None:
        """Apply the changes and write `account.updated` in one transaction."""

    def soft_delete(self, account_id: str) -> bool:
        """Set `deleted_at` and write `account.deleted` in one transaction."""

    def write_audit_event(
        self,
        *,
        account_id: str | None,
        event_type: str,
        metadata: dict[str, Any] | None = None,
    ) -> None: ...


class AccountService:
    """Account workflows backed by an ``AccountStore``."""

    def __init__(self, repository: AccountStore, hasher: PasswordHasher) -> None:
        """Store dependencies used to orchestrate persistence and credential checks."""
        self._repository = repository
        self._hasher = hasher

    def build_record(self, payload: CreateAccountInput) -> NewAccountRecord:
        """Run the write-time pipeline for a new account.

        Order: validate email, normalize names, hash password. Hashing comes
        last so malformed input is rejected before paying the bcrypt cost.
        """
        email = validate_email(payload.email)
        first_name = normalize_name(payload.first_name)
        last_name = normalize_name(payload.last_name)
        credential_hash = self._hasher.hash_password(payload.password)
        return NewAccountRecord(
            email=email,
            credential_hash=credential_hash,
            first_name=first_name,
            last_name=last_name,
        )

    def build_changes(self, payload: UpdateAccountInput) -> AccountChanges:
        """Run the write-time pipeline over the fields present in an update."""
        changes = AccountChanges(
            email=validate_email(payload.email) if payload.email is not None else None,
            first_name=normalize_name(payload.first_name),
            last_name=normalize_name(payload.last_name),
        )
        if payload.password is not None:
            changes.credential_hash = self._hasher.hash_password(payload.password)
        if not changes.as_columns():
            raise ValidationError("no fields to update")
        return changes

    def create_account(self, payload: CreateAccountInput) -> Account:
        """Validate, transform, and persist a new account.

        Raises ``ValidationError`` for bad input, ``DuplicateEmail`` when a
        live account already has the email, ``StorageError`` otherwise.
        """
        record = self.build_record(payload)
        account = self._repository.insert_account(record)
        logger.info("account %s created", account.account_id)
        return account

    def get_account(self, account_id: str) -> Account | None:
        """Retrieve a live account by identifier."""
        return self._repository.get_account(account_id)

    def update_account(self, account_id: str, payload: UpdateAccountInput) -> Account | None:
        """Apply an update through the same transformations as creation."""
        changes = self.build_changes(payload)
        account = self._repository.update_account(account_id, changes)
        if account is None:
            return None
        logger.info("account %s updated", account.account_id)
        return account

    def delete_account(self, account_id: str) -> bool:
        """Soft-delete a live account; its email becomes available again."""
        deleted = self._repository.soft_delete(account_id)
        if deleted:
            logger.info("account %s deleted", account_id)
        return deleted

    def authenticate(self, email: str, password: str) -> Account:
        """Return the live account for ``email`` when ``password`` matches.

        An unknown email and a wrong password both raise ``InvalidCredentials``
        after the same amount of bcrypt work.
        """
        account = self._repository.find_by_email(email)
        try:
            if account is None:
                self._hasher.reject(password)
            self._hasher.verify(password, account.credential_hash)
        except InvalidCredentials:
            self._record_login(account, "login.failed", {"reason": "invalid_credentials"})
            raise

        self._record_login(account, "login.succeeded", {})
        return account

    def _record_login(self, account: Account | None, event_type: str, metadata: dict[str, Any]) -> None:
        """Audit a login attempt without letting an audit failure change its outcome."""
        account_id = account.account_id if account else None
        try:
            self._repository.write_audit_event(
                account_id=account_id,
                event_type=event_type,
                metadata=metadata,
            )
        except StorageError:
            logger.warning("could not record %s for account %s", event_type, account_id, exc_info=True)
