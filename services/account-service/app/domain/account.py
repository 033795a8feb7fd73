from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from schemas import AccountProfile


@dataclass(slots=True)
class Account:
    """Aggregate root for a registered user."""

    account_id: str
    email: str
    credential_hash: str = field(repr=False)
    first_name: str | None
    last_name: str | None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    @property
    def deleted(self) -> bool:
        return self.deleted_at is not None


def serialize_account(account: Account) -> AccountProfile:
    """Build the outward profile for ``account``; the credential hash is never copied."""
    return AccountProfile(
        id=account.account_id,
        email=account.email,
        first_name=account.first_name,
        last_name=account.last_name,
        created_at=account.created_at,
        updated_at=account.updated_at,
    )
