"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class CreateAccountInput:
    """Raw inputs supplied when registering an account."""

    email: str
    password: str = field(repr=False)
    first_name: str | None = None
    last_name: str | None = None


@dataclass(slots=True)
class UpdateAccountInput:
    """Fields a caller wants to change; ``None`` leaves a field untouched."""

    email: str | None = None
    password: str | None = field(default=None, repr=False)
    first_name: str | None = None
    last_name: str | None = None


@dataclass(slots=True)
class NewAccountRecord:
    """Fully transformed values ready to be inserted by the repository."""

    email: str
    credential_hash: str = field(repr=False)
    first_name: str | None = None
    last_name: str | None = None


@dataclass(slots=True)
class AccountChanges:
    """Transformed column values for an update; only non-``None`` fields are written."""

    email: str | None = None
    credential_hash: str | None = field(default=None, repr=False)
    first_name: str | None = None
    last_name: str | None = None

    def as_columns(self) -> dict[str, str]:
        columns = {
            "email": self.email,
            "credential_hash": self.credential_hash,
            "first_name": self.first_name,
            "last_name": self.last_name,
        }
        return {name: value for name, value in columns.items() if value is not None}
