"""Failure kinds raised by the account domain and its collaborators."""

from __future__ import annotations


class AccountError(Exception):
    """Base class for every error the account workflows surface to callers."""


class ValidationError(AccountError):
    """Required input is missing or malformed."""


class DuplicateEmail(AccountError):
    """Another live account already holds the email address."""

    def __init__(self, message: str = "email already registered") -> None:
        super().__init__(message)


class InvalidCredentials(AccountError):
    """Login failed.

    Raised for a wrong password, an unknown email, and an unreadable stored
    hash alike so callers cannot tell those cases apart.
    """

    def __init__(self, message: str = "invalid credentials") -> None:
        super().__init__(message)


class StorageError(AccountError):
    """The persistence layer failed underneath an account operation."""


class InvalidToken(AccountError):
    """An access token is missing, malformed, expired, or signed elsewhere."""

    def __init__(self, message: str = "unauthorized") -> None:
        super().__init__(message)
