"""Bcrypt-backed password hashing and verification."""

from __future__ import annotations

import secrets

import bcrypt

from ..domain.errors import InvalidCredentials, ValidationError

DEFAULT_ROUNDS = 12
# bcrypt only reads the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Derive and check salted bcrypt hashes at a fixed cost factor."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        """Store the bcrypt work factor (log2 of the iteration count, 4-31)."""
        if not 4 <= rounds <= 31:
            raise ValueError(f"bcrypt rounds must be between 4 and 31, got {rounds}")
        self._rounds = rounds
        # Stand-in hash checked when an email has no account.
        self._dummy_hash = self.hash_password(secrets.token_urlsafe(32))

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash_password(self, password: str | None) -> str:
        """Return a fresh salted hash of ``password``.

        Raises
        ------
        ValidationError
            When the password is missing, empty, not a string, or longer than
            bcrypt accepts.
        """
        if not isinstance(password, str) or not password:
            raise ValidationError("password is required")
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify(self, password: str | None, password_hash: str | None) -> None:
        """Return silently when ``password`` matches ``password_hash``.

        Any mismatch or failure inside bcrypt (a corrupt hash, an oversized
        input, a non-string value) raises the same ``InvalidCredentials``.
        """
        if not password or not password_hash:
            raise InvalidCredentials()
        if isinstance(password, str) and len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            # bcrypt 4.x would compare only the first 72 bytes.
            raise InvalidCredentials()
        try:
            matched = bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except (ValueError, TypeError, AttributeError) as exc:
            raise InvalidCredentials() from exc
        if not matched:
            raise InvalidCredentials()

    def reject(self, password: str | None) -> None:
        """Spend the same bcrypt work as ``verify`` and raise ``InvalidCredentials``.

        Used when there is no stored hash to check against (unknown email), so
        that path costs as much as a wrong password.
        """
        candidate = password if isinstance(password, str) else ""
        bcrypt.checkpw(candidate.encode("utf-8")[:MAX_PASSWORD_BYTES], self._dummy_hash.encode("utf-8"))
        raise InvalidCredentials()
