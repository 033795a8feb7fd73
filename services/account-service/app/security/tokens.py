"""Utilities for issuing and validating account access tokens."""

from __future__ import annotations

import time
from typing import Any

import jwt

from ..domain.errors import InvalidToken

TOKEN_SCHEME = "JWT"


class TokenIssuer:
    """Sign and read the opaque tokens handed to clients after create/login.

    The signing secret is passed in rather than read from the environment so
    that callers (and tests) decide where it comes from.
    """

    def __init__(
        self,
        *,
        secret: str,
        issuer: str,
        ttl_seconds: int,
        algorithm: str = "HS256",
    ) -> None:
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret
        self._issuer = issuer
        self._ttl_seconds = ttl_seconds
        self._algorithm = algorithm

    def issue(self, account_id: str) -> str:
        """Create a signed token for ``account_id`` rendered as ``"JWT <token>"``.

        Parameters
        ----------
        account_id:
            Account identifier embedded in both the ``id`` and ``sub`` claims.

        Returns
        -------
        str
            The scheme-prefixed token, ready for an ``Authorization`` header.
        """
        now = int(time.time())
        payload: dict[str, Any] = {
            "iss": self._issuer,
            "sub": account_id,
            "id": account_id,
            "iat": now,
            "exp": now + self._ttl_seconds,
        }
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return f"{TOKEN_SCHEME} {token}"

    def decode(self, token: str) -> dict[str, Any]:
        """Decode and verify a bare token (no scheme prefix) returning its claims.

        Raises
        ------
        InvalidToken
            When the signature, issuer, or expiry checks fail.
        """
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidToken() from exc

    def account_id_from_header(self, authorization: str | None) -> str:
        """Extract the account id from an ``Authorization: JWT <token>`` header value."""
        if not authorization:
            raise InvalidToken()
        scheme, _, token = authorization.partition(" ")
        if scheme != TOKEN_SCHEME or not token.strip():
            raise InvalidToken()
        claims = self.decode(token.strip())
        account_id = claims.get("id") or claims.get("sub")
        if not isinstance(account_id, str) or not account_id:
            raise InvalidToken()
        return account_id
