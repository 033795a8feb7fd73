"""Write-time transformations applied to account fields."""

from __future__ import annotations

from email_validator import EmailNotValidError, validate_email as _check_email

from .errors import ValidationError


def title_case(raw: str) -> str:
    """Uppercase the first character of ``raw`` and lowercase the rest.

    The whole string is treated as one word: ``"mary ann"`` becomes
    ``"Mary ann"``. Applying it twice gives the same result as applying it once.
    """
    if not isinstance(raw, str):
        raise ValidationError(f"expected a string, got {type(raw).__name__}")
    return raw[:1].upper() + raw[1:].lower()


def normalize_name(raw: str | None) -> str | None:
    """Title-case a name field, leaving an absent value as ``None``."""
    if raw is None:
        return None
    return title_case(raw)


def validate_email(raw: str | None) -> str:
    """Return ``raw`` unchanged when it is shaped like an email address.

    The address is stored exactly as given; no case folding or IDNA
    rewriting is applied, so uniqueness stays case-sensitive.
    """
    if not isinstance(raw, str) or not raw:
        raise ValidationError("email is required")
    try:
        _check_email(raw, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError(f"invalid email: {raw}") from exc
    return raw
