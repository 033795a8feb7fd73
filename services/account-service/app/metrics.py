"""Prometheus counters for account workflows."""

from __future__ import annotations

from prometheus_client import Counter

ACCOUNTS_CREATED = Counter(
    "accounts_created_total",
    "Accounts successfully registered.",
)

LOGIN_ATTEMPTS = Counter(
    "login_attempts_total",
    "Login attempts grouped by outcome.",
    ["outcome"],
)
