"""Assertion and HTTP helpers shared by the test modules."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

LOGIN_URL = "/api/v1/auth/login"


@contextmanager
def not_raises(*unexpected: type[BaseException]) -> Iterator[None]:
    """Fail the test, instead of erroring it, when the block raises ``unexpected``."""
    try:
        yield
    except unexpected as exc:
        raise AssertionError(f"unexpected {type(exc).__name__}: {exc}") from exc


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def login(client, email: str, password: str):
    """POST credentials to the login endpoint and return the raw response."""
    return client.post(LOGIN_URL, json={"email": email, "password": password})
