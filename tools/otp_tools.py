"""One-time password helpers for the login.gov second factor."""

from __future__ import annotations

import pyotp

__all__ = ["generate_totp"]


def generate_totp(secret: str) -> str:
    """Return the current 6-digit TOTP code for a base32 ``secret``.

    Spaces and lowercase letters are tolerated, since authenticator seeds are
    often copied in grouped form (``abcd efgh ...``).

    Raises:
        ValueError: If ``secret`` is empty.
    """
    normalized: str = secret.replace(" ", "").upper()
    if not normalized:
        raise ValueError("TOTP secret is empty")
    return pyotp.TOTP(normalized).now()
