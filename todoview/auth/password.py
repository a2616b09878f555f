"""Shared-password check for the login endpoint."""

import hmac
from typing import Optional


def verify_password(candidate: Optional[str], expected: Optional[str]) -> bool:
    """Compare a submitted password with the configured one in constant time."""
    if not candidate or not expected:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))
