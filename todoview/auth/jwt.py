"""JWT session token generation and validation for todoview."""

import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict

from todoview.config import ConfigurationError, Settings
from todoview.models.constants import SESSION_SUBJECT


def create_access_token(settings: Settings, subject: str = SESSION_SUBJECT) -> str:
    """Create a signed session token.

    Args:
        settings: Service settings (session secret, algorithm, lifetime)
        subject: Subject to encode in the token

    Returns:
        Encoded JWT token string

    Raises:
        ConfigurationError: If no session secret is configured
    """
    if not settings.session_secret:
        raise ConfigurationError("SESSION_SECRET is not set")

    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "iat": now,  # Issued at
    }
    if settings.jwt_expiration_hours:
        payload["exp"] = now + timedelta(hours=settings.jwt_expiration_hours)
    return jwt.encode(payload, settings.session_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> Optional[Dict]:
    """Decode and validate a session token.

    Args:
        settings: Service settings
        token: JWT token string to decode

    Returns:
        Decoded token payload, or None if invalid, expired, or no secret is configured
    """
    if not token or not settings.session_secret:
        return None
    try:
        return jwt.decode(token, settings.session_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def get_subject_from_token(settings: Settings, token: str) -> Optional[str]:
    """Extract the subject from a session token, or None if the token is invalid."""
    payload = decode_access_token(settings, token)
    if payload:
        return payload.get("sub")
    return None
