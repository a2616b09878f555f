"""FastAPI dependencies for authentication."""

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from todoview.auth.jwt import get_subject_from_token
from todoview.config import Settings

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    """Get the settings the app was created with."""
    return request.app.state.settings


def require_session(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    """Require a valid session token in the Authorization header.

    Returns:
        Token subject

    Raises:
        HTTPException: If the token is missing, invalid or expired
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    subject = get_subject_from_token(settings, credentials.credentials)
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return subject


def require_session_from_query(
    token: str = Query(default=""),
    settings: Settings = Depends(get_settings),
) -> str:
    """Require a valid session token in the `token` query parameter.

    EventSource clients cannot set headers, so the event stream takes the
    token from the query string.
    """
    subject = get_subject_from_token(settings, token) if token else None
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return subject
