"""Session authentication dependencies and token error mapping."""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.dependencies import get_magic_link, get_settings
from domain.model.errors import TokenError, TokenErrorKind, UserNotFoundError
from domain.model.user import UserRecord
from services.magic_link import MagicLinkAuth
from utils.settings import Settings

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# User-visible messages name the failure kind, never the field that failed
TOKEN_ERROR_DETAILS: dict[TokenErrorKind, str] = {
    TokenErrorKind.INVALID_CHALLENGE: "Invalid challenge",
    TokenErrorKind.EXPIRED_CHALLENGE: "Expired challenge",
    TokenErrorKind.BROKEN_CHALLENGE: "Broken challenge",
    TokenErrorKind.INVALID_SESSION_ID: "Invalid session",
    TokenErrorKind.EXPIRED_SESSION_ID: "Expired session",
    TokenErrorKind.BROKEN_SESSION_ID: "Broken session",
}


def token_error_response(error: TokenError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=TOKEN_ERROR_DETAILS[error.kind])


def set_session_cookie(response: Response, settings: Settings, session_id: str) -> None:
    response.set_cookie(
        key=settings.cookie_name,
        value=session_id,
        max_age=settings.cookie_max_age,
        path="/",
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(key=settings.cookie_name, path="/")


def session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
    settings: Settings,
) -> Optional[str]:
    """Session id from the bearer header, falling back to the session cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.cookie_name) or None


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth: MagicLinkAuth = Depends(get_magic_link),
    settings: Settings = Depends(get_settings),
) -> Optional[UserRecord]:
    """Get current authenticated user (optional). Returns None if no valid session."""
    token = session_token(request, credentials, settings)
    if not token:
        return None
    try:
        return auth.verify_session_id(token)
    except (TokenError, UserNotFoundError) as e:
        logger.debug(f"Session verification failed: {e}")
        return None


def get_current_user_required(
    user: Optional[UserRecord] = Depends(get_current_user),
) -> UserRecord:
    """Get current authenticated user (required). Raises 401 if not authenticated."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
