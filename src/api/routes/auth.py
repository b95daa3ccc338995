"""Magic link routes (challenge, verify, logout, me)."""

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse

from api.dependencies import get_magic_link, get_settings
from api.models import ChallengeRequest, ChallengeResponse, UserResponse
from api.security import (
    clear_session_cookie,
    get_current_user_required,
    set_session_cookie,
    token_error_response,
)
from domain.model.errors import DuplicateError, TokenError, UnsupportedOperationError
from domain.model.user import UserRecord, normalize_email
from services.magic_link import MagicLinkAuth
from utils.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _bootstrap_custom_data(auth: MagicLinkAuth, user: UserRecord) -> None:
    """Give a first-time user the demo payload; the very first user is admin."""
    if user.custom_data is not None:
        return
    try:
        is_first_user = not auth.users_exist()
    except UnsupportedOperationError:
        is_first_user = False
    user.custom_data = {"visits": 0, "is_admin": is_first_user}


@router.post("/challenge", response_model=ChallengeResponse, status_code=status.HTTP_201_CREATED)
async def issue_challenge(
    request: ChallengeRequest,
    auth: MagicLinkAuth = Depends(get_magic_link),
    settings: Settings = Depends(get_settings),
):
    """Issue a magic link for an email address.

    A real deployment mails the link; the demo logs it and returns it.
    """
    challenge = auth.generate_challenge(request.email)
    verify_url = f"{settings.public_base_url}/auth/verify?{urlencode({'challenge': challenge})}"
    logger.info("Open this URL in the browser to start verification", extra={"url": verify_url})

    return ChallengeResponse(
        email=normalize_email(request.email),
        verify_url=verify_url,
        expires_in=int(settings.challenge_expiry.total_seconds()),
    )


@router.get("/verify")
async def verify_challenge(
    challenge: str = Query("", description="Challenge token from the magic link"),
    auth: MagicLinkAuth = Depends(get_magic_link),
    settings: Settings = Depends(get_settings),
):
    """Verify a magic link, persist the user and start a session cookie.

    Raises:
        HTTPException: 400 for a rejected challenge, 409 on a storage conflict
    """
    if not challenge:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing challenge")

    try:
        user = auth.verify_challenge(challenge)
    except TokenError as e:
        raise token_error_response(e) from None

    _bootstrap_custom_data(auth, user)
    try:
        auth.store_user(user)
    except DuplicateError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Concurrent login, try again") from None

    session_id = auth.generate_session_id(user)
    logger.info("User logged in", extra={"userId": str(user.get_id()), "email": user.email})

    response = RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
    set_session_cookie(response, settings, session_id)
    return response


@router.post("/logout")
async def logout(settings: Settings = Depends(get_settings)):
    """Drop the session cookie. Sessions are stateless, so nothing is revoked."""
    response = RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
    clear_session_cookie(response, settings)
    return response


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: UserRecord = Depends(get_current_user_required)):
    """Get current authenticated user info."""
    return UserResponse.from_domain(current_user)
