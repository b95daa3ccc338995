"""Session counter — the demo application behind the login."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from api.dependencies import get_magic_link, get_settings
from api.models import CounterResponse
from api.security import TOKEN_ERROR_DETAILS, clear_session_cookie
from domain.model.errors import TokenError, UserNotFoundError
from services.magic_link import MagicLinkAuth
from utils.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["counter"])


@router.get("/", response_model=CounterResponse)
async def counter(
    request: Request,
    auth: MagicLinkAuth = Depends(get_magic_link),
    settings: Settings = Depends(get_settings),
):
    """Count visits for the logged-in user in custom_data."""
    session_id = request.cookies.get(settings.cookie_name)
    if not session_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    try:
        user = auth.verify_session_id(session_id)
    except (TokenError, UserNotFoundError) as e:
        detail = TOKEN_ERROR_DETAILS[e.kind] if isinstance(e, TokenError) else "Unknown user"
        response = JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail})
        clear_session_cookie(response, settings)
        return response

    data = user.custom_data if isinstance(user.custom_data, dict) else {}
    # JSON storage may hand numbers back as floats
    visits = int(data.get("visits", 0)) + 1
    user.custom_data = {**data, "visits": visits}
    auth.store_user(user)

    return CounterResponse(email=user.email, visits=visits, is_admin=bool(data.get("is_admin", False)))
