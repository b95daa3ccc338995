"""Pydantic models for API request/response."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field

from domain.model.user import UserRecord


class ChallengeRequest(BaseModel):
    """Request model for issuing a magic link."""
    email: EmailStr = Field(..., description="Address to send the magic link to")


class ChallengeResponse(BaseModel):
    """Response model for an issued challenge.

    Email delivery is outside this service; the demo hands the link back.
    """
    email: str
    verify_url: str = Field(..., description="Magic link that verifies the challenge")
    expires_in: int = Field(..., description="Challenge lifetime in seconds")


class UserResponse(BaseModel):
    """Response model for a user record."""
    id: str
    email: str
    enabled: bool
    first_login_time: datetime
    recent_login_time: datetime
    custom_data: Optional[Any] = None

    @classmethod
    def from_domain(cls, user: UserRecord) -> 'UserResponse':
        return cls(
            id=str(user.get_id()),
            email=user.email,
            enabled=user.enabled,
            first_login_time=user.first_login_time,
            recent_login_time=user.recent_login_time,
            custom_data=user.custom_data,
        )


class CounterResponse(BaseModel):
    """Response model for the session counter page."""
    email: str
    visits: int
    is_admin: bool = False
