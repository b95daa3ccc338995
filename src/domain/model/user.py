"""User record threaded through challenge and session verification."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from domain.model.errors import ValidationError
from domain.model.identifier import NIL_USER_ID, is_nil, new_user_id

# Application payload attached to a user. Restricted to JSON-safe shapes so
# every storage engine round-trips it the same way (numbers may widen).
JSONValue = str | int | float | bool | None | list["JSONValue"] | dict[str, "JSONValue"]


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_custom_data(value: Any, path: str = "custom_data") -> None:
    """Raise ValidationError unless value is built only from JSON-safe shapes."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return
    if isinstance(value, list):
        for i, item in enumerate(value):
            validate_custom_data(item, f"{path}[{i}]")
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValidationError(f"{path} has a non-string key: {key!r}")
            validate_custom_data(item, f"{path}.{key}")
        return
    raise ValidationError(f"{path} has unsupported type {type(value).__name__}")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_time(value: str | datetime) -> datetime:
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class UserRecord:
    """Domain model for an authenticated identity.

    ``id`` stays NIL_USER_ID until something needs it (session issuance,
    a storage key); from then on it never changes. ``enabled`` is carried
    for callers, the token services never look at it.
    """
    email: str
    id: uuid.UUID = NIL_USER_ID
    enabled: bool = True
    first_login_time: datetime = field(default_factory=_utcnow)
    recent_login_time: datetime = field(default_factory=_utcnow)
    custom_data: JSONValue = None

    @classmethod
    def new(cls, email: str) -> 'UserRecord':
        """Create a fresh, not yet persisted record for an email address."""
        now = _utcnow()
        return cls(
            email=normalize_email(email),
            first_login_time=now,
            recent_login_time=now,
        )

    def get_id(self) -> uuid.UUID:
        if is_nil(self.id):
            self.id = new_user_id()
        return self.id

    def key_name(self) -> str:
        """Storage key of the form ``$<id>$<email>``."""
        return f"${self.get_id()}${self.email}"

    def touch_login(self) -> None:
        self.recent_login_time = _utcnow()

    # ── serialization ────────────────────────────────────────

    def to_dict(self) -> dict:
        validate_custom_data(self.custom_data)
        return {
            'id': str(self.get_id()),
            'email': self.email,
            'enabled': self.enabled,
            'first_login_time': self.first_login_time.isoformat(),
            'recent_login_time': self.recent_login_time.isoformat(),
            'custom_data': self.custom_data,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'UserRecord':
        raw_id = data.get('id')
        return cls(
            id=uuid.UUID(str(raw_id)) if raw_id else NIL_USER_ID,
            email=data['email'],
            enabled=data.get('enabled', True),
            first_login_time=_parse_time(data['first_login_time']),
            recent_login_time=_parse_time(data['recent_login_time']),
            custom_data=data.get('custom_data'),
        )
