"""Time-ordered 128-bit user identifiers.

Identifiers are ULIDs (48 bits of Unix milliseconds, then 80 random bits)
carried as ``uuid.UUID``. The monotonic provider keeps identifiers from
one process strictly increasing within the same millisecond.
"""

import uuid
from datetime import datetime, timezone

from ulid import monotonic

NIL_USER_ID = uuid.UUID(int=0)

_RANDOM_BITS = 80


def new_user_id() -> uuid.UUID:
    """Generate a fresh identifier that sorts after every earlier one."""
    return monotonic.new().uuid


def is_nil(user_id: uuid.UUID | None) -> bool:
    return user_id is None or user_id.int == 0


def user_id_timestamp(user_id: uuid.UUID) -> datetime:
    """Creation time encoded in the identifier's first 48 bits."""
    ms = user_id.int >> _RANDOM_BITS
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
