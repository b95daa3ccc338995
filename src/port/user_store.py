"""Port definition for UserStore, the only persistence the token core needs."""

import uuid
from typing import Protocol, runtime_checkable

from domain.model.user import UserRecord


@runtime_checkable
class UserStore(Protocol):
    """Protocol defining the interface for user record persistence.

    Implementations persist with "exists by email or id, then insert or
    update", which is not atomic; a concurrent duplicate surfaces as
    DuplicateError. A stored id is updated in place, even under a new email.
    """
    def store_user(self, user: UserRecord) -> None:
        """Insert or update a user. Raise DuplicateError on a unique-key conflict."""
        ...

    def get_user_by_id(self, user_id: uuid.UUID) -> UserRecord:
        """Return the user with this id. Raise UserNotFoundError if missing."""
        ...

    def get_user_by_email(self, email: str) -> UserRecord:
        """Return the user with this (normalized) email. Raise UserNotFoundError if missing."""
        ...

    def user_exists_by_email(self, email: str) -> bool: ...


@runtime_checkable
class CountingUserStore(UserStore, Protocol):
    """Optional extension used by callers for first-run bootstrap logic."""
    def get_user_count(self) -> int: ...

    def users_exist(self) -> bool: ...
