"""In-memory implementation of UserStore for testing and the memory backend."""

import copy
import uuid

from domain.model.errors import DuplicateError, UserNotFoundError
from domain.model.user import UserRecord, normalize_email


class FakeUserStore:
    def __init__(self):
        self.store: dict[uuid.UUID, UserRecord] = {}

    # ── write operations ─────────────────────────────────────

    def store_user(self, user: UserRecord) -> None:
        user_id = user.get_id()
        if self.user_exists_by_email(user.email):
            existing = self.get_user_by_email(user.email)
            if existing.id != user_id:
                raise DuplicateError(f"Email already registered: {user.email}")
        self.store[user_id] = copy.deepcopy(user)

    # ── read operations ──────────────────────────────────────

    def get_user_by_id(self, user_id: uuid.UUID) -> UserRecord:
        user = self.store.get(user_id)
        if user is None:
            raise UserNotFoundError()
        return copy.deepcopy(user)

    def get_user_by_email(self, email: str) -> UserRecord:
        email = normalize_email(email)
        for user in self.store.values():
            if user.email == email:
                return copy.deepcopy(user)
        raise UserNotFoundError()

    def user_exists_by_email(self, email: str) -> bool:
        email = normalize_email(email)
        return any(u.email == email for u in self.store.values())

    def get_user_count(self) -> int:
        return len(self.store)

    def users_exist(self) -> bool:
        return bool(self.store)
