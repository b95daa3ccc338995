"""MagicLinkAuth — one long-lived object wiring config, store and both services.

Holds no mutable state of its own; safe to share across request handlers.
"""

import uuid
from datetime import timedelta

from domain.model.errors import UnsupportedOperationError
from domain.model.key_material import MagicLinkConfig
from domain.model.user import UserRecord, normalize_email
from port.user_store import CountingUserStore, UserStore
from services.challenge_service import ChallengeService
from services.session_service import SessionService


class MagicLinkAuth:
    def __init__(self, config: MagicLinkConfig, store: UserStore):
        self.config = config
        self.store = store
        self.challenges = ChallengeService(config, store)
        self.sessions = SessionService(config, store)

    @classmethod
    def create(
        cls,
        secret: bytes | str,
        challenge_expiry: timedelta,
        session_expiry: timedelta,
        store: UserStore,
    ) -> 'MagicLinkAuth':
        """Build from a raw secret.

        Raises:
            SecretKeyTooShortError: secret shorter than 16 bytes
        """
        return cls(MagicLinkConfig.create(secret, challenge_expiry, session_expiry), store)

    # ── token operations ─────────────────────────────────────

    def generate_challenge(self, email: str) -> str:
        return self.challenges.issue(email)

    def verify_challenge(self, challenge: str) -> UserRecord:
        return self.challenges.verify(challenge)

    def generate_session_id(self, user: UserRecord) -> str:
        return self.sessions.issue(user)

    def verify_session_id(self, session_id: str) -> UserRecord:
        return self.sessions.verify(session_id)

    # ── storage pass-through ─────────────────────────────────

    def store_user(self, user: UserRecord) -> None:
        self.store.store_user(user)

    def get_user_by_id(self, user_id: uuid.UUID) -> UserRecord:
        return self.store.get_user_by_id(user_id)

    def get_user_by_email(self, email: str) -> UserRecord:
        return self.store.get_user_by_email(normalize_email(email))

    def _counting_store(self) -> CountingUserStore:
        if not isinstance(self.store, CountingUserStore):
            raise UnsupportedOperationError("user counting", type(self.store).__name__)
        return self.store

    def get_user_count(self) -> int:
        return self._counting_store().get_user_count()

    def users_exist(self) -> bool:
        return self._counting_store().users_exist()
