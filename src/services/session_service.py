"""Session service — issues and verifies stateless session tokens."""

import uuid
from logging import getLogger

from domain.model.errors import (
    BrokenSessionIdError,
    ExpiredSessionIdError,
    InvalidSessionIdError,
    TokenError,
)
from domain.model.key_material import MagicLinkConfig
from domain.model.token import TokenClass, TokenDecodeError, TokenFailure
from domain.model.user import UserRecord
from port.user_store import UserStore
from services import token_codec

logger = getLogger(__name__)

USER_ID_LENGTH = 16

_ERRORS: dict[TokenFailure, type[TokenError]] = {
    TokenFailure.MALFORMED: InvalidSessionIdError,
    TokenFailure.EXPIRED: ExpiredSessionIdError,
    TokenFailure.TAMPERED: BrokenSessionIdError,
}


class SessionService:
    def __init__(self, config: MagicLinkConfig, store: UserStore):
        self._config = config
        self._store = store
        if config.session_expiry.total_seconds() <= 0:
            logger.warning(
                "Session expiry is not positive; sessions are issued with expiry 0 "
                "and verification treats them as expired"
            )

    def _expires_at(self) -> int:
        seconds = int(self._config.session_expiry.total_seconds())
        if seconds <= 0:
            return 0
        return token_codec.current_unix_time() + seconds

    def issue(self, user: UserRecord) -> str:
        """Issue a session token for the user, assigning its id if still unset."""
        user_id = user.get_id()
        session_id = token_codec.encode_token(
            self._config.key,
            TokenClass.SESSION,
            user_id.bytes,
            self._expires_at(),
        )
        logger.info("Session issued", extra={"userId": str(user_id)})
        return session_id

    def verify(self, session_id: str) -> UserRecord:
        """Verify a session token and load its user from the store.

        Never fabricates a user: an unknown id propagates the store's
        UserNotFoundError unchanged.

        Raises:
            InvalidSessionIdError: wrong prefix, shape or undecodable field
            ExpiredSessionIdError: expiry is in the past
            BrokenSessionIdError: MAC mismatch
            UserNotFoundError: id is not in the store
        """
        try:
            decoded = token_codec.decode_token(
                self._config.key,
                TokenClass.SESSION,
                session_id,
                subject_length=USER_ID_LENGTH,
            )
        except TokenDecodeError as e:
            logger.debug("Session rejected", extra={"kind": _ERRORS[e.failure].kind.name})
            raise _ERRORS[e.failure]() from None

        return self._store.get_user_by_id(uuid.UUID(bytes=decoded.subject))
