"""Challenge service — issues and verifies email-ownership challenges.

A verified challenge proves the holder reads the mailbox, which is enough
to provision an identity. The returned record is not persisted here;
storing it is the caller's explicit follow-up.
"""

from logging import getLogger

from domain.model.errors import (
    BrokenChallengeError,
    ExpiredChallengeError,
    InvalidChallengeError,
    TokenError,
    UserNotFoundError,
)
from domain.model.key_material import MagicLinkConfig
from domain.model.token import TokenClass, TokenDecodeError, TokenFailure
from domain.model.user import UserRecord, normalize_email
from port.user_store import UserStore
from services import token_codec

logger = getLogger(__name__)

_ERRORS: dict[TokenFailure, type[TokenError]] = {
    TokenFailure.MALFORMED: InvalidChallengeError,
    TokenFailure.EXPIRED: ExpiredChallengeError,
    TokenFailure.TAMPERED: BrokenChallengeError,
}


class ChallengeService:
    def __init__(self, config: MagicLinkConfig, store: UserStore):
        self._config = config
        self._store = store

    def issue(self, email: str) -> str:
        """Issue a challenge token for the normalized email."""
        email = normalize_email(email)
        expires_at = token_codec.current_unix_time() + int(self._config.challenge_expiry.total_seconds())
        challenge = token_codec.encode_token(
            self._config.key,
            TokenClass.CHALLENGE,
            email.encode("utf-8"),
            expires_at,
        )
        logger.info("Challenge issued", extra={"email": email, "expiresAt": expires_at})
        return challenge

    def verify(self, challenge: str) -> UserRecord:
        """Verify a challenge and return the matching or a new user record.

        recent_login_time is refreshed on every success.

        Raises:
            InvalidChallengeError: wrong prefix, shape or undecodable field
            ExpiredChallengeError: expiry is in the past
            BrokenChallengeError: MAC mismatch
        """
        try:
            decoded = token_codec.decode_token(self._config.key, TokenClass.CHALLENGE, challenge)
            email = decoded.subject.decode("utf-8")
        except TokenDecodeError as e:
            logger.debug("Challenge rejected", extra={"kind": _ERRORS[e.failure].kind.name})
            raise _ERRORS[e.failure]() from None
        except UnicodeDecodeError:
            raise InvalidChallengeError() from None

        try:
            user = self._store.get_user_by_email(email)
        except UserNotFoundError:
            user = UserRecord.new(email)
            logger.info("New user provisioned from challenge", extra={"email": email})

        user.touch_login()
        return user
