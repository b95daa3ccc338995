"""Domain-level exceptions.

Services raise these errors to express token and identity failures.
Route handlers catch them and map them to HTTP status codes.
"""

from enum import Enum


class DomainError(Exception):
    """Base class for all domain errors."""


class NotFoundError(DomainError):
    """Requested entity does not exist."""


class DuplicateError(DomainError):
    """Entity with the same unique key already exists."""


class ValidationError(DomainError):
    """Input violates a business validation rule."""


class SecretKeyTooShortError(ValidationError):
    """Operator secret is shorter than the minimum key length."""

    def __init__(self, min_length: int = 16):
        self.min_length = min_length
        super().__init__(f"Secret key too short (min {min_length} bytes)")


class UserNotFoundError(NotFoundError):
    """No user record matches the requested id or email."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class UnsupportedOperationError(DomainError):
    """The configured backend does not provide an optional operation."""

    def __init__(self, operation: str, backend: str = "store"):
        self.operation = operation
        self.backend = backend
        super().__init__(f"{backend} does not support {operation}")


# ── token errors ─────────────────────────────────────────────


class TokenErrorKind(Enum):
    """One variant per token failure, so callers can match exhaustively."""
    INVALID_CHALLENGE = "invalid challenge"
    EXPIRED_CHALLENGE = "expired challenge"
    BROKEN_CHALLENGE = "broken challenge"
    INVALID_SESSION_ID = "invalid session id"
    EXPIRED_SESSION_ID = "expired session id"
    BROKEN_SESSION_ID = "broken session id"


class TokenError(DomainError):
    """A challenge or session token was rejected.

    Subclasses pin ``kind``. The message never names the field that failed.
    """

    kind: TokenErrorKind

    def __init__(self):
        super().__init__(self.kind.value)


class InvalidChallengeError(TokenError):
    kind = TokenErrorKind.INVALID_CHALLENGE


class ExpiredChallengeError(TokenError):
    kind = TokenErrorKind.EXPIRED_CHALLENGE


class BrokenChallengeError(TokenError):
    kind = TokenErrorKind.BROKEN_CHALLENGE


class InvalidSessionIdError(TokenError):
    kind = TokenErrorKind.INVALID_SESSION_ID


class ExpiredSessionIdError(TokenError):
    kind = TokenErrorKind.EXPIRED_SESSION_ID


class BrokenSessionIdError(TokenError):
    kind = TokenErrorKind.BROKEN_SESSION_ID
