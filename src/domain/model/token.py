"""Signed token shapes shared by the challenge and session services."""

from dataclasses import dataclass
from enum import Enum

from domain.model.errors import DomainError


class TokenClass(Enum):
    """Leading signature character of each token class."""
    CHALLENGE = "9"
    SESSION = "S"


class TokenFailure(Enum):
    MALFORMED = "malformed"
    EXPIRED = "expired"
    TAMPERED = "tampered"


class TokenDecodeError(DomainError):
    """Class-agnostic decode failure, translated by the owning service."""

    def __init__(self, failure: TokenFailure):
        self.failure = failure
        super().__init__(f"token {failure.value}")


@dataclass(frozen=True)
class DecodedToken:
    """Verified token contents (Value Object)."""
    token_class: TokenClass
    salt: bytes
    subject: bytes
    expires_at: int
