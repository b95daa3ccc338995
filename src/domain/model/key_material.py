"""Signing key and token lifetimes (Value Objects)."""

import hashlib
import hmac
from dataclasses import dataclass, field
from datetime import timedelta

from domain.model.errors import SecretKeyTooShortError

MIN_SECRET_LENGTH = 16
FIELD_SEPARATOR = b"\x00"


@dataclass(frozen=True)
class KeyMaterial:
    """SHA-256 digest of the operator secret, used as the HMAC key.

    The raw secret is dropped once hashed. Instances are immutable and
    may be shared across threads.
    """
    digest: bytes = field(repr=False)

    @classmethod
    def from_secret(cls, secret: bytes | str) -> 'KeyMaterial':
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        if len(secret) < MIN_SECRET_LENGTH:
            raise SecretKeyTooShortError(MIN_SECRET_LENGTH)
        return cls(digest=hashlib.sha256(secret).digest())

    def sign(self, *fields: bytes) -> bytes:
        """HMAC-SHA256 over the fields joined by a single zero byte."""
        return hmac.new(self.digest, FIELD_SEPARATOR.join(fields), hashlib.sha256).digest()

    def verify(self, mac: bytes, *fields: bytes) -> bool:
        return hmac.compare_digest(mac, self.sign(*fields))


@dataclass(frozen=True)
class MagicLinkConfig:
    """Immutable configuration created once at startup and passed explicitly.

    A non-positive session_expiry means session tokens are issued with
    expiry 0.
    """
    key: KeyMaterial
    challenge_expiry: timedelta
    session_expiry: timedelta

    @classmethod
    def create(
        cls,
        secret: bytes | str,
        challenge_expiry: timedelta,
        session_expiry: timedelta,
    ) -> 'MagicLinkConfig':
        return cls(
            key=KeyMaterial.from_secret(secret),
            challenge_expiry=challenge_expiry,
            session_expiry=session_expiry,
        )
