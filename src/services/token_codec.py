"""Generic signed token codec.

Wire format::

    <signature-char><salt>-<subject>-<expiry>-<mac>

salt, subject and mac are unpadded RFC 4648 base32; expiry is decimal
Unix seconds; mac = HMAC(salt || 0x00 || subject || 0x00 || expiry).

Decoding distinguishes malformed, expired and tampered tokens. A field
with stray trailing bits decodes, but counts as tampered. Bad input never
raises anything but TokenDecodeError.
"""

import base64
import re
import secrets
import time

from domain.model.key_material import KeyMaterial
from domain.model.token import DecodedToken, TokenClass, TokenDecodeError, TokenFailure

SALT_LENGTH = 8
MAC_LENGTH = 32
FIELD_DELIMITER = "-"

# Longer digit runs cannot be a real timestamp and would hit int() limits
_EXPIRY_PATTERN = re.compile(r"[0-9]{1,19}")
_B32_BLOCK = 8
_INVALID_UNPADDED_REMAINDERS = {1, 3, 6}


def current_unix_time() -> int:
    return int(time.time())


# ── base32 without padding ───────────────────────────────────


def b32_encode(data: bytes) -> str:
    return base64.b32encode(data).decode("ascii").rstrip("=")


def _b32_decode_unpadded(text: str) -> bytes:
    """Decode unpadded base32 without checking the trailing bits."""
    remainder = len(text) % _B32_BLOCK
    if remainder in _INVALID_UNPADDED_REMAINDERS:
        raise ValueError("invalid base32 length")
    if "=" in text:
        raise ValueError("unexpected base32 padding")
    padded = text + "=" * (-len(text) % _B32_BLOCK)
    return base64.b32decode(padded)


def b32_decode(text: str) -> bytes:
    """Decode unpadded base32, accepting only the canonical encoding.

    Raises ValueError for a bad alphabet, an impossible length, or trailing
    bits that do not re-encode to the same text.
    """
    data = _b32_decode_unpadded(text)
    if b32_encode(data) != text:
        raise ValueError("non-canonical base32")
    return data


# ── tokens ───────────────────────────────────────────────────


def encode_token(
    key: KeyMaterial,
    token_class: TokenClass,
    subject: bytes,
    expires_at: int,
) -> str:
    """Build a signed token with a fresh random salt."""
    if expires_at < 0:
        raise ValueError("expires_at must be non-negative")

    salt = secrets.token_bytes(SALT_LENGTH)
    expiry = str(expires_at)
    mac = key.sign(salt, subject, expiry.encode("ascii"))
    return token_class.value + FIELD_DELIMITER.join(
        (b32_encode(salt), b32_encode(subject), expiry, b32_encode(mac))
    )


def _malformed() -> TokenDecodeError:
    return TokenDecodeError(TokenFailure.MALFORMED)


def decode_token(
    key: KeyMaterial,
    token_class: TokenClass,
    token: str,
    subject_length: int | None = None,
) -> DecodedToken:
    """Parse and verify a token of the given class.

    Checks run in a fixed order: class prefix, field count, field decoding
    (including fixed lengths), expiry parsing, expiry, then the
    constant-time MAC comparison.

    Raises:
        TokenDecodeError: failure is MALFORMED, EXPIRED or TAMPERED
    """
    if not isinstance(token, str) or not token.startswith(token_class.value):
        raise _malformed()

    parts = token[len(token_class.value):].split(FIELD_DELIMITER)
    if len(parts) != 4:
        raise _malformed()
    salt_text, subject_text, expiry_text, mac_text = parts

    try:
        salt = _b32_decode_unpadded(salt_text)
        subject = _b32_decode_unpadded(subject_text)
        mac = _b32_decode_unpadded(mac_text)
    except ValueError:
        raise _malformed() from None
    if len(salt) != SALT_LENGTH or len(mac) != MAC_LENGTH:
        raise _malformed()
    if subject_length is not None and len(subject) != subject_length:
        raise _malformed()
    # Stray trailing bits can only come from editing an issued token
    canonical = (
        b32_encode(salt) == salt_text
        and b32_encode(subject) == subject_text
        and b32_encode(mac) == mac_text
    )

    if not _EXPIRY_PATTERN.fullmatch(expiry_text):
        raise _malformed()
    expires_at = int(expiry_text)

    if expires_at < current_unix_time():
        raise TokenDecodeError(TokenFailure.EXPIRED)

    if not key.verify(mac, salt, subject, expiry_text.encode("ascii")) or not canonical:
        raise TokenDecodeError(TokenFailure.TAMPERED)

    return DecodedToken(
        token_class=token_class,
        salt=salt,
        subject=subject,
        expires_at=expires_at,
    )
