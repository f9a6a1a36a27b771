"""AES-GCM encryption of calendar URLs into URL-safe link tokens.

A token is ``nonce || ciphertext+tag`` encoded as unpadded URL-safe base64.
The key is the SHA-256 digest of the configured secret, so any process with
the same secret can decrypt any token; nothing is stored server-side.
"""

import base64
import binascii
import hashlib
import os
from functools import lru_cache

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from busycal.core.exceptions import (
    ConfigurationError,
    DecryptionFailed,
    InvalidInput,
    MalformedToken,
)

NONCE_SIZE = 12
ALLOWED_PREFIXES = ("http", "webcal")


@lru_cache(maxsize=8)
def derive_key(secret: str) -> AESGCM:
    """Derive the AES-256-GCM cipher for a secret.

    Cached per secret value, so each distinct secret is hashed once per
    process.

    Raises:
        ConfigurationError: If the secret is empty.
    """
    if not secret:
        raise ConfigurationError("Encryption secret is not configured")
    return AESGCM(hashlib.sha256(secret.encode("utf-8")).digest())


def to_urlsafe_b64(data: bytes) -> str:
    """Encode bytes as URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def from_urlsafe_b64(value: str) -> bytes:
    """Decode unpadded URL-safe base64.

    Raises:
        MalformedToken: If the value is not valid base64.
    """
    padded = value + "=" * (-len(value) % 4)
    try:
        return base64.b64decode(padded, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedToken(f"Token is not valid base64: {exc}") from exc


def validate_source_url(url: str | None) -> str:
    """Check that a source URL looks like an http(s) or webcal link.

    Raises:
        InvalidInput: If the URL is empty or uses another scheme.
    """
    if not url or not url.startswith(ALLOWED_PREFIXES):
        raise InvalidInput("Source URL must start with http or webcal")
    return url


def _require_secret(secret: str | None) -> str:
    if not secret:
        raise ConfigurationError("Encryption secret is not configured")
    return secret


def encrypt_url(url: str, secret: str | None) -> str:
    """Encrypt a source calendar URL into a link token."""
    validate_source_url(url)
    cipher = derive_key(_require_secret(secret))
    nonce = os.urandom(NONCE_SIZE)
    ciphertext = cipher.encrypt(nonce, url.encode("utf-8"), None)
    return to_urlsafe_b64(nonce + ciphertext)


def decrypt_token(token: str, secret: str | None) -> str:
    """Recover the source calendar URL from a link token.

    A wrong secret and a corrupted token both raise ``DecryptionFailed`` with
    the same message.

    Raises:
        ConfigurationError: If the secret is empty.
        MalformedToken: If the token cannot be decoded or is too short.
        DecryptionFailed: If the token does not authenticate.
    """
    cipher = derive_key(_require_secret(secret))
    combined = from_urlsafe_b64(token)
    if len(combined) < NONCE_SIZE:
        raise MalformedToken(f"Token too short: {len(combined)} bytes")

    nonce, ciphertext = combined[:NONCE_SIZE], combined[NONCE_SIZE:]
    try:
        plaintext = cipher.decrypt(nonce, ciphertext, None)
        return plaintext.decode("utf-8")
    except (InvalidTag, UnicodeDecodeError) as exc:
        raise DecryptionFailed("Token failed authentication") from exc
