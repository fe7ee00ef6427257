"""
Note Cipher.

Symmetric encryption for note content. Runs on the client: the server
only ever receives the output of encrypt() and never the secret.

Two key-acquisition modes:
    password mode  - key = PBKDF2-HMAC-SHA256(password, random salt)
    link-key mode  - key = HKDF-SHA256(random link key), no salt

Cipher is AES-256-GCM, so a wrong key fails authentication instead of
producing garbage plaintext.

Usage:
    from quicknote.crypto import decrypt, encrypt, generate_link_key

    key = generate_link_key()
    payload = encrypt("hello", key, password=False)
    assert decrypt(payload, key) == "hello"
"""

import base64
import binascii
import os
import secrets
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from quicknote.backend.core.exceptions import DecryptionError, ValidationError

KEY_BITS = 256
# OWASP 2023 minimum for PBKDF2-HMAC-SHA256. Roughly 0.3s per derivation.
PBKDF2_ITERATIONS = 600_000
SALT_BYTES = 16
IV_BYTES = 12
LINK_KEY_BYTES = 32

_HKDF_INFO = b"quicknote:link-key:v1"


@dataclass(frozen=True)
class EncryptedPayload:
    """Ciphertext plus the non-secret values needed to decrypt it."""

    ciphertext: str
    iv: str
    salt: str | None = None

    @property
    def has_password(self) -> bool:
        """Whether the key was derived from a password (salt present)."""
        return self.salt is not None


def generate_link_key() -> str:
    """Generate a 256-bit url-safe key for the share link fragment."""
    return secrets.token_urlsafe(LINK_KEY_BYTES)


def derive_key(
    secret: str,
    salt: bytes,
    iterations: int = PBKDF2_ITERATIONS,
    key_bits: int = KEY_BITS,
) -> bytes:
    """
    Derive a symmetric key from a secret with PBKDF2-HMAC-SHA256.

    Deterministic: the same secret, salt, iterations and size always
    produce the same key.

    Args:
        secret: Password or other secret text
        salt: Random salt, stored next to the ciphertext
        iterations: PBKDF2 work factor
        key_bits: Key size in bits

    Returns:
        Derived key bytes
    """
    if iterations <= 0:
        raise ValueError("iterations must be positive")
    if key_bits <= 0 or key_bits % 8:
        raise ValueError("key_bits must be a positive multiple of 8")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=key_bits // 8,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(secret.encode("utf-8"))


def _derive_link_key(secret: str, key_bits: int = KEY_BITS) -> bytes:
    """Expand high-entropy link key material into an AES key."""
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=key_bits // 8,
        salt=None,
        info=_HKDF_INFO,
    )
    return hkdf.derive(secret.encode("utf-8"))


def encrypt(plaintext: str, secret: str, *, password: bool = True) -> EncryptedPayload:
    """
    Encrypt note content.

    A fresh IV is generated on every call, and in password mode a fresh
    salt as well, so two notes never share either value.

    Args:
        plaintext: Note content, must not be empty
        secret: Password (password mode) or link key (link-key mode)
        password: Whether secret is a low-entropy password

    Returns:
        EncryptedPayload with base64 ciphertext, hex IV and hex salt

    Raises:
        ValidationError: If plaintext or secret is empty
    """
    if not plaintext:
        raise ValidationError("Note content must not be empty")
    if not secret:
        raise ValidationError("Secret must not be empty")

    iv = os.urandom(IV_BYTES)
    if password:
        salt = os.urandom(SALT_BYTES)
        key = derive_key(secret, salt)
    else:
        salt = None
        key = _derive_link_key(secret)

    sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    return EncryptedPayload(
        ciphertext=base64.b64encode(sealed).decode("ascii"),
        iv=iv.hex(),
        salt=salt.hex() if salt is not None else None,
    )


def decrypt(payload: EncryptedPayload, secret: str) -> str:
    """
    Decrypt note content.

    Args:
        payload: Ciphertext, IV and optional salt as stored with the note
        secret: Password or link key

    Returns:
        Plaintext

    Raises:
        DecryptionError: Wrong secret, malformed input, or empty result
    """
    try:
        iv = bytes.fromhex(payload.iv)
        salt = bytes.fromhex(payload.salt) if payload.salt is not None else None
        sealed = base64.b64decode(payload.ciphertext, validate=True)
    except (ValueError, TypeError, binascii.Error) as e:
        raise DecryptionError("Malformed encrypted payload") from e

    if len(iv) != IV_BYTES:
        raise DecryptionError("Malformed encrypted payload")

    key = derive_key(secret, salt) if salt is not None else _derive_link_key(secret)

    try:
        plaintext = AESGCM(key).decrypt(iv, sealed, None).decode("utf-8")
    except (InvalidTag, UnicodeDecodeError) as e:
        raise DecryptionError("Decryption failed. Probably wrong password.") from e

    # Empty notes are rejected at creation, so an empty result means failure.
    if not plaintext:
        raise DecryptionError("Decryption failed. Empty result.")
    return plaintext
