"""Client-side note encryption. Re-exports from cipher."""

from quicknote.crypto.cipher import (
    IV_BYTES,
    KEY_BITS,
    PBKDF2_ITERATIONS,
    SALT_BYTES,
    EncryptedPayload,
    decrypt,
    derive_key,
    encrypt,
    generate_link_key,
)

__all__ = [
    "IV_BYTES",
    "KEY_BITS",
    "PBKDF2_ITERATIONS",
    "SALT_BYTES",
    "EncryptedPayload",
    "decrypt",
    "derive_key",
    "encrypt",
    "generate_link_key",
]
