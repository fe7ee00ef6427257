"""
QuickNote.

One-time encrypted notes. The server only ever stores ciphertext.

- crypto/: AES-GCM encryption with PBKDF2 / HKDF key derivation (client side)
- backend/: Note store, lifecycle engine, HTTP API, configuration
- cli/: Command-line client that encrypts, shares and opens notes (Typer + Rich)
"""
