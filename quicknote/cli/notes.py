"""
Client-side note flows.

create_note encrypts locally, submits ciphertext and returns the share
link. open_note fetches, decrypts and only then confirms the view, so a
wrong password never costs a view.
"""

from collections.abc import Callable
from typing import Any

from quicknote.backend.core.config import get_app_config
from quicknote.backend.core.exceptions import DecryptionError, ValidationError
from quicknote.backend.core.logging import get_logger, log_with_source
from quicknote.backend.core.utils import utc_now_ms
from quicknote.backend.services.lifecycle import Clock, ExpiryUnit, compute_expires_at
from quicknote.cli.client import APIClient
from quicknote.cli.links import build_share_link, parse_share_link
from quicknote.crypto import EncryptedPayload, decrypt, encrypt, generate_link_key

logger = get_logger(__name__)

PASSWORD_ATTEMPTS = 3


async def create_note(
    client: APIClient,
    plaintext: str,
    *,
    password: str | None = None,
    expire_value: int | None = None,
    expire_unit: ExpiryUnit | str = ExpiryUnit.HOURS,
    max_views: int | None = None,
    delete_after_first_view: bool = False,
    base_url: str | None = None,
    clock: Clock = utc_now_ms,
) -> str:
    """
    Encrypt and submit a note.

    Without a password a random link key is generated and placed in the
    link fragment.

    Returns:
        Share link for the recipient
    """
    if password is not None:
        key = None
        payload = encrypt(plaintext, password, password=True)
    else:
        key = generate_link_key()
        payload = encrypt(plaintext, key, password=False)

    body: dict[str, Any] = {
        "ciphertext": payload.ciphertext,
        "iv": payload.iv,
        "salt": payload.salt,
        "has_password": payload.has_password,
        "delete_after_first_view": delete_after_first_view,
    }
    if expire_value is not None:
        body["expires_at"] = compute_expires_at(expire_value, expire_unit, clock())
    if max_views is not None:
        body["max_views"] = max_views

    note_id = await client.create_note(body)
    log_with_source(
        logger, "cli", "info", "Note created",
        note_id=note_id, has_password=payload.has_password,
    )

    if base_url is None:
        base_url = get_app_config().application.public_base_url
    return build_share_link(base_url, note_id, key)


async def open_note(
    client: APIClient,
    link: str,
    password_prompt: Callable[[], str],
    attempts: int = PASSWORD_ATTEMPTS,
) -> str:
    """
    Fetch, decrypt and confirm a note.

    Password notes ask password_prompt up to `attempts` times against the
    one fetched payload. The view is confirmed only after a successful
    decrypt.

    Raises:
        NotFoundError: Note absent, expired or exhausted
        DecryptionError: Wrong key or password after all attempts
        ValidationError: Malformed link, or link-key note without a key
    """
    note_id, key = parse_share_link(link)
    note = await client.get_note(note_id)
    payload = EncryptedPayload(
        ciphertext=note["ciphertext"],
        iv=note["iv"],
        salt=note.get("salt"),
    )

    if note["has_password"]:
        plaintext = _decrypt_with_prompt(payload, password_prompt, attempts)
    else:
        if not key:
            raise ValidationError("Link is missing its key")
        plaintext = decrypt(payload, key)

    await client.confirm_view(note_id)
    log_with_source(logger, "cli", "info", "Note opened", note_id=note_id)
    return plaintext


def _decrypt_with_prompt(
    payload: EncryptedPayload,
    password_prompt: Callable[[], str],
    attempts: int,
) -> str:
    for attempt in range(1, attempts + 1):
        try:
            return decrypt(payload, password_prompt())
        except DecryptionError:
            log_with_source(logger, "cli", "warning", "Wrong password", attempt=attempt)
            if attempt == attempts:
                raise
    raise DecryptionError("No password attempts allowed")
