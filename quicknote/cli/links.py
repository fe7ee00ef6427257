"""
Share links.

    https://<host>/n/<id>          password mode
    https://<host>/n/<id>#<key>    link-key mode

The key travels only in the fragment, which HTTP clients never send.
"""

from urllib.parse import urlsplit

from quicknote.backend.core.exceptions import ValidationError

LINK_PATH_PREFIX = "/n/"


def build_share_link(base_url: str, note_id: str, key: str | None = None) -> str:
    """Compose the link handed to the recipient."""
    link = f"{base_url.rstrip('/')}{LINK_PATH_PREFIX}{note_id}"
    if key:
        link = f"{link}#{key}"
    return link


def parse_share_link(link: str) -> tuple[str, str | None]:
    """
    Split a share link into (note_id, key).

    A bare id, optionally followed by #key, is accepted as well. The key is
    None for password-mode links.

    Raises:
        ValidationError: If no note id can be found
    """
    parts = urlsplit(link.strip())
    path = parts.path

    if parts.scheme or parts.netloc:
        if not path.startswith(LINK_PATH_PREFIX):
            raise ValidationError("Not a note link")
        path = path[len(LINK_PATH_PREFIX):]

    note_id = path.strip("/")
    if not note_id or "/" in note_id:
        raise ValidationError("Not a note link")

    return note_id, parts.fragment or None
