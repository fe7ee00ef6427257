"""
Note Schemas.

Pydantic schemas for note API request/response validation.
The server only ever sees ciphertext; these schemas carry no plaintext.
"""

from pydantic import BaseModel, ConfigDict, Field

HEX_PATTERN = r"^[0-9a-fA-F]+$"


class NoteCreate(BaseModel):
    """Schema for creating a new note from client-side ciphertext."""

    ciphertext: str = Field(
        ...,
        min_length=1,
        description="Base64 AES-GCM ciphertext",
    )
    iv: str = Field(
        ...,
        min_length=24,
        max_length=24,
        pattern=HEX_PATTERN,
        description="Hex-encoded 12-byte IV",
    )
    salt: str | None = Field(
        default=None,
        min_length=2,
        max_length=128,
        pattern=HEX_PATTERN,
        description="Hex-encoded key derivation salt (password notes only)",
    )
    has_password: bool = Field(
        default=False,
        description="Whether the key is derived from a password",
    )
    expires_at: int | None = Field(
        default=None,
        gt=0,
        description="Absolute expiry time in epoch milliseconds",
    )
    max_views: int | None = Field(
        default=None,
        ge=1,
        description="Number of views allowed; omit for unlimited",
    )
    delete_after_first_view: bool = Field(
        default=False,
        description="Make the note unreadable after its first view",
    )

    model_config = ConfigDict(extra="forbid")


class NoteCreated(BaseModel):
    """Schema returned after a note is stored."""

    id: str = Field(description="Note identifier used in the share link")


class NoteResponse(BaseModel):
    """Schema for a readable note in API responses."""

    id: str = Field(description="Note unique identifier")
    ciphertext: str = Field(description="Base64 AES-GCM ciphertext")
    iv: str = Field(description="Hex-encoded IV")
    salt: str | None = Field(description="Hex-encoded salt for password notes")
    has_password: bool = Field(description="Whether a password is needed to decrypt")
    expires_at: int | None = Field(description="Expiry time in epoch milliseconds")
    max_views: int | None = Field(description="View ceiling, null when unlimited")
    views_count: int = Field(description="Views already delivered")
    views_remaining: int | None = Field(description="Views left, null when unlimited")
    delete_after_first_view: bool = Field(description="Burn after first view")
    created_at: int = Field(description="Creation time in epoch milliseconds")

    model_config = ConfigDict(from_attributes=True)
