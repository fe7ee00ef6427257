"""
Note Service.

Access façade for notes. The only operations the HTTP layer calls:

    submit(data)        -> id          create a note from client ciphertext
    retrieve(id)        -> Note        fetch a readable note (NotFoundError otherwise)
    record_view(id)     -> bool        count a delivered view (no-op when dead)

Encryption happens before this boundary and decryption after it.
"""

import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from quicknote.backend.core.config_schema import NotesSchema
from quicknote.backend.core.exceptions import (
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from quicknote.backend.core.utils import utc_now_ms
from quicknote.backend.models.note import Note
from quicknote.backend.repositories.note import NoteRepository
from quicknote.backend.schemas.note import NoteCreate
from quicknote.backend.services.base import BaseService
from quicknote.backend.services.lifecycle import UNIT_MILLIS, Clock, ExpiryUnit, NoteLifecycle

NOTE_UNAVAILABLE = "Note unavailable"
NOTE_NOT_SAVED = "Could not save the note."


class NoteService(BaseService):
    """
    Service for note creation, retrieval and view accounting.

    Args:
        session: Database session
        settings: Limits from notes.yaml (loaded from config when omitted)
        clock: Returns the current time in epoch milliseconds
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: NotesSchema | None = None,
        clock: Clock = utc_now_ms,
    ) -> None:
        super().__init__(session)
        if settings is None:
            from quicknote.backend.core.config import get_app_config

            settings = get_app_config().notes
        self.settings = settings
        self.clock = clock
        self.repo = NoteRepository(session)
        self.lifecycle = NoteLifecycle(
            self.repo,
            clock=clock,
            collect_on_fetch=settings.collect_on_fetch,
        )

    def _validate(self, data: NoteCreate) -> None:
        """Business rules the schema cannot express."""
        if data.has_password != (data.salt is not None):
            raise ValidationError(
                "Salt must be present if and only if the note has a password",
                details={"has_password": data.has_password, "salt_present": data.salt is not None},
            )

        if len(data.ciphertext) > self.settings.max_ciphertext_length:
            raise ValidationError(
                "Note is too large",
                details={"ciphertext": f"Maximum length is {self.settings.max_ciphertext_length}"},
            )

        if data.max_views is not None and data.max_views > self.settings.max_views_limit:
            raise ValidationError(
                "Too many views requested",
                details={"max_views": f"Maximum is {self.settings.max_views_limit}"},
            )

        if data.expires_at is not None:
            now = self.clock()
            if data.expires_at <= now:
                raise ValidationError(
                    "Expiry must be in the future",
                    details={"expires_at": data.expires_at},
                )
            limit = now + self.settings.max_expiry_days * UNIT_MILLIS[ExpiryUnit.DAYS]
            if data.expires_at > limit:
                raise ValidationError(
                    "Expiry is too far in the future",
                    details={"expires_at": f"Maximum is {self.settings.max_expiry_days} days"},
                )

    async def _new_id(self) -> str:
        """Generate an id not used by any stored note."""
        for _ in range(self.settings.id_attempts):
            candidate = secrets.token_urlsafe(self.settings.id_bytes)
            taken = await self._execute_db_operation(
                "check_note_id",
                self.repo.exists(candidate),
            )
            if not taken:
                return candidate
        self._logger.error(
            "Note id space exhausted",
            extra={"attempts": self.settings.id_attempts},
        )
        raise PersistenceError(NOTE_NOT_SAVED)

    async def submit(self, data: NoteCreate) -> str:
        """
        Store a new note.

        Args:
            data: Ciphertext and policy from the client

        Returns:
            The new note id

        Raises:
            ValidationError: If the payload breaks a creation rule
            PersistenceError: If the note could not be stored
        """
        self._validate(data)

        max_views = 1 if data.delete_after_first_view else data.max_views
        note_id = await self._new_id()

        try:
            note = await self._execute_db_operation(
                "create_note",
                self.repo.insert(
                    id=note_id,
                    ciphertext=data.ciphertext,
                    iv=data.iv,
                    salt=data.salt,
                    has_password=data.has_password,
                    expires_at=data.expires_at,
                    max_views=max_views,
                    views_count=0,
                    delete_after_first_view=data.delete_after_first_view,
                    created_at=self.clock(),
                ),
            )
        except (ConflictError, PersistenceError) as e:
            raise PersistenceError(NOTE_NOT_SAVED) from e

        self._log_operation(
            "Note created",
            note_id=note.id,
            has_password=note.has_password,
            expires_at=note.expires_at,
            max_views=note.max_views,
        )
        return note.id

    async def retrieve(self, note_id: str) -> Note:
        """
        Get a readable note.

        Absent, expired and exhausted notes all raise the same error, and so
        does a store failure.

        Raises:
            NotFoundError: If the note cannot be delivered
        """
        try:
            note = await self._execute_db_operation(
                "fetch_note",
                self.lifecycle.fetch(note_id),
            )
        except PersistenceError as e:
            await self.session.rollback()
            raise NotFoundError(NOTE_UNAVAILABLE) from e
        if note is None:
            raise NotFoundError(NOTE_UNAVAILABLE)
        return note

    async def record_view(self, note_id: str) -> bool:
        """
        Count a view after the client has shown decrypted content.

        Safe to call for notes that are gone or no longer readable. A store
        failure counts nothing.

        Returns:
            True if the view was counted
        """
        try:
            counted = await self._execute_db_operation(
                "record_view",
                self.lifecycle.consume_view(note_id),
            )
        except PersistenceError:
            await self.session.rollback()
            return False
        if counted:
            self._log_debug("View counted", note_id=note_id)
        return counted

    async def collect_garbage(self) -> int:
        """Delete every dead note. Returns the number deleted."""
        return await self._execute_db_operation(
            "collect_garbage",
            self.lifecycle.collect_garbage(),
        )
