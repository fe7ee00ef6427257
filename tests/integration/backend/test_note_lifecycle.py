"""
Integration Tests for the note lifecycle.

NoteService against the test database with a controllable clock:
time expiry, view exhaustion, garbage collection and end-to-end
encrypt/store/decrypt scenarios.
"""

import pytest

from quicknote.backend.core.exceptions import DecryptionError, NotFoundError
from quicknote.backend.schemas.note import NoteCreate
from quicknote.backend.services.lifecycle import ExpiryUnit, NoteState
from quicknote.backend.services.note import NoteService
from quicknote.crypto import EncryptedPayload, decrypt, encrypt, generate_link_key


@pytest.fixture
def service(db_session, notes_settings, clock) -> NoteService:
    return NoteService(db_session, settings=notes_settings, clock=clock)


def note_create(payload: EncryptedPayload, **policy) -> NoteCreate:
    return NoteCreate(
        ciphertext=payload.ciphertext,
        iv=payload.iv,
        salt=payload.salt,
        has_password=payload.has_password,
        **policy,
    )


def payload_of(note) -> EncryptedPayload:
    return EncryptedPayload(ciphertext=note.ciphertext, iv=note.iv, salt=note.salt)


@pytest.fixture
def link_payload():
    key = generate_link_key()
    return key, encrypt("hello", key, password=False)


class TestTimeExpiry:
    """Notes stop being readable once expires_at has passed."""

    @pytest.mark.asyncio
    async def test_readable_before_and_gone_after(self, service, clock, link_payload):
        _, payload = link_payload
        note_id = await service.submit(note_create(payload, expires_at=clock() + 1000))
        start = clock()

        clock.now_ms = start + 500
        assert (await service.retrieve(note_id)).id == note_id

        clock.now_ms = start + 1001
        with pytest.raises(NotFoundError):
            await service.retrieve(note_id)

    @pytest.mark.asyncio
    async def test_expired_note_is_collected_on_fetch(self, service, clock, link_payload):
        _, payload = link_payload
        note_id = await service.submit(note_create(payload, expires_at=clock() + 1000))

        clock.advance(1001)
        with pytest.raises(NotFoundError):
            await service.retrieve(note_id)

        assert await service.repo.exists(note_id) is False

    @pytest.mark.asyncio
    async def test_relative_expiry(self, service, clock, link_payload):
        _, payload = link_payload
        expires_at = service.lifecycle.expires_at(1, ExpiryUnit.MINUTES)
        note_id = await service.submit(note_create(payload, expires_at=expires_at))

        clock.advance(60_000)
        assert await service.retrieve(note_id)

        clock.advance(1)
        with pytest.raises(NotFoundError):
            await service.retrieve(note_id)


class TestViewExhaustion:
    """Notes stop being readable once their views are used up."""

    @pytest.mark.asyncio
    async def test_delete_after_first_view(self, service, link_payload):
        _, payload = link_payload
        note_id = await service.submit(note_create(payload, delete_after_first_view=True))

        note = await service.retrieve(note_id)
        assert note.max_views == 1
        assert await service.record_view(note_id) is True

        with pytest.raises(NotFoundError):
            await service.retrieve(note_id)
        assert await service.record_view(note_id) is False

    @pytest.mark.asyncio
    async def test_fetch_alone_does_not_consume(self, service, link_payload):
        _, payload = link_payload
        note_id = await service.submit(note_create(payload, max_views=1))

        for _ in range(3):
            note = await service.retrieve(note_id)

        assert note.views_count == 0

    @pytest.mark.asyncio
    async def test_max_views(self, service, link_payload):
        _, payload = link_payload
        note_id = await service.submit(note_create(payload, max_views=3))

        for expected_remaining in (2, 1):
            await service.retrieve(note_id)
            await service.record_view(note_id)
            assert (await service.retrieve(note_id)).views_remaining == expected_remaining

        await service.record_view(note_id)
        with pytest.raises(NotFoundError):
            await service.retrieve(note_id)

    @pytest.mark.asyncio
    async def test_unavailable_looks_like_missing(self, service, link_payload):
        _, payload = link_payload
        note_id = await service.submit(note_create(payload, delete_after_first_view=True))
        await service.record_view(note_id)

        with pytest.raises(NotFoundError) as exhausted:
            await service.retrieve(note_id)
        with pytest.raises(NotFoundError) as missing:
            await service.retrieve("never-existed")

        assert exhausted.value.message == missing.value.message


class TestGarbageCollection:
    """Sweeps remove dead notes only and are idempotent."""

    @pytest.mark.asyncio
    async def test_collect_is_idempotent(self, service, clock, link_payload):
        _, payload = link_payload
        await service.submit(note_create(payload, expires_at=clock() + 10))
        await service.submit(note_create(payload, expires_at=clock() + 10))
        alive_id = await service.submit(note_create(payload))

        clock.advance(11)

        assert await service.collect_garbage() == 2
        assert await service.collect_garbage() == 0
        assert await service.repo.count() == 1
        assert await service.repo.exists(alive_id)

    @pytest.mark.asyncio
    async def test_state_of(self, service, clock, link_payload):
        _, payload = link_payload
        note_id = await service.submit(note_create(payload, expires_at=clock() + 10))

        state, _ = await service.lifecycle.state_of(note_id)
        assert state is NoteState.ALIVE

        clock.advance(11)
        state, _ = await service.lifecycle.state_of(note_id)
        assert state is NoteState.EXPIRED_BY_TIME

        state, note = await service.lifecycle.state_of("never-existed")
        assert state is NoteState.ABSENT
        assert note is None


class TestScenarios:
    """End-to-end encrypt, store, retrieve and decrypt."""

    @pytest.mark.asyncio
    async def test_link_key_unlimited(self, service, link_payload):
        """'hello' with a link key, no expiry, unlimited views."""
        key, payload = link_payload
        note_id = await service.submit(note_create(payload))

        for _ in range(5):
            note = await service.retrieve(note_id)
            assert decrypt(payload_of(note), key) == "hello"
            assert await service.record_view(note_id) is True

        assert (await service.retrieve(note_id)).views_count == 5

    @pytest.mark.asyncio
    async def test_password_with_one_minute_expiry(self, service, clock):
        """'secret' under 'p@ss', expiring after one minute."""
        payload = encrypt("secret", "p@ss")
        note_id = await service.submit(
            note_create(payload, expires_at=service.lifecycle.expires_at(1, "minutes"))
        )

        note = await service.retrieve(note_id)
        assert note.has_password is True
        assert note.salt is not None

        with pytest.raises(DecryptionError):
            decrypt(payload_of(note), "wrong")
        assert (await service.retrieve(note_id)).views_count == 0

        assert decrypt(payload_of(note), "p@ss") == "secret"
        assert await service.record_view(note_id) is True

        clock.advance(60_001)
        with pytest.raises(NotFoundError):
            await service.retrieve(note_id)

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, service, link_payload):
        _, payload = link_payload
        ids = {await service.submit(note_create(payload)) for _ in range(20)}
        assert len(ids) == 20
