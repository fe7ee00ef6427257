"""
Notes API Endpoints.

createNote, getNote and confirmView for the client. Requests carry
ciphertext only; the link key lives in the URL fragment and never
reaches these endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Path, Response

from quicknote.backend.core.dependencies import DbSession, NotesSettings, RequestId
from quicknote.backend.schemas.base import ApiResponse, ResponseMetadata
from quicknote.backend.schemas.note import NoteCreate, NoteCreated, NoteResponse
from quicknote.backend.services.note import NoteService

router = APIRouter()

NoteId = Annotated[str, Path(min_length=1, max_length=64, description="Note identifier")]


@router.post(
    "",
    response_model=ApiResponse[NoteCreated],
    status_code=201,
    summary="Create a note",
    description="Store client-side encrypted note content with its expiry policy.",
)
async def create_note(
    data: NoteCreate,
    db: DbSession,
    settings: NotesSettings,
    request_id: RequestId,
) -> ApiResponse[NoteCreated]:
    """Create a new note."""
    service = NoteService(db, settings=settings)
    note_id = await service.submit(data)
    return ApiResponse(
        data=NoteCreated(id=note_id),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Get a note",
    description="Get ciphertext and metadata of a readable note. Does not count a view.",
)
async def get_note(
    db: DbSession,
    settings: NotesSettings,
    request_id: RequestId,
    note_id: NoteId,
) -> ApiResponse[NoteResponse]:
    """Get a note by ID."""
    service = NoteService(db, settings=settings)
    note = await service.retrieve(note_id)
    return ApiResponse(
        data=NoteResponse.model_validate(note),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "/{note_id}/views",
    status_code=204,
    summary="Confirm a view",
    description="Count one view after the content was decrypted and shown.",
)
async def confirm_view(
    db: DbSession,
    settings: NotesSettings,
    note_id: NoteId,
) -> Response:
    """Record a delivered view. Always 204, even for dead notes."""
    service = NoteService(db, settings=settings)
    await service.record_view(note_id)
    return Response(status_code=204)
