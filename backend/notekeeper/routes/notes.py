"""
NoteKeeper — Notes JSON API
===========================

What:  JSON counterpart of the notes page, driving the same per-session
       NotesView: list, create (multipart) and delete. Also serves blobs of
       the local storage backend.
Why:   Scripts and tests can exercise the view without parsing HTML.
How:   Every handler delegates to the session's NotesView; failures reach
       the global exception handlers unchanged.
"""

import logging

from fastapi import APIRouter, Depends, Form, Query, Request, Response
from fastapi.responses import FileResponse

from notekeeper.dependencies import get_notes_view, read_note_form
from notekeeper.exceptions import NotFoundError
from notekeeper.schemas.note import ErrorResponse, Note, NoteListResponse
from notekeeper.services.notes_view import NotesView
from notekeeper.services.storage import LocalObjectStorage, object_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notes"])
files_router = APIRouter(tags=["Files"])


@router.get(
    "/notes",
    response_model=NoteListResponse,
    responses={
        200: {"description": "The session's notes after a fresh fetch", "model": NoteListResponse},
        502: {"description": "GraphQL or storage failure", "model": ErrorResponse},
    },
    summary="Fetch and list notes",
)
async def list_notes(view: NotesView = Depends(get_notes_view)) -> NoteListResponse:
    """
    Re-fetch the list (as a page load does) and return it.

    Image fields hold resolved URLs, not storage keys.
    """
    notes = await view.fetch_notes()
    return NoteListResponse(notes=notes, total_count=len(notes))


@router.post(
    "/notes",
    response_model=Note,
    status_code=201,
    responses={
        201: {"description": "Note created", "model": Note},
        502: {"description": "GraphQL or storage failure", "model": ErrorResponse},
    },
    summary="Create a note",
    description="Multipart form: `name`, `description` and an optional `image` file.",
)
async def create_note(
    request: Request,
    name: str = Form(...),
    description: str = Form(...),
    view: NotesView = Depends(get_notes_view),
) -> Note:
    form = await read_note_form(request, name, description)
    return await view.create_note(form)


@router.delete(
    "/notes/{note_id}",
    status_code=204,
    responses={
        204: {"description": "Note deleted"},
        404: {"description": "Unknown note and no name given", "model": ErrorResponse},
        502: {"description": "GraphQL or storage failure", "model": ErrorResponse},
    },
    summary="Delete a note",
)
async def delete_note(
    note_id: str,
    name: str | None = Query(
        default=None,
        description="Note name (storage key). Looked up in the session's list when omitted.",
    ),
    view: NotesView = Depends(get_notes_view),
) -> Response:
    """
    Delete a note and its image blob.

    The blob is keyed by name, so the name must be known: either passed
    explicitly or taken from the note as last fetched by this session.
    """
    if name is None:
        note = view.find_note(note_id)
        if note is None:
            raise NotFoundError(resource="Note", resource_id=note_id)
        name = note.name

    await view.delete_note(note_id, name)
    return Response(status_code=204)


@files_router.get(
    "/files/{object_key:path}",
    summary="Serve a blob from local object storage",
    responses={
        200: {"description": "Image bytes"},
        404: {"description": "No such blob, or storage is not local"},
    },
)
async def serve_file(object_key: str) -> FileResponse:
    """
    Serve a blob written by the local storage backend.

    Only reachable with STORAGE_BACKEND=local; S3 images are fetched from
    presigned URLs and never pass through the app.
    """
    if not isinstance(object_storage, LocalObjectStorage):
        raise NotFoundError(resource="file", resource_id=object_key)
    # Only image blobs; nothing else under STORAGE_ROOT is published
    if not object_key.startswith(object_storage.prefix):
        raise NotFoundError(resource="file", resource_id=object_key)

    path = object_storage.path_for(object_key)
    if not path.is_file():
        raise NotFoundError(resource="file", resource_id=object_key)

    return FileResponse(
        path=str(path),
        media_type="application/octet-stream",
        headers={"Cache-Control": "private, no-cache"},
    )
