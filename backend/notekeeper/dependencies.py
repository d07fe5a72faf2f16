"""
NoteKeeper — Route Dependencies
===============================

What:  FastAPI dependencies that hand routes the current session, its view,
       and a parsed note form.
Why:   AuthenticatorMiddleware has already resolved the session; routes only
       need to read it off request.state.
"""

from typing import Optional

from fastapi import Depends, Request
from starlette.datastructures import UploadFile

from notekeeper.exceptions import AuthenticationError
from notekeeper.schemas.note import ImageUpload, NoteForm
from notekeeper.services.notes_view import NotesView
from notekeeper.services.session_store import UserSession


def get_user_session(request: Request) -> UserSession:
    """The request's session; AuthenticationError when there is none."""
    session: Optional[UserSession] = getattr(request.state, "user_session", None)
    if session is None:
        raise AuthenticationError(message="Sign in to continue.")
    return session


def get_notes_view(session: UserSession = Depends(get_user_session)) -> NotesView:
    return session.view


async def read_note_form(request: Request, name: str, description: str) -> NoteForm:
    """
    Build a NoteForm from a submitted multipart form.

    An empty file input arrives as an upload with no filename; that is
    "no image", not an empty one.
    """
    form = await request.form()
    upload = form.get("image")

    image = None
    if isinstance(upload, UploadFile) and upload.filename:
        image = ImageUpload(
            filename=upload.filename,
            content=await upload.read(),
            content_type=upload.content_type,
        )

    return NoteForm(name=name, description=description, image=image)
