"""
NoteKeeper — Notes Page
=======================

What:  The server-rendered notes page and its two form actions.

Flow:
    GET  /                   mount: fetch_notes, render index.html
    POST /notes              create_note, 303 → /  (re-mount, fresh form)
    POST /notes/{id}/delete  delete_note, 303 → /

The redirect after each action re-runs the page load, so the list shown
after a create or delete always comes from a fresh listNotes.
"""

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from notekeeper.dependencies import get_notes_view, get_user_session, read_note_form
from notekeeper.services.notes_view import NotesView
from notekeeper.services.session_store import ANONYMOUS_USER, UserSession
from notekeeper.templating import templates

router = APIRouter(tags=["Page"])


@router.get("/", response_class=HTMLResponse)
async def notes_page(request: Request, session: UserSession = Depends(get_user_session)):
    notes = await session.view.fetch_notes()
    return templates.TemplateResponse(request, "index.html", {
        "notes": notes,
        "username": None if session.username == ANONYMOUS_USER else session.username,
    })


@router.post("/notes")
async def create_note(
    request: Request,
    name: str = Form(...),
    description: str = Form(...),
    view: NotesView = Depends(get_notes_view),
):
    form = await read_note_form(request, name, description)
    await view.create_note(form)
    return RedirectResponse("/", status_code=303)


@router.post("/notes/{note_id}/delete")
async def delete_note(
    note_id: str,
    name: str = Form(...),
    view: NotesView = Depends(get_notes_view),
):
    await view.delete_note(note_id, name)
    return RedirectResponse("/", status_code=303)
