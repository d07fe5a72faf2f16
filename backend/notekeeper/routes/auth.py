"""
NoteKeeper — Sign-in / Sign-out Routes
======================================

What:  The sign-in form, its submit handler, and the sign-out action.
How:   Credentials go straight to Cognito (CognitoAuthService); on success a
       session is created and its signed id set as an HttpOnly cookie.

With AUTH_ENABLED=false there is nothing to sign in to: the sign-in page
redirects to the notes page, and sign-out just starts a new anonymous session.
"""

import logging

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from notekeeper.config import settings
from notekeeper.exceptions import AuthenticationError
from notekeeper.middleware.auth import SIGN_IN_PATH, set_session_cookie
from notekeeper.services.auth_service import cognito_auth
from notekeeper.services.session_store import session_store
from notekeeper.templating import templates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def safe_next(target: str | None) -> str:
    """Only same-site relative paths are followed after sign-in."""
    if not target or not target.startswith("/") or target.startswith("//"):
        return "/"
    return target


@router.get("/sign-in", response_class=HTMLResponse)
async def sign_in_page(request: Request, next: str = "/"):
    if not settings.auth_enabled:
        return RedirectResponse(safe_next(next), status_code=303)
    return templates.TemplateResponse(request, "sign_in.html", {
        "next": safe_next(next),
        "error": None,
        "username": None,
    })


@router.post("/sign-in")
async def sign_in(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    next: str = Form("/"),
):
    """
    Exchange credentials for tokens and start a session.

    Rejected credentials re-render the form with the provider's message
    and status 401; other provider failures go to the global handlers.
    """
    if not settings.auth_enabled:
        return RedirectResponse(safe_next(next), status_code=303)

    try:
        tokens = await cognito_auth.sign_in(username, password)
    except AuthenticationError as e:
        logger.info("Sign-in rejected for %s: %s", username, e.message)
        return templates.TemplateResponse(
            request,
            "sign_in.html",
            {"next": safe_next(next), "error": e.message, "username": username},
            status_code=401,
        )

    previous = getattr(request.state, "user_session", None)
    if previous is not None:
        session_store.discard(previous.session_id)

    session = session_store.create(username, tokens)
    response = RedirectResponse(safe_next(next), status_code=303)
    set_session_cookie(response, session_store.sign(session.session_id))
    return response


@router.post("/sign-out")
async def sign_out(request: Request):
    """Drop the local session; revoke tokens globally when configured."""
    session = getattr(request.state, "user_session", None)
    if session is not None:
        await cognito_auth.sign_out(session.tokens)
        session_store.discard(session.session_id)
        logger.info("User %s signed out", session.username)

    target = SIGN_IN_PATH if settings.auth_enabled else "/"
    response = RedirectResponse(target, status_code=303)
    response.delete_cookie(settings.session_cookie_name)
    return response
