"""
NoteKeeper — Authenticator Middleware
=====================================

What:  Puts every page and API route behind a session.
How:   Reads the signed session cookie, resolves it through the session store
       and attaches the UserSession to request.state.user_session.

Without a valid session:
    AUTH_ENABLED=true   HTML routes → 303 to /auth/sign-in?next=<path>
                        /api/ routes → 401 JSON
    AUTH_ENABLED=false  an anonymous session is created and its cookie set
                        on the response (local development, API_KEY mode)

Exempt paths never need a session: /health, /auth/sign-in and the API docs.
"""

import logging
from urllib.parse import quote

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response

from notekeeper.config import settings
from notekeeper.middleware.request_id import request_id_var
from notekeeper.services.session_store import ANONYMOUS_USER, session_store

logger = logging.getLogger(__name__)

EXEMPT_PATHS = {"/health", "/auth/sign-in", "/docs", "/redoc", "/openapi.json"}

SIGN_IN_PATH = "/auth/sign-in"


def is_api_request(request: Request) -> bool:
    """API routes answer in JSON; everything else is a page."""
    return request.url.path.startswith("/api/")


def sign_in_redirect(request: Request) -> RedirectResponse:
    """303 to the sign-in page, returning to the current page afterwards."""
    target = request.url.path
    if request.method != "GET":
        target = "/"
    elif request.url.query:
        target = f"{target}?{request.url.query}"
    return RedirectResponse(url=f"{SIGN_IN_PATH}?next={quote(target, safe='/')}", status_code=303)


def set_session_cookie(response: Response, cookie_value: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=cookie_value,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


class AuthenticatorMiddleware(BaseHTTPMiddleware):
    """Resolves the session cookie; gates routes that need one."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        cookie_value = request.cookies.get(settings.session_cookie_name, "")
        session = session_store.from_cookie(cookie_value)
        request.state.user_session = session

        if session is not None or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        if not settings.auth_enabled:
            session = session_store.create(ANONYMOUS_USER)
            request.state.user_session = session
            response = await call_next(request)
            set_session_cookie(response, session_store.sign(session.session_id))
            return response

        logger.debug("No session for %s %s", request.method, request.url.path)
        if is_api_request(request):
            return JSONResponse(
                status_code=401,
                content={
                    "error": "authentication_required",
                    "message": "Sign in to continue.",
                    "details": None,
                    "request_id": request_id_var.get(""),
                },
            )
        return sign_in_redirect(request)
