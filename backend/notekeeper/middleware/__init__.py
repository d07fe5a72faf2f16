# Middleware package init
"""
NoteKeeper — Middleware Package
===============================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [CORS] → [GZip] → [Request ID] → [Logging] → [Authenticator] → Route

    1. Request ID: correlation ID for every log line of the request
    2. Logging: method, path, status and duration, tagged with the request ID
    3. Authenticator: resolves the session cookie to a UserSession, or
       redirects/rejects when there is none

    Starlette applies add_middleware() calls in reverse, so main.py adds
    them innermost first.
"""
