"""
NoteKeeper — Custom Exception Hierarchy
=======================================

What:  Application-specific exceptions for the few ways a request can fail.
Why:   Gateways translate transport and SDK errors into these types so the
       global handlers in main.py can map them to status codes without every
       route carrying its own try/except.
How:   Each exception class carries a message and optional context dict.
Who:   Raised by gateways, the session layer and routes; caught by global handlers.
When:  During request processing. The view never catches them: a failed
       remote call aborts the operation that issued it.

Exception Hierarchy:
    NoteKeeperError (base)
    ├── ValidationError       → 400 Bad Request
    ├── AuthenticationError   → 401 Unauthorized (HTML: redirect to sign-in)
    ├── NotFoundError         → 404 Not Found
    ├── GraphQLError          → 502 Bad Gateway
    └── ObjectStorageError    → 502 Bad Gateway
"""

from typing import Any, Dict, List, Optional


class NoteKeeperError(Exception):
    """
    Base exception for all NoteKeeper application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NoteKeeperError):
    """
    Raised when client input cannot be used as given.

    When:    A storage key escapes the local storage root, a sign-in form
             arrives without credentials.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(NoteKeeperError):
    """
    Raised when there is no usable identity for the request.

    When:    Wrong credentials at sign-in, an unsupported sign-in challenge,
             an expired refresh token, or the GraphQL endpoint answering 401/403.
    HTTP:    401 Unauthorized; browser requests are redirected to the sign-in page.
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(NoteKeeperError):
    """
    Raised when a requested resource does not exist.

    When:    DELETE /api/notes/{id} for a note the session has never seen and
             no name was given, GET /files/{key} for a missing blob.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class GraphQLError(NoteKeeperError):
    """
    Raised when a GraphQL request fails.

    What:    The endpoint was unreachable, answered with a non-2xx status,
             returned an `errors` array, or returned no `data`.
    HTTP:    502 Bad Gateway

    Why no retry:
        Each operation is issued exactly once. The caller sees the failure
        of the first attempt.
    """

    def __init__(
        self,
        message: str = "The notes API request failed",
        operation: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        if errors:
            ctx["errors"] = errors
        if status_code:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.operation = operation
        self.errors = errors or []
        self.status_code = status_code


class ObjectStorageError(NoteKeeperError):
    """
    Raised when an object storage operation fails.

    What:    Could not write, sign, or delete a blob.
    When:    Missing bucket, denied credentials, disk full, I/O error.
    HTTP:    502 Bad Gateway
    """

    def __init__(
        self,
        message: str = "Object storage operation failed",
        key: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if key:
            ctx["key"] = key
        super().__init__(message=message, context=ctx)
        self.key = key
