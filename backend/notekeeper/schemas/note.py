"""
NoteKeeper — Pydantic Schemas
=============================

What:  Pydantic models for the note records exchanged with the GraphQL API,
       the form data the view consumes, and the JSON API contract.
Why:   The remote schema is owned elsewhere; these models read its fields by
       name (camelCase on the wire, snake_case in Python) and nothing more.
How:   Aliases map wire names; `populate_by_name` lets tests and code build
       models with either spelling.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Domain Records — What the GraphQL API returns
# ══════════════════════════════════════════════════════════════════════════


class Note(BaseModel):
    """
    What:  One note as returned by listNotes / createNote.
    Why mutable: The view replaces `image` (a storage key) with a resolved
           URL in place after fetching.
    """
    id: str = Field(description="Identifier assigned by the backend")
    name: str = Field(description="Note name; doubles as the image storage key")
    description: str = Field(default="", description="Note description")
    image: Optional[str] = Field(
        default=None,
        description="Storage key of the attached image, or its resolved URL once displayed",
    )
    created_at: Optional[str] = Field(
        default=None,
        alias="createdAt",
        description="ISO-8601 creation timestamp assigned by the backend",
    )
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")

    model_config = {"populate_by_name": True}


class CreateNoteInput(BaseModel):
    """
    What:  Variables for the createNote mutation (`{input: ...}`).
    image: Name of the uploaded file, None when no file was attached.
    """
    name: str
    description: str
    image: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Form Data — What the view receives from a submitted form
# ══════════════════════════════════════════════════════════════════════════


class ImageUpload(BaseModel):
    """An attached file, already read into memory."""
    filename: str
    content: bytes
    content_type: Optional[str] = None


class NoteForm(BaseModel):
    """
    What:  The creation form after submission.
    How:   Required-field checks happen in the browser (`required` inputs)
           and in FastAPI's form parsing; this model trusts its values.
    """
    name: str
    description: str
    image: Optional[ImageUpload] = None


# ══════════════════════════════════════════════════════════════════════════
# JSON API Responses
# ══════════════════════════════════════════════════════════════════════════


class NoteListResponse(BaseModel):
    """Returned by GET /api/notes: the view's list after a fresh fetch."""
    notes: List[Note] = Field(description="Notes with image keys resolved to URLs")
    total_count: int = Field(description="Number of notes in the list")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "upstream_error",
            "message": "The notes API request failed",
            "details": null,
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    graphql: str = Field(description="GraphQL endpoint: reachable, unreachable")
    storage: str = Field(description="Object storage: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
