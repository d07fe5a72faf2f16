"""
NoteKeeper — Notes View (per-session page state)
================================================

What:  The state and handlers behind the notes page: the list of notes
       currently displayed, and the three actions that change it.
Why:   Each signed-in browser owns one NotesView for the lifetime of its
       session, the way a single-page app owns its component state.
How:   Composes the GraphQL gateway (NotesAPI) and the object storage
       gateway; holds nothing but `notes`.
Who:   Created by the session store; driven by the view and API routes.

Flows:
    fetch_notes:  listNotes ──▶ storage.get(name) for every note with an
                  image (concurrently) ──▶ replace `notes`
    create_note:  [storage.put(name, blob)] ──▶ createNote ──▶ fetch_notes
    delete_note:  drop from `notes` ──▶ storage.remove(name) ──▶ deleteNote

Consistency:
    - URL resolution is all-or-nothing: one failing storage.get fails the
      whole fetch and `notes` keeps its previous value.
    - Deletion is optimistic and never rolled back: if storage.remove or
      deleteNote fails, the note stays hidden until the next fetch shows it.
    - Overlapping calls on one view race; the last list assigned wins.
"""

import asyncio
import logging
import re
from datetime import datetime, timezone, tzinfo
from typing import Awaitable, Callable, List, Optional

from notekeeper.schemas.note import CreateNoteInput, Note, NoteForm
from notekeeper.services.notes_api import NotesAPI
from notekeeper.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[Optional[str]]]

INVALID_DATE = "Invalid Date"

ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
# Unpadded month/day ("2024-1-5") and fractions of any length (".1", ".1234567")
LOOSE_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?=$|[T ])")
FRACTION = re.compile(r"\.(\d+)(?=$|[+-])")


def _normalize_iso(raw: str) -> str:
    """Rewrite loose ISO forms into ones datetime.fromisoformat accepts on 3.10."""
    raw = LOOSE_DATE.sub(lambda m: f"{m[1]}-{int(m[2]):02d}-{int(m[3]):02d}", raw, count=1)
    return FRACTION.sub(lambda m: "." + m[1][:6].ljust(6, "0"), raw, count=1)


def parse_date(value: Optional[str], tz: Optional[tzinfo] = None) -> str:
    """
    Format an ISO-8601 timestamp as a short human-readable date.

    Output shape: "Mon Jan 15 2024" (weekday, month, zero-padded day, year).

    Args:
        value: ISO date or date-time string, e.g. "2024-01-15T12:00:00.000Z".
               ISO date-only strings are read as UTC midnight; unpadded
               dates ("2024-1-5") and date-times without an offset as local time.
        tz: Timezone to render in. Defaults to the server's local timezone.

    Returns:
        The formatted date, or "Invalid Date" for missing/unparsable input.
    """
    if not value:
        return INVALID_DATE

    raw = value.strip()
    date_only = ISO_DATE.fullmatch(raw) is not None
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(_normalize_iso(raw))
    except ValueError:
        return INVALID_DATE

    if parsed.tzinfo is None:
        if date_only:
            parsed = parsed.replace(tzinfo=timezone.utc)
        else:
            parsed = parsed.astimezone()

    return parsed.astimezone(tz).strftime("%a %b %d %Y")


class NotesView:
    """
    One browser session's notes page.

    Attributes:
        notes: The list currently displayed, in backend order. Replaced
               wholesale by fetch_notes, filtered in place by delete_note.
    """

    def __init__(
        self,
        api: NotesAPI,
        storage: ObjectStorage,
        token_provider: Optional[TokenProvider] = None,
    ):
        """
        Args:
            api: GraphQL gateway
            storage: Object storage gateway
            token_provider: Async callable returning the session's current
                access token (None when the API uses an API key)
        """
        self.api = api
        self.storage = storage
        self._token_provider = token_provider
        self.notes: List[Note] = []

    async def _token(self) -> Optional[str]:
        if self._token_provider is None:
            return None
        return await self._token_provider()

    async def fetch_notes(self) -> List[Note]:
        """
        Load every note and resolve image keys to fetchable URLs.

        Raises:
            Whatever the gateways raise. `notes` is only replaced after the
            list and every URL resolution succeeded.
        """
        notes_from_api = await self.api.list_notes(auth_token=await self._token())

        async def resolve_image(note: Note) -> Note:
            if note.image:
                note.image = await self.storage.get(note.name)
            return note

        await asyncio.gather(*(resolve_image(note) for note in notes_from_api))

        self.notes = notes_from_api
        logger.info("Fetched %d notes", len(self.notes))
        return self.notes

    async def create_note(self, form: NoteForm) -> Note:
        """
        Upload the optional image, create the note, then refresh the list.

        The create input's `image` is the uploaded file's name; the blob
        itself is stored under the note's name.
        """
        image = form.image if form.image and form.image.filename else None
        data = CreateNoteInput(
            name=form.name,
            description=form.description,
            image=image.filename if image else None,
        )

        if data.image:
            await self.storage.put(data.name, image.content, content_type=image.content_type)

        created = await self.api.create_note(data, auth_token=await self._token())
        logger.info("Created note %s (%s)", created.id, created.name)

        await self.fetch_notes()
        return created

    async def delete_note(self, note_id: str, name: str) -> None:
        """
        Remove a note from the page, then from storage, then from the API.

        The local list is updated before the first await.
        """
        self.notes = [note for note in self.notes if note.id != note_id]

        await self.storage.remove(name)
        await self.api.delete_note(note_id, auth_token=await self._token())
        logger.info("Deleted note %s (%s)", note_id, name)

    def find_note(self, note_id: str) -> Optional[Note]:
        """The displayed note with this id, if any."""
        for note in self.notes:
            if note.id == note_id:
                return note
        return None
