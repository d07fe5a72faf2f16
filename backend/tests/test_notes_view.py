"""
NoteKeeper — NotesView Unit Tests
=================================

What:  Tests for the per-session page state: fetch, create, delete, and
       the date formatter used by the page.
How:   NotesView is wired to AsyncMock gateways (see conftest.py); no HTTP,
       no storage backend.

What we test:
    ✅ Only notes with an image key get a resolved URL
    ✅ Create without a file: no upload, create input image=None, list refresh
    ✅ Create with a file: upload keyed by name before createNote
    ✅ Delete: local removal before any awaited call, then storage, then API
    ✅ Failed fetch leaves the list untouched and propagates
    ✅ parse_date is deterministic for a fixed input and timezone
"""

from datetime import timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from notekeeper.exceptions import GraphQLError, ObjectStorageError
from notekeeper.schemas.note import CreateNoteInput, ImageUpload, Note, NoteForm
from notekeeper.services.notes_view import INVALID_DATE, NotesView, parse_date

FAKE_BUCKET_URL = "https://bucket.test/public/"


class TestFetchNotes:
    """Tests for fetch_notes (page mount)."""

    @pytest.mark.asyncio
    async def test_only_notes_with_images_are_resolved(self, notes_view, mock_storage):
        notes = await notes_view.fetch_notes()

        assert [n.id for n in notes] == ["abc", "def"]
        assert notes[0].image == f"{FAKE_BUCKET_URL}N1"
        assert notes[1].image is None
        mock_storage.get.assert_awaited_once_with("N1")

    @pytest.mark.asyncio
    async def test_fetch_replaces_list(self, notes_view):
        notes_view.notes = [Note(id="old", name="Old")]

        await notes_view.fetch_notes()

        assert [n.id for n in notes_view.notes] == ["abc", "def"]

    @pytest.mark.asyncio
    async def test_failed_list_keeps_empty_list_on_first_mount(self, notes_view, mock_api):
        mock_api.list_notes.side_effect = GraphQLError(message="boom", operation="ListNotes")

        with pytest.raises(GraphQLError):
            await notes_view.fetch_notes()

        assert notes_view.notes == []

    @pytest.mark.asyncio
    async def test_failed_list_keeps_previous_list(self, notes_view, mock_api):
        await notes_view.fetch_notes()
        previous = list(notes_view.notes)
        mock_api.list_notes.side_effect = GraphQLError(message="boom", operation="ListNotes")

        with pytest.raises(GraphQLError):
            await notes_view.fetch_notes()

        assert notes_view.notes == previous

    @pytest.mark.asyncio
    async def test_one_failed_resolution_fails_the_whole_fetch(self, notes_view, mock_api, mock_storage, sample_notes):
        sample_notes[1]["image"] = "other.png"
        mock_storage.get.side_effect = [
            "https://bucket.test/public/N1",
            ObjectStorageError(message="denied", key="public/N2"),
        ]

        with pytest.raises(ObjectStorageError):
            await notes_view.fetch_notes()

        assert notes_view.notes == []

    @pytest.mark.asyncio
    async def test_token_provider_passes_access_token(self, mock_api, mock_storage):
        view = NotesView(mock_api, mock_storage, token_provider=AsyncMock(return_value="tok-1"))

        await view.fetch_notes()

        mock_api.list_notes.assert_awaited_once_with(auth_token="tok-1")


class TestCreateNote:
    """Tests for create_note (form submit)."""

    @pytest.mark.asyncio
    async def test_create_without_file(self, notes_view, mock_api, mock_storage):
        created = await notes_view.create_note(NoteForm(name="N1", description="D1"))

        mock_api.create_note.assert_awaited_once_with(
            CreateNoteInput(name="N1", description="D1", image=None),
            auth_token=None,
        )
        assert mock_api.create_note.await_args.args[0].model_dump() == {
            "name": "N1", "description": "D1", "image": None,
        }
        mock_storage.put.assert_not_awaited()
        mock_api.list_notes.assert_awaited_once()
        assert created.id == "new"
        assert len(notes_view.notes) == 2

    @pytest.mark.asyncio
    async def test_create_with_file_uploads_before_create(self, notes_view, mock_api, mock_storage):
        calls = []
        mock_storage.put.side_effect = lambda *a, **kw: calls.append("put")
        mock_api.create_note.side_effect = lambda *a, **kw: calls.append("create") or Note(id="new", name="N1")

        form = NoteForm(
            name="N1",
            description="D1",
            image=ImageUpload(filename="pic.png", content=b"\x89PNG", content_type="image/png"),
        )
        await notes_view.create_note(form)

        mock_storage.put.assert_awaited_once_with("N1", b"\x89PNG", content_type="image/png")
        assert mock_api.create_note.await_args.args[0].image == "pic.png"
        assert calls == ["put", "create"]

    @pytest.mark.asyncio
    async def test_empty_filename_means_no_image(self, notes_view, mock_api, mock_storage):
        form = NoteForm(name="N1", description="D1", image=ImageUpload(filename="", content=b""))

        await notes_view.create_note(form)

        mock_storage.put.assert_not_awaited()
        assert mock_api.create_note.await_args.args[0].image is None

    @pytest.mark.asyncio
    async def test_failed_upload_skips_create(self, notes_view, mock_api, mock_storage):
        mock_storage.put.side_effect = ObjectStorageError(message="disk full", key="public/N1")
        form = NoteForm(
            name="N1",
            description="D1",
            image=ImageUpload(filename="pic.png", content=b"x"),
        )

        with pytest.raises(ObjectStorageError):
            await notes_view.create_note(form)

        mock_api.create_note.assert_not_awaited()


class TestDeleteNote:
    """Tests for delete_note (optimistic, no rollback)."""

    @pytest.mark.asyncio
    async def test_removed_locally_before_remote_calls(self, notes_view, mock_api, mock_storage):
        await notes_view.fetch_notes()
        seen_during_remove = []
        mock_storage.remove.side_effect = lambda key: seen_during_remove.extend(n.id for n in notes_view.notes)

        await notes_view.delete_note("abc", "N1")

        assert seen_during_remove == ["def"]
        assert [n.id for n in notes_view.notes] == ["def"]
        mock_storage.remove.assert_awaited_once_with("N1")
        mock_api.delete_note.assert_awaited_once_with("abc", auth_token=None)

    @pytest.mark.asyncio
    async def test_no_rollback_when_delete_mutation_fails(self, notes_view, mock_api):
        await notes_view.fetch_notes()
        mock_api.delete_note.side_effect = GraphQLError(message="nope", operation="DeleteNote")

        with pytest.raises(GraphQLError):
            await notes_view.delete_note("abc", "N1")

        assert [n.id for n in notes_view.notes] == ["def"]

    @pytest.mark.asyncio
    async def test_storage_failure_skips_mutation(self, notes_view, mock_api, mock_storage):
        await notes_view.fetch_notes()
        mock_storage.remove.side_effect = ObjectStorageError(message="denied", key="public/N1")

        with pytest.raises(ObjectStorageError):
            await notes_view.delete_note("abc", "N1")

        mock_api.delete_note.assert_not_awaited()
        assert [n.id for n in notes_view.notes] == ["def"]

    def test_find_note(self, mock_api, mock_storage):
        view = NotesView(mock_api, mock_storage)
        view.notes = [Note(id="abc", name="N1"), Note(id="def", name="N2")]

        assert view.find_note("def").name == "N2"
        assert view.find_note("zzz") is None


class TestParseDate:
    """Tests for the page's date formatter."""

    def test_utc_timestamp(self):
        assert parse_date("2024-01-15T12:00:00.000Z", tz=timezone.utc) == "Mon Jan 15 2024"

    def test_deterministic(self):
        value = "2024-01-15T12:00:00.000Z"
        assert parse_date(value, tz=timezone.utc) == parse_date(value, tz=timezone.utc)

    def test_converts_to_target_timezone(self):
        pacific = timezone(timedelta(hours=-8))
        assert parse_date("2024-01-15T03:00:00Z", tz=pacific) == "Sun Jan 14 2024"

    def test_explicit_offset(self):
        assert parse_date("2024-03-01T23:30:00+02:00", tz=timezone.utc) == "Fri Mar 01 2024"

    def test_date_only_is_utc_midnight(self):
        assert parse_date("2024-01-15", tz=timezone.utc) == "Mon Jan 15 2024"
        assert parse_date("2024-01-15", tz=timezone(timedelta(hours=-5))) == "Sun Jan 14 2024"

    def test_unpadded_date_is_local(self):
        assert parse_date("2024-1-5") == "Fri Jan 05 2024"
        assert parse_date("2024-1-5T08:30:00Z", tz=timezone.utc) == "Fri Jan 05 2024"

    @pytest.mark.parametrize("value", [
        "2024-01-15T12:00:00.1Z",
        "2024-01-15T12:00:00.12Z",
        "2024-01-15T12:00:00.1234567Z",
        "2024-01-15T12:00:00.5+00:00",
    ])
    def test_fractions_of_any_length(self, value):
        assert parse_date(value, tz=timezone.utc) == "Mon Jan 15 2024"

    @pytest.mark.parametrize("value", [None, "", "not a date", "2024-13-45"])
    def test_invalid_input(self, value):
        assert parse_date(value) == INVALID_DATE
