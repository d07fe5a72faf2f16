"""
NoteKeeper — Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set before any notekeeper import, so the
       settings singleton and the gateway singletons are built for tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── sample_notes: Wire-format note records (camelCase)
    ├── mock_api: NotesAPI stand-in with AsyncMock operations
    ├── mock_storage: ObjectStorage stand-in resolving keys to fake URLs
    ├── notes_view: NotesView wired to the two mocks
    ├── temp_storage: Temporary directory for the local storage backend
    └── test_client: HTTPX AsyncClient on the app, sessions wired to the mocks
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before notekeeper.config is imported anywhere
os.environ["GRAPHQL_ENDPOINT"] = "http://graphql.test/graphql"
os.environ["GRAPHQL_AUTH_MODE"] = "API_KEY"
os.environ["GRAPHQL_API_KEY"] = "test-key"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="notekeeper_test_")
os.environ["AUTH_ENABLED"] = "false"
os.environ["COGNITO_CLIENT_ID"] = "test-client-id"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["LOG_LEVEL"] = "WARNING"

from notekeeper.schemas.note import Note  # noqa: E402
from notekeeper.services.notes_api import NotesAPI  # noqa: E402
from notekeeper.services.notes_view import NotesView  # noqa: E402
from notekeeper.services.session_store import session_store  # noqa: E402
from notekeeper.services.storage import ObjectStorage  # noqa: E402

FAKE_BUCKET_URL = "https://bucket.test/public/"


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def reset_sessions():
    """Every test starts without sessions."""
    session_store.clear()
    yield
    session_store.clear()


@pytest.fixture
def sample_notes():
    """
    Two notes as listNotes returns them: one with an image key, one without.
    """
    return [
        {
            "id": "abc",
            "name": "N1",
            "description": "D1",
            "image": "pic.png",
            "createdAt": "2024-01-15T12:00:00.000Z",
            "updatedAt": "2024-01-15T12:00:00.000Z",
        },
        {
            "id": "def",
            "name": "N2",
            "description": "D2",
            "image": None,
            "createdAt": "2024-02-01T08:30:00.000Z",
            "updatedAt": "2024-02-01T08:30:00.000Z",
        },
    ]


@pytest.fixture
def mock_api(sample_notes):
    """
    A NotesAPI whose operations are AsyncMocks.

    list_notes builds fresh Note objects on every call, since the view
    rewrites their image fields in place.
    """
    api = MagicMock(spec=NotesAPI)
    api.list_notes = AsyncMock(
        side_effect=lambda auth_token=None: [Note.model_validate(n) for n in sample_notes]
    )
    api.create_note = AsyncMock(
        return_value=Note(id="new", name="N1", description="D1", createdAt="2024-03-01T00:00:00Z")
    )
    api.delete_note = AsyncMock(return_value=None)
    api.health_check = AsyncMock(return_value=True)
    return api


@pytest.fixture
def mock_storage():
    """An ObjectStorage whose get() resolves a key to a fake bucket URL."""
    storage = MagicMock(spec=ObjectStorage)
    storage.put = AsyncMock(return_value=None)
    storage.get = AsyncMock(side_effect=lambda key: f"{FAKE_BUCKET_URL}{key}")
    storage.remove = AsyncMock(return_value=None)
    storage.health_check = AsyncMock(return_value=True)
    return storage


@pytest.fixture
def notes_view(mock_api, mock_storage):
    return NotesView(api=mock_api, storage=mock_storage)


@pytest.fixture
def temp_storage(tmp_path):
    """A fresh storage root for local backend tests."""
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest_asyncio.fixture
async def test_client(mock_api, mock_storage):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    Sessions created during the test get views wired to mock_api and
    mock_storage. raise_app_exceptions=False lets 500 responses from the
    catch-all handler reach the test instead of re-raising.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    from notekeeper.main import app

    with patch("notekeeper.services.session_store.notes_api", mock_api), \
         patch("notekeeper.services.session_store.object_storage", mock_storage):
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
