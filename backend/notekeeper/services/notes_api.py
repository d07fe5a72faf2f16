"""
NoteKeeper — GraphQL Notes API Gateway
======================================

What:  Client for the three GraphQL operations the view consumes:
       listNotes, createNote and deleteNote.
Why:   All structured data lives behind a managed GraphQL endpoint. This
       module is the only place that knows how to reach it.
How:   One shared httpx.AsyncClient; every operation is a JSON POST of
       {"query", "variables"}. Responses are read by fixed field names.
Who:   Called by NotesView; probed by the health route.
When:  On page load (list), form submit (create + list), delete.

Failure Model:
    Transport error, non-2xx status, a non-empty `errors` array or a
    missing `data` field all raise GraphQLError (401/403 raise
    AuthenticationError). There is no retry and no backoff: one attempt
    per operation, and its failure is the caller's failure.

Authorization:
    API_KEY                    → x-api-key: <GRAPHQL_API_KEY>
    AMAZON_COGNITO_USER_POOLS  → Authorization: <signed-in user's access token>
"""

import logging
import time
import uuid
from typing import Any, Dict, List, Optional

import httpx

from notekeeper.config import settings
from notekeeper.exceptions import AuthenticationError, GraphQLError
from notekeeper.schemas.note import CreateNoteInput, Note
from notekeeper.services import operations

logger = logging.getLogger(__name__)


class NotesAPI:
    """
    GraphQL gateway for note records.

    Architecture:
        - Singleton instance created at import, closed at app shutdown
        - Stateless apart from the pooled HTTP connections
        - Callers pass the access token per call; sessions own the tokens
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        auth_mode: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            endpoint: Override settings.graphql_endpoint (used in tests).
            auth_mode: Override settings.graphql_auth_mode.
            api_key: Override settings.graphql_api_key.
            timeout: Override settings.http_timeout_seconds.
            transport: httpx transport (tests pass an httpx.MockTransport).
        """
        self.endpoint = endpoint or settings.graphql_endpoint
        self.auth_mode = (auth_mode or settings.graphql_auth_mode).upper()
        self.api_key = api_key if api_key is not None else settings.graphql_api_key
        self._client = httpx.AsyncClient(
            timeout=timeout or settings.http_timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        logger.info("NotesAPI initialized: endpoint=%s auth_mode=%s", self.endpoint, self.auth_mode)

    async def close(self) -> None:
        """Close the pooled HTTP connections."""
        await self._client.aclose()

    def _auth_headers(self, auth_token: Optional[str]) -> Dict[str, str]:
        if self.auth_mode == "API_KEY":
            return {"x-api-key": self.api_key} if self.api_key else {}
        if auth_token:
            return {"Authorization": auth_token}
        return {}

    async def execute(
        self,
        operation: str,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        auth_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send one GraphQL document and return its `data` object.

        Args:
            operation: Operation name, used for logging and error context
            query: GraphQL document
            variables: Operation variables (omitted from the body when None)
            auth_token: Access token for AMAZON_COGNITO_USER_POOLS mode

        Returns:
            The response's `data` dict.

        Raises:
            AuthenticationError: Endpoint answered 401 or 403
            GraphQLError: Any other failure (see module docstring)
        """
        request_id = str(uuid.uuid4())[:8]
        body: Dict[str, Any] = {"query": query}
        if variables is not None:
            body["variables"] = variables

        start_time = time.perf_counter()
        try:
            response = await self._client.post(
                self.endpoint,
                json=body,
                headers=self._auth_headers(auth_token),
            )
        except httpx.HTTPError as e:
            logger.error("[%s] %s: could not reach %s: %s", request_id, operation, self.endpoint, str(e))
            raise GraphQLError(
                message="Could not reach the notes API. Please try again later.",
                operation=operation,
                context={"request_id": request_id, "error_type": type(e).__name__},
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.debug("[%s] %s answered %d in %.0fms", request_id, operation, response.status_code, duration_ms)

        if response.status_code in (401, 403):
            raise AuthenticationError(
                message="The notes API rejected the request's credentials.",
                context={"operation": operation, "status_code": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code >= 400:
            errors = payload.get("errors") if isinstance(payload, dict) else None
            raise GraphQLError(
                message=f"The notes API answered with HTTP {response.status_code}.",
                operation=operation,
                errors=errors,
                status_code=response.status_code,
            )

        if not isinstance(payload, dict):
            raise GraphQLError(
                message="The notes API returned a response that is not JSON.",
                operation=operation,
                status_code=response.status_code,
            )

        errors = payload.get("errors")
        if errors:
            first = errors[0].get("message", "Unknown error") if isinstance(errors[0], dict) else str(errors[0])
            logger.warning("[%s] %s returned %d error(s): %s", request_id, operation, len(errors), first)
            raise GraphQLError(message=first, operation=operation, errors=errors)

        data = payload.get("data")
        if not isinstance(data, dict):
            raise GraphQLError(message="The notes API returned no data.", operation=operation)

        logger.info("[%s] %s completed in %.0fms", request_id, operation, duration_ms)
        return data

    async def list_notes(self, auth_token: Optional[str] = None) -> List[Note]:
        """
        Fetch all notes (first page of listNotes, backend default limit).

        Returns:
            Note records in the order the backend returned them.
        """
        data = await self.execute("ListNotes", operations.LIST_NOTES, auth_token=auth_token)
        try:
            items = data["listNotes"]["items"]
        except (KeyError, TypeError):
            raise GraphQLError(message="listNotes returned no items.", operation="ListNotes")
        return [Note.model_validate(item) for item in items if item is not None]

    async def create_note(self, data: CreateNoteInput, auth_token: Optional[str] = None) -> Note:
        """
        Create a note; the backend assigns id and createdAt.

        Variables: {"input": {"name", "description", "image"}}
        """
        result = await self.execute(
            "CreateNote",
            operations.CREATE_NOTE,
            variables={"input": data.model_dump()},
            auth_token=auth_token,
        )
        created = result.get("createNote")
        if created is None:
            raise GraphQLError(message="createNote returned no note.", operation="CreateNote")
        return Note.model_validate(created)

    async def delete_note(self, note_id: str, auth_token: Optional[str] = None) -> None:
        """
        Delete a note by id.

        Variables: {"input": {"id": note_id}}
        """
        await self.execute(
            "DeleteNote",
            operations.DELETE_NOTE,
            variables={"input": {"id": note_id}},
            auth_token=auth_token,
        )

    async def health_check(self) -> bool:
        """
        Check that the endpoint answers HTTP at all.

        Why any status below 500 counts: An unauthenticated probe is
        expected to be rejected with 401; that still proves reachability.
        """
        try:
            response = await self._client.post(
                self.endpoint,
                json={"query": operations.PING},
                headers=self._auth_headers(None),
            )
            return response.status_code < 500
        except httpx.HTTPError as e:
            logger.warning("NotesAPI health check failed: %s", str(e))
            return False


# ── Singleton Instance ────────────────────────────────────────────────────
notes_api = NotesAPI()
