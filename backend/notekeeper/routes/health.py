"""
NoteKeeper — Health Check Route
===============================

What:  Dependency health for load balancer and container probes.
How:   A `{ __typename }` POST to the GraphQL endpoint and a backend-specific
       storage probe (head_bucket for S3, a writable root for local disk).

Status levels:
    healthy:    GraphQL reachable, storage available        (200)
    degraded:   GraphQL reachable, storage unavailable      (200)
    unhealthy:  GraphQL unreachable                         (503)

Nothing here needs a session; the route is exempt from the authenticator.
"""

import logging
import time

from fastapi import APIRouter, Response

from notekeeper import __version__
from notekeeper.schemas.note import HealthResponse
from notekeeper.services.notes_api import notes_api
from notekeeper.services.storage import object_storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "GraphQL endpoint unreachable", "model": HealthResponse}},
)
async def health_check(response: Response) -> HealthResponse:
    graphql_status = "reachable"
    storage_status = "available"
    overall = "healthy"

    if not await notes_api.health_check():
        graphql_status = "unreachable"
        overall = "unhealthy"
        logger.warning("Health check: GraphQL endpoint unreachable")

    if not await object_storage.health_check():
        storage_status = "unavailable"
        overall = "degraded" if overall != "unhealthy" else overall
        logger.warning("Health check: object storage unavailable")

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        graphql=graphql_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
