"""Client API endpoints for the lane board.

This module provides a FastAPI router for listing, fetching and moving
clients.  It is mounted under ``/api/v1/clients`` by the main ``create_app``
factory.  Engine errors (:class:`ClientError`) propagate to the app-level
handler, which turns them into ``{message, long_message}`` 400 responses.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from fastapi import APIRouter, Query

from ..constants import API_PREFIX
from ..lanes.engine import LaneEngine
from .models import ClientInfo, ErrorResponse, UpdateClientRequest

_ERRORS: dict[int | str, dict[str, Any]] = {400: {"model": ErrorResponse}}


def create_client_router(get_engine: Callable[[], LaneEngine]) -> APIRouter:
    """Create the client API router.

    Parameters
    ----------
    get_engine:
        A callable returning the process-wide :class:`LaneEngine`.
    """
    router = APIRouter(prefix=API_PREFIX, tags=["clients"])

    @router.get("", response_model=list[ClientInfo], responses=_ERRORS)
    async def list_clients(
        status: Optional[str] = Query(None),
    ) -> list[dict[str, Any]]:
        """List all clients, optionally only those in one lane."""
        clients = get_engine().list_clients(status)
        return [c.to_dict() for c in clients]

    @router.get("/{client_id}", response_model=ClientInfo, responses=_ERRORS)
    async def get_client(client_id: str) -> dict[str, Any]:
        return get_engine().get_client(client_id).to_dict()

    @router.put("/{client_id}", response_model=list[ClientInfo], responses=_ERRORS)
    async def update_client(
        client_id: str,
        body: Optional[UpdateClientRequest] = None,
    ) -> list[dict[str, Any]]:
        """Change a client's lane and/or priority and return every client.

        A new status without a priority appends the client to the end of the
        new lane; a priority shifts the other clients of the lane to keep
        ranks unique.  Priority 1 is the top of the swimlane.
        """
        body = body or UpdateClientRequest()
        clients = get_engine().reassign(client_id, status=body.status, priority=body.priority)
        return [c.to_dict() for c in clients]

    return router
