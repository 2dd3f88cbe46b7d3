"""FastAPI web server for the Shiptivity lane board."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from ..config import Settings
from ..constants import DEFAULT_DB_PATH, ROOT_MESSAGE
from ..lanes.engine import LaneEngine
from ..lanes.errors import ClientError
from ..lanes.store import ClientStore
from .client_api import create_client_router
from .models import RootResponse


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ClientStore] = None,
    enable_cors: bool = True,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Resolved settings; used to open the store on startup.
        store: An already-open store. The caller keeps ownership and the app
            never closes it.
        enable_cors: Whether to enable CORS.

    Returns:
        Configured FastAPI app.
    """
    settings = settings or Settings(db_path=Path(DEFAULT_DB_PATH))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # One connection for the life of the process; uvicorn turns
        # SIGINT/SIGTERM into this shutdown path.
        owned: Optional[ClientStore] = None
        if app.state.store is None:
            owned = ClientStore(settings.db_path, busy_timeout=settings.busy_timeout)
            owned.ensure_schema()
            app.state.store = owned
            app.state.engine = LaneEngine(owned)
        try:
            yield
        finally:
            if owned is not None:
                owned.close()
                app.state.store = None
                app.state.engine = None

    app = FastAPI(
        title="Shiptivity API",
        description="Client swimlanes with dense per-lane priorities",
        version="1.0.0",
        lifespan=lifespan,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.state.store = store
    app.state.engine = LaneEngine(store) if store is not None else None

    def _get_engine() -> LaneEngine:
        engine = app.state.engine
        if engine is None:
            raise RuntimeError("Client store is not open; start the app through its lifespan")
        return engine

    @app.exception_handler(ClientError)
    async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
        logger.debug("{} {} rejected: {}", request.method, request.url.path, exc)
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.get("/", response_model=RootResponse)
    async def root() -> RootResponse:
        """Root endpoint."""
        return RootResponse(message=ROOT_MESSAGE)

    app.include_router(create_client_router(_get_engine))

    return app
