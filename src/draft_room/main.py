"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from draft_room.config import settings
from draft_room.api.routes.champions import router as champions_router
from draft_room.api.routes.drafts import router as drafts_router
from draft_room.api.websockets.draft_ws import draft_websocket
from draft_room.models.roster import load_catalog
from draft_room.repositories.draft_repository import DraftRepository
from draft_room.services.session_manager import DraftSessionManager
from draft_room.services.sync_channel import SyncHub

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def get_database_path() -> Path:
    """Get the database path from settings, relative paths from the working directory."""
    return Path(settings.database_path).expanduser()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup: Initialize catalog, repository and managers
    if not hasattr(app.state, "catalog"):
        app.state.catalog = load_catalog()
    if not hasattr(app.state, "repository"):
        app.state.repository = DraftRepository(get_database_path())
    if not hasattr(app.state, "hub"):
        app.state.hub = SyncHub(queue_size=settings.sync_queue_size)
    if not hasattr(app.state, "session_manager"):
        app.state.session_manager = DraftSessionManager(
            app.state.hub,
            app.state.catalog,
            app.state.repository,
            channel_prefix=settings.sync_channel_prefix,
            ready_countdown_seconds=settings.ready_countdown_seconds,
            tick_interval=settings.tick_interval_seconds,
        )
    logger.info(f"Draft room ready ({len(app.state.catalog)} champions, patch {app.state.catalog.patch})")
    yield
    # Shutdown: stop hosted coordinators
    await app.state.session_manager.shutdown()


app = FastAPI(
    title="Draft Room",
    description="LoL pick/ban draft room with synchronized tabs",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "draft-room"}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Draft Room API",
        "version": "0.1.0",
        "docs": "/docs",
    }


# Register routers
app.include_router(champions_router)
app.include_router(drafts_router)


# WebSocket endpoint for one game of a draft session
@app.websocket("/ws/drafts/{session_id}")
async def websocket_draft(
    websocket: WebSocket,
    session_id: str,
    side: Optional[str] = None,
    game: int = 1,
):
    """Join a draft as coordinator (no side), blue/red participant or spectator."""
    await draft_websocket(
        websocket,
        session_id,
        app.state.session_manager,
        side=side,
        game=game,
    )


def run() -> None:
    import uvicorn

    uvicorn.run(
        "draft_room.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
