"""REST endpoints for draft sessions."""

from typing import Annotated, Literal, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field

from draft_room.config import settings
from draft_room.models.session import DraftMode, SessionConfig
from draft_room.services.join_links import build_join_links
from draft_room.services.series_manager import SeriesAccessDenied
from draft_room.services.session_manager import DraftSession, DraftSessionManager

router = APIRouter(prefix="/api/drafts", tags=["drafts"])


class CreateDraftRequest(BaseModel):
    blue_name: str = Field(default="BLUE TEAM", min_length=1, max_length=64)
    red_name: str = Field(default="RED TEAM", min_length=1, max_length=64)
    turn_seconds: Optional[int] = Field(default=None, gt=0, le=600)
    best_of: Literal[1, 3, 5] = 1
    mode: DraftMode = DraftMode.NORMAL


class DeclareWinnerRequest(BaseModel):
    winner: Literal["blue", "red"]


def _get_manager(request: Request) -> DraftSessionManager:
    return request.app.state.session_manager


def _get_session(request: Request, session_id: str) -> DraftSession:
    session = _get_manager(request).get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _require_accessible(session: DraftSession, game_index: int) -> None:
    if game_index > session.config.best_of:
        raise HTTPException(status_code=404, detail=f"Series has {session.config.best_of} games")
    try:
        session.series.require_accessible(game_index)
    except SeriesAccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e))


def _serialize_session(session: DraftSession) -> dict:
    blue_wins, red_wins = session.series.series_score
    return {
        "id": session.id,
        "config": session.config.model_dump(mode="json"),
        "series": session.series.snapshot().model_dump(mode="json"),
        "series_score": {"blue": blue_wins, "red": red_wins},
        "series_complete": session.series.is_complete,
        "created_at": session.created_at.isoformat(),
    }


@router.post("", status_code=201)
async def create_draft(request: Request, body: CreateDraftRequest):
    """Create a draft session and return its game 1 join links."""
    try:
        config = SessionConfig(
            blue_name=body.blue_name,
            red_name=body.red_name,
            turn_seconds=body.turn_seconds or settings.turn_seconds,
            best_of=body.best_of,
            mode=body.mode,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    session = _get_manager(request).create_session(config)
    return {
        **_serialize_session(session),
        "links": build_join_links(settings.public_base_url, session.id, 1),
    }


@router.get("")
async def list_drafts(request: Request, limit: Annotated[int, Query(ge=1, le=200)] = 50):
    """Most recently updated sessions, newest first."""
    sessions = _get_manager(request).list_sessions(limit)
    return {"sessions": sessions, "count": len(sessions)}


@router.get("/{session_id}")
async def get_draft(request: Request, session_id: str):
    """Session config, series progress and the active game's draft state."""
    session = _get_session(request, session_id)
    game_index = session.series.active_game_index
    host = _get_manager(request).ensure_host(session, game_index)
    return {
        **_serialize_session(session),
        "game_index": game_index,
        "draft": host.machine.snapshot().model_dump(mode="json"),
        "readiness": host.gate.snapshot().model_dump(mode="json"),
    }


@router.get("/{session_id}/games/{game_index}/links")
async def get_join_links(request: Request, session_id: str, game_index: int):
    session = _get_session(request, session_id)
    _require_accessible(session, game_index)
    return {
        "game_index": game_index,
        "links": build_join_links(settings.public_base_url, session.id, game_index),
    }


@router.get("/{session_id}/games/{game_index}/available")
async def get_available_champions(request: Request, session_id: str, game_index: int):
    """Champions still selectable in a game, fearless exclusions applied."""
    session = _get_session(request, session_id)
    _require_accessible(session, game_index)
    host = _get_manager(request).ensure_host(session, game_index)
    champions = host.machine.available_champions()
    return {
        "game_index": game_index,
        "excluded": sorted(host.machine.excluded),
        "champions": [c.to_dict() for c in champions],
        "count": len(champions),
    }


@router.post("/{session_id}/games/{game_index}/result")
async def declare_winner(
    request: Request, session_id: str, game_index: int, body: DeclareWinnerRequest
):
    """Attach the match winner to a drafted game."""
    session = _get_session(request, session_id)
    result = _get_manager(request).declare_winner(session, game_index, body.winner)
    if result is None:
        raise HTTPException(status_code=409, detail=f"Game {game_index} has not been drafted")
    return {
        "result": result.model_dump(mode="json"),
        **_serialize_session(session),
    }


@router.delete("/{session_id}")
async def delete_draft(request: Request, session_id: str):
    if not await _get_manager(request).remove_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "deleted", "id": session_id}
