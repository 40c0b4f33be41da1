"""WebSocket relay between a browser context and a game's sync channel."""

import asyncio
import json
import logging
from typing import Optional

from fastapi import WebSocket, WebSocketDisconnect

from draft_room.models.messages import (
    ConfirmedLock,
    CountdownStarted,
    FullStateSnapshot,
    ReadinessMarked,
    SyncMessage,
    TentativeSelection,
    TimerTick,
    dump_message,
    parse_message,
)
from draft_room.models.session import ContextRole
from draft_room.services.draft_context import DraftContext
from draft_room.services.join_links import parse_role
from draft_room.services.series_manager import SeriesAccessDenied
from draft_room.services.session_manager import DraftSessionManager
from draft_room.services.sync_channel import SyncChannel

logger = logging.getLogger(__name__)


def is_permitted(role: ContextRole, message: SyncMessage, host: DraftContext) -> bool:
    """Whether a client joined as ``role`` may publish ``message``.

    Spectators never publish. Participants publish only for their own side,
    and turn ticks only while their side holds the active turn. Snapshots
    and countdown starts come from the coordinator alone.
    """
    if role.is_spectator:
        return False
    if role.is_coordinator:
        return True
    if isinstance(message, (TentativeSelection, ConfirmedLock, ReadinessMarked)):
        return message.side == role.side
    if isinstance(message, TimerTick):
        turn = host.machine.active_turn
        return message.scope == "turn" and turn is not None and turn.side == role.side
    return False


def _drive_host(host: DraftContext, message: SyncMessage) -> None:
    """Apply a coordinator client's frame as a local action of the host."""
    if isinstance(message, TentativeSelection):
        host.select(message.side, message.champion_id)
    elif isinstance(message, ConfirmedLock):
        if host.machine.tentative != message.champion_id:
            host.select(message.side, message.champion_id)
        host.confirm()
    elif isinstance(message, ReadinessMarked):
        host.mark_ready(message.side)
    elif isinstance(message, FullStateSnapshot):
        host.announce_state()
    elif isinstance(message, (TimerTick, CountdownStarted)):
        # The hosted coordinator owns every countdown
        logger.debug(f"Ignoring {message.type} from coordinator client")


async def _forward_channel(websocket: WebSocket, channel: SyncChannel) -> None:
    """Send every message published on the channel to the client."""
    while not channel.closed:
        message = await channel.receive()
        await websocket.send_json(dump_message(message))


async def _handle_client_messages(
    websocket: WebSocket,
    channel: SyncChannel,
    role: ContextRole,
    host: DraftContext,
) -> None:
    """Validate client frames and publish (or apply) the permitted ones."""
    try:
        while True:
            data = await websocket.receive_text()
            try:
                payload = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON received: {data}")
                continue

            message = parse_message(payload)
            if message is None:
                continue
            if not is_permitted(role, message, host):
                logger.debug(f"Dropping {message.type} from {role} client {channel.context_id}")
                continue

            if role.is_coordinator:
                _drive_host(host, message)
            else:
                channel.broadcast(message)
    except WebSocketDisconnect:
        pass


async def draft_websocket(
    websocket: WebSocket,
    session_id: str,
    manager: DraftSessionManager,
    side: Optional[str] = None,
    game: int = 1,
):
    """Handle a WebSocket joining one game of a draft session.

    Args:
        websocket: The WebSocket connection
        session_id: ID of the draft session
        manager: DraftSessionManager instance
        side: Join parameter (blue, red, spectate; unset for coordinator)
        game: 1-based game index within the series
    """
    session = manager.get_session(session_id)
    if not session:
        await websocket.close(code=4004, reason="Session not found")
        return

    try:
        role = parse_role(side)
    except ValueError as e:
        await websocket.close(code=4400, reason=str(e))
        return

    try:
        host = manager.ensure_host(session, game)
    except SeriesAccessDenied as e:
        await websocket.close(code=4403, reason=str(e))
        return

    await websocket.accept()
    channel = manager.hub.subscribe(manager.channel_name(session.id, game))
    logger.info(f"{role} joined session {session.id} game {game} as {channel.context_id}")

    tasks: list[asyncio.Task] = []
    try:
        await websocket.send_json({
            "type": "joined",
            "session_id": session.id,
            "game_index": game,
            "context_id": channel.context_id,
            "role": role.kind.value,
            "side": role.side.value if role.side else None,
            "config": session.config.model_dump(mode="json"),
        })
        tasks = [
            asyncio.create_task(_forward_channel(websocket, channel)),
            asyncio.create_task(_handle_client_messages(websocket, channel, role, host)),
        ]
        # Late joiners catch up from the coordinator's full state
        host.announce_state()

        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            error = task.exception()
            if error is not None and not isinstance(error, WebSocketDisconnect):
                logger.error(f"Relay for {channel.context_id} failed: {error}")
    except WebSocketDisconnect:
        pass
    finally:
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except (asyncio.CancelledError, WebSocketDisconnect):
                pass
            except Exception as e:
                logger.debug(f"Relay task ended with {type(e).__name__}: {e}")
        channel.close()
        logger.info(f"{role} left session {session.id} game {game}")
