import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from app.database.supabase_client import get_supabase
from app.modules.realtime.hub import hub
from app.modules.rooms.service import RoomService
from supabase import Client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["realtime"])

ROOM_NOT_FOUND_CLOSE_CODE = 4404


def parse_tables(tables: Optional[str]) -> Optional[set]:
    if not tables:
        return None
    parsed = {t.strip() for t in tables.split(",") if t.strip()}
    return parsed or None


@router.websocket("/rooms/{room_id}")
async def room_changes(
    websocket: WebSocket,
    room_id: str,
    tables: Optional[str] = None,
    supabase: Client = Depends(get_supabase)
):
    """Stream row changes for one room. ?tables=room_messages,polls narrows the feed."""
    await websocket.accept()
    try:
        RoomService(supabase).get_room(room_id)
    except HTTPException as e:
        await websocket.close(code=ROOM_NOT_FOUND_CLOSE_CODE if e.status_code == 404 else 1011, reason=str(e.detail))
        return

    subscription = hub.subscribe(room_id, parse_tables(tables))
    logger.info(f"Realtime client subscribed to room {room_id} ({subscription.id})")

    async def forward():
        while True:
            event = await subscription.get()
            await websocket.send_json(event)

    async def drain():
        # Client messages are ignored except "ping"; returning means the client went away
        try:
            while True:
                if await websocket.receive_text() == "ping":
                    await websocket.send_json({"type": "pong"})
        except WebSocketDisconnect:
            return

    try:
        await websocket.send_json({
            "type": "subscribed",
            "room_id": room_id,
            "tables": sorted(subscription.tables) if subscription.tables else None,
        })
        tasks = [asyncio.create_task(forward()), asyncio.create_task(drain())]
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            if not task.cancelled() and task.exception() and not isinstance(task.exception(), WebSocketDisconnect):
                logger.warning(f"Realtime stream for room {room_id} ended with error: {task.exception()}")
    except WebSocketDisconnect:
        pass
    finally:
        hub.unsubscribe(subscription)
        logger.info(f"Realtime client left room {room_id} ({subscription.id})")
