"""
ecotrack/api/realtime.py
WebSocket stream of session snapshots and notices.

Read-only socket; mutations go through the REST endpoints.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from uuid import uuid4

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from ecotrack.core.logging import log_event
from ecotrack.features.session.orchestrator import SessionOrchestrator, get_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/v1/ws/session")
async def session_socket(websocket: WebSocket, session: SessionOrchestrator = Depends(get_session)):
    """
    Session event stream.

    Events Emitted:
    - session.snapshot (first message is the current snapshot)
    - session.notice

    Client Behavior:
    - Send "ping" (plain or {"type": "ping"}) to keep alive
    """
    await websocket.accept()
    request_id = websocket.headers.get("X-Request-Id") or str(uuid4())
    connection_id = str(uuid4())
    user_id = session.identity.uid if session.identity else None

    queue: asyncio.Queue = asyncio.Queue()
    token = await session.hub.subscribe(queue.put_nowait)
    log_event("info", "ws.connected", request_id=request_id, user_id=user_id, event_type="ws.connected", extra={"connection_id": connection_id})

    await websocket.send_json(session.snapshot("connected").model_dump(mode="json"))
    pump = asyncio.create_task(_pump(websocket, queue))

    try:
        while True:
            raw_message = await websocket.receive_text()
            if _is_ping(raw_message):
                await websocket.send_json({
                    "type": "pong",
                    "ts": datetime.now(timezone.utc).isoformat(),
                    "request_id": request_id,
                })
            # Other messages are ignored; no mutations over WS
    except WebSocketDisconnect:
        log_event("info", "ws.disconnected", request_id=request_id, user_id=user_id, event_type="ws.disconnected", extra={"connection_id": connection_id})
    finally:
        pump.cancel()
        await session.hub.unsubscribe(token)


async def _pump(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        event = await queue.get()
        try:
            await websocket.send_json(event.model_dump(mode="json"))
        except (RuntimeError, WebSocketDisconnect) as e:
            logger.debug(f"[WS] send failed, stopping pump: {e}")
            return


def _is_ping(raw_message: str) -> bool:
    if raw_message.strip() == "ping":
        return True
    try:
        data = json.loads(raw_message)
    except ValueError:
        return False
    return isinstance(data, dict) and data.get("type") == "ping"
