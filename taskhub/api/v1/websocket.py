"""
WebSocket endpoint.
Clients connect with a valid JWT access token as a query parameter and join
their personal notification channel. A heartbeat ping keeps the connection alive.
"""
from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from taskhub.core.config import settings
from taskhub.core.dependencies import authenticate_token
from taskhub.core.exceptions import TaskHubException
from taskhub.db.session import AsyncSessionLocal
from taskhub.services.websocket_service import ws_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """
    WebSocket endpoint for real-time task notifications.

    Query parameters:
        token: A valid JWT access token.

    The server sends:
        - {"type": "connected", "userId": "..."} on successful connection.
        - {"type": "ping"} every WS_HEARTBEAT_INTERVAL seconds.
        - {"type": "taskAssigned" | "taskUpdated", "data": {...}} on task events.

    The client may answer pings with {"type": "pong"}.
    """
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4001, reason="Authentication error: missing token")
        return

    async with AsyncSessionLocal() as db:
        try:
            user = await authenticate_token(db, token)
        except TaskHubException as exc:
            await websocket.close(code=4001, reason=f"Authentication error: {exc.detail}")
            return

    user_id = str(user.id)
    await ws_manager.connect(websocket, user_id)
    heartbeat_task = asyncio.create_task(_heartbeat(websocket))

    try:
        await websocket.send_json({"type": "connected", "userId": user_id})
        while True:
            data = await websocket.receive_json()
            if data.get("type") == "pong":
                logger.debug("Received pong from user_id=%s", user_id)
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected: user_id=%s", user_id)
    except Exception as exc:
        logger.error("WebSocket error for user_id=%s: %s", user_id, exc)
    finally:
        heartbeat_task.cancel()
        ws_manager.disconnect(websocket, user_id)


async def _heartbeat(websocket: WebSocket) -> None:
    """Send periodic ping frames to keep the connection alive."""
    while True:
        await asyncio.sleep(settings.WS_HEARTBEAT_INTERVAL)
        try:
            await websocket.send_json({"type": "ping"})
        except Exception:
            break
