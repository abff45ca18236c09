"""
Real-time notification fan-out.
Events are pushed to the recipient's personal WebSocket channel; nothing is
persisted and delivery is a single best-effort attempt.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Protocol

from taskhub.services.websocket_service import ConnectionManager, ws_manager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationEvent:
    recipient_id: uuid.UUID
    event: str
    payload: dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> dict[str, Any]:
        return {"type": self.event, "data": self.payload}


class NotificationSink(Protocol):
    async def publish(self, event: NotificationEvent) -> None: ...


class WebSocketNotificationSink:
    """
    Hands events to the connection manager as background tasks, so the
    caller never waits on socket I/O.
    """

    def __init__(self, manager: ConnectionManager) -> None:
        self._manager = manager
        self._pending: set[asyncio.Task[None]] = set()

    async def publish(self, event: NotificationEvent) -> None:
        task = asyncio.create_task(self._deliver(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, event: NotificationEvent) -> None:
        try:
            delivered = await self._manager.send_personal_message(
                str(event.recipient_id), event.to_message()
            )
        except Exception:
            logger.exception(
                "Failed to deliver %s to user_id=%s", event.event, event.recipient_id
            )
            return
        logger.debug(
            "Delivered %s to user_id=%s on %d connection(s)",
            event.event,
            event.recipient_id,
            delivered,
        )


notification_sink = WebSocketNotificationSink(ws_manager)
