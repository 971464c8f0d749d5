"""
WebSocket consumers for the chat application.

Consumers:
    ChatConsumer: One authenticated client connection (browser tab, device)

Authentication:
    JWTAuthMiddleware stores the verified user id in scope["user_id"].
    Connections without one are refused with close code 4001 before they
    join any room.

Rooms:
    On connect the consumer joins the room of its own user id in the
    process PresenceRouter. Events for that user reach every connection
    in the room.

Frames:
    Every frame is {"type": <event>, "data": <payload>}.

Message Types (from client):
    - join_room: data is the caller's own user id (kept for older clients)
    - typing: {"to": <user id>, "typing": bool}
    - send_message: {"to": <user id>, "text"?, "type"?, "image"?, "audio"?}
    - mark_read: {"from": <user id>}

Message Types (to client):
    - new_message: Stored message (see chat.serializers.MessageSerializer)
    - typing: {"from": <user id>, "typing": bool}
    - messages_read: {"from": <reader id>}
    - error: {"msg": <text>} (only to the connection that caused it)

Delivery:
    Events are queued on a per-connection outbox and written by a single
    writer task, so the router never waits on a socket and this client
    sees events in the order they were queued. The outbox holds at most
    PRESENCE_CONFIG.OUTBOX_MAX_FRAMES frames; further events for a client
    that stopped reading are dropped and logged.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import TYPE_CHECKING

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.apps import apps

from chat.constants import CLOSE_CODES, ERROR_MESSAGES, EVENTS, PRESENCE_CONFIG

if TYPE_CHECKING:
    from typing import Any

    from chat.runtime import ChatRuntime

logger = logging.getLogger(__name__)


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for real-time direct messaging.

    Implements the presence Connection protocol (connection_id, deliver).

    Attributes:
        runtime: Shared ChatRuntime, passed via as_asgi(runtime=...)
        user_id: Authenticated user id (after connect)
        connection_id: Unique id of this connection
        outbox_size: Maximum number of frames queued for this client
    """

    runtime: ChatRuntime | None = None
    outbox_size: int = PRESENCE_CONFIG.OUTBOX_MAX_FRAMES

    def __init__(self, *args, runtime: ChatRuntime | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        if runtime is not None:
            self.runtime = runtime
        self.user_id: str | None = None
        self.connection_id = uuid.uuid4().hex
        self._loop: asyncio.AbstractEventLoop | None = None
        self._outbox: asyncio.Queue | None = None
        self._writer: asyncio.Task | None = None

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    async def connect(self):
        """
        Handle WebSocket connection.

        Refuses unauthenticated handshakes, then accepts, starts the
        writer task and joins the caller's room.
        """
        user_id = self.scope.get("user_id")
        if not user_id:
            logger.warning("Rejected unauthenticated chat connection")
            await self.close(code=CLOSE_CODES.UNAUTHORIZED)
            return

        if self.runtime is None:
            self.runtime = await database_sync_to_async(
                apps.get_app_config("chat").get_runtime
            )()
        await self.runtime.startup()

        self.user_id = str(user_id)
        self._open_outbox()

        subprotocols = self.scope.get("subprotocols") or []
        await self.accept("jwt" if subprotocols[:1] == ["jwt"] else None)

        self._writer = self._loop.create_task(
            self._drain_outbox(), name=f"chat-writer-{self.connection_id}"
        )
        self.runtime.router.join(self.user_id, self)
        logger.info(f"User {self.user_id} connected ({self.connection_id})")

    async def disconnect(self, close_code):
        """
        Handle WebSocket disconnection.

        Leaves every room and stops the writer. Queued events are dropped.
        """
        if self.user_id is None:
            return

        self.runtime.router.leave(self)
        if self._writer is not None:
            self._writer.cancel()
            try:
                await self._writer
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception(f"Writer for {self.connection_id} failed")
            self._writer = None
        logger.info(
            f"User {self.user_id} disconnected ({self.connection_id}, code {close_code})"
        )

    # =========================================================================
    # Outbound
    # =========================================================================

    def _open_outbox(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._outbox = asyncio.Queue(maxsize=self.outbox_size)

    def deliver(self, event: str, payload: Any) -> None:
        """
        Queue an event for this client.

        Thread-safe and non-blocking; called by PresenceRouter from the
        event loop or from worker threads.
        """
        if self._loop is None or self._outbox is None:
            raise RuntimeError(f"Connection {self.connection_id} is not open")
        self._loop.call_soon_threadsafe(
            self._enqueue, {"type": event, "data": payload}
        )

    def _enqueue(self, frame: dict) -> None:
        # Delivery is best effort; a full outbox drops the frame
        try:
            self._outbox.put_nowait(frame)
        except asyncio.QueueFull:
            logger.warning(
                f"Outbox full for {self.connection_id} (user {self.user_id}); "
                f"dropping {frame['type']}"
            )

    def _emit_error(self, msg: str) -> None:
        self._enqueue({"type": EVENTS.ERROR, "data": {"msg": msg}})

    async def _drain_outbox(self):
        while True:
            frame = await self._outbox.get()
            await self.send_json(frame)

    # =========================================================================
    # Inbound
    # =========================================================================

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        """Decode a frame, answering malformed JSON with an error event."""
        if text_data is None:
            self._emit_error(ERROR_MESSAGES.INVALID_MESSAGE)
            return
        try:
            content = await self.decode_json(text_data)
        except json.JSONDecodeError:
            self._emit_error(ERROR_MESSAGES.INVALID_MESSAGE)
            return
        await self.receive_json(content, **kwargs)

    async def receive_json(self, content, **kwargs):
        """
        Dispatch an incoming frame by its type.

        Args:
            content: Parsed JSON frame from the client
        """
        if not isinstance(content, dict):
            self._emit_error(ERROR_MESSAGES.INVALID_MESSAGE)
            return

        event = content.get("type")
        data = content.get("data")

        if event == EVENTS.SEND_MESSAGE:
            await self._handle_send_message(data)
        elif event == EVENTS.TYPING:
            self._handle_typing(data)
        elif event == EVENTS.MARK_READ:
            await self._handle_mark_read(data)
        elif event == EVENTS.JOIN_ROOM:
            self._handle_join_room(data)
        else:
            self._emit_error(ERROR_MESSAGES.UNKNOWN_EVENT)

    async def _handle_send_message(self, data):
        if not isinstance(data, dict):
            self._emit_error(ERROR_MESSAGES.INVALID_MESSAGE)
            return

        result = await self.runtime.pipeline.send(self.user_id, data.get("to"), data)
        if not result.success:
            if result.error_code == "VALIDATION_ERROR":
                self._emit_error(ERROR_MESSAGES.INVALID_MESSAGE)
            else:
                self._emit_error(ERROR_MESSAGES.SEND_FAILED)

    def _handle_typing(self, data):
        if not isinstance(data, dict):
            return
        self.runtime.pipeline.relay_typing(
            self.user_id, data.get("to"), bool(data.get("typing"))
        )

    async def _handle_mark_read(self, data):
        other_id = data.get("from") if isinstance(data, dict) else data
        result = await self.runtime.pipeline.mark_read(self.user_id, other_id)
        if not result.success:
            self._emit_error(ERROR_MESSAGES.MARK_READ_FAILED)

    def _handle_join_room(self, data):
        room = data.get("room") if isinstance(data, dict) else data
        if str(room or "").strip() != self.user_id:
            logger.warning(f"User {self.user_id} tried to join room {room!r}")
            self._emit_error(ERROR_MESSAGES.FORBIDDEN_ROOM)
            return
        self.runtime.router.join(self.user_id, self)
