"""
Chat service layer.

This module provides:
- MessageStore: Durable append/range/mark-read over the Message table
- ConversationPipeline: Validate, persist, fan out, hand off to the bot

Related files:
    - models.py: Message
    - presence.py: PresenceRouter used for fan-out
    - consumers.py: WebSocket entry point calling the pipeline
    - views.py: REST entry points (history, read receipts)
    - ai/responder.py: BotResponder invoked for messages to the bot

Usage:
    from chat.services import ConversationPipeline, MessageStore

    history = MessageStore.range("u1", "u2")

    pipeline = ConversationPipeline(router, bot=bot, responder=responder)
    result = await pipeline.send("u1", "u2", {"text": "hi"})
    if not result.success:
        ...
"""

from __future__ import annotations

import threading
from datetime import timedelta
from typing import TYPE_CHECKING

from channels.db import database_sync_to_async
from django.db import DatabaseError
from django.db.models import Q
from django.utils import timezone

from core.exceptions import ValidationError
from core.services import BaseService, ServiceResult

from chat.constants import EVENTS
from chat.exceptions import PersistenceError
from chat.models import Message, MessageKind
from chat.serializers import serialize_message

if TYPE_CHECKING:
    from datetime import datetime
    from typing import Any

    from ai.responder import BotResponder
    from ai.services import BotIdentity
    from chat.presence import PresenceRouter


# =============================================================================
# MessageStore
# =============================================================================


class MessageStore(BaseService):
    """
    Durable storage for direct messages.

    All methods are synchronous; async callers wrap them with
    channels.db.database_sync_to_async.

    Guarantees:
        - created_at is strictly increasing within the process
        - range() is ordered by (created_at, id)
        - mark_read() is a single conditional UPDATE, so it is atomic and
          idempotent
    """

    _clock_lock = threading.Lock()
    _last_created_at: datetime | None = None

    @classmethod
    def _next_created_at(cls) -> datetime:
        with cls._clock_lock:
            now = timezone.now()
            if cls._last_created_at is not None and now <= cls._last_created_at:
                now = cls._last_created_at + timedelta(microseconds=1)
            cls._last_created_at = now
            return now

    @classmethod
    def append(
        cls,
        from_user: str,
        to_user: str,
        text: str = "",
        image: str = "",
        audio: str = "",
        kind: str = MessageKind.TEXT,
    ) -> Message:
        """
        Store a message and return the stored record.

        Raises:
            PersistenceError: The database rejected or failed the insert
        """
        try:
            message = Message.objects.create(
                from_user=from_user,
                to_user=to_user,
                text=text,
                image=image,
                audio=audio,
                kind=kind,
                created_at=cls._next_created_at(),
            )
        except DatabaseError as e:
            cls.get_logger().exception(
                f"Failed to store message from {from_user} to {to_user}"
            )
            raise PersistenceError(
                "Message could not be stored",
                details={"from": from_user, "to": to_user},
            ) from e

        cls.get_logger().debug(f"Stored message {message.pk} ({message.kind})")
        return message

    @classmethod
    def range(cls, user_a: str, user_b: str) -> list[Message]:
        """All messages exchanged between two users, oldest first."""
        return list(
            Message.objects.filter(
                Q(from_user=user_a, to_user=user_b)
                | Q(from_user=user_b, to_user=user_a)
            ).order_by("created_at", "id")
        )

    @classmethod
    def mark_read(cls, from_user: str, to_user: str) -> int:
        """
        Mark every unread message from ``from_user`` to ``to_user`` as read.

        Returns:
            Number of messages that changed (0 on a repeated call)

        Raises:
            PersistenceError: The update failed
        """
        try:
            updated = Message.objects.filter(
                from_user=from_user,
                to_user=to_user,
                read=False,
            ).update(read=True, updated_at=timezone.now())
        except DatabaseError as e:
            cls.get_logger().exception(
                f"Failed to mark messages from {from_user} to {to_user} read"
            )
            raise PersistenceError("Messages could not be marked read") from e

        if updated:
            cls.get_logger().debug(
                f"Marked {updated} message(s) from {from_user} to {to_user} read"
            )
        return updated


# =============================================================================
# Payload validation
# =============================================================================


_PAYLOAD_FIELDS = {
    MessageKind.TEXT: "text",
    MessageKind.IMAGE: "image",
    MessageKind.AUDIO: "audio",
}


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_payload(recipient_id: Any, payload: Any) -> dict[str, str]:
    """
    Validate a send_message payload and resolve its kind.

    Text is trimmed. Without an explicit ``type`` the kind is text, unless
    the text is empty, in which case it is the first non-empty of image
    and audio. So ``{to, image}`` with no type is stored as an image
    rather than as an empty text message, and the stored kind always
    names a non-empty payload field.

    Returns:
        Dict with to, text, image, audio and kind

    Raises:
        ValidationError: Empty recipient, empty payload, unknown type, or a
            declared type whose payload is empty
    """
    errors: dict[str, list[str]] = {}

    to = _clean(recipient_id)
    if not to:
        errors["to"] = ["Recipient is required"]

    if not isinstance(payload, dict):
        payload = {}

    values = {field: _clean(payload.get(field)) for field in _PAYLOAD_FIELDS.values()}
    declared = payload.get("type")

    if declared not in (None, "") and declared not in MessageKind.values:
        errors["type"] = [f"Unknown message type: {declared}"]
    elif not any(values.values()):
        errors["payload"] = ["One of text, image or audio is required"]
    elif declared:
        if not values[_PAYLOAD_FIELDS[MessageKind(declared)]]:
            errors[_PAYLOAD_FIELDS[MessageKind(declared)]] = [
                f"A {declared} message needs a {declared} payload"
            ]

    if errors:
        raise ValidationError(
            "Invalid message data",
            details={"errors": errors},
        )

    if declared:
        kind = MessageKind(declared)
    elif values["text"]:
        kind = MessageKind.TEXT
    elif values["image"]:
        kind = MessageKind.IMAGE
    else:
        kind = MessageKind.AUDIO

    return {"to": to, "kind": kind.value, **values}


# =============================================================================
# ConversationPipeline
# =============================================================================


class ConversationPipeline(BaseService):
    """
    Validate, persist, and fan out direct messages.

    Holds references to the process PresenceRouter, the bot identity and
    the BotResponder. Messages addressed to the bot are stored and
    broadcast like any other, then handed to the responder.

    Error codes:
        VALIDATION_ERROR: Payload rejected; nothing stored or broadcast
        PERSISTENCE_ERROR: Store failed; nothing broadcast (retryable)
    """

    def __init__(
        self,
        router: PresenceRouter,
        bot: BotIdentity | None = None,
        responder: BotResponder | None = None,
    ):
        self.router = router
        self.bot = bot
        self.responder = responder

    def _is_bot(self, user_id: str) -> bool:
        return self.bot is not None and user_id == self.bot.user_id

    async def send(
        self,
        sender_id: str,
        recipient_id: Any,
        payload: dict[str, Any],
    ) -> ServiceResult[Message]:
        """
        Send a direct message.

        On success the stored record is broadcast as ``new_message`` to the
        recipient's room and the sender's room (once if they are the same).
        """
        sender_id = str(sender_id)
        try:
            fields = normalize_payload(recipient_id, payload)
        except ValidationError as e:
            self.get_logger().info(f"Rejected message from {sender_id}: {e.details}")
            return ServiceResult.from_exception(e)

        recipient_id = fields.pop("to")
        try:
            message = await database_sync_to_async(MessageStore.append)(
                sender_id, recipient_id, **fields
            )
        except PersistenceError as e:
            return ServiceResult.from_exception(e)

        self.fan_out(message)

        if self._is_bot(recipient_id) and not self._is_bot(sender_id):
            if self.responder is not None:
                self.responder.dispatch(self, sender_id, message.text)

        return ServiceResult.success(message)

    def fan_out(self, message: Message) -> None:
        """Broadcast a stored message to both parties' rooms."""
        data = serialize_message(message)
        self.router.broadcast(message.to_user, EVENTS.NEW_MESSAGE, data)
        if message.from_user != message.to_user:
            self.router.broadcast(message.from_user, EVENTS.NEW_MESSAGE, data)

    def relay_typing(self, from_id: str, to_id: Any, typing: bool) -> int:
        """Forward a typing indicator to the other party's room."""
        to_id = _clean(to_id)
        if not to_id:
            return 0
        return self.router.broadcast(
            to_id, EVENTS.TYPING, {"from": str(from_id), "typing": bool(typing)}
        )

    def notify_read(self, reader_id: str, other_id: str) -> None:
        """Tell ``other_id`` that ``reader_id`` has read their messages."""
        self.router.broadcast(other_id, EVENTS.MESSAGES_READ, {"from": reader_id})

    def mark_read_sync(self, reader_id: str, other_id: Any) -> ServiceResult[int]:
        """
        Mark everything ``other_id`` sent to ``reader_id`` as read.

        Synchronous variant for REST views.
        """
        reader_id = str(reader_id)
        other_id = _clean(other_id)
        if not other_id:
            return ServiceResult.failure(
                "Invalid message data",
                error_code="VALIDATION_ERROR",
                errors={"from": ["Sender is required"]},
            )
        try:
            updated = MessageStore.mark_read(other_id, reader_id)
        except PersistenceError as e:
            return ServiceResult.from_exception(e)

        self.notify_read(reader_id, other_id)
        return ServiceResult.success(updated)

    async def mark_read(self, reader_id: str, other_id: Any) -> ServiceResult[int]:
        """Async variant of mark_read_sync for the WebSocket consumer."""
        return await database_sync_to_async(self.mark_read_sync)(reader_id, other_id)
