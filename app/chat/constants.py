"""
Constants and configuration for chat module features.

This module centralizes configuration values for:
- WebSocket events and close codes
- Presence routing
- Error messages sent to clients

Import example:
    from chat.constants import EVENTS, PRESENCE_CONFIG
"""

from typing import Final


# =============================================================================
# WebSocket Events
# =============================================================================


class EVENTS:
    """Event names carried in the ``type`` field of every frame."""

    # client -> server
    JOIN_ROOM: Final[str] = "join_room"
    SEND_MESSAGE: Final[str] = "send_message"
    MARK_READ: Final[str] = "mark_read"

    # server -> client
    NEW_MESSAGE: Final[str] = "new_message"
    MESSAGES_READ: Final[str] = "messages_read"
    ERROR: Final[str] = "error"

    # both directions
    TYPING: Final[str] = "typing"


class CLOSE_CODES:
    """Application close codes for the chat WebSocket."""

    UNAUTHORIZED: Final[int] = 4001


class ERROR_MESSAGES:
    """Client-facing error texts (the ``msg`` of an error event)."""

    INVALID_MESSAGE: Final[str] = "Invalid message data"
    SEND_FAILED: Final[str] = "Failed to send message"
    FORBIDDEN_ROOM: Final[str] = "Cannot join another user's room"
    UNKNOWN_EVENT: Final[str] = "Unknown event type"
    MARK_READ_FAILED: Final[str] = "Failed to mark messages as read"


# =============================================================================
# Presence Configuration
# =============================================================================


class PRESENCE_CONFIG:
    """Configuration for the in-process presence router."""

    # Number of lock stripes; keys hash onto a stripe
    LOCK_STRIPES: Final[int] = 64

    # Frames a connection may have queued before new ones are dropped
    OUTBOX_MAX_FRAMES: Final[int] = 256
