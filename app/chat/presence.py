"""
In-process presence rooms for WebSocket fan-out.

Every authenticated user id has a room. A room holds the live connections
(browser tabs, devices) of that user; broadcasting to a user id delivers
an event to every connection in the room.

Related files:
    - consumers.py: ChatConsumer implements the Connection protocol
    - services.py: ConversationPipeline broadcasts through the router
    - runtime.py: One router per process, shared by reference

Concurrency:
    Rooms and the reverse membership index are sharded into lock stripes
    keyed by hash(user_id) and hash(connection_id). Operations on
    unrelated users never contend on a single global lock. The router is
    safe to call from the event loop and from sync worker threads (REST
    views run under sync_to_async / WSGI threads).

Delivery:
    broadcast() only calls Connection.deliver(), which enqueues onto the
    connection's outbox and returns immediately. The connection's own
    writer task performs the network send, so one slow socket never
    stalls a broadcast and per-connection event order is preserved.

Usage:
    router = PresenceRouter()
    router.join("u1", connection)
    router.broadcast("u1", "typing", {"from": "u2", "typing": True})
    router.leave(connection)
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from chat.constants import PRESENCE_CONFIG

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


@runtime_checkable
class Connection(Protocol):
    """
    Protocol for a live client connection.

    Example:
        class ListConnection:
            connection_id = "c-1"

            def __init__(self):
                self.events = []

            def deliver(self, event, payload):
                self.events.append((event, payload))
    """

    connection_id: str

    def deliver(self, event: str, payload: Any) -> None:
        """Enqueue an event for this connection without blocking."""
        ...


class _Stripe:
    """One lock guarding one shard of a keyed mapping."""

    __slots__ = ("lock", "items")

    def __init__(self):
        self.lock = threading.Lock()
        self.items: dict = {}


class PresenceRouter:
    """
    Registry of user rooms and their live connections.

    Invariants:
        - A connection appears at most once per room
        - A room with no connections does not exist
        - The membership index lists exactly the rooms a connection is in
    """

    def __init__(self, stripes: int = PRESENCE_CONFIG.LOCK_STRIPES):
        if stripes < 1:
            raise ValueError("stripes must be positive")
        # user_id -> {connection_id: Connection}
        self._rooms = [_Stripe() for _ in range(stripes)]
        # connection_id -> set of user_ids
        self._memberships = [_Stripe() for _ in range(stripes)]

    def _room_stripe(self, user_id: str) -> _Stripe:
        return self._rooms[hash(user_id) % len(self._rooms)]

    def _membership_stripe(self, connection_id: str) -> _Stripe:
        return self._memberships[hash(connection_id) % len(self._memberships)]

    # =========================================================================
    # Membership
    # =========================================================================

    def join(self, user_id: str, connection: Connection) -> None:
        """
        Add a connection to a user's room.

        Joining the same room twice with the same connection is a no-op.
        """
        user_id = str(user_id)
        connection_id = connection.connection_id

        stripe = self._room_stripe(user_id)
        with stripe.lock:
            room = stripe.items.setdefault(user_id, {})
            room[connection_id] = connection

        members = self._membership_stripe(connection_id)
        with members.lock:
            members.items.setdefault(connection_id, set()).add(user_id)

        logger.debug(f"Connection {connection_id} joined room {user_id}")

    def leave(self, connection: Connection) -> None:
        """
        Remove a connection from every room it joined.

        Unknown connections are ignored. Rooms left empty are deleted.
        """
        connection_id = connection.connection_id

        members = self._membership_stripe(connection_id)
        with members.lock:
            user_ids = members.items.pop(connection_id, set())

        for user_id in user_ids:
            stripe = self._room_stripe(user_id)
            with stripe.lock:
                room = stripe.items.get(user_id)
                if room is None:
                    continue
                room.pop(connection_id, None)
                if not room:
                    del stripe.items[user_id]

        if user_ids:
            logger.debug(f"Connection {connection_id} left {len(user_ids)} room(s)")

    # =========================================================================
    # Delivery
    # =========================================================================

    def broadcast(self, user_id: str, event: str, payload: Any) -> int:
        """
        Deliver an event to every connection in a user's room.

        Never raises. A connection whose deliver() fails is logged and
        skipped; an empty or unknown room drops the event.

        Returns:
            Number of connections the event was handed to
        """
        user_id = str(user_id)
        stripe = self._room_stripe(user_id)
        with stripe.lock:
            room = stripe.items.get(user_id)
            connections = list(room.values()) if room else []

        delivered = 0
        for connection in connections:
            try:
                connection.deliver(event, payload)
            except Exception:
                logger.exception(
                    f"Dropping {event} for connection "
                    f"{getattr(connection, 'connection_id', '?')} in room {user_id}"
                )
                continue
            delivered += 1
        return delivered

    # =========================================================================
    # Queries
    # =========================================================================

    def connection_count(self, user_id: str) -> int:
        """Number of live connections in a user's room."""
        user_id = str(user_id)
        stripe = self._room_stripe(user_id)
        with stripe.lock:
            room = stripe.items.get(user_id)
            return len(room) if room else 0

    def is_online(self, user_id: str) -> bool:
        """Whether the user has at least one live connection."""
        return self.connection_count(user_id) > 0
