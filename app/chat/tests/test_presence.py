"""
Tests for PresenceRouter.

Features tested:
- Room membership (join idempotence, leave cleans every room)
- Broadcast fan-out and counts
- Failure isolation between connections
- Thread safety under concurrent join/leave/broadcast
"""

import threading

import pytest

from chat.presence import Connection, PresenceRouter
from chat.tests.doubles import BrokenConnection, FakeConnection


@pytest.fixture
def router():
    return PresenceRouter()


class TestMembership:
    """join / leave / queries."""

    def test_fake_connection_satisfies_protocol(self):
        assert isinstance(FakeConnection(), Connection)

    def test_join_makes_user_online(self, router):
        router.join("u1", FakeConnection())

        assert router.is_online("u1")
        assert router.connection_count("u1") == 1

    def test_join_is_idempotent_per_connection(self, router):
        connection = FakeConnection()
        router.join("u1", connection)
        router.join("u1", connection)

        assert router.connection_count("u1") == 1

    def test_user_may_have_many_connections(self, router):
        router.join("u1", FakeConnection())
        router.join("u1", FakeConnection())

        assert router.connection_count("u1") == 2

    def test_leave_removes_connection_from_every_room(self, router):
        connection = FakeConnection()
        router.join("u1", connection)
        router.join("lobby", connection)

        router.leave(connection)

        assert router.connection_count("u1") == 0
        assert router.connection_count("lobby") == 0

    def test_leave_keeps_other_connections(self, router):
        tab_a, tab_b = FakeConnection(), FakeConnection()
        router.join("u1", tab_a)
        router.join("u1", tab_b)

        router.leave(tab_a)

        assert router.connection_count("u1") == 1

    def test_leave_unknown_connection_is_noop(self, router):
        router.leave(FakeConnection())

        assert router.is_online("u1") is False

    def test_ids_are_compared_as_strings(self, router):
        router.join(42, FakeConnection())

        assert router.is_online("42")

    def test_stripes_must_be_positive(self):
        with pytest.raises(ValueError):
            PresenceRouter(stripes=0)


class TestBroadcast:
    """broadcast fan-out."""

    def test_broadcast_reaches_every_connection_in_room(self, router):
        tab_a, tab_b, stranger = FakeConnection(), FakeConnection(), FakeConnection()
        router.join("u1", tab_a)
        router.join("u1", tab_b)
        router.join("u3", stranger)

        delivered = router.broadcast("u1", "typing", {"from": "u2", "typing": True})

        assert delivered == 2
        assert tab_a.events == [("typing", {"from": "u2", "typing": True})]
        assert tab_b.events == tab_a.events
        assert stranger.events == []

    def test_broadcast_to_empty_room_is_dropped(self, router):
        assert router.broadcast("nobody", "typing", {}) == 0

    def test_broadcast_after_leave_delivers_nothing(self, router):
        connection = FakeConnection()
        router.join("u1", connection)
        router.leave(connection)

        assert router.broadcast("u1", "new_message", {"id": 1}) == 0
        assert connection.events == []

    def test_failing_connection_does_not_block_others(self, router, caplog):
        healthy = FakeConnection()
        router.join("u1", BrokenConnection())
        router.join("u1", healthy)

        delivered = router.broadcast("u1", "new_message", {"id": 1})

        assert delivered == 1
        assert healthy.events == [("new_message", {"id": 1})]
        assert "Dropping new_message" in caplog.text

    def test_events_keep_order_per_connection(self, router):
        connection = FakeConnection()
        router.join("u1", connection)

        for n in range(5):
            router.broadcast("u1", "new_message", {"id": n})

        assert [payload["id"] for _, payload in connection.events] == [0, 1, 2, 3, 4]


class TestConcurrency:
    """Router state stays consistent under threads."""

    def test_concurrent_join_and_leave(self, router):
        connections = [FakeConnection() for _ in range(200)]

        def churn(chunk):
            for connection in chunk:
                router.join("shared", connection)
                router.join(connection.connection_id, connection)
                router.broadcast("shared", "typing", {})
                router.leave(connection)

        threads = [
            threading.Thread(target=churn, args=(connections[i::8],)) for i in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert router.connection_count("shared") == 0
        assert not any(router.is_online(c.connection_id) for c in connections)
