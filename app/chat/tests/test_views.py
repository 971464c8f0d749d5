"""
Tests for chat REST views.

- MessageHistoryView: GET /api/v1/chat/messages/{other_id}/
- MarkReadView: POST /api/v1/chat/messages/{other_id}/read/
"""

from unittest.mock import patch

import pytest
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from authentication.tests.factories import UserFactory
from chat.exceptions import PersistenceError
from chat.models import Message
from chat.services import MessageStore


def history_url(other_id):
    return f"/api/v1/chat/messages/{other_id}/"


def read_url(other_id):
    return f"/api/v1/chat/messages/{other_id}/read/"


@pytest.fixture
def alice(transactional_db):
    return UserFactory(username="alice")


@pytest.fixture
def bob(transactional_db):
    return UserFactory(username="bob")


@pytest.fixture
def client_for():
    def _make(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(user)}")
        return client

    return _make


class TestMessageHistoryView:
    """GET /api/v1/chat/messages/{other_id}/"""

    def test_history_lists_both_directions_in_order(self, runtime, alice, bob, client_for):
        a, b = str(alice.id), str(bob.id)
        MessageStore.append(a, b, text="hi bob")
        MessageStore.append(b, a, text="hi alice")
        MessageStore.append(a, "someone-else", text="not shown")

        response = client_for(alice).get(history_url(b))

        assert response.status_code == status.HTTP_200_OK
        assert [m["text"] for m in response.data] == ["hi bob", "hi alice"]
        assert response.data[0]["from"] == a
        assert response.data[0]["to"] == b
        assert response.data[0]["type"] == "text"

    def test_history_requires_authentication(self, runtime):
        response = APIClient().get(history_url("u2"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestMarkReadView:
    """POST /api/v1/chat/messages/{other_id}/read/"""

    def test_mark_read_updates_and_notifies_sender(
        self, runtime, alice, bob, client_for, connection_factory
    ):
        a, b = str(alice.id), str(bob.id)
        alice_tab = connection_factory(a)
        MessageStore.append(a, b, text="one")
        MessageStore.append(a, b, text="two")

        response = client_for(bob).post(read_url(a))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"success": True, "updated": 2}
        assert not Message.objects.filter(read=False).exists()
        assert alice_tab.events_of("messages_read") == [{"from": b}]

    def test_second_mark_read_updates_nothing(self, runtime, alice, bob, client_for):
        MessageStore.append(str(alice.id), str(bob.id), text="one")
        client = client_for(bob)

        client.post(read_url(alice.id))
        response = client.post(read_url(alice.id))

        assert response.data["updated"] == 0

    def test_store_failure_is_reported_as_retryable(self, runtime, alice, bob, client_for):
        def failing_mark_read(*args, **kwargs):
            raise PersistenceError("Messages could not be marked read")

        with patch.object(MessageStore, "mark_read", failing_mark_read):
            response = client_for(bob).post(read_url(alice.id))

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.data["error_code"] == "PERSISTENCE_ERROR"
        assert response.data["retryable"] is True


class TestSchema:
    """GET /schema/ documents the chat endpoints and their serializers."""

    def test_chat_endpoints_are_documented(self):
        response = APIClient().get("/schema/")

        assert response.status_code == status.HTTP_200_OK
        body = response.content.decode()
        assert "/api/v1/chat/messages/{other_id}/" in body
        assert "/api/v1/chat/messages/{other_id}/read/" in body
        assert "MarkReadResponse:" in body
        assert "SendMessage" not in body
