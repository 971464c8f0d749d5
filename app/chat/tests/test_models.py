"""
Tests for the Message model.

Covers defaults and the database constraints that back the store's
invariants (non-empty parties, at least one payload).
"""

import pytest
from django.db import IntegrityError, transaction

from chat.models import Message, MessageKind
from chat.tests.factories import MessageFactory


@pytest.mark.django_db
class TestMessageModel:
    """Tests for Message fields and constraints."""

    def test_defaults(self):
        message = MessageFactory(text="hi")

        assert message.kind == MessageKind.TEXT
        assert message.read is False
        assert message.image == ""
        assert message.audio == ""
        assert message.created_at is not None

    def test_image_only_message_is_allowed(self):
        message = MessageFactory(text="", image="https://cdn.example.com/a.png", kind="image")

        assert Message.objects.filter(pk=message.pk, kind="image").exists()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"from_user": ""},
            {"to_user": ""},
            {"text": "", "image": "", "audio": ""},
        ],
        ids=["empty-sender", "empty-recipient", "empty-payload"],
    )
    def test_constraints_reject_invalid_rows(self, overrides):
        """The database refuses rows the pipeline would never produce."""
        with pytest.raises(IntegrityError), transaction.atomic():
            MessageFactory(**overrides)

    def test_default_ordering_is_creation_then_id(self):
        assert Message._meta.ordering == ["created_at", "id"]

    def test_str(self):
        message = MessageFactory(from_user="u1", to_user="u2")

        assert str(message) == f"Message {message.pk} from u1 to u2"
