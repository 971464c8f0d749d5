"""
Chat system models.

Models:
    Message: A direct message between two users

Design Decisions:
    - Sender and recipient are opaque user id strings, not foreign keys;
      the bot and humans are addressed the same way
    - created_at is assigned by MessageStore, never by the client, and is
      immutable afterwards
    - read only ever moves from False to True (see MessageStore.mark_read)
    - History is ordered by (created_at, id); id breaks ties between
      messages created in the same instant
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone


class MessageKind(models.TextChoices):
    """
    Type of message content.

    TEXT: Plain text body
    IMAGE: Image URL
    AUDIO: Audio clip URL
    """

    TEXT = "text", "Text"
    IMAGE = "image", "Image"
    AUDIO = "audio", "Audio"


class Message(models.Model):
    """
    A persisted direct message.

    Fields:
        from_user: Sender user id
        to_user: Recipient user id
        text: Text body (may be empty for image/audio messages)
        image: Image URL (may be empty)
        audio: Audio URL (may be empty)
        kind: Which payload the client should render
        read: Whether the recipient has read the message
        created_at: Server-assigned creation instant
        updated_at: Last modification (read receipt)

    Constraints:
        Both parties are non-empty and at least one payload is non-empty.
    """

    from_user = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Sender user id",
    )
    to_user = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Recipient user id",
    )

    text = models.TextField(blank=True, default="")
    image = models.URLField(max_length=500, blank=True, default="")
    audio = models.URLField(max_length=500, blank=True, default="")
    kind = models.CharField(
        max_length=10,
        choices=MessageKind.choices,
        default=MessageKind.TEXT,
    )

    read = models.BooleanField(
        default=False,
        help_text="Whether the recipient has read this message",
    )

    created_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        db_index=True,
        help_text="When the message was stored",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the message was last modified",
    )

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["from_user", "to_user", "created_at"],
                name="chat_msg_pair_created_idx",
            ),
            models.Index(
                fields=["to_user", "read"],
                name="chat_msg_unread_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(from_user=""),
                name="chat_message_from_user_not_empty",
            ),
            models.CheckConstraint(
                condition=~Q(to_user=""),
                name="chat_message_to_user_not_empty",
            ),
            models.CheckConstraint(
                condition=~Q(text="") | ~Q(image="") | ~Q(audio=""),
                name="chat_message_has_payload",
            ),
        ]

    def __str__(self):
        return f"Message {self.pk} from {self.from_user} to {self.to_user}"
