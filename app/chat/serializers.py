"""
Serializers for chat API and WebSocket events.

Serializers:
    MessageSerializer: Stored message as sent to clients (REST history and
        the ``new_message`` event share this shape)
    MarkReadResponseSerializer: Body of the REST read-receipt response

Wire names:
    The model's from_user/to_user/kind are exposed as from/to/type, which
    are the field names web clients already use.
"""

from rest_framework import serializers

from chat.models import Message, MessageKind


class MessageSerializer(serializers.ModelSerializer):
    """Stored message (read only)."""

    class Meta:
        model = Message
        fields = [
            "id",
            "text",
            "image",
            "audio",
            "read",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_fields(self):
        fields = super().get_fields()
        # "from" is a keyword, so these cannot be declared as class attributes
        fields["from"] = serializers.CharField(source="from_user", read_only=True)
        fields["to"] = serializers.CharField(source="to_user", read_only=True)
        fields["type"] = serializers.ChoiceField(
            source="kind", choices=MessageKind.choices, read_only=True
        )
        return fields


class MarkReadResponseSerializer(serializers.Serializer):
    """Response of POST /api/v1/chat/messages/<other_id>/read/."""

    success = serializers.BooleanField()
    updated = serializers.IntegerField(help_text="Messages newly marked read")


def serialize_message(message: Message) -> dict:
    """Render a stored message as a plain dict for event payloads."""
    return dict(MessageSerializer(message).data)
