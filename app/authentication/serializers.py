"""
Serializers for authentication models.

This module provides DRF serializers for:
- User model (read operations, contact list entries)
- Registration and login requests
- Avatar/about updates

Related files:
    - models.py: User model
    - views.py: Views that use these serializers
    - services.py: AuthService for account logic

Security:
    - Password fields are write-only
    - Identity and bot flags are read-only
    - The bot email cannot be registered by a human
"""

from django.conf import settings
from rest_framework import serializers

from authentication.models import User


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for User model (read operations).

    Returned from register/login and embedded wherever a user is shown.
    """

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "avatar_image",
            "is_avatar_image_set",
            "about",
            "is_bot",
        ]
        read_only_fields = fields


class ContactSerializer(UserSerializer):
    """
    Contact list entry.

    Adds live presence taken from the chat presence router passed in the
    serializer context as ``router``.
    """

    is_online = serializers.SerializerMethodField()

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ["is_online"]
        read_only_fields = fields

    def get_is_online(self, obj) -> bool:
        router = self.context.get("router")
        if router is None:
            return False
        return router.is_online(str(obj.id))


class RegisterSerializer(serializers.Serializer):
    """Serializer for email/password registration."""

    username = serializers.CharField(max_length=50)
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        min_length=8,
        style={"input_type": "password"},
        help_text="Password must be at least 8 characters.",
    )

    def validate_username(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Username cannot be blank.")
        return value

    def validate_email(self, value):
        value = value.lower().strip()
        # Reserved for the bot account
        if value == settings.CHAT_BOT_EMAIL.lower():
            raise serializers.ValidationError("This email address is reserved.")
        return value


class LoginSerializer(serializers.Serializer):
    """Serializer for email/password login."""

    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
    )

    def validate_email(self, value):
        return value.lower().strip()


class AuthTokenResponseSerializer(serializers.Serializer):
    """Response body for register and login (schema only)."""

    token = serializers.CharField(help_text="Bearer access token")
    user = UserSerializer()


class AvatarSerializer(serializers.Serializer):
    """Serializer for setting the avatar picture and optional bio line."""

    image = serializers.URLField(max_length=500)
    about = serializers.CharField(max_length=280, required=False, allow_blank=True)
