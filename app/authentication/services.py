"""
Authentication services.

This module provides the AuthService class for registration, login,
bearer token issuance and avatar updates.

Related files:
    - models.py: User
    - views.py: REST endpoints calling these services

Security:
    - Passwords hashed with Django's configured hasher
    - Tokens are simplejwt access tokens signed with SECRET_KEY; the chat
      WebSocket authenticator verifies the same tokens
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.contrib.auth import authenticate
from django.db import IntegrityError
from rest_framework_simplejwt.tokens import AccessToken

from core.services import BaseService, ServiceResult

from authentication.models import User

if TYPE_CHECKING:
    from django.http import HttpRequest


class AuthService(BaseService):
    """
    Centralized authentication business logic.

    Usage:
        from authentication.services import AuthService

        result = AuthService.register("alice", "alice@example.com", "s3cret-pass")
        if result.success:
            token = AuthService.issue_token(result.data)

    Error codes:
        USER_EXISTS: Email already registered
        INVALID_CREDENTIALS: Unknown email or wrong password
    """

    @classmethod
    def register(
        cls,
        username: str,
        email: str,
        password: str,
    ) -> ServiceResult[User]:
        """
        Create a new account.

        Args:
            username: Display name
            email: Login identifier (normalized by the serializer)
            password: Raw password, hashed before storage

        Returns:
            ServiceResult with the created User
        """
        if User.objects.filter(email__iexact=email).exists():
            return ServiceResult.failure(
                "User already exists",
                error_code="USER_EXISTS",
            )

        try:
            with cls.atomic():
                user = User.objects.create_user(
                    email=email,
                    password=password,
                    username=username,
                )
        except IntegrityError:
            # Lost a race against a concurrent registration with the same email
            return ServiceResult.failure(
                "User already exists",
                error_code="USER_EXISTS",
            )

        cls.get_logger().info(f"Registered user {user.id}")
        return ServiceResult.success(user)

    @classmethod
    def login(
        cls,
        email: str,
        password: str,
        request: HttpRequest | None = None,
    ) -> ServiceResult[User]:
        """
        Verify credentials.

        Bots and inactive users cannot log in (the bot has an unusable
        password and ModelBackend rejects inactive users).
        """
        user = authenticate(request, email=email, password=password)
        if user is None:
            cls.get_logger().info("Rejected login with invalid credentials")
            return ServiceResult.failure(
                "Invalid credentials",
                error_code="INVALID_CREDENTIALS",
            )
        return ServiceResult.success(user)

    @staticmethod
    def issue_token(user: User) -> str:
        """Issue a bearer access token whose user_id claim is the user's id."""
        return str(AccessToken.for_user(user))

    @classmethod
    def set_avatar(
        cls,
        user: User,
        image: str,
        about: str | None = None,
    ) -> ServiceResult[User]:
        """Set the avatar picture and, when given, the bio line."""
        user.avatar_image = image
        user.is_avatar_image_set = True
        update_fields = ["avatar_image", "is_avatar_image_set", "updated_at"]
        if about is not None:
            user.about = about
            update_fields.append("about")
        user.save(update_fields=update_fields)

        cls.get_logger().debug(f"User {user.id} updated avatar")
        return ServiceResult.success(user)
