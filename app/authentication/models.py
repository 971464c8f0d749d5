"""
Authentication models.

This module defines the account model referenced by every chat message:
- User: Email-based user with display fields used by the contact list

Related files:
    - managers.py: Custom user manager for email-based creation
    - services.py: AuthService business logic

Identity:
    User.id is a UUID. Chat code never joins against this table; it treats
    the id as an opaque string (see chat.models.Message).

Security:
    - User passwords hashed with Django's configured hasher
    - The bot account is created with an unusable password
"""

import uuid

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.db.models import Q

from authentication.managers import UserManager


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the login identifier.

    Fields:
        id: Stable opaque identity (UUID), immutable after registration
        email: Login identifier, unique
        username: Display name shown in the contact list
        avatar_image: URL of the avatar picture
        is_avatar_image_set: Whether the user picked an avatar
        about: Short bio line
        is_bot: Marks the synthetic assistant peer
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Constraints:
        Bot usernames are unique so the startup bootstrap can look the
        bot up by name and create it at most once.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Stable opaque user identity",
    )

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (login identifier)",
    )

    username = models.CharField(
        max_length=50,
        db_index=True,
        help_text="Display name shown to contacts",
    )

    avatar_image = models.URLField(
        max_length=500,
        blank=True,
        default="",
        help_text="Avatar picture URL",
    )
    is_avatar_image_set = models.BooleanField(
        default=False,
        help_text="Whether the user has chosen an avatar",
    )
    about = models.CharField(
        max_length=280,
        blank=True,
        default="",
        help_text="Short bio line",
    )

    is_bot = models.BooleanField(
        default=False,
        help_text="Whether this account is the automated assistant peer",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]
        constraints = [
            models.UniqueConstraint(
                fields=["username"],
                condition=Q(is_bot=True),
                name="auth_user_unique_bot_username",
            ),
        ]

    def __str__(self):
        return self.email

    def get_full_name(self):
        return self.username or self.email

    def get_short_name(self):
        return self.username or self.email.split("@")[0]
