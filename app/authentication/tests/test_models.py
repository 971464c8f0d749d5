"""
Tests for the User model and UserManager.

Covers:
- Email-based creation and password handling
- Display name defaults
- Bot username uniqueness
- Contact listing
"""

import pytest
from django.db import IntegrityError, transaction

from authentication.models import User
from authentication.tests.factories import UserFactory


@pytest.mark.django_db
class TestUserManager:
    """Tests for UserManager.create_user and friends."""

    def test_create_user_hashes_password(self):
        """Raw passwords are never stored."""
        user = User.objects.create_user(email="carol@example.com", password="pw-12345678")

        assert user.password != "pw-12345678"
        assert user.check_password("pw-12345678")

    def test_create_user_without_password_is_unusable(self):
        """Accounts created without a password cannot log in."""
        user = User.objects.create_user(email="bot@example.com", username="Bot")

        assert user.has_usable_password() is False

    def test_create_user_defaults_username_to_email_local_part(self):
        """Every contact has a display name."""
        user = User.objects.create_user(email="dave@example.com", password="pw-12345678")

        assert user.username == "dave"

    def test_create_user_requires_email(self):
        with pytest.raises(ValueError):
            User.objects.create_user(email="", password="pw-12345678")

    def test_create_superuser_sets_flags(self):
        admin = User.objects.create_superuser(email="admin@example.com", password="x" * 10)

        assert admin.is_staff is True
        assert admin.is_superuser is True

    def test_contacts_for_excludes_self_and_inactive(self, user, other_user, deactivated_user):
        """Contacts are every other active user."""
        contacts = list(User.objects.contacts_for(user.pk))

        assert other_user in contacts
        assert user not in contacts
        assert deactivated_user not in contacts

    def test_contacts_for_includes_bot(self, user):
        """The bot is listed like any other peer."""
        bot = UserFactory(is_bot=True, username="BoloAI", password=None)

        assert bot in list(User.objects.contacts_for(user.pk))


@pytest.mark.django_db
class TestUserModel:
    """Tests for User model fields and constraints."""

    def test_id_is_stable_uuid_string(self, user):
        """User ids are opaque strings once rendered."""
        assert len(str(user.id)) == 36

    def test_str_returns_email(self, user):
        assert str(user) == "alice@example.com"

    def test_bot_usernames_are_unique(self):
        """Two bot accounts cannot share a username."""
        UserFactory(is_bot=True, username="BoloAI", password=None)

        with pytest.raises(IntegrityError), transaction.atomic():
            UserFactory(is_bot=True, username="BoloAI", password=None)

    def test_human_usernames_may_repeat(self):
        """Display names are not unique among humans."""
        UserFactory(username="sam")
        UserFactory(username="sam")

        assert User.objects.filter(username="sam").count() == 2
