"""
Tests for the process runtime and its ASGI lifespan hook.
"""

import asyncio
from unittest.mock import patch

import pytest
from django.apps import apps
from django.db import DatabaseError

from ai.services import BotIdentityService
from authentication.models import User
from chat.runtime import RuntimeLifespan, build_runtime


@pytest.mark.django_db
class TestBuildRuntime:
    def test_runtime_resolves_bot_identity(self, settings):
        runtime = build_runtime()

        assert runtime.bot is not None
        assert runtime.bot.username == settings.CHAT_BOT_USERNAME
        assert User.objects.filter(is_bot=True).count() == 1

    def test_bootstrap_failure_leaves_bot_unset(self, caplog):
        def broken():
            raise DatabaseError("db down")

        with patch.object(BotIdentityService, "ensure_bot_identity", broken):
            runtime = build_runtime()

        assert runtime.bot is None
        assert runtime.bot_resolved is True
        assert "running without bot" in caplog.text

    def test_bot_email_held_by_human_leaves_bot_unset(self, settings, caplog):
        User.objects.create_user(email=settings.CHAT_BOT_EMAIL, password="pw-12345678")
        runtime = build_runtime(resolve_bot=False)

        assert runtime.resolve_bot() is None
        assert runtime.bot is None
        assert runtime.bot_resolved is True
        assert "running without bot" in caplog.text

    def test_deferred_resolution(self):
        runtime = build_runtime(resolve_bot=False)

        assert runtime.bot is None
        assert runtime.bot_resolved is False

    def test_delay_defaults_to_setting(self, settings):
        settings.CHAT_BOT_REPLY_DELAY_SECONDS = 2.5

        assert build_runtime(resolve_bot=False).responder.delay == 2.5

    def test_app_config_builds_runtime_once(self):
        config = apps.get_app_config("chat")

        first = config.get_runtime()

        assert config.get_runtime() is first
        assert first.bot is not None


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
class TestRuntimeLifespan:
    async def test_startup_resolves_bot_and_shutdown_completes(self):
        runtime = build_runtime(resolve_bot=False)
        inbox = asyncio.Queue()
        sent = []

        async def send(message):
            sent.append(message["type"])

        await inbox.put({"type": "lifespan.startup"})
        await inbox.put({"type": "lifespan.shutdown"})

        await RuntimeLifespan(runtime)({"type": "lifespan"}, inbox.get, send)

        assert sent == ["lifespan.startup.complete", "lifespan.shutdown.complete"]
        assert runtime.bot is not None
