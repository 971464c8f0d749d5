"""
AI services for the chat bot.

This module provides:
- ReplyService: Generate the bot's reply to a user message
- BotIdentityService: Ensure the bot's user account exists
- BotIdentity: Resolved bot id and name, shared by reference at runtime

Related files:
    - providers/: Provider implementations
    - responder.py: Deferred reply job that calls ReplyService
    - chat/runtime.py: Resolves the bot identity once per process

Configuration:
    - AI_DEFAULT_PROVIDER: "openai" or "anthropic"
    - AI_DEFAULT_MODEL: Model passed to the provider
    - AI_MAX_TOKENS: Reply length cap
    - AI_TIMEOUT_SECONDS: Hard timeout around the provider call
    - AI_SYSTEM_PROMPT: Bot persona
    - OPENAI_API_KEY / ANTHROPIC_API_KEY: Without the key for the chosen
      provider the bot answers with CHAT_BOT_OFFLINE_REPLY
    - CHAT_BOT_USERNAME, CHAT_BOT_EMAIL, CHAT_BOT_AVATAR, CHAT_BOT_ABOUT

Usage:
    from ai.services import BotIdentityService, ReplyService

    bot = BotIdentityService.ensure_bot_identity()
    reply = await ReplyService.generate_reply("hello")
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from django.conf import settings
from django.db import IntegrityError

from core.services import BaseService

from ai.exceptions import GenerationError
from ai.providers import get_provider
from authentication.models import User


_API_KEY_SETTINGS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


class ReplyService(BaseService):
    """
    Generates bot replies through the configured provider.

    Providers are created once per (provider, api key) pair and reused so
    the SDK's HTTP connection pool is shared across replies.
    """

    _providers: dict = {}

    @classmethod
    def _api_key(cls, provider_type: str) -> str:
        setting = _API_KEY_SETTINGS.get(provider_type)
        return getattr(settings, setting, "") if setting else ""

    @classmethod
    def _get_provider(cls, provider_type: str, api_key: str):
        key = (provider_type, api_key)
        if key not in cls._providers:
            cls._providers[key] = get_provider(
                provider_type,
                api_key=api_key,
                default_model=settings.AI_DEFAULT_MODEL,
                timeout=settings.AI_TIMEOUT_SECONDS,
            )
        return cls._providers[key]

    @classmethod
    async def generate_reply(cls, text: str) -> str:
        """
        Generate the bot's answer to ``text``.

        Returns:
            Reply text, or the offline reply when no API key is configured

        Raises:
            GenerationError: Provider failure, timeout or empty completion
        """
        provider_type = settings.AI_DEFAULT_PROVIDER
        api_key = cls._api_key(provider_type)
        if not api_key:
            cls.get_logger().info(f"No API key for {provider_type}; using offline reply")
            return settings.CHAT_BOT_OFFLINE_REPLY

        provider = cls._get_provider(provider_type, api_key)

        try:
            response = await asyncio.wait_for(
                provider.complete(
                    prompt=text,
                    system_prompt=settings.AI_SYSTEM_PROMPT,
                    max_tokens=settings.AI_MAX_TOKENS,
                ),
                timeout=settings.AI_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError as e:
            cls.get_logger().warning(
                f"{provider_type} reply timed out after {settings.AI_TIMEOUT_SECONDS}s"
            )
            raise GenerationError(
                "Reply generation timed out",
                details={"provider": provider_type},
            ) from e

        reply = (response.get("content") or "").strip()
        if not reply:
            raise GenerationError(
                "Provider returned an empty reply",
                details={"provider": provider_type},
            )
        return reply


# =============================================================================
# Bot identity
# =============================================================================


@dataclass(frozen=True)
class BotIdentity:
    """The bot's user id (as a string) and display name."""

    user_id: str
    username: str


class BotIdentityService(BaseService):
    """Bootstrap of the bot account."""

    @classmethod
    def ensure_bot_identity(cls) -> BotIdentity:
        """
        Return the bot identity, creating the account if absent.

        Idempotent. Two processes racing to create the bot end up with one
        account: the loser hits the partial unique constraint on bot
        usernames and reads the winner's row.

        Raises:
            User.DoesNotExist: The bot email is taken by a human account
        """
        username = settings.CHAT_BOT_USERNAME
        bot = User.objects.filter(username=username, is_bot=True).first()

        if bot is None:
            try:
                with cls.atomic():
                    bot = User.objects.create_user(
                        email=settings.CHAT_BOT_EMAIL,
                        password=None,
                        username=username,
                        is_bot=True,
                        avatar_image=settings.CHAT_BOT_AVATAR,
                        is_avatar_image_set=True,
                        about=settings.CHAT_BOT_ABOUT,
                    )
                cls.get_logger().info(f"Created bot account {bot.id} ({username})")
            except IntegrityError:
                try:
                    bot = User.objects.get(username=username, is_bot=True)
                except User.DoesNotExist:
                    cls.get_logger().error(
                        f"Cannot create bot account: {settings.CHAT_BOT_EMAIL} "
                        f"belongs to a non-bot user"
                    )
                    raise

        return BotIdentity(user_id=str(bot.id), username=bot.username)
