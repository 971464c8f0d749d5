"""
Process-wide chat runtime.

ChatRuntime bundles the objects every connection shares:
- router: PresenceRouter holding the live connections
- pipeline: ConversationPipeline (validate, persist, fan out)
- responder: BotResponder owning deferred bot replies
- bot: BotIdentity resolved from the database, or None when the
  bootstrap failed

config/asgi.py builds one runtime at import time, installs it on the chat
app config and passes it by reference to ChatConsumer. The bot identity
is resolved during ASGI lifespan startup (database access is not allowed
while the server's event loop is importing the application); servers
without lifespan support resolve it on the first WebSocket connection.

Related files:
    - apps.py: ChatConfig.get_runtime() for non-ASGI processes
    - consumers.py: ChatConsumer(runtime=...)
    - ai/services.py: BotIdentityService
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from channels.db import database_sync_to_async
from django.conf import settings
from django.core.exceptions import ObjectDoesNotExist
from django.db import DatabaseError

from ai.responder import BotResponder
from ai.services import BotIdentityService, ReplyService
from chat.presence import PresenceRouter
from chat.services import ConversationPipeline

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ai.services import BotIdentity

logger = logging.getLogger(__name__)


@dataclass
class ChatRuntime:
    """Shared chat objects for one process."""

    router: PresenceRouter
    pipeline: ConversationPipeline
    responder: BotResponder
    bot_resolved: bool = field(default=False)

    @property
    def bot(self) -> BotIdentity | None:
        return self.pipeline.bot

    def resolve_bot(self) -> BotIdentity | None:
        """
        Resolve (and create if needed) the bot identity.

        Failure is logged and leaves the bot unset; the chat keeps working
        without a bot peer.
        """
        try:
            self.pipeline.bot = BotIdentityService.ensure_bot_identity()
        except (DatabaseError, ObjectDoesNotExist):
            logger.exception("Bot identity bootstrap failed; running without bot")
            self.pipeline.bot = None
        else:
            logger.info(
                f"Bot identity resolved: {self.bot.username} ({self.bot.user_id})"
            )
        self.bot_resolved = True
        return self.pipeline.bot

    async def startup(self) -> None:
        """Resolve the bot identity once. Safe to call repeatedly."""
        if not self.bot_resolved:
            await database_sync_to_async(self.resolve_bot)()

    async def shutdown(self) -> None:
        """Cancel pending bot replies."""
        await self.responder.shutdown()


def build_runtime(
    resolve_bot: bool = True,
    generate: Callable[[str], Awaitable[str]] | None = None,
    sleep: Callable[[float], Awaitable[None]] | None = None,
    delay: float | None = None,
) -> ChatRuntime:
    """
    Build a runtime from settings.

    Args:
        resolve_bot: Resolve the bot identity now (sync contexts only)
        generate: Reply generator, defaults to ReplyService.generate_reply
        sleep: Sleep used before bot replies, defaults to asyncio.sleep
        delay: Bot reply delay, defaults to CHAT_BOT_REPLY_DELAY_SECONDS
    """
    router = PresenceRouter()
    responder = BotResponder(
        generate=generate or ReplyService.generate_reply,
        fallback=settings.CHAT_BOT_FALLBACK_REPLY,
        delay=settings.CHAT_BOT_REPLY_DELAY_SECONDS if delay is None else delay,
        sleep=sleep or asyncio.sleep,
    )
    pipeline = ConversationPipeline(router, bot=None, responder=responder)
    runtime = ChatRuntime(router=router, pipeline=pipeline, responder=responder)

    if resolve_bot:
        runtime.resolve_bot()
    return runtime


class RuntimeLifespan:
    """
    ASGI lifespan handler driving ChatRuntime.startup/shutdown.

    Mounted under the "lifespan" key of the ProtocolTypeRouter.
    """

    def __init__(self, runtime: ChatRuntime):
        self.runtime = runtime

    async def __call__(self, scope, receive, send):
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await self.runtime.startup()
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await self.runtime.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return
