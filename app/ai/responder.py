"""
Deferred bot replies.

When a user messages the bot, ConversationPipeline calls
BotResponder.dispatch(). The responder:

    1. Broadcasts typing {from: bot, typing: true} to the user's room
    2. Awaits the reply generator (any failure gives the fallback text)
    3. Awaits the configured delay
    4. Broadcasts typing {from: bot, typing: false}
    5. Sends the reply through the pipeline as a message from the bot

Each reply runs as an asyncio task owned by the responder, so the
sender's request returns immediately and shutdown can cancel pending
replies. Replies to rapid successive messages may arrive in any order.

Related files:
    - services.py: ReplyService.generate_reply, BotIdentity
    - chat/services.py: ConversationPipeline
    - chat/runtime.py: Builds the responder and cancels it on shutdown
"""

from __future__ import annotations

import asyncio
import enum
import itertools
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from chat.constants import EVENTS

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from chat.services import ConversationPipeline

logger = logging.getLogger(__name__)


class ReplyState(enum.Enum):
    """Life cycle of one reply job."""

    IDLE = "idle"
    GENERATING = "generating"
    REPLYING = "replying"


@dataclass
class ReplyJob:
    """One pending reply to one user message."""

    id: int
    user_id: str
    text: str
    state: ReplyState = ReplyState.IDLE


class BotResponder:
    """
    Schedules and tracks bot reply jobs.

    Args:
        generate: Async callable turning the user's text into a reply
        fallback: Text sent when generation fails
        delay: Seconds between generation and the reply
        sleep: Awaitable sleep; tests pass a virtual clock
    """

    def __init__(
        self,
        generate: Callable[[str], Awaitable[str]],
        fallback: str,
        delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.generate = generate
        self.fallback = fallback
        self.delay = delay
        self.sleep = sleep
        self._tasks: dict[asyncio.Task, ReplyJob] = {}
        self._ids = itertools.count(1)

    @property
    def pending(self) -> list[ReplyJob]:
        """Jobs that have not finished yet."""
        return [job for task, job in self._tasks.items() if not task.done()]

    def dispatch(self, pipeline: ConversationPipeline, user_id: str, text: str) -> ReplyJob:
        """
        Start a reply job for a message ``user_id`` sent to the bot.

        Must be called from the running event loop.
        """
        bot_id = pipeline.bot.user_id
        pipeline.router.broadcast(user_id, EVENTS.TYPING, {"from": bot_id, "typing": True})

        job = ReplyJob(id=next(self._ids), user_id=user_id, text=text)
        task = asyncio.get_running_loop().create_task(
            self._run(pipeline, job), name=f"bot-reply-{job.id}"
        )
        self._tasks[task] = job
        task.add_done_callback(self._forget)
        logger.debug(f"Dispatched bot reply job {job.id} for {user_id}")
        return job

    def _forget(self, task: asyncio.Task) -> None:
        job = self._tasks.pop(task, None)
        if task.cancelled() or job is None:
            return
        if task.exception() is not None:
            logger.error(
                f"Bot reply job {job.id} for {job.user_id} failed",
                exc_info=task.exception(),
            )

    async def _run(self, pipeline: ConversationPipeline, job: ReplyJob) -> None:
        bot_id = pipeline.bot.user_id

        job.state = ReplyState.GENERATING
        try:
            reply = await self.generate(job.text)
        except Exception:
            logger.exception(f"Reply generation failed for job {job.id}; using fallback")
            reply = self.fallback
        if not reply:
            reply = self.fallback

        job.state = ReplyState.REPLYING
        try:
            await self.sleep(self.delay)
            pipeline.router.broadcast(
                job.user_id, EVENTS.TYPING, {"from": bot_id, "typing": False}
            )
            result = await pipeline.send(bot_id, job.user_id, {"text": reply})
            if not result.success:
                logger.error(f"Bot reply job {job.id} could not be sent: {result.error}")
        finally:
            job.state = ReplyState.IDLE

    async def drain(self) -> None:
        """Wait until every dispatched job has finished."""
        while True:
            tasks = [task for task in self._tasks if not task.done()]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel pending jobs and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} pending bot reply job(s)")
