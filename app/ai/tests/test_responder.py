"""
Tests for BotResponder.

Uses a recording pipeline and a virtual clock, so no database and no
real waiting are involved.

Features tested:
- typing on, delay, typing off, reply (in that order)
- fallback text on generation failure or empty reply
- job state transitions
- pending/drain/shutdown task ownership
"""

import asyncio

import pytest

from ai.exceptions import GenerationError
from ai.responder import BotResponder, ReplyState
from ai.services import BotIdentity
from chat.presence import PresenceRouter
from chat.tests.doubles import FakeConnection, ManualClock, StubGenerator
from core.services import ServiceResult

FALLBACK = "Oof, my brain connection timed out. Try again later? 😵‍💫"


class RecordingPipeline:
    """Just enough of ConversationPipeline for the responder."""

    def __init__(self, bot, router, fail=False):
        self.bot = bot
        self.router = router
        self.fail = fail
        self.sent = []

    async def send(self, sender_id, recipient_id, payload):
        self.sent.append((sender_id, recipient_id, payload))
        self.router.broadcast(recipient_id, "new_message", {"from": sender_id, **payload})
        if self.fail:
            return ServiceResult.failure("Message could not be stored", error_code="PERSISTENCE_ERROR")
        return ServiceResult.success(None)


@pytest.fixture
def bot():
    return BotIdentity(user_id="bot-1", username="BoloAI")


@pytest.fixture
def router():
    return PresenceRouter()


@pytest.fixture
def pipeline(bot, router):
    return RecordingPipeline(bot, router)


@pytest.fixture
def user_tab(router):
    connection = FakeConnection()
    router.join("u1", connection)
    return connection


@pytest.fixture
def clock():
    return ManualClock()


def make_responder(generate, clock, delay=1.0):
    return BotResponder(generate=generate, fallback=FALLBACK, delay=delay, sleep=clock.sleep)


@pytest.mark.asyncio
class TestBotResponder:
    async def test_reply_sequence(self, pipeline, user_tab, clock, bot):
        responder = make_responder(StubGenerator("hi human"), clock)

        responder.dispatch(pipeline, "u1", "hello")
        assert user_tab.events == [("typing", {"from": bot.user_id, "typing": True})]

        await responder.drain()

        assert user_tab.events == [
            ("typing", {"from": bot.user_id, "typing": True}),
            ("typing", {"from": bot.user_id, "typing": False}),
            ("new_message", {"from": bot.user_id, "text": "hi human"}),
        ]
        assert pipeline.sent == [(bot.user_id, "u1", {"text": "hi human"})]
        assert clock.sleeps == [1.0]

    async def test_generation_error_sends_fallback(self, pipeline, user_tab, clock):
        responder = make_responder(StubGenerator(error=GenerationError("down")), clock)

        responder.dispatch(pipeline, "u1", "hello")
        await responder.drain()

        assert pipeline.sent[0][2] == {"text": FALLBACK}

    async def test_unexpected_error_sends_fallback(self, pipeline, clock):
        responder = make_responder(StubGenerator(error=RuntimeError("bug")), clock)

        responder.dispatch(pipeline, "u1", "hello")
        await responder.drain()

        assert pipeline.sent[0][2] == {"text": FALLBACK}

    async def test_empty_reply_sends_fallback(self, pipeline, clock):
        responder = make_responder(StubGenerator(""), clock)

        responder.dispatch(pipeline, "u1", "hello")
        await responder.drain()

        assert pipeline.sent[0][2] == {"text": FALLBACK}

    async def test_job_states(self, pipeline):
        seen = []
        job_holder = {}

        async def generate(text):
            seen.append(job_holder["job"].state)
            return "ok"

        async def sleep(delay):
            seen.append(job_holder["job"].state)

        responder = BotResponder(generate=generate, fallback=FALLBACK, sleep=sleep)
        job_holder["job"] = responder.dispatch(pipeline, "u1", "hello")
        assert job_holder["job"].state is ReplyState.IDLE

        await responder.drain()

        assert seen == [ReplyState.GENERATING, ReplyState.REPLYING]
        assert job_holder["job"].state is ReplyState.IDLE

    async def test_every_message_gets_its_own_job(self, pipeline, clock):
        responder = make_responder(StubGenerator("ok"), clock)

        first = responder.dispatch(pipeline, "u1", "one")
        second = responder.dispatch(pipeline, "u1", "two")
        await responder.drain()

        assert first.id != second.id
        assert len(pipeline.sent) == 2

    async def test_pending_and_shutdown(self, pipeline, clock):
        release = asyncio.Event()

        async def generate(text):
            await release.wait()
            return "late"

        responder = make_responder(generate, clock)
        responder.dispatch(pipeline, "u1", "hello")
        await asyncio.sleep(0)

        assert len(responder.pending) == 1

        await responder.shutdown()

        assert responder.pending == []
        assert pipeline.sent == []

    async def test_failed_send_is_logged(self, bot, router, clock, caplog):
        pipeline = RecordingPipeline(bot, router, fail=True)
        responder = make_responder(StubGenerator("ok"), clock)

        responder.dispatch(pipeline, "u1", "hello")
        await responder.drain()

        assert "could not be sent" in caplog.text
