"""
Test configuration and fixtures for chat tests.

This module provides:
- Fixtures wiring the doubles from doubles.py into a runtime
- A fully wired ChatRuntime installed as the process runtime

Usage:
    @pytest.mark.asyncio
    @pytest.mark.django_db(transaction=True)
    async def test_example(runtime, connection_factory):
        alice = connection_factory("u1")
        result = await runtime.pipeline.send("u1", "u2", {"text": "hi"})
        assert alice.events_of("new_message")
"""

import pytest
from django.apps import apps

from chat.runtime import build_runtime
from chat.tests.doubles import FakeConnection, ManualClock, StubGenerator

# =============================================================================
# Runtime fixtures
# =============================================================================


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def generator():
    return StubGenerator()


@pytest.fixture
def runtime(transactional_db, clock, generator):
    """
    ChatRuntime with a resolved bot, stub generator and virtual clock.

    Installed as the process runtime so REST views share it.
    """
    rt = build_runtime(
        resolve_bot=True,
        generate=generator,
        sleep=clock.sleep,
        delay=1.0,
    )
    return apps.get_app_config("chat").set_runtime(rt)


@pytest.fixture
def bot(runtime):
    return runtime.bot


@pytest.fixture
def connection_factory(runtime):
    """
    Join FakeConnections to rooms of the test runtime.

    Usage:
        alice = connection_factory("u1")
    """

    def _make(user_id, connection_id=None):
        connection = FakeConnection(connection_id)
        runtime.router.join(user_id, connection)
        return connection

    return _make
