import asyncio

import pytest

from mockinterview.config import CallTimings
from mockinterview.interview import InterviewEventBus, InterviewOrchestrator
from mockinterview.interview.testing import (
    CallStateTrace, MockChatClient, MockSpeechInput, MockSpeechOutput, create_test_session
)


async def _settle(rounds: int = 50) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    """Let scheduled callbacks and zero-delay restarts run."""
    return _settle


@pytest.fixture
def session():
    return create_test_session(num_questions=2)


@pytest.fixture
def event_bus():
    return InterviewEventBus()


@pytest.fixture
def trace(event_bus):
    return CallStateTrace(event_bus)


@pytest.fixture
def make_orchestrator(session, event_bus):
    def _make(replies=None, speech_input=None, speech_output=None, **kwargs):
        chat = MockChatClient(replies)
        orchestrator = InterviewOrchestrator(
            session=kwargs.pop("session", session),
            chat_client=chat,
            speech_input=speech_input,
            speech_output=speech_output,
            event_bus=event_bus,
            timings=kwargs.pop("timings", CallTimings.immediate()),
            **kwargs,
        )
        return orchestrator, chat

    return _make


@pytest.fixture
def voice_orchestrator(make_orchestrator):
    speech_input = MockSpeechInput()
    speech_output = MockSpeechOutput()
    orchestrator, chat = make_orchestrator(
        replies=["Welcome! Tell me about a system you designed."],
        speech_input=speech_input,
        speech_output=speech_output,
    )
    return orchestrator, chat, speech_input, speech_output
