import asyncio

import pytest

from mockinterview.config import CallTimings, GREETING_UTTERANCE
from mockinterview.interview import EventType
from mockinterview.interview.testing import (
    MockSpeechInput, MockSpeechOutput, create_test_session, stream_error
)
from mockinterview.infrastructure.audio.speech import SpeechErrorCode


@pytest.mark.asyncio
async def test_two_question_call_produces_four_entry_transcript(make_orchestrator, trace):
    received = []
    orchestrator, chat = make_orchestrator(
        replies=[
            ["Welcome, Alex. ", "Tell me about a system you designed end to end."],
            "Thanks for sharing. How do you debug a production incident?",
        ],
        on_complete=received.append,
    )

    await orchestrator.start()
    assert orchestrator.session.current_question_index == 1

    await orchestrator.submit_text("I built a payments ledger on PostgreSQL.")
    assert orchestrator.session.current_question_index == 1

    transcript = await orchestrator.end()

    assert transcript == "\n\n".join([
        f"Alex: {GREETING_UTTERANCE}",
        "AI Interviewer: Welcome, Alex. Tell me about a system you designed end to end.",
        "Alex: I built a payments ledger on PostgreSQL.",
        "AI Interviewer: Thanks for sharing. How do you debug a production incident?",
    ])
    assert received == [transcript]
    assert len(orchestrator.result.transcript) == 4
    assert chat.call_count == 2
    assert orchestrator.get_metrics()["turns_completed"] == 2
    assert not orchestrator.state.active


@pytest.mark.asyncio
async def test_streamed_fragments_grow_one_trailing_assistant_message(make_orchestrator, trace):
    orchestrator, chat = make_orchestrator(replies=[["Hel", "lo, ", "Alex."]])

    await orchestrator.start()

    partials = [e.data["text"] for e in trace.of_type(EventType.ASSISTANT_PARTIAL)]
    assert partials == ["Hel", "Hello, ", "Hello, Alex."]
    assert [m.role for m in orchestrator.messages] == ["user", "assistant"]
    assert orchestrator.messages[-1].content == "Hello, Alex."


@pytest.mark.asyncio
async def test_history_sent_to_model_alternates_roles(make_orchestrator):
    orchestrator, chat = make_orchestrator(replies=["First question?", "Second question?"])

    await orchestrator.start()
    await orchestrator.submit_text("My answer.")

    assert chat.calls[0]["messages"] == [{"role": "user", "content": GREETING_UTTERANCE}]
    assert [m["role"] for m in chat.calls[1]["messages"]] == ["user", "assistant", "user"]


@pytest.mark.asyncio
async def test_system_prompt_tracks_current_question(make_orchestrator):
    orchestrator, chat = make_orchestrator(replies=["Q1?", "Q2?"])

    await orchestrator.start()
    await orchestrator.submit_text("Answer one.")

    assert "Current question index (0-based): 0" in chat.calls[0]["system_prompt"]
    assert "Current question index (0-based): 1" in chat.calls[1]["system_prompt"]


@pytest.mark.asyncio
async def test_double_submit_sends_one_request(make_orchestrator):
    orchestrator, chat = make_orchestrator()
    await orchestrator.start()

    results = await asyncio.gather(
        orchestrator.submit_text("first"),
        orchestrator.submit_text("second"),
    )

    assert chat.call_count == 2
    assert sum(r is not None for r in results) == 1
    assert not orchestrator.state.processing


@pytest.mark.asyncio
async def test_question_index_advances_by_one_and_caps(make_orchestrator, trace):
    orchestrator, chat = make_orchestrator(session=create_test_session(num_questions=3))

    await orchestrator.start()
    for answer in ["a", "b", "c", "d"]:
        await orchestrator.submit_text(answer)

    indices = [e.data["question_index"] for e in trace.of_type(EventType.TURN_COMPLETED)]
    assert indices == [1, 2, 2, 2, 2]


@pytest.mark.asyncio
async def test_failed_turn_keeps_index_and_recovers(make_orchestrator, trace):
    orchestrator, chat = make_orchestrator(
        replies=["Welcome. First question?", stream_error("Rate limited", 429), "Good. Next question?"],
        session=create_test_session(num_questions=3),
    )
    await orchestrator.start()

    assert await orchestrator.submit_text("My answer.") is None
    assert orchestrator.session.current_question_index == 1
    assert not orchestrator.state.processing
    assert "Failed to get a response. Please try again." in trace.notices()
    assert trace.of_type(EventType.ERROR_OCCURRED)
    assert [m.role for m in orchestrator.messages] == ["user", "assistant", "user"]

    assert await orchestrator.submit_text("My answer, again.") == "Good. Next question?"
    assert orchestrator.session.current_question_index == 2


@pytest.mark.asyncio
async def test_blank_and_inactive_input_is_ignored(make_orchestrator):
    orchestrator, chat = make_orchestrator()

    assert await orchestrator.submit_text("hello") is None
    assert chat.call_count == 0

    await orchestrator.start()
    assert await orchestrator.submit_text("   ") is None
    assert chat.call_count == 1


@pytest.mark.asyncio
async def test_end_on_idle_call_is_noop(make_orchestrator):
    received = []
    orchestrator, chat = make_orchestrator(on_complete=received.append)

    assert await orchestrator.end() is None
    assert received == []


@pytest.mark.asyncio
async def test_end_without_completion_handler_navigates_to_results(make_orchestrator):
    routes = []
    orchestrator, chat = make_orchestrator(on_navigate=routes.append)

    await orchestrator.start()
    await orchestrator.end()

    assert routes == ["/interview/test-interview"]


@pytest.mark.asyncio
async def test_async_completion_handler_is_awaited(make_orchestrator):
    received = []

    async def handle(transcript):
        await asyncio.sleep(0)
        received.append(transcript)

    orchestrator, chat = make_orchestrator(on_complete=handle)
    await orchestrator.start()
    transcript = await orchestrator.end()

    assert received == [transcript]


@pytest.mark.asyncio
async def test_missing_speech_input_degrades_to_text(make_orchestrator, trace):
    speech_input = MockSpeechInput(available=False)
    orchestrator, chat = make_orchestrator(speech_input=speech_input)

    await orchestrator.start()

    assert not orchestrator.voice_enabled
    assert any("not supported" in notice for notice in trace.notices())
    assert speech_input.start_count == 0
    assert await orchestrator.submit_text("Typed answer.") is not None


@pytest.mark.asyncio
async def test_voice_turn_speaks_then_rearms_capture(voice_orchestrator, trace, settle):
    orchestrator, chat, speech_input, speech_output = voice_orchestrator

    await orchestrator.start()
    await settle()

    assert speech_output.spoken == ["Welcome! Tell me about a system you designed."]
    assert speech_input.start_count == 1
    assert orchestrator.state.listening

    speech_input.emit_result("I designed an event pipeline.")
    await settle()

    assert chat.call_count == 2
    assert chat.calls[1]["messages"][-1]["content"] == "I designed an event pipeline."
    assert len(speech_output.spoken) == 2
    assert speech_input.start_count == 2
    assert orchestrator.state.listening
    assert trace.listening_while_speaking() == []


@pytest.mark.asyncio
async def test_mute_stops_capture_and_blocks_restarts(voice_orchestrator, settle):
    orchestrator, chat, speech_input, speech_output = voice_orchestrator
    await orchestrator.start()
    await settle()
    assert orchestrator.state.listening

    assert orchestrator.toggle_mute() is True
    assert not orchestrator.state.listening
    assert not speech_input.running

    starts = speech_input.start_count
    speech_input.emit_error(SpeechErrorCode.NO_SPEECH)
    await settle()
    assert speech_input.start_count == starts

    assert orchestrator.toggle_mute() is False
    await settle()
    assert speech_input.start_count == starts + 1
    assert orchestrator.state.listening


@pytest.mark.asyncio
async def test_mute_cancels_pending_restart_via_live_state(make_orchestrator):
    speech_input = MockSpeechInput()
    orchestrator, chat = make_orchestrator(
        speech_input=speech_input,
        timings=CallTimings(restart_delay=0.0, no_speech_retry_delay=0.05, call_start_listen_delay=0.0),
    )
    await orchestrator.start()
    await asyncio.sleep(0.01)
    starts = speech_input.start_count

    speech_input.emit_error(SpeechErrorCode.NO_SPEECH)
    orchestrator.toggle_mute()
    await asyncio.sleep(0.1)

    assert speech_input.start_count == starts
    assert not orchestrator.state.listening


@pytest.mark.asyncio
async def test_no_speech_retries_capture(voice_orchestrator, settle):
    orchestrator, chat, speech_input, speech_output = voice_orchestrator
    await orchestrator.start()
    await settle()

    speech_input.emit_error(SpeechErrorCode.NO_SPEECH)
    assert not orchestrator.state.listening
    await settle()

    assert speech_input.start_count == 2
    assert orchestrator.state.listening


@pytest.mark.asyncio
async def test_permission_denied_notifies_without_restart(voice_orchestrator, trace, settle):
    orchestrator, chat, speech_input, speech_output = voice_orchestrator
    await orchestrator.start()
    await settle()

    speech_input.emit_error(SpeechErrorCode.NOT_ALLOWED)
    await settle()

    assert any("allow microphone access" in notice for notice in trace.notices())
    assert speech_input.start_count == 1
    assert not orchestrator.state.listening


@pytest.mark.asyncio
async def test_other_speech_error_ends_listening(voice_orchestrator, settle):
    orchestrator, chat, speech_input, speech_output = voice_orchestrator
    await orchestrator.start()
    await settle()

    speech_input.emit_error(SpeechErrorCode.NETWORK)
    await settle()

    assert speech_input.start_count == 1
    assert not orchestrator.state.listening


@pytest.mark.asyncio
async def test_capture_start_is_refused_when_state_moved_on(voice_orchestrator, settle):
    orchestrator, chat, speech_input, speech_output = voice_orchestrator
    await orchestrator.start()
    await settle()
    orchestrator.toggle_mute()

    speech_input.start()

    assert not speech_input.running
    assert not orchestrator.state.listening


@pytest.mark.asyncio
async def test_end_cancels_playback_and_capture(make_orchestrator, settle):
    speech_input = MockSpeechInput()
    speech_output = MockSpeechOutput(duration=10.0)
    orchestrator, chat = make_orchestrator(speech_input=speech_input, speech_output=speech_output)

    starting = asyncio.create_task(orchestrator.start())
    await settle()
    assert orchestrator.state.speaking

    transcript = await orchestrator.end()
    await asyncio.wait_for(starting, timeout=1.0)
    await settle()

    assert transcript.count("\n\n") == 1
    assert not orchestrator.state.speaking
    assert not orchestrator.state.listening
    assert speech_input.start_count == 0


@pytest.mark.asyncio
async def test_close_resets_state(voice_orchestrator, settle):
    orchestrator, chat, speech_input, speech_output = voice_orchestrator
    await orchestrator.start()
    await settle()

    await orchestrator.close()

    assert not speech_input.running
    assert orchestrator.state.snapshot() == {
        "active": False, "muted": False, "speaking": False, "listening": False, "processing": False,
    }


class HeldChatClient:
    """Streams one fragment, then waits for the test before finishing."""

    def __init__(self):
        self.release = asyncio.Event()
        self.first_fragment_sent = asyncio.Event()

    async def stream_reply(self, messages, system_prompt, on_update=None):
        on_update("Partial wel")
        self.first_fragment_sent.set()
        await self.release.wait()
        on_update("Partial welcome text")
        return "Partial welcome text"


@pytest.mark.asyncio
async def test_end_mid_stream_freezes_result_and_stops_partials(make_orchestrator, trace):
    orchestrator, _ = make_orchestrator()
    held = HeldChatClient()
    orchestrator.chat_client = held

    starting = asyncio.create_task(orchestrator.start())
    await asyncio.wait_for(held.first_fragment_sent.wait(), timeout=1.0)

    await orchestrator.end()
    events_at_end = len(trace.events)
    held.release.set()
    await asyncio.wait_for(starting, timeout=1.0)

    assert [(m.role, m.content) for m in orchestrator.result.messages] == [
        ("user", GREETING_UTTERANCE), ("assistant", "Partial wel"),
    ]
    late = trace.events[events_at_end:]
    assert [e for e in late if e.event_type == EventType.ASSISTANT_PARTIAL] == []
    assert orchestrator.session.current_question_index == 0
