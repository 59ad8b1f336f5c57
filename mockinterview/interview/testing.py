"""
Testing infrastructure with mock capabilities for the interview call.
"""
import asyncio
import json
from typing import Any, Dict, List, Optional, Sequence, Union

from .events import InterviewEventBus, InterviewEvent, EventType
from .models import Session
from ..infrastructure.audio.speech import SpeechInput, SpeechOutput, SpeechErrorCode, VoiceInfo
from ..infrastructure.llm import ChatStreamError

ScriptedReply = Union[str, Sequence[str], Exception]


class MockSpeechInput(SpeechInput):
    """
    Speech input driven by the test.

    ``start()`` only records the attempt; the test decides how it ends by
    calling ``emit_result`` or ``emit_error``.
    """

    def __init__(self, available: bool = True):
        super().__init__()
        self.available = available
        self._running = False
        self.start_count = 0
        self.stop_count = 0

    def is_available(self) -> bool:
        return self.available

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> bool:
        if self._running:
            return False
        self._running = True
        self.start_count += 1
        self._notify(self.on_start)
        return True

    def stop(self) -> None:
        self._running = False
        self.stop_count += 1

    async def _listen_once(self) -> str:
        """Unused; attempts finish through emit_result or emit_error."""
        return ""

    def emit_result(self, text: str) -> None:
        """Finish the current attempt with a recognized utterance."""
        self._running = False
        self._notify(self.on_result, text)
        self._notify(self.on_end)

    def emit_error(self, code: SpeechErrorCode) -> None:
        """Finish the current attempt with an error."""
        self._running = False
        self._notify(self.on_error, code)


class MockSpeechOutput(SpeechOutput):
    """Speech output that records what it was asked to say."""

    def __init__(self, voices: Optional[List[VoiceInfo]] = None, duration: float = 0.0,
                 preferred_voice: Optional[str] = None):
        super().__init__(preferred_voice)
        self.catalog = list(voices or [])
        self.duration = duration
        self.spoken: List[str] = []
        self.voices_used: List[Optional[VoiceInfo]] = []
        self.catalog_loads = 0

    async def _load_voices(self) -> List[VoiceInfo]:
        self.catalog_loads += 1
        await asyncio.sleep(0)
        return self.catalog

    async def _play(self, text: str, voice: Optional[VoiceInfo]) -> None:
        self.spoken.append(text)
        self.voices_used.append(voice)
        await asyncio.sleep(self.duration)


class MockChatClient:
    """
    Streaming chat client with scripted replies.

    Each scripted reply is a full string, a list of fragments streamed one by
    one, or an exception to raise instead of streaming.
    """

    DEFAULT_REPLY = "Thank you, that concludes our interview."

    def __init__(self, replies: Optional[List[ScriptedReply]] = None):
        self.replies = list(replies or [])
        self.calls: List[Dict[str, Any]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def stream_reply(self, messages, system_prompt: str, on_update=None) -> str:
        self.calls.append({
            "messages": [dict(m) for m in messages],
            "system_prompt": system_prompt,
        })
        scripted = self.replies.pop(0) if self.replies else self.DEFAULT_REPLY

        if isinstance(scripted, Exception):
            await asyncio.sleep(0)
            raise scripted

        fragments = [scripted] if isinstance(scripted, str) else list(scripted)
        reply = ""
        for fragment in fragments:
            await asyncio.sleep(0)
            reply += fragment
            if on_update:
                on_update(reply)
        return reply


class MockLLMClient:
    """Mock one-shot LLM client for the question and feedback generators."""

    def __init__(self, mock_responses: Optional[List[Union[str, Exception]]] = None):
        self.mock_responses = list(mock_responses or [])
        self.current_response_idx = 0
        self.request_history = []

    def generate_content(self, prompt_text: str, temperature: float = 0.0, **kwargs) -> str:
        """Return mock LLM response."""
        self.request_history.append({
            "prompt": prompt_text,
            "temperature": temperature,
            "kwargs": kwargs
        })

        if self.current_response_idx < len(self.mock_responses):
            response = self.mock_responses[self.current_response_idx]
            self.current_response_idx += 1
            if isinstance(response, Exception):
                raise response
            return response
        else:
            # Default response no parser accepts
            return "I'm sorry, I can't help with that."


class CallStateTrace:
    """Records every published call state for invariant checks."""

    def __init__(self, event_bus: InterviewEventBus):
        self.states: List[Dict[str, bool]] = []
        self.events: List[InterviewEvent] = []
        event_bus.subscribe(EventType.STATE_CHANGED, self._on_state)
        event_bus.subscribe_all(self.events.append)

    def _on_state(self, event: InterviewEvent) -> None:
        self.states.append(dict(event.data["state"]))

    def listening_while_speaking(self) -> List[Dict[str, bool]]:
        return [s for s in self.states if s["listening"] and s["speaking"]]

    def of_type(self, event_type: EventType) -> List[InterviewEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def notices(self) -> List[str]:
        return [e.data["message"] for e in self.of_type(EventType.NOTICE)]


def create_test_session(num_questions: int = 2, interview_id: Optional[str] = "test-interview") -> Session:
    """A small session for tests."""
    questions = [
        "Tell me about a system you designed end to end.",
        "How do you debug a production incident?",
        "How do you keep a large codebase maintainable?",
        "Describe a time you disagreed with a teammate.",
        "What would you improve in your last project?",
    ]
    return Session(
        role="Backend Engineer",
        interview_type="technical",
        level="senior",
        tech_stack=("Python", "PostgreSQL", "Python"),
        questions=tuple(questions[:num_questions]),
        interview_id=interview_id,
        user_name="Alex",
    )


def valid_feedback_response(overall: int = 82) -> str:
    """A well-formed feedback payload wrapped in prose, as models tend to return it."""
    payload = {
        "overallScore": overall,
        "categoryScores": {
            "technicalKnowledge": 85,
            "communication": 80,
            "problemSolving": 79,
            "culturalFit": 84,
        },
        "strengths": ["Clear structure", "Good trade-off discussion"],
        "improvements": ["Quantify impact"],
        "finalAssessment": "Solid senior candidate.",
    }
    return "Here is the evaluation:\n" + json.dumps(payload) + "\nGood luck!"


def stream_error(message: str = "Failed to get response", status_code: Optional[int] = 500) -> ChatStreamError:
    return ChatStreamError(message, status_code=status_code)
