"""
Interview call orchestrator.

Sequences speech capture, typed input, the streamed interviewer reply and
speech playback into one turn-taking loop on a single asyncio event loop.
"""
import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Set, Union

from .models import Session, Message, TranscriptEntry, CallResult
from .schemas import CallState
from .prompts import InterviewPrompts
from .events import (
    InterviewEventBus, EventLogger, InterviewMetrics, NoticeLevel,
    CallStartedEvent, StateChangedEvent, AssistantPartialEvent,
    TurnCompletedEvent, NoticeEvent, CallEndedEvent, ErrorOccurredEvent
)
from ..infrastructure.audio.speech import SpeechInput, SpeechOutput, SpeechErrorCode
from ..infrastructure.llm import ChatStreamError
from ..config import CallTimings, GREETING_UTTERANCE, ASSISTANT_LABEL, RESULTS_ROUTE

logger = logging.getLogger("orchestrator")

CompletionHandler = Callable[[str], Union[None, Awaitable[object]]]


class InterviewOrchestrator:
    """
    Runs one interview call.

    Speech input and output are optional capabilities: without them the same
    orchestrator runs a text-only call. All adapter callbacks read the one
    ``CallState`` held here, so delayed work always sees current values.

    Args:
        session: The interview being conducted
        chat_client: Anything with ``StreamingChatClient.stream_reply``
        speech_input: Optional speech recognition capability
        speech_output: Optional speech playback capability
        event_bus: Bus to publish on; a private one is created if omitted
        timings: Capture re-arm delays
        on_complete: Receives the joined transcript when the call ends
        on_navigate: Receives the results route when there is no ``on_complete``
    """

    def __init__(self,
                 session: Session,
                 chat_client,
                 speech_input: Optional[SpeechInput] = None,
                 speech_output: Optional[SpeechOutput] = None,
                 event_bus: Optional[InterviewEventBus] = None,
                 timings: Optional[CallTimings] = None,
                 on_complete: Optional[CompletionHandler] = None,
                 on_navigate: Optional[Callable[[str], None]] = None):
        self.session = session
        self.chat_client = chat_client
        self.speech_input = speech_input
        self.speech_output = speech_output
        self.timings = timings or CallTimings()
        self.on_complete = on_complete
        self.on_navigate = on_navigate

        self.state = CallState()
        self.messages: List[Message] = []
        self.transcript: List[TranscriptEntry] = []
        self.voice_enabled = False
        self.result: Optional[CallResult] = None
        self._tasks: Set[asyncio.Task] = set()

        # Initialize event system
        self.event_bus = event_bus or InterviewEventBus()
        self.event_logger = EventLogger()
        self.metrics = InterviewMetrics()
        self.event_bus.subscribe_all(self.event_logger.handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)

        if self.speech_input is not None:
            self.speech_input.on_start = self._on_speech_start
            self.speech_input.on_result = self._on_speech_result
            self.speech_input.on_error = self._on_speech_error
            self.speech_input.on_end = self._on_speech_end

    # ------------------------------------------------------------------
    # Call lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Go active, greet the interviewer, then begin listening."""
        if self.state.active:
            logger.debug("Call already active")
            return

        self.voice_enabled = self.speech_input is not None and self.speech_input.is_available()
        self._set_state(active=True)

        self.event_bus.emit(CallStartedEvent(
            self.session.interview_id, len(self.session.questions), self.voice_enabled
        ))
        if not self.voice_enabled:
            self._notice("Speech recognition is not supported here. Please use text input.",
                         NoticeLevel.WARNING)
        logger.info(f"Call started ({'voice' if self.voice_enabled else 'text only'}, "
                    f"{len(self.session.questions)} questions)")

        await self.handle_utterance(GREETING_UTTERANCE)
        self._schedule_listen(self.timings.call_start_listen_delay)

    async def end(self) -> Optional[str]:
        """
        End the call and hand the transcript off.

        Returns:
            The joined transcript, or None if the call was not active
        """
        if not self.state.active:
            return None

        self._set_state(active=False)
        self._stop_listening()
        self._stop_speaking()

        self.result = CallResult(
            transcript=list(self.transcript),
            messages=[Message(m.role, m.content) for m in self.messages],
            questions_reached=self.session.current_question_index + 1 if self.session.questions else 0,
        )
        transcript_text = self.result.transcript_text
        self.event_bus.emit(CallEndedEvent(
            self.session.interview_id, len(self.result.transcript), self.result.questions_reached
        ))
        logger.info(f"Call ended after {len(self.result.transcript)} transcript entries")

        if self.on_complete is not None:
            try:
                outcome = self.on_complete(transcript_text)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.error(f"Completion handler failed: {e}", exc_info=True)
                self._error(e, "completion")
        elif self.on_navigate is not None and self.session.interview_id:
            self.on_navigate(RESULTS_ROUTE.format(interview_id=self.session.interview_id))

        return transcript_text

    async def close(self) -> None:
        """Tear down the adapters and any pending work."""
        for adapter in (self.speech_input, self.speech_output):
            if adapter is None:
                continue
            try:
                adapter.close()
            except Exception as e:
                logger.warning(f"Error closing {type(adapter).__name__}: {e}")

        tasks = [t for t in self._tasks if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self.state.reset()

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    async def submit_text(self, text: str) -> Optional[str]:
        """Typed input; goes through the same pipeline as recognized speech."""
        return await self.handle_utterance(text)

    async def handle_utterance(self, text: str) -> Optional[str]:
        """
        Run one turn for a user utterance.

        Returns:
            The assistant's reply, or None if the turn was skipped or failed
        """
        text = (text or "").strip()
        if not text:
            return None
        if not self.state.active:
            logger.debug("Ignoring utterance on inactive call")
            return None
        if self.state.processing:
            logger.info("Turn already in progress; utterance ignored")
            return None

        # Claimed before the first await so a second submit sees it
        self._set_state(processing=True)
        self._stop_listening()

        self.messages.append(Message("user", text))
        self.transcript.append(TranscriptEntry(self.session.user_name, text))
        system_prompt = InterviewPrompts.interviewer_system_prompt(self.session)
        logger.info(f"Turn at question {self.session.current_question_index}: {text!r}")

        try:
            reply = await self.chat_client.stream_reply(
                [m.to_dict() for m in self.messages], system_prompt, on_update=self._on_partial
            )
        except ChatStreamError as e:
            return self._fail_turn(e)
        except Exception as e:
            logger.exception("Unexpected error while streaming reply")
            return self._fail_turn(e)

        if not self.state.active:
            logger.info("Call ended while the reply streamed; discarding it")
            self._set_state(processing=False)
            return None

        reply = reply.strip()
        if not reply:
            return self._fail_turn(ChatStreamError("Empty response"))

        self._upsert_assistant(reply)
        self.transcript.append(TranscriptEntry(ASSISTANT_LABEL, reply))
        index = self.session.advance_question()
        self.event_bus.emit(TurnCompletedEvent(self.session.interview_id, text, reply, index))

        await self._speak(reply)

        self._set_state(processing=False)
        self._schedule_listen(self.timings.restart_delay)
        return reply

    def _fail_turn(self, error: Exception) -> None:
        logger.error(f"Turn failed: {error}")
        self._error(error, "chat_stream")
        self._notice("Failed to get a response. Please try again.", NoticeLevel.ERROR)
        self._set_state(processing=False)
        self._schedule_listen(self.timings.restart_delay)
        return None

    def _on_partial(self, text: str) -> None:
        if not self.state.active:
            return
        self._upsert_assistant(text)
        self.event_bus.emit(AssistantPartialEvent(self.session.interview_id, text))

    def _upsert_assistant(self, text: str) -> None:
        """Extend the trailing assistant message in place, or start one."""
        if self.messages and self.messages[-1].role == "assistant":
            self.messages[-1].content = text
        else:
            self.messages.append(Message("assistant", text))

    # ------------------------------------------------------------------
    # Mute
    # ------------------------------------------------------------------

    def toggle_mute(self) -> bool:
        """Flip the mute state and return it."""
        muted = not self.state.muted
        self._set_state(muted=muted)
        if muted:
            self._stop_listening()
        elif self.state.active and not self.state.speaking and not self.state.processing:
            self._schedule_listen(self.timings.restart_delay)
        logger.info(f"Microphone {'muted' if muted else 'unmuted'}")
        return muted

    # ------------------------------------------------------------------
    # Speech plumbing
    # ------------------------------------------------------------------

    async def _speak(self, text: str) -> None:
        if self.speech_output is None or not self.state.active:
            return
        self._stop_listening()
        self._set_state(speaking=True)
        try:
            await self.speech_output.speak(text)
        finally:
            self._set_state(speaking=False)

    def _stop_listening(self) -> None:
        if self.speech_input is not None:
            try:
                self.speech_input.stop()
            except Exception as e:
                logger.debug(f"Speech input already stopped: {e}")
        if self.state.listening:
            self._set_state(listening=False)

    def _stop_speaking(self) -> None:
        if self.speech_output is not None:
            try:
                self.speech_output.cancel()
            except Exception as e:
                logger.debug(f"Speech output already stopped: {e}")
        if self.state.speaking:
            self._set_state(speaking=False)

    def _schedule_listen(self, delay: float) -> None:
        """Start capture after ``delay`` if the live state still allows it then."""
        if not self.voice_enabled:
            return
        self._spawn(self._listen_after(delay))

    async def _listen_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        if self.state.can_listen() and not self.state.listening:
            self.speech_input.start()

    def _on_speech_start(self) -> None:
        if not self.state.can_listen():
            # State moved on between scheduling and the adapter starting
            self.speech_input.stop()
            return
        self._set_state(listening=True)

    def _on_speech_result(self, text: str) -> None:
        self._set_state(listening=False)
        logger.info(f"Recognized: {text!r}")
        self._spawn(self.handle_utterance(text))

    def _on_speech_error(self, code: SpeechErrorCode) -> None:
        self._set_state(listening=False)
        if code == SpeechErrorCode.NO_SPEECH:
            if self.state.active and not self.state.muted and not self.state.speaking:
                self._schedule_listen(self.timings.no_speech_retry_delay)
        elif code == SpeechErrorCode.NOT_ALLOWED:
            self._notice("Please allow microphone access to use voice input. You can keep typing.",
                         NoticeLevel.WARNING)
        elif code != SpeechErrorCode.ABORTED:
            logger.warning(f"Listening stopped after speech error: {code.value}")

    def _on_speech_end(self) -> None:
        self._set_state(listening=False)
        if self.state.active and not self.state.muted and not self.state.speaking:
            self._schedule_listen(self.timings.restart_delay)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Background task failed: {task.exception()}")

    def _set_state(self, **changes: bool) -> None:
        changed = False
        for name, value in changes.items():
            if getattr(self.state, name) != value:
                setattr(self.state, name, value)
                changed = True
        if changed:
            self.event_bus.emit(StateChangedEvent(self.session.interview_id, self.state.snapshot()))

    def _notice(self, message: str, level: NoticeLevel = NoticeLevel.INFO) -> None:
        self.event_bus.emit(NoticeEvent(self.session.interview_id, message, level))

    def _error(self, error: Exception, component: str) -> None:
        self.event_bus.emit(ErrorOccurredEvent(
            self.session.interview_id, type(error).__name__, str(error), component
        ))

    def get_metrics(self) -> Dict[str, int]:
        """Get current session metrics."""
        return self.metrics.get_metrics()
