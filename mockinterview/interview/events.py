"""
Event-driven architecture for the interview call.

The orchestrator publishes what happened; front-ends and loggers subscribe
and render from events, never from adapter state.
"""
import time
import logging
from abc import ABC
from typing import Dict, Any, List, Callable, Optional
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of interview events."""
    CALL_STARTED = "call_started"
    STATE_CHANGED = "state_changed"
    ASSISTANT_PARTIAL = "assistant_partial"
    TURN_COMPLETED = "turn_completed"
    NOTICE = "notice"
    CALL_ENDED = "call_ended"
    ERROR_OCCURRED = "error_occurred"


class NoticeLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class InterviewEvent(ABC):
    """Base class for all interview events."""
    event_type: EventType
    interview_id: Optional[str]
    timestamp: float
    data: Dict[str, Any]


@dataclass
class CallStartedEvent(InterviewEvent):
    """Event fired when the call goes active."""
    def __init__(self, interview_id: Optional[str], num_questions: int, voice_enabled: bool,
                 timestamp: Optional[float] = None):
        super().__init__(
            event_type=EventType.CALL_STARTED,
            interview_id=interview_id,
            timestamp=timestamp or time.time(),
            data={"num_questions": num_questions, "voice_enabled": voice_enabled}
        )


@dataclass
class StateChangedEvent(InterviewEvent):
    """Event fired whenever a call-state flag flips."""
    def __init__(self, interview_id: Optional[str], state: Dict[str, bool],
                 timestamp: Optional[float] = None):
        super().__init__(
            event_type=EventType.STATE_CHANGED,
            interview_id=interview_id,
            timestamp=timestamp or time.time(),
            data={"state": state}
        )


@dataclass
class AssistantPartialEvent(InterviewEvent):
    """Event fired with the assistant's reply so far while it streams."""
    def __init__(self, interview_id: Optional[str], text: str,
                 timestamp: Optional[float] = None):
        super().__init__(
            event_type=EventType.ASSISTANT_PARTIAL,
            interview_id=interview_id,
            timestamp=timestamp or time.time(),
            data={"text": text}
        )


@dataclass
class TurnCompletedEvent(InterviewEvent):
    """Event fired when the assistant reply for a turn is final."""
    def __init__(self, interview_id: Optional[str], user_text: str, assistant_text: str,
                 question_index: int, timestamp: Optional[float] = None):
        super().__init__(
            event_type=EventType.TURN_COMPLETED,
            interview_id=interview_id,
            timestamp=timestamp or time.time(),
            data={
                "user_text": user_text,
                "assistant_text": assistant_text,
                "question_index": question_index
            }
        )


@dataclass
class NoticeEvent(InterviewEvent):
    """User-visible message (the front-end's toast)."""
    def __init__(self, interview_id: Optional[str], message: str,
                 level: NoticeLevel = NoticeLevel.INFO, timestamp: Optional[float] = None):
        super().__init__(
            event_type=EventType.NOTICE,
            interview_id=interview_id,
            timestamp=timestamp or time.time(),
            data={"message": message, "level": level.value}
        )


@dataclass
class CallEndedEvent(InterviewEvent):
    """Event fired when the call ends and the transcript is handed off."""
    def __init__(self, interview_id: Optional[str], transcript_entries: int,
                 questions_reached: int, timestamp: Optional[float] = None):
        super().__init__(
            event_type=EventType.CALL_ENDED,
            interview_id=interview_id,
            timestamp=timestamp or time.time(),
            data={
                "transcript_entries": transcript_entries,
                "questions_reached": questions_reached
            }
        )


@dataclass
class ErrorOccurredEvent(InterviewEvent):
    """Event fired when an error occurs."""
    def __init__(self, interview_id: Optional[str], error_type: str,
                 error_message: str, component: str, timestamp: Optional[float] = None):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            interview_id=interview_id,
            timestamp=timestamp or time.time(),
            data={
                "error_type": error_type,
                "error_message": error_message,
                "component": component
            }
        )


EventHandler = Callable[[InterviewEvent], None]


class InterviewEventBus:
    """Event bus for interview system communication."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """
        Subscribe to all events.

        Args:
            handler: Function to call for any event
        """
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Unsubscribe from specific event type.

        Args:
            event_type: Type of event to stop listening for
            handler: Handler function to remove
        """
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type}")
            except ValueError:
                logger.warning(f"Handler not found for {event_type}")

    def emit(self, event: InterviewEvent) -> None:
        """
        Emit an event to all subscribers. Handler failures are logged, never raised.

        Args:
            event: Event to emit
        """
        logger.debug(f"Emitting event: {event.event_type} for interview {event.interview_id}")

        # Call specific handlers
        for handler in list(self._handlers.get(event.event_type, ())):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

        # Call global handlers
        for handler in list(self._global_handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.log_level = log_level

    def handle_event(self, event: InterviewEvent) -> None:
        """Log event details. Streaming partials go to DEBUG."""
        level = logging.DEBUG if event.event_type == EventType.ASSISTANT_PARTIAL else self.log_level
        self.logger.log(level, f"Event: {event.event_type.value} | Interview: {event.interview_id} | Data: {event.data}")


class InterviewMetrics:
    """Collects metrics from interview events."""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self.calls_started = 0
        self.calls_ended = 0
        self.turns_completed = 0
        self.partial_updates = 0
        self.notices = 0
        self.errors_occurred = 0

    def handle_event(self, event: InterviewEvent) -> None:
        """Update metrics based on event."""
        if event.event_type == EventType.CALL_STARTED:
            self.calls_started += 1
        elif event.event_type == EventType.CALL_ENDED:
            self.calls_ended += 1
        elif event.event_type == EventType.TURN_COMPLETED:
            self.turns_completed += 1
        elif event.event_type == EventType.ASSISTANT_PARTIAL:
            self.partial_updates += 1
        elif event.event_type == EventType.NOTICE:
            self.notices += 1
        elif event.event_type == EventType.ERROR_OCCURRED:
            self.errors_occurred += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return {
            "calls_started": self.calls_started,
            "calls_ended": self.calls_ended,
            "turns_completed": self.turns_completed,
            "partial_updates": self.partial_updates,
            "notices": self.notices,
            "errors_occurred": self.errors_occurred
        }
