"""Interview system components.

This module contains the business logic for conducting mock interview calls,
including orchestration, question and feedback generation, and the event bus.
"""

# Core orchestrator class
from .orchestrator import InterviewOrchestrator

# Data models
from .models import Session, Message, TranscriptEntry, CallResult

# Structured state and wire schemas
from .schemas import (
    CallState, QuestionRequest, QuestionResponse, FeedbackRequest,
    InterviewFeedback, fallback_questions, parse_generated_questions, parse_feedback
)

# Prompts
from .prompts import InterviewPrompts

# Service classes
from .services import (
    QuestionGenerator, FeedbackGenerator, InterviewSetupService, FeedbackHandoff
)

# Event system
from .events import (
    InterviewEventBus, EventLogger, InterviewMetrics,
    EventType, NoticeLevel, InterviewEvent, CallStartedEvent,
    StateChangedEvent, AssistantPartialEvent, TurnCompletedEvent,
    NoticeEvent, CallEndedEvent, ErrorOccurredEvent
)

__all__ = [
    # Orchestrator
    "InterviewOrchestrator",

    # Data models
    "Session", "Message", "TranscriptEntry", "CallResult",

    # Schemas and state
    "CallState", "QuestionRequest", "QuestionResponse", "FeedbackRequest",
    "InterviewFeedback", "fallback_questions", "parse_generated_questions", "parse_feedback",

    # Prompts
    "InterviewPrompts",

    # Services
    "QuestionGenerator", "FeedbackGenerator", "InterviewSetupService", "FeedbackHandoff",

    # Events
    "InterviewEventBus", "EventLogger", "InterviewMetrics",
    "EventType", "NoticeLevel", "InterviewEvent", "CallStartedEvent",
    "StateChangedEvent", "AssistantPartialEvent", "TurnCompletedEvent",
    "NoticeEvent", "CallEndedEvent", "ErrorOccurredEvent",
]
