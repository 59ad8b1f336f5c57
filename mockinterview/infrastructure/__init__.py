"""Infrastructure components for the mock interview engine.

This module contains low-level technical components that provide
foundational capabilities for the interview system.
"""

# Audio infrastructure
from .audio import (
    SpeechInput, SpeechOutput, SpeechInputError, SpeechErrorCode,
    GoogleSpeechInput, GoogleSpeechOutput
)

# LLM infrastructure
from .llm import VertexRestClient, StreamingChatClient, ChatStreamError

# Persistence
from .data import InterviewStore

__all__ = [
    # Speech capabilities
    "SpeechInput", "SpeechOutput", "SpeechInputError", "SpeechErrorCode",
    "GoogleSpeechInput", "GoogleSpeechOutput",

    # LLM clients
    "VertexRestClient", "StreamingChatClient", "ChatStreamError",

    # Persistence
    "InterviewStore",
]
