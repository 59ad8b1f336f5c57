"""
Audio capture and speech services for the interviewer.

This module contains all audio-related functionality organized into clear submodules:
- processing: Signal processing and microphone capture with VAD
- speech: Speech-to-text and text-to-speech adapters
"""

from .speech import (
    SpeechInput, SpeechOutput, SpeechInputError, SpeechErrorCode,
    VoiceInfo, select_natural_voice,
    GoogleSpeechInput, GoogleSpeechOutput, recognize_google_sync,
)

__all__ = [
    "SpeechInput",
    "SpeechOutput",
    "SpeechInputError",
    "SpeechErrorCode",
    "VoiceInfo",
    "select_natural_voice",
    "GoogleSpeechInput",
    "GoogleSpeechOutput",
    "recognize_google_sync",
]
