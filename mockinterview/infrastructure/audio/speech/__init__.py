"""Speech capabilities: abstract adapters plus the Google Cloud implementations."""

from .base import SpeechInput, SpeechOutput, SpeechInputError, SpeechErrorCode
from .voices import VoiceInfo, select_natural_voice
from .stt import GoogleSpeechInput, recognize_google_sync
from .tts import GoogleSpeechOutput

__all__ = [
    "SpeechInput", "SpeechOutput", "SpeechInputError", "SpeechErrorCode",
    "VoiceInfo", "select_natural_voice",
    "GoogleSpeechInput", "recognize_google_sync", "GoogleSpeechOutput",
]
