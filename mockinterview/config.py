"""
Mock Interview Configuration
============================

This file contains ALL configuration for the mock interview engine.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass, field
from typing import Optional


class ConfigurationError(ValueError):
    """Raised when required configuration is missing or invalid."""


# =============================================================================
# USER SETTINGS - Edit these to customize the interviewer
# =============================================================================

# REQUIRED: Set your Google Cloud project (question + feedback generation)
GOOGLE_CLOUD_PROJECT = "your-project-id"  # Change this!
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to credentials JSON

# REQUIRED: Streaming chat endpoint used during the call
CHAT_ENDPOINT_URL = ""
CHAT_API_KEY = None

# Interview settings
NUM_QUESTIONS = 5
USER_NAME = "Candidate"
DATA_DIR = "./_interviews"

# Speech settings
ENABLE_VOICE = True
TTS_VOICE = "en-US-Neural2-G"
TTS_SPEAKING_RATE = 1.1
TTS_PITCH = -1.0
LANGUAGE_CODE = "en-US"

# Logging
LOG_FILE = "./_interviews/interview.log"
LOG_LEVEL = "INFO"


# =============================================================================
# CALL TIMINGS
# =============================================================================

@dataclass
class CallTimings:
    """Delays used when re-arming speech capture.

    These are heuristics carried over from the browser client and have not
    been validated empirically; tune them per platform.
    """
    restart_delay: float = 0.5
    no_speech_retry_delay: float = 1.0
    call_start_listen_delay: float = 3.0

    @classmethod
    def immediate(cls) -> 'CallTimings':
        """Zero delays, for tests and scripted runs."""
        return cls(restart_delay=0.0, no_speech_retry_delay=0.0, call_start_listen_delay=0.0)


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# Conversation
GREETING_UTTERANCE = "Hello, I'm ready to begin the interview."
ASSISTANT_LABEL = "AI Interviewer"
TRANSCRIPT_SEPARATOR = "\n\n"
RESULTS_ROUTE = "/interview/{interview_id}"

# Audio capture
SAMPLE_RATE_CAPTURE = 16000
CHANNELS = 1
FRAME_MS = 30
TARGET_RMS = 0.06
MAX_UTTERANCE_SECONDS = 30.0

# Voice Activity Detection
VAD_SILENCE_THRESHOLD = 0.01
VAD_SILENCE_DURATION = 1.2
VAD_MIN_SPEECH_DURATION = 0.3
VAD_NO_SPEECH_TIMEOUT = 8.0

# Voice selection
VOICE_QUALITY_MARKERS = ("natural", "premium", "neural", "enhanced", "studio", "wavenet")
KNOWN_NATURAL_VOICES = ("samantha", "alex", "daniel", "google us english", "google uk english")
AUDIO_PLAYERS = ("afplay", "aplay")

# LLM
VERTEX_LOCATION = "us-central1"
MODEL_NAME = "gemini-2.5-flash"
LLM_TIMEOUT = 60
MAX_OUTPUT_TOKENS = 2048

# Streaming chat
STREAM_DONE_SENTINEL = "[DONE]"
STREAM_DATA_PREFIX = "data: "


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    google_cloud_project: str
    chat_endpoint_url: str
    google_application_credentials: Optional[str] = None
    chat_api_key: Optional[str] = None
    num_questions: int = NUM_QUESTIONS
    user_name: str = USER_NAME
    data_dir: str = DATA_DIR
    enable_voice: bool = ENABLE_VOICE
    tts_voice: str = TTS_VOICE
    tts_speaking_rate: float = TTS_SPEAKING_RATE
    tts_pitch: float = TTS_PITCH
    language_code: str = LANGUAGE_CODE
    vertex_location: str = VERTEX_LOCATION
    model_name: str = MODEL_NAME
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL
    timings: CallTimings = field(default_factory=CallTimings)


def get_config() -> Config:
    """Load configuration, letting environment variables override the defaults above."""
    project = os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT
    credentials = os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS
    chat_url = os.getenv("MOCKINTERVIEW_CHAT_URL") or CHAT_ENDPOINT_URL
    chat_key = os.getenv("MOCKINTERVIEW_CHAT_API_KEY") or CHAT_API_KEY

    if project == "your-project-id":
        raise ConfigurationError("Please set GOOGLE_CLOUD_PROJECT in config.py or as environment variable")
    if not chat_url:
        raise ConfigurationError("Please set MOCKINTERVIEW_CHAT_URL to the streaming chat endpoint")

    return Config(
        google_cloud_project=project,
        google_application_credentials=credentials,
        chat_endpoint_url=chat_url,
        chat_api_key=chat_key,
        data_dir=os.getenv("MOCKINTERVIEW_DATA_DIR") or DATA_DIR,
        log_file=os.getenv("MOCKINTERVIEW_LOG_FILE") or LOG_FILE,
    )
