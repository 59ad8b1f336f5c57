"""
Speech-to-text functionality using Google Cloud Speech.
"""
import asyncio
import logging
import threading
from typing import Optional

from google.api_core import exceptions as google_exceptions
from google.cloud import speech

from ....config import LANGUAGE_CODE, SAMPLE_RATE_CAPTURE
from .base import SpeechInput, SpeechInputError, SpeechErrorCode

logger = logging.getLogger("speech_stt")


def recognize_google_sync(pcm16_bytes: bytes,
                          sr_hz: int = SAMPLE_RATE_CAPTURE,
                          language: str = LANGUAGE_CODE,
                          client: Optional[speech.SpeechClient] = None) -> str:
    """
    Synchronous Google Cloud Speech-to-Text recognition.
    Returns transcribed text or empty string if no speech detected.
    """
    client = client or speech.SpeechClient()
    audio = speech.RecognitionAudio(content=pcm16_bytes)
    config = speech.RecognitionConfig(
        encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
        sample_rate_hertz=sr_hz,
        language_code=language,
        enable_automatic_punctuation=True,
    )

    try:
        resp = client.recognize(config=config, audio=audio)
    except google_exceptions.PermissionDenied as e:
        logger.error("Speech recognition not permitted: %s", e)
        raise SpeechInputError(SpeechErrorCode.NOT_ALLOWED, str(e)) from e
    except google_exceptions.GoogleAPIError as e:
        logger.error("Speech recognition failed: %s", e)
        raise SpeechInputError(SpeechErrorCode.NETWORK, str(e)) from e

    texts = [r.alternatives[0].transcript for r in resp.results if r.alternatives]
    return " ".join(texts).strip()


class GoogleSpeechInput(SpeechInput):
    """Microphone capture plus Google Cloud recognition, one utterance per attempt."""

    def __init__(self, language_code: str = LANGUAGE_CODE, recorder=None):
        super().__init__()
        self.language_code = language_code
        self._recorder = recorder
        self._client: Optional[speech.SpeechClient] = None
        self._abort: Optional[threading.Event] = None

    def _get_recorder(self):
        if self._recorder is None:
            # Lazy import keeps PortAudio out of text-only runs
            from ..processing.capture import MicrophoneRecorder
            self._recorder = MicrophoneRecorder()
        return self._recorder

    def is_available(self) -> bool:
        try:
            from ..processing.capture import MicrophoneRecorder
        except OSError as e:
            logger.info(f"PortAudio not available: {e}")
            return False
        return MicrophoneRecorder.has_input_device()

    def start(self) -> bool:
        if self.running:
            return False
        # Must exist before on_start fires; a stop() from there has to reach the capture thread
        self._abort = threading.Event()
        return super().start()

    async def _listen_once(self) -> str:
        recorder = self._get_recorder()
        abort = self._abort
        if abort is None or abort.is_set():
            raise SpeechInputError(SpeechErrorCode.ABORTED, "Stopped before capture began")

        pcm16 = await asyncio.to_thread(recorder.record_utterance, abort)

        if self._client is None:
            self._client = speech.SpeechClient()
        return await asyncio.to_thread(
            recognize_google_sync, pcm16, recorder.sample_rate, self.language_code, self._client,
        )

    def stop(self) -> None:
        # The capture thread cannot be cancelled, only told to give up
        if self._abort is not None:
            self._abort.set()
            self._abort = None
        super().stop()
