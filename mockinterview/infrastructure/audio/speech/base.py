"""
Abstract speech capabilities injected into the interview orchestrator.

Adapters report facts only (started, result, error, ended); deciding what
to do with them is the orchestrator's job.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, List, Optional

from .voices import VoiceInfo, select_natural_voice

logger = logging.getLogger("speech")


class SpeechErrorCode(Enum):
    """Why a listening attempt produced no utterance."""
    NO_SPEECH = "no-speech"
    NOT_ALLOWED = "not-allowed"
    ABORTED = "aborted"
    NETWORK = "network"
    OTHER = "other"


class SpeechInputError(RuntimeError):
    """A listening attempt failed with a classified reason."""

    def __init__(self, code: SpeechErrorCode, message: str = ""):
        super().__init__(message or code.value)
        self.code = code


class SpeechInput(ABC):
    """
    Single-shot speech recognition.

    Each ``start()`` runs one listening attempt that ends in exactly one of
    ``on_result`` (followed by ``on_end``) or ``on_error``. Callbacks are
    plain callables invoked on the event loop.
    """

    def __init__(self):
        self.on_start: Optional[Callable[[], None]] = None
        self.on_result: Optional[Callable[[str], None]] = None
        self.on_error: Optional[Callable[[SpeechErrorCode], None]] = None
        self.on_end: Optional[Callable[[], None]] = None
        self._task: Optional[asyncio.Task] = None

    def is_available(self) -> bool:
        """Whether this platform can capture speech at all."""
        return True

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Begin one listening attempt. Returns False if one is already running."""
        if self.running:
            logger.debug("Speech input already running; start ignored")
            return False
        self._task = asyncio.get_running_loop().create_task(self._attempt())
        return True

    def stop(self) -> None:
        """Abandon the current attempt, if any. Safe to call when idle."""
        if self.running:
            self._task.cancel()
        self._task = None

    def close(self) -> None:
        self.stop()

    @abstractmethod
    async def _listen_once(self) -> str:
        """Capture and recognize one utterance. Raise SpeechInputError on failure."""

    async def _attempt(self) -> None:
        self._notify(self.on_start)
        if self._task is not asyncio.current_task():
            logger.debug("Listening attempt stopped before capture began")
            return
        try:
            text = (await self._listen_once() or "").strip()
            if not text:
                raise SpeechInputError(SpeechErrorCode.NO_SPEECH)
        except asyncio.CancelledError:
            logger.debug("Listening attempt cancelled")
            raise
        except SpeechInputError as e:
            logger.info(f"Speech input error: {e.code.value}")
            self._notify(self.on_error, e.code)
            return
        except Exception as e:
            logger.error(f"Speech input failed: {e}")
            self._notify(self.on_error, SpeechErrorCode.OTHER)
            return

        self._notify(self.on_result, text)
        self._notify(self.on_end)

    @staticmethod
    def _notify(callback, *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Speech input callback failed: {e}", exc_info=True)


class SpeechOutput(ABC):
    """
    Text-to-speech playback with at most one active utterance.

    The voice catalog is loaded once and shared; a ``speak()`` issued before
    it arrives waits for it.
    """

    def __init__(self, preferred_voice: Optional[str] = None):
        self.preferred_voice = preferred_voice
        self._voices_task: Optional[asyncio.Task] = None
        self._playback: Optional[asyncio.Task] = None
        self._utterance_id = 0

    def is_available(self) -> bool:
        return True

    async def _load_voices(self) -> List[VoiceInfo]:
        """Fetch the platform voice catalog. Default: none, use the platform voice."""
        return []

    @abstractmethod
    async def _play(self, text: str, voice: Optional[VoiceInfo]) -> None:
        """Synthesize and play ``text``; must stop promptly when cancelled."""

    async def voices(self) -> List[VoiceInfo]:
        if self._voices_task is None:
            self._voices_task = asyncio.get_running_loop().create_task(self._load_voices())
        try:
            return await asyncio.shield(self._voices_task)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Voice catalog unavailable, using platform default: {e}")
            return []

    async def select_voice(self) -> Optional[VoiceInfo]:
        return select_natural_voice(await self.voices(), self.preferred_voice)

    async def speak(self, text: str) -> None:
        """Voice ``text`` and return when playback ends, fails or is cancelled. Never raises."""
        if not text or not text.strip():
            return

        self.cancel()
        self._utterance_id += 1
        utterance_id = self._utterance_id

        voice = await self.select_voice()
        if utterance_id != self._utterance_id:
            # Superseded or cancelled while the catalog loaded
            return

        playback = asyncio.get_running_loop().create_task(self._play(text, voice))
        self._playback = playback
        try:
            await asyncio.wait({playback})
        except asyncio.CancelledError:
            playback.cancel()
            raise

        if playback.cancelled():
            logger.debug("Utterance cancelled")
        elif playback.exception() is not None:
            logger.error(f"Speech playback failed: {playback.exception()}")
        if self._playback is playback:
            self._playback = None

    def cancel(self) -> None:
        """Stop the current utterance, tolerating one that already finished."""
        self._utterance_id += 1
        if self._playback is not None and not self._playback.done():
            self._playback.cancel()
        self._playback = None

    def close(self) -> None:
        self.cancel()
        if self._voices_task is not None and not self._voices_task.done():
            self._voices_task.cancel()
