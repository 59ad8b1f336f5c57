"""
Microphone capture with RMS Voice Activity Detection.
"""
import time
import queue
import logging
import threading
from typing import List, Optional

import sounddevice as sd

from ....config import (
    CHANNELS, SAMPLE_RATE_CAPTURE, FRAME_MS, TARGET_RMS,
    MAX_UTTERANCE_SECONDS, VAD_SILENCE_THRESHOLD, VAD_SILENCE_DURATION,
    VAD_MIN_SPEECH_DURATION, VAD_NO_SPEECH_TIMEOUT
)
from ..speech.base import SpeechErrorCode, SpeechInputError
from .processing import remove_dc, rms_level, normalize_audio, pcm16_to_float, to_pcm16
from ....utils import with_suppressed_audio_warnings

logger = logging.getLogger("audio_capture")


class MicrophoneRecorder:
    """Records a single utterance from the default input device."""

    def __init__(self,
                 input_device: Optional[int] = None,
                 sample_rate: int = SAMPLE_RATE_CAPTURE,
                 frame_ms: int = FRAME_MS,
                 max_seconds: float = MAX_UTTERANCE_SECONDS,
                 target_rms: float = TARGET_RMS,
                 silence_threshold: float = VAD_SILENCE_THRESHOLD,
                 silence_duration: float = VAD_SILENCE_DURATION,
                 min_speech_duration: float = VAD_MIN_SPEECH_DURATION,
                 no_speech_timeout: float = VAD_NO_SPEECH_TIMEOUT):
        self.input_device = input_device
        self.sample_rate = sample_rate
        self.frame_size = int(sample_rate * frame_ms / 1000)
        self.max_seconds = max_seconds
        self.target_rms = target_rms

        # Voice Activity Detection settings
        self.silence_threshold = silence_threshold
        self.silence_duration = silence_duration
        self.min_speech_duration = min_speech_duration
        self.no_speech_timeout = no_speech_timeout

    @staticmethod
    @with_suppressed_audio_warnings
    def has_input_device(input_device: Optional[int] = None) -> bool:
        """True when PortAudio reports a usable input device."""
        try:
            sd.query_devices(input_device, kind='input')
            return True
        except (sd.PortAudioError, ValueError) as e:
            logger.info(f"No microphone available: {e}")
            return False

    @with_suppressed_audio_warnings
    def _open_stream(self, callback) -> sd.RawInputStream:
        return sd.RawInputStream(
            samplerate=self.sample_rate,
            blocksize=self.frame_size,
            device=self.input_device,
            channels=CHANNELS,
            dtype='int16',
            callback=callback,
        )

    def record_utterance(self, abort: threading.Event) -> bytes:
        """
        Block until the user has spoken and fallen silent.

        Args:
            abort: Set from another thread to stop recording early

        Returns:
            Normalized PCM16 mono audio at ``sample_rate``

        Raises:
            SpeechInputError: NOT_ALLOWED if the microphone cannot be opened,
                NO_SPEECH if nobody spoke before the timeout, ABORTED if
                ``abort`` was set
        """
        frames: 'queue.Queue[bytes]' = queue.Queue()
        overflow_counter = 0

        def callback(indata, frame_count, time_info, status):
            nonlocal overflow_counter
            if status.input_overflow:
                overflow_counter += 1
            frames.put(bytes(indata))

        collected: List[bytes] = []
        start_time = time.monotonic()
        speech_start_time = None
        last_speech_time = None
        silence_start_time = None

        try:
            stream = self._open_stream(callback)
        except (sd.PortAudioError, PermissionError) as e:
            logger.error(f"Failed to open microphone: {e}")
            raise SpeechInputError(SpeechErrorCode.NOT_ALLOWED, str(e)) from e

        with stream:
            logger.debug(f"Microphone opened ({self.sample_rate} Hz, {self.frame_size} samples/frame)")
            while True:
                if abort.is_set():
                    raise SpeechInputError(SpeechErrorCode.ABORTED, "Recording aborted")

                now = time.monotonic()
                if now - start_time > self.max_seconds:
                    logger.info(f"Utterance cut off after {self.max_seconds:.1f}s")
                    break
                if speech_start_time is None and now - start_time > self.no_speech_timeout:
                    raise SpeechInputError(SpeechErrorCode.NO_SPEECH, "No speech detected")

                try:
                    frame = frames.get(timeout=0.1)
                except queue.Empty:
                    continue

                level = rms_level(pcm16_to_float(frame))
                is_speaking = level > self.silence_threshold

                if is_speaking:
                    last_speech_time = now
                    silence_start_time = None
                    if speech_start_time is None:
                        speech_start_time = now
                        logger.debug(f"Speech detected (level: {level:.4f})")
                    collected.append(frame)
                    continue

                if speech_start_time is None:
                    continue

                collected.append(frame)
                if silence_start_time is None:
                    silence_start_time = now
                elif now - silence_start_time >= self.silence_duration:
                    speech_duration = last_speech_time - speech_start_time
                    if speech_duration >= self.min_speech_duration:
                        logger.debug(f"Speech ended (spoke for {speech_duration:.1f}s)")
                        break
                    # Too short to be an answer; keep waiting
                    logger.debug(f"Speech too short ({speech_duration:.1f}s), continuing")
                    speech_start_time = None
                    silence_start_time = None
                    collected.clear()

        if overflow_counter:
            logger.warning(f"Input overflowed {overflow_counter} time(s) during capture")
        if not collected:
            raise SpeechInputError(SpeechErrorCode.NO_SPEECH, "No audio captured")

        audio = pcm16_to_float(b"".join(collected))
        audio = normalize_audio(remove_dc(audio), self.target_rms)
        logger.info(f"Captured {audio.size / self.sample_rate:.1f}s of audio")
        return to_pcm16(audio)
