"""
Text-to-speech functionality using Google Cloud TTS.
"""
import os
import asyncio
import shutil
import logging
import tempfile
from typing import List, Optional, Sequence

from google.cloud import texttospeech

from ....config import (
    TTS_VOICE, TTS_SPEAKING_RATE, TTS_PITCH, LANGUAGE_CODE, AUDIO_PLAYERS
)
from .base import SpeechOutput
from .voices import VoiceInfo

logger = logging.getLogger("speech_tts")


class GoogleSpeechOutput(SpeechOutput):
    """Google Cloud synthesis played through the platform's command-line player."""

    def __init__(self,
                 preferred_voice: Optional[str] = TTS_VOICE,
                 language_code: str = LANGUAGE_CODE,
                 speaking_rate: float = TTS_SPEAKING_RATE,
                 pitch: float = TTS_PITCH,
                 players: Sequence[str] = AUDIO_PLAYERS):
        super().__init__(preferred_voice)
        self.language_code = language_code
        self.speaking_rate = speaking_rate
        self.pitch = pitch
        self.players = tuple(players)
        self._client: Optional[texttospeech.TextToSpeechClient] = None

    def _tts_client(self) -> texttospeech.TextToSpeechClient:
        if self._client is None:
            self._client = texttospeech.TextToSpeechClient()
        return self._client

    def _player(self) -> Optional[str]:
        for player in self.players:
            path = shutil.which(player)
            if path:
                return path
        return None

    def is_available(self) -> bool:
        return self._player() is not None

    async def _load_voices(self) -> List[VoiceInfo]:
        response = await asyncio.to_thread(
            self._tts_client().list_voices, language_code=self.language_code,
        )
        voices = [
            VoiceInfo(name=v.name, language=v.language_codes[0] if v.language_codes else "")
            for v in response.voices
        ]
        logger.info(f"Loaded {len(voices)} voices for {self.language_code}")
        return voices

    def _synthesize(self, text: str, voice: Optional[VoiceInfo]) -> bytes:
        if voice is not None:
            voice_params = texttospeech.VoiceSelectionParams(
                language_code=voice.language or self.language_code,
                name=voice.name,
            )
        else:
            voice_params = texttospeech.VoiceSelectionParams(language_code=self.language_code)

        audio_config = texttospeech.AudioConfig(
            audio_encoding=texttospeech.AudioEncoding.LINEAR16,
            speaking_rate=self.speaking_rate,
            pitch=self.pitch,
        )
        response = self._tts_client().synthesize_speech(
            input=texttospeech.SynthesisInput(text=text),
            voice=voice_params,
            audio_config=audio_config,
        )
        return response.audio_content

    async def _play(self, text: str, voice: Optional[VoiceInfo]) -> None:
        player = self._player()
        if player is None:
            logger.warning("No audio player found (tried %s)", ", ".join(self.players))
            return

        audio = await asyncio.to_thread(self._synthesize, text, voice)

        with tempfile.NamedTemporaryFile(suffix='.wav', delete=False) as tmp_file:
            wav_path = tmp_file.name
            tmp_file.write(audio)

        process = None
        try:
            process = await asyncio.create_subprocess_exec(
                player, wav_path,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            returncode = await process.wait()
            if returncode != 0:
                logger.warning(f"{os.path.basename(player)} exited with {returncode}")
        except asyncio.CancelledError:
            if process is not None and process.returncode is None:
                try:
                    process.terminate()
                except ProcessLookupError:
                    pass
                await process.wait()
            raise
        finally:
            try:
                os.unlink(wav_path)
            except OSError:
                pass
