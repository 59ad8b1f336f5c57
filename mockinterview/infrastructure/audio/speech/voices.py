"""
Voice catalog entries and the natural-voice selection policy.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ....config import VOICE_QUALITY_MARKERS, KNOWN_NATURAL_VOICES

logger = logging.getLogger("speech_voices")


@dataclass(frozen=True)
class VoiceInfo:
    name: str
    language: str = ""

    @property
    def is_english(self) -> bool:
        return self.language.lower().startswith("en")

    @property
    def sounds_natural(self) -> bool:
        lowered = self.name.lower()
        return (any(marker in lowered for marker in VOICE_QUALITY_MARKERS)
                or any(known in lowered for known in KNOWN_NATURAL_VOICES))


def select_natural_voice(voices: Sequence[VoiceInfo],
                         preferred: Optional[str] = None) -> Optional[VoiceInfo]:
    """
    Pick the voice to speak with.

    Order of preference: the configured voice if the catalog has it, an
    English voice that sounds natural, any English voice. Returns None to
    leave the choice to the platform default.
    """
    if preferred:
        for voice in voices:
            if voice.name.lower() == preferred.lower():
                return voice
        logger.debug(f"Preferred voice {preferred!r} not in catalog")

    english = [v for v in voices if v.is_english]
    for voice in english:
        if voice.sounds_natural:
            return voice
    if english:
        return english[0]
    return None
