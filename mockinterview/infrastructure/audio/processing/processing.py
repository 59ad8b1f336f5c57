"""
Basic audio processing functions for captured speech.
"""
import numpy as np

from ....config import TARGET_RMS


def remove_dc(x: np.ndarray) -> np.ndarray:
    """Remove DC offset from audio signal."""
    return x - np.mean(x)


def rms_level(x: np.ndarray) -> float:
    """Root-mean-square level of a float signal in [-1, 1]."""
    if x.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(x ** 2)))


def normalize_audio(audio: np.ndarray, target_rms: float = TARGET_RMS) -> np.ndarray:
    """Normalize audio to target RMS level."""
    rms = float(np.sqrt(np.mean(audio**2)) + 1e-9)
    gain = min(20.0, target_rms / rms) if rms > 0 else 1.0
    return audio * gain


def pcm16_to_float(frame: bytes) -> np.ndarray:
    """Decode little-endian PCM16 bytes to float32 in [-1, 1]."""
    return np.frombuffer(frame, dtype=np.int16).astype(np.float32) / 32768.0


def to_pcm16(audio: np.ndarray) -> bytes:
    """Encode a float signal as PCM16 bytes."""
    return np.clip(audio * 32767, -32768, 32767).astype(np.int16).tobytes()
