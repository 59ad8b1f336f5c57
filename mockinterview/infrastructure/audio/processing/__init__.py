"""Audio processing and capture modules."""

# Import processing functions immediately (no dependencies)
from .processing import remove_dc, rms_level, normalize_audio, pcm16_to_float, to_pcm16


# Lazy imports for capture (avoid importing sounddevice unless needed)
def _get_microphone_recorder():
    """Lazy import for MicrophoneRecorder to avoid the PortAudio dependency at import time."""
    from .capture import MicrophoneRecorder
    return MicrophoneRecorder


# Export MicrophoneRecorder via __getattr__ for lazy loading
def __getattr__(name):
    if name == "MicrophoneRecorder":
        return _get_microphone_recorder()
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    "MicrophoneRecorder",
    "remove_dc",
    "rms_level",
    "normalize_audio",
    "pcm16_to_float",
    "to_pcm16",
]
