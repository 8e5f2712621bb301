"""Audio clip encoding (PCM16 WAV)."""

from src.services.audio.exceptions import AudioError, WavFormatError
from src.services.audio.wav import (
    DEFAULT_SAMPLE_RATE,
    WAV_HEADER_SIZE,
    WavHeader,
    encode_wav,
    parse_wav_header,
    samples_to_pcm16,
)

__all__ = [
    "DEFAULT_SAMPLE_RATE",
    "WAV_HEADER_SIZE",
    "WavHeader",
    "encode_wav",
    "parse_wav_header",
    "samples_to_pcm16",
    # Exceptions
    "AudioError",
    "WavFormatError",
]
