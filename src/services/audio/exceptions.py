"""Custom exceptions for audio encoding."""


class AudioError(Exception):
    """Base exception for audio errors."""

    pass


class WavFormatError(AudioError):
    """Raised when samples or WAV bytes do not fit the PCM16 mono layout."""

    pass
