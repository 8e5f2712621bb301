"""PCM16 WAV encoding for inline audio clips.

Layout of the 44-byte header (all integers little-endian):

    0  "RIFF"            4  36 + data_size      8  "WAVE"
    12 "fmt "            16 16 (fmt chunk size)  20 1 (PCM)
    22 channels          24 sample_rate          28 byte_rate
    32 block_align       34 bits_per_sample      36 "data"
    40 data_size         44 samples...
"""

from __future__ import annotations

import struct
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from src.services.audio.exceptions import WavFormatError

WAV_HEADER_SIZE = 44
PCM_FORMAT = 1
DEFAULT_SAMPLE_RATE = 16000
BITS_PER_SAMPLE = 16
CHANNELS = 1

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


@dataclass(frozen=True, slots=True)
class WavHeader:
    """Decoded fields of a canonical 44-byte WAV header."""

    riff_size: int
    audio_format: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_size: int

    @property
    def sample_count(self) -> int:
        return self.data_size // max(self.block_align, 1)

    @property
    def duration_seconds(self) -> float:
        return self.sample_count / self.sample_rate if self.sample_rate else 0.0


def samples_to_pcm16(samples: Sequence[int] | np.ndarray) -> bytes:
    """Pack int16 samples as little-endian PCM bytes.

    Values outside the int16 range are clipped.
    """
    arr = np.asarray(samples, dtype=np.int64)
    if arr.ndim != 1:
        raise WavFormatError(f"Expected mono samples, got array of shape {arr.shape}")
    clipped = np.clip(arr, -32768, 32767).astype("<i2")
    return clipped.tobytes()


def encode_wav(
    samples: Sequence[int] | np.ndarray,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> bytes:
    """Encode mono int16 samples as a PCM WAV file."""
    pcm = samples_to_pcm16(samples)
    block_align = CHANNELS * BITS_PER_SAMPLE // 8
    header = _HEADER.pack(
        b"RIFF",
        36 + len(pcm),
        b"WAVE",
        b"fmt ",
        16,
        PCM_FORMAT,
        CHANNELS,
        sample_rate,
        sample_rate * block_align,
        block_align,
        BITS_PER_SAMPLE,
        b"data",
        len(pcm),
    )
    return header + pcm


def parse_wav_header(data: bytes) -> WavHeader:
    """Decode the canonical 44-byte header of a PCM WAV file.

    Raises:
        WavFormatError: If the data is too short or not a RIFF/WAVE file.
    """
    if len(data) < WAV_HEADER_SIZE:
        raise WavFormatError(f"WAV data too short: {len(data)} bytes")

    (
        riff,
        riff_size,
        wave,
        fmt,
        _fmt_size,
        audio_format,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        data_tag,
        data_size,
    ) = _HEADER.unpack_from(data)

    if riff != b"RIFF" or wave != b"WAVE":
        raise WavFormatError("Missing RIFF/WAVE signature")
    if fmt != b"fmt " or data_tag != b"data":
        raise WavFormatError("Unexpected chunk layout (expected fmt then data)")

    return WavHeader(
        riff_size=riff_size,
        audio_format=audio_format,
        channels=channels,
        sample_rate=sample_rate,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits_per_sample,
        data_size=data_size,
    )
