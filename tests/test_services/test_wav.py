"""Tests for WAV encoding."""

import struct

import numpy as np
import pytest

from src.services.audio.exceptions import WavFormatError
from src.services.audio.wav import (
    WAV_HEADER_SIZE,
    encode_wav,
    parse_wav_header,
    samples_to_pcm16,
)


class TestEncodeWav:
    """Tests for encode_wav."""

    @pytest.mark.parametrize("sample_count", [0, 1, 160, 3200, 16000])
    def test_size_and_header_fields(self, sample_count):
        """N samples give a 44 + 2N byte file with a consistent header."""
        wav = encode_wav([7] * sample_count, 16000)

        assert len(wav) == WAV_HEADER_SIZE + 2 * sample_count
        header = parse_wav_header(wav)
        assert header.riff_size == 36 + 2 * sample_count
        assert header.data_size == 2 * sample_count
        assert header.audio_format == 1
        assert header.channels == 1
        assert header.sample_rate == 16000
        assert header.byte_rate == 32000
        assert header.block_align == 2
        assert header.bits_per_sample == 16
        assert header.sample_count == sample_count

    def test_header_bytes(self):
        """Chunk tags sit at their canonical offsets."""
        wav = encode_wav([1, 2], 16000)

        assert wav[0:4] == b"RIFF"
        assert wav[8:12] == b"WAVE"
        assert wav[12:16] == b"fmt "
        assert wav[36:40] == b"data"
        assert struct.unpack_from("<I", wav, 40)[0] == 4

    def test_samples_little_endian(self):
        """Samples follow the header as little-endian int16."""
        wav = encode_wav([1, -1, 32767, -32768])

        assert wav[WAV_HEADER_SIZE:] == struct.pack("<4h", 1, -1, 32767, -32768)

    def test_other_sample_rate(self):
        header = parse_wav_header(encode_wav([0] * 100, 8000))
        assert header.sample_rate == 8000
        assert header.byte_rate == 16000
        assert header.duration_seconds == pytest.approx(100 / 8000)

    def test_numpy_input(self):
        """numpy arrays encode the same as lists."""
        samples = [3, -4, 500]
        assert encode_wav(np.array(samples, dtype=np.int16)) == encode_wav(samples)


class TestSamplesToPcm16:
    """Tests for PCM packing."""

    def test_out_of_range_values_are_clipped(self):
        pcm = samples_to_pcm16([40000, -40000])
        assert pcm == struct.pack("<2h", 32767, -32768)

    def test_rejects_multichannel(self):
        with pytest.raises(WavFormatError):
            samples_to_pcm16([[1, 2], [3, 4]])


class TestParseWavHeader:
    """Tests for parse_wav_header error handling."""

    def test_too_short(self):
        with pytest.raises(WavFormatError, match="too short"):
            parse_wav_header(b"RIFF")

    def test_bad_signature(self):
        wav = bytearray(encode_wav([0, 0]))
        wav[0:4] = b"RIFX"
        with pytest.raises(WavFormatError, match="RIFF"):
            parse_wav_header(bytes(wav))

    def test_unexpected_chunk(self):
        wav = bytearray(encode_wav([0, 0]))
        wav[36:40] = b"LIST"
        with pytest.raises(WavFormatError, match="chunk"):
            parse_wav_header(bytes(wav))
