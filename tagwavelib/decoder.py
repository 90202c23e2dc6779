"""Linear-PCM WAV decoder producing a normalized mono sample buffer."""

from __future__ import annotations

import logging

import numpy as np

from .chunks import WAVE_FORMAT_PCM, FormatInfo, iter_chunks, parse_fmt
from .errors import MissingDataChunk, UnsupportedFormat
from .models import DecodedAudio

log = logging.getLogger(__name__)

SUPPORTED_BIT_DEPTHS = (8, 16, 24, 32)

# Used when a data chunk shows up before any fmt chunk.
DEFAULT_FORMAT = FormatInfo(
    format_code=WAVE_FORMAT_PCM,
    channels=1,
    sample_rate=44100,
    bits_per_sample=16,
)


def _validate_format(fmt: FormatInfo) -> None:
    if fmt.format_code != WAVE_FORMAT_PCM:
        raise UnsupportedFormat(
            f"Only PCM format is supported (format code {fmt.format_code})"
        )
    if fmt.bits_per_sample not in SUPPORTED_BIT_DEPTHS:
        raise UnsupportedFormat(
            f"Unsupported bit depth: {fmt.bits_per_sample}"
        )
    if fmt.channels <= 0:
        raise UnsupportedFormat("fmt chunk declares zero channels")
    if fmt.sample_rate <= 0:
        raise UnsupportedFormat("fmt chunk declares a zero sample rate")


def pcm_to_float(payload: bytes | memoryview, bits_per_sample: int) -> np.ndarray:
    """Convert interleaved little-endian PCM bytes to float64 in [-1, 1].

    8-bit data is unsigned and centered on 128; wider samples are signed
    two's complement.  Trailing bytes that do not fill a whole sample are
    ignored.
    """
    width = bits_per_sample // 8
    count = len(payload) // width
    if count == 0:
        return np.zeros(0, dtype=np.float64)
    buf = memoryview(payload)[:count * width]

    if bits_per_sample == 8:
        raw = np.frombuffer(buf, dtype=np.uint8).astype(np.float64)
        return (raw - 128.0) / 128.0
    if bits_per_sample == 16:
        return np.frombuffer(buf, dtype="<i2").astype(np.float64) / 32768.0
    if bits_per_sample == 24:
        b = np.frombuffer(buf, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
        combined = b[:, 0] | (b[:, 1] << 8) | (b[:, 2] << 16)
        combined = np.where(combined > 0x7FFFFF, combined - 0x1000000, combined)
        return combined.astype(np.float64) / 8388608.0
    if bits_per_sample == 32:
        return np.frombuffer(buf, dtype="<i4").astype(np.float64) / 2147483648.0
    raise UnsupportedFormat(f"Unsupported bit depth: {bits_per_sample}")


def downmix(values: np.ndarray, channels: int) -> np.ndarray:
    """Average interleaved *values* across *channels* into one mono array."""
    frames = len(values) // channels
    if channels == 1:
        return values[:frames].copy()
    return values[:frames * channels].reshape(frames, channels).mean(axis=1)


def decode(data: bytes | bytearray | memoryview) -> DecodedAudio:
    """Decode a RIFF/WAVE linear-PCM buffer.

    Raises
    ------
    InvalidContainer
        The RIFF/WAVE tags are missing or a header is truncated.
    UnsupportedFormat
        The format code is not PCM, or the bit depth is not 8/16/24/32.
    MissingDataChunk
        No ``data`` chunk was found.
    """
    raw = bytes(data)

    fmt: FormatInfo | None = None
    data_chunk = None
    for chunk in iter_chunks(raw):
        if chunk.id == "fmt ":
            fmt = parse_fmt(chunk.payload(raw))
            _validate_format(fmt)
        elif chunk.id == "data":
            data_chunk = chunk
            break

    if data_chunk is None:
        raise MissingDataChunk("No data chunk found")

    if fmt is None:
        log.warning("No fmt chunk before data; assuming %d Hz, %d ch, %d-bit",
                    DEFAULT_FORMAT.sample_rate, DEFAULT_FORMAT.channels,
                    DEFAULT_FORMAT.bits_per_sample)
        fmt = DEFAULT_FORMAT

    payload = data_chunk.payload(raw)
    if len(payload) < data_chunk.size:
        log.warning("data chunk declares %d bytes, only %d present",
                    data_chunk.size, len(payload))

    # Downmix every channel of every frame; bytes short of a frame are dropped.
    frame_bytes = (fmt.bits_per_sample // 8) * fmt.channels
    usable = (len(payload) // frame_bytes) * frame_bytes
    samples = downmix(pcm_to_float(payload[:usable], fmt.bits_per_sample),
                      fmt.channels)
    samples.setflags(write=False)

    duration = len(samples) / fmt.sample_rate
    log.debug("Decoded %d frames, %d ch, %d Hz, %d-bit (%.3fs)",
              len(samples), fmt.channels, fmt.sample_rate,
              fmt.bits_per_sample, duration)

    return DecodedAudio(
        samples=samples,
        sample_rate=fmt.sample_rate,
        channels=fmt.channels,
        bits_per_sample=fmt.bits_per_sample,
        duration=duration,
        raw_bytes=raw,
    )


def decode_file(filepath: str) -> DecodedAudio:
    """Read *filepath* and decode its contents."""
    with open(filepath, "rb") as f:
        data = f.read()
    return decode(data)
