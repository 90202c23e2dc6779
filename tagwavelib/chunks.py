"""In-memory RIFF (WAV) chunk reader.

Walks the chunk list of a WAV buffer that is already held in memory.
Nothing here touches the file system; callers read the bytes themselves
and hand them over.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterator

from .errors import InvalidContainer

RIFF_ID = b"RIFF"
WAVE_ID = b"WAVE"
HEADER_SIZE = 12

WAVE_FORMAT_PCM = 1


@dataclass(frozen=True)
class AudioChunk:
    """A single chunk header from a RIFF container.

    Attributes:
        id:     4-character chunk identifier (e.g. ``"fmt "``, ``"data"``).
        size:   Declared payload size in bytes (excluding the 8-byte header).
        offset: Byte offset of the payload inside the buffer.
    """
    id: str
    size: int
    offset: int

    def payload(self, data: bytes | memoryview) -> memoryview:
        """Return the payload view, clamped to the bytes actually present."""
        view = memoryview(data)
        return view[self.offset:min(self.offset + self.size, len(view))]


@dataclass(frozen=True)
class FormatInfo:
    """Fields of a ``fmt `` chunk relevant for PCM decoding."""
    format_code: int
    channels: int
    sample_rate: int
    bits_per_sample: int


# Chunk IDs present in every WAV file
STANDARD_CHUNKS: frozenset[str] = frozenset({"fmt ", "data"})


def check_header(data: bytes | memoryview) -> None:
    """Raise :class:`InvalidContainer` unless *data* starts a RIFF/WAVE file."""
    if len(data) < HEADER_SIZE:
        raise InvalidContainer(
            f"Buffer too short for a WAV header ({len(data)} bytes)"
        )
    container_id = bytes(data[0:4])
    form_type = bytes(data[8:12])
    if container_id != RIFF_ID or form_type != WAVE_ID:
        raise InvalidContainer(
            f"Not a valid WAV file: {container_id!r} / {form_type!r}"
        )


def iter_chunks(data: bytes | memoryview) -> Iterator[AudioChunk]:
    """Yield chunk headers in file order, starting right after ``WAVE``.

    Each step advances by ``8 + size``.  Iteration stops when fewer than
    8 header bytes remain.
    """
    check_header(data)
    view = memoryview(data)
    end = len(view)
    pos = HEADER_SIZE
    while pos + 8 <= end:
        chunk_id = bytes(view[pos:pos + 4]).decode("ascii", errors="replace")
        chunk_size = struct.unpack_from("<I", view, pos + 4)[0]
        yield AudioChunk(id=chunk_id, size=chunk_size, offset=pos + 8)
        pos += 8 + chunk_size


def chunk_ids(data: bytes | memoryview) -> list[str]:
    """Return the chunk ID strings found in a WAV buffer."""
    return [chunk.id for chunk in iter_chunks(data)]


def notable_chunks(all_ids: list[str]) -> list[str]:
    """Filter a list of chunk IDs, returning only non-standard ones."""
    return [cid for cid in all_ids if cid not in STANDARD_CHUNKS]


def parse_fmt(payload: bytes | memoryview) -> FormatInfo:
    """Decode the leading 16 bytes of a ``fmt `` chunk payload.

    Layout (little-endian): format code (u16), channels (u16),
    sample rate (u32), byte rate (u32), block align (u16),
    bits per sample (u16).
    """
    if len(payload) < 16:
        raise InvalidContainer(
            f"fmt chunk too short: {len(payload)} bytes (need 16)"
        )
    code, channels, rate, _byte_rate, _align, bits = struct.unpack_from(
        "<HHIIHH", payload, 0
    )
    return FormatInfo(
        format_code=code,
        channels=channels,
        sample_rate=rate,
        bits_per_sample=bits,
    )
