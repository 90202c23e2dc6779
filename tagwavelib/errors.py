from __future__ import annotations


class TagwaveError(Exception):
    """Base class for every error raised by tagwavelib."""


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

class DecodeError(TagwaveError):
    """The byte buffer could not be turned into a DecodedAudio."""


class InvalidContainer(DecodeError):
    """Missing RIFF/WAVE tags or a truncated header."""


class UnsupportedFormat(DecodeError):
    """Non-PCM format code, unsupported bit depth, or an empty layout."""


class MissingDataChunk(DecodeError):
    """The chunk scan ended without finding a ``data`` chunk."""


# ---------------------------------------------------------------------------
# Playback
# ---------------------------------------------------------------------------

class PlaybackError(TagwaveError):
    """Hardware playback failed."""


class PlaybackInitError(PlaybackError):
    """The platform decoder or the output stream could not be opened."""


class HardwareVoiceError(PlaybackError):
    """Starting or stopping a voice failed unexpectedly."""
