from ._version import __version__
from .errors import (
    TagwaveError,
    DecodeError,
    InvalidContainer,
    UnsupportedFormat,
    MissingDataChunk,
    PlaybackError,
    PlaybackInitError,
    HardwareVoiceError,
)
from .models import ClockState, DecodedAudio, Envelope, Tag, NO_SIGNAL
from .decoder import decode, decode_file
from .envelope import build_envelope
from .timeline import display_width, format_time
from .clock import PlaybackClock
from .session import SessionState, reduce
from .controller import SessionController
from .config import (
    default_config,
    merge_configs,
    validate_config,
    load_preset,
    save_preset,
    ConfigError,
    ConfigFieldError,
    ParamSpec,
    PLAYBACK_PARAMS,
)
from .reports import tags_to_json, save_tags_json
from .events import EventBus

__all__ = [
    "__version__",
    "TagwaveError",
    "DecodeError",
    "InvalidContainer",
    "UnsupportedFormat",
    "MissingDataChunk",
    "PlaybackError",
    "PlaybackInitError",
    "HardwareVoiceError",
    "ClockState",
    "DecodedAudio",
    "Envelope",
    "Tag",
    "NO_SIGNAL",
    "decode",
    "decode_file",
    "build_envelope",
    "display_width",
    "format_time",
    "PlaybackClock",
    "SessionState",
    "reduce",
    "SessionController",
    "default_config",
    "merge_configs",
    "validate_config",
    "load_preset",
    "save_preset",
    "ConfigError",
    "ConfigFieldError",
    "ParamSpec",
    "PLAYBACK_PARAMS",
    "tags_to_json",
    "save_tags_json",
    "EventBus",
]
