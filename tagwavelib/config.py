"""Engine settings: declared once as ParamSpec entries, stored as a flat dict.

Presets are small JSON files that hold only the keys a user changed.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any

PRESET_SCHEMA_VERSION = "1.0"
_PRESET_META_KEYS = ("schema_version", "_description")


class ConfigError(Exception):
    """Raised when a preset cannot be loaded or a config value is invalid."""


@dataclass
class ConfigFieldError:
    """One rejected config value.

    Attributes:
        key:     Config key of the value.
        value:   The rejected value.
        message: What is wrong with it, phrased for the user.
    """
    key: str
    value: Any
    message: str


@dataclass(frozen=True)
class ParamSpec:
    """Declarative description of one configuration parameter."""
    key: str
    type: type | tuple               # accepted Python type(s)
    default: Any
    label: str
    description: str = ""
    min: float | int | None = None   # lower bound, inclusive unless min_exclusive
    max: float | int | None = None   # upper bound, inclusive unless max_exclusive
    min_exclusive: bool = False
    max_exclusive: bool = False
    choices: list | None = None
    nullable: bool = False


PLAYBACK_PARAMS: list[ParamSpec] = [
    ParamSpec(
        key="full_width_seconds", type=(int, float), default=3600.0,
        min=0.0, min_exclusive=True,
        label="Full-width duration (s)",
        description=(
            "Recording length that fills the whole available width. "
            "Shorter and longer recordings scale linearly."
        ),
    ),
    ParamSpec(
        key="layout_padding_px", type=int, default=64, min=0,
        label="Layout padding (px)",
        description="Horizontal space around the waveform that is not drawable.",
    ),
    ParamSpec(
        key="default_screen_width", type=int, default=1920, min=1,
        label="Default screen width (px)",
    ),
    ParamSpec(
        key="playhead_tolerance_px", type=(int, float), default=15, min=0,
        label="Playhead grab tolerance (px)",
        description="How close a press must be to the playhead to start a drag.",
    ),
    ParamSpec(
        key="poll_interval_ms", type=int, default=16, min=1, max=1000,
        label="Position poll interval (ms)",
        description="Interval of the playhead update timer while playing.",
    ),
    ParamSpec(
        key="tag_precision", type=int, default=4, min=0, max=9,
        label="Tag export precision",
        description="Decimal places kept for tag times in the JSON export.",
    ),
    ParamSpec(
        key="output_blocksize", type=int, default=1024, min=0,
        label="Output block size (frames)",
        description="sounddevice block size; 0 lets the host choose.",
    ),
    ParamSpec(
        key="output_latency", type=str, default="low",
        choices=["low", "high"],
        label="Output latency",
    ),
]


def default_config() -> dict[str, Any]:
    """Fresh dict with the default of every parameter."""
    return {p.key: p.default for p in PLAYBACK_PARAMS}


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Combine config dicts; a key in a later dict overrides earlier ones."""
    merged: dict[str, Any] = {}
    for cfg in configs:
        merged.update(cfg)
    return merged


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

def load_preset(path: str) -> dict[str, Any]:
    """Read a preset file and return its overrides (metadata stripped)."""
    if not os.path.isfile(path):
        raise ConfigError(f"Preset file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in preset {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read preset {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(
            f"A preset must be a JSON object, {path} holds {type(data).__name__}"
        )
    return {k: v for k, v in data.items() if k not in _PRESET_META_KEYS}


def save_preset(config: dict[str, Any], path: str, *,
                description: str | None = None) -> None:
    """Write the values of *config* that differ from the defaults."""
    defaults = default_config()
    changed = {
        k: v for k, v in config.items()
        if not k.startswith("_") and not (k in defaults and defaults[k] == v)
    }

    preset: dict[str, Any] = {"schema_version": PRESET_SCHEMA_VERSION}
    if description:
        preset["_description"] = description
    preset.update(changed)

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(preset, f, indent=4, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _type_label(t) -> str:
    if isinstance(t, tuple):
        return " or ".join(x.__name__ for x in t)
    return t.__name__


def _type_error(spec: ParamSpec, value: Any) -> str | None:
    # bool passes isinstance(x, int) but is never a number here
    wrong_bool = isinstance(value, bool) and spec.type is not bool
    if wrong_bool or not isinstance(value, spec.type):
        got = "boolean" if wrong_bool else type(value).__name__
        return f"{spec.label} must be {_type_label(spec.type)}, got {got}."
    return None


def _range_error(spec: ParamSpec, value: float) -> str | None:
    lo, hi = spec.min, spec.max
    if lo is not None:
        if spec.min_exclusive and value <= lo:
            return f"{spec.label} must be greater than {lo}."
        if value < lo:
            return f"{spec.label} must be at least {lo}."
    if hi is not None:
        if spec.max_exclusive and value >= hi:
            return f"{spec.label} must be less than {hi}."
        if value > hi:
            return f"{spec.label} must be at most {hi}."
    return None


def _check_value(spec: ParamSpec, value: Any) -> str | None:
    if value is None:
        return None if spec.nullable else f"{spec.label} must not be empty."
    message = _type_error(spec, value)
    if message:
        return message
    if spec.choices is not None and value not in spec.choices:
        opts = ", ".join(repr(c) for c in spec.choices)
        return f"{spec.label} must be one of {opts}."
    if isinstance(value, (int, float)):
        return _range_error(spec, value)
    return None


def validate_param_values(params: list[ParamSpec],
                          values: dict[str, Any]) -> list[ConfigFieldError]:
    """Check the keys of *values* that *params* declare.

    Absent keys are fine (they fall back to the default); unknown keys are
    ignored.
    """
    errors: list[ConfigFieldError] = []
    for spec in params:
        if spec.key not in values:
            continue
        value = values[spec.key]
        message = _check_value(spec, value)
        if message:
            errors.append(ConfigFieldError(spec.key, value, message))
    return errors


def validate_config(config: dict[str, Any]) -> None:
    """Raise :class:`ConfigError` naming every invalid value in *config*."""
    errors = validate_param_values(PLAYBACK_PARAMS, config)
    if errors:
        bullet = "\n  • "
        raise ConfigError(
            "Configuration has invalid values:" + bullet
            + bullet.join(e.message for e in errors)
        )
