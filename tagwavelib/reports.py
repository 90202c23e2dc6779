from __future__ import annotations

import json
import math
import os
from typing import Iterable

from .models import Tag

TAG_PRECISION = 4


def round_half_up(value: float, precision: int = TAG_PRECISION) -> float:
    """Round like ``Math.round(v * 10**p) / 10**p`` (halves go up)."""
    scale = 10 ** precision
    return math.floor(value * scale + 0.5) / scale


def _json_number(value: float) -> int | float:
    # Integral values are written without a fractional part ("5", not "5.0").
    if float(value).is_integer():
        return int(value)
    return value


def tag_pairs(tags: Iterable[Tag], precision: int = TAG_PRECISION) -> list[list[int | float]]:
    """Return tags as ``[start, end]`` pairs rounded to *precision* decimals."""
    return [
        [_json_number(round_half_up(tag.start, precision)),
         _json_number(round_half_up(tag.end, precision))]
        for tag in tags
    ]


def tags_to_json(tags: Iterable[Tag], precision: int = TAG_PRECISION) -> str:
    """Serialize tags as an indented JSON array of ``[start, end]`` pairs."""
    return json.dumps(tag_pairs(tags, precision), indent=2)


def save_tags_json(tags: Iterable[Tag], output_path: str,
                   precision: int = TAG_PRECISION) -> None:
    """Write :func:`tags_to_json` output to *output_path*."""
    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(tags_to_json(tags, precision))
        f.write("\n")
