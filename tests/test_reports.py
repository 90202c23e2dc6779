import json

import pytest

from tagwavelib.models import Tag
from tagwavelib.reports import round_half_up, save_tags_json, tag_pairs, tags_to_json


@pytest.mark.parametrize("value,precision,expected", [
    (2.5, 0, 3.0),
    (0.125, 2, 0.13),
    (-0.125, 2, -0.12),
    (1.23456, 4, 1.2346),
    (7.0, 4, 7.0),
])
def test_round_half_up(value, precision, expected):
    assert round_half_up(value, precision) == expected


def test_integral_values_have_no_fraction():
    assert tag_pairs([Tag(5.0, 10.0)]) == [[5, 10]]
    assert isinstance(tag_pairs([Tag(5.0, 10.0)])[0][0], int)


def test_tags_to_json_layout():
    text = tags_to_json([Tag(0.0, 1.5), Tag(2.0, 3.25)])
    assert text == "[\n  [\n    0,\n    1.5\n  ],\n  [\n    2,\n    3.25\n  ]\n]"


def test_empty_export():
    assert tags_to_json([]) == "[]"


def test_precision_is_configurable():
    assert tag_pairs([Tag(0.123, 0.987)], precision=1) == [[0.1, 1]]


def test_save_tags_json(tmp_path):
    out = tmp_path / "exports" / "tags.json"
    save_tags_json([Tag(1.0, 2.5)], str(out))
    text = out.read_text(encoding="utf-8")
    assert text.endswith("]\n")
    assert json.loads(text) == [[1, 2.5]]
