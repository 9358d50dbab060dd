"""Tests for plain/markup offset mapping."""

from __future__ import annotations

import pytest

from mentionkit.markup.codec import DEFAULT_MARKUP
from mentionkit.markup.positions import Bias, PositionMapper

# plain: "Hi Alice and Bob!"  Alice = [3, 8), Bob = [13, 16)
MARKUP = "Hi @[Alice](1) and @[Bob](7)!"


@pytest.fixture
def mapper() -> PositionMapper:
    return PositionMapper.from_markup(MARKUP, DEFAULT_MARKUP)


def test_literal_positions_shift_by_preceding_tokens(mapper):
    assert mapper.plain_text == "Hi Alice and Bob!"
    assert mapper.map_plain_to_markup(0) == 0
    assert mapper.map_plain_to_markup(2) == 2
    assert mapper.map_plain_to_markup(10) == 16
    assert mapper.map_plain_to_markup(17) == len(MARKUP)


@pytest.mark.parametrize("bias", [Bias.START, Bias.END, Bias.NONE])
def test_boundaries_map_regardless_of_bias(mapper, bias):
    assert mapper.map_plain_to_markup(3, bias) == 3
    assert mapper.map_plain_to_markup(8, bias) == 14
    assert mapper.map_plain_to_markup(13, bias) == 19
    assert mapper.map_plain_to_markup(16, bias) == 28


def test_interior_positions_snap_by_bias(mapper):
    assert mapper.map_plain_to_markup(5, Bias.START) == 3
    assert mapper.map_plain_to_markup(5, Bias.END) == 14
    assert mapper.map_plain_to_markup(5, Bias.NONE) is None
    assert mapper.map_plain_to_markup(14, Bias.END) == 28


def test_out_of_range_offsets_clamp(mapper):
    assert mapper.map_plain_to_markup(-4) == 0
    assert mapper.map_plain_to_markup(500) == len(MARKUP)
    assert mapper.clamp(500) == len(mapper.plain_text)


def test_is_inside_of_mention_is_strict(mapper):
    inside = [index for index in range(len(mapper.plain_text) + 1) if mapper.is_inside_of_mention(index)]
    assert inside == [4, 5, 6, 7, 14, 15]


def test_mention_at_returns_enclosing_mention(mapper):
    assert mapper.mention_at(6).display == "Alice"
    assert mapper.mention_at(15).display == "Bob"
    assert mapper.mention_at(8) is None
    assert mapper.mention_at(0) is None


def test_find_mention_touched_by_deletion(mapper):
    # backspace at the end of "Alice" leaves the caret inside it
    assert mapper.find_mention_touched_by_deletion(7).display == "Alice"
    assert mapper.find_mention_touched_by_deletion(3).display == "Alice"
    assert mapper.find_mention_touched_by_deletion(8) is None
    assert mapper.find_mention_touched_by_deletion(10) is None


def test_touched_mention_requires_selection_past_its_start(mapper):
    assert mapper.find_mention_touched_by_deletion(3, selection_end_before=3) is None
    assert mapper.find_mention_touched_by_deletion(3, selection_end_before=9).display == "Alice"


def test_mentions_overlapping(mapper):
    assert [m.display for m in mapper.mentions_overlapping(0, 20)] == ["Alice", "Bob"]
    assert [m.display for m in mapper.mentions_overlapping(7, 9)] == ["Alice"]
    assert mapper.mentions_overlapping(8, 13) == []


def test_empty_markup_maps_to_zero():
    mapper = PositionMapper.from_markup("", DEFAULT_MARKUP)
    assert mapper.map_plain_to_markup(0) == 0
    assert mapper.map_plain_to_markup(3) == 0
    assert not mapper.is_inside_of_mention(0)
    assert mapper.find_mention_touched_by_deletion(0) is None


def test_display_transform_changes_plain_offsets():
    mapper = PositionMapper.from_markup(MARKUP, DEFAULT_MARKUP, lambda id, display, type: f"@{display}")
    assert mapper.plain_text == "Hi @Alice and @Bob!"
    assert mapper.map_plain_to_markup(9) == 14
    assert mapper.map_plain_to_markup(14) == 19
    assert mapper.is_inside_of_mention(8)
