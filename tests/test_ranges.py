"""Tests for :mod:`mentionkit.core.ranges`."""

from __future__ import annotations

import pytest

from mentionkit.core.ranges import TextRange


def test_text_range_normalises_order_and_negative_values():
    assert TextRange(5, 2).to_tuple() == (2, 5)
    assert TextRange(-3, 4).to_tuple() == (0, 4)


def test_text_range_rejects_non_numeric_offsets():
    with pytest.raises(ValueError):
        TextRange("a", 2)  # type: ignore[arg-type]


def test_clamp_pulls_both_ends_inside():
    assert TextRange(3, 12).clamp(upper=8).to_tuple() == (3, 8)
    assert TextRange(10, 12).clamp(upper=8).is_caret


def test_strictly_contains_excludes_edges():
    span = TextRange(3, 8)
    assert [index for index in range(10) if span.strictly_contains(index)] == [4, 5, 6, 7]


def test_overlaps_needs_a_shared_character():
    span = TextRange(3, 8)
    assert span.overlaps(TextRange(7, 9))
    assert span.overlaps(TextRange(0, 20))
    assert not span.overlaps(TextRange(8, 10))
    assert not span.overlaps(TextRange(0, 3))


def test_caret_helpers_and_ordering():
    caret = TextRange.caret(6)
    assert caret.is_caret
    assert caret.length == 0
    assert TextRange(1, 4).length == 3
    assert sorted([TextRange(4, 5), TextRange(1, 9), TextRange(1, 2)]) == [
        TextRange(1, 2),
        TextRange(1, 9),
        TextRange(4, 5),
    ]
