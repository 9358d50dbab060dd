"""Tests for trigger detection before the caret."""

from __future__ import annotations

import re

import pytest

from mentionkit.markup.codec import ConfigError
from mentionkit.suggestions.triggers import TriggerMatcher, build_trigger_pattern


def test_query_after_whitespace_matches():
    match = TriggerMatcher("@").match("hello @al")
    assert match is not None
    assert match.query == "al"
    assert match.sequence_start == 6
    assert match.sequence_end == 9
    assert match.match_start == 6


def test_trigger_glued_to_a_word_does_not_match():
    assert TriggerMatcher("@").match("hello@al") is None


def test_trigger_at_start_and_empty_query():
    match = TriggerMatcher("@").match("@")
    assert match is not None
    assert (match.query, match.sequence_start, match.sequence_end) == ("", 0, 1)


def test_only_the_query_at_the_end_matches():
    matcher = TriggerMatcher("@")
    assert matcher.match("@al and more") is None
    assert matcher.match("@al ") is None
    assert matcher.match("ping @al\n") is None
    assert matcher.match("@bob then @ca").query == "ca"


def test_query_cannot_contain_the_trigger():
    assert TriggerMatcher("@").match("hi @a@b") is None


def test_spaces_allowed_when_configured():
    matcher = TriggerMatcher("@", allow_space_in_query=True)
    match = matcher.match("ping @John Sm")
    assert match is not None
    assert match.query == "John Sm"
    assert match.sequence_start == 5


def test_multi_character_trigger_is_escaped():
    matcher = TriggerMatcher("+:")
    assert matcher.match("emoji +:smi").query == "smi"
    assert matcher.match("emoji +smi") is None


def test_compiled_pattern_trigger_uses_named_or_positional_groups():
    named = TriggerMatcher(re.compile(r"(?:^|\s)(?P<sequence>#(?P<query>\w*))$"))
    assert named.match("tag #py").query == "py"

    positional = TriggerMatcher(re.compile(r"(?:^|\s)(:(\w*))$"))
    match = positional.match("hey :smi")
    assert (match.query, match.sequence_start, match.sequence_end) == ("smi", 4, 8)


def test_pattern_is_exposed():
    pattern = build_trigger_pattern("@")
    assert pattern.search("x @y") is not None
    assert TriggerMatcher("@").pattern.pattern == pattern.pattern


@pytest.mark.parametrize("trigger", ["", None, 5])
def test_invalid_trigger_raises_config_error(trigger):
    with pytest.raises(ConfigError) as excinfo:
        TriggerMatcher(trigger)  # type: ignore[arg-type]
    assert excinfo.value.reason == "invalid_trigger"


def test_empty_text_does_not_match():
    assert TriggerMatcher("@").match("") is None
