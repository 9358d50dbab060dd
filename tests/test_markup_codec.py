"""Tests for markup template compilation and token generation."""

from __future__ import annotations

import pytest

from mentionkit.markup.codec import (
    DEFAULT_MARKUP,
    ConfigError,
    MarkupTemplate,
    Placeholder,
    compile_template,
    generate,
)


def test_default_template_segments_and_placeholders():
    template = compile_template(DEFAULT_MARKUP)
    assert template.segments == ("@[", Placeholder("display"), "](", Placeholder("id"), ")")
    assert template.placeholders == ("display", "id")
    assert template.has_id
    assert not template.has_type


def test_compile_template_is_cached_and_accepts_compiled_templates():
    template = compile_template("#[__display__]")
    assert compile_template("#[__display__]") is template
    assert compile_template(template) is template


def test_generate_fills_slots_in_template_order():
    assert generate(DEFAULT_MARKUP, 42, "alice") == "@[alice](42)"
    assert generate("{{__type__:__id__|__display__}}", "9", "Bob", "user") == "{{user:9|Bob}}"


def test_generate_without_type_leaves_slot_empty():
    assert generate("<__type__/__display__>", "1", "x") == "</x>"


def test_literal_segments_are_escaped_in_the_pattern():
    template = compile_template("$(__display__)*[__id__]")
    match = template.pattern.fullmatch("$(Ann)*[3]")
    assert match is not None
    assert match.group("display") == "Ann"
    assert match.group("id") == "3"
    assert template.pattern.fullmatch("x(Ann)*[3]") is None


def test_placeholders_match_across_line_breaks():
    template = compile_template(DEFAULT_MARKUP)
    match = template.pattern.fullmatch("@[Ann\nLee](a\n1)")
    assert match is not None
    assert match.group("display") == "Ann\nLee"
    assert match.group("id") == "a\n1"


def test_repeated_placeholder_must_echo_first_value():
    template = compile_template("<a href='/__id__'>__display__ (__id__)</a>")
    assert template.placeholders == ("id", "display", "id")
    assert template.generate("u1", "Uma") == "<a href='/u1'>Uma (u1)</a>"

    matches = list(template.finditer("<a href='/u1'>Uma (u1)</a> <a href='/u1'>Uma (u2)</a>"))
    assert len(matches) == 1
    assert matches[0].group("id") == "u1"


def test_finditer_yields_non_overlapping_matches_left_to_right():
    template = compile_template(DEFAULT_MARKUP)
    markup = "@[a](1)@[b](2) and @[c](3)"
    spans = [m.span() for m in template.finditer(markup)]
    assert spans == [(0, 7), (7, 14), (19, 26)]


def test_missing_display_placeholder_raises_config_error():
    with pytest.raises(ConfigError) as excinfo:
        compile_template("@[__id__]")
    error = excinfo.value
    assert isinstance(error, ValueError)
    assert error.reason == "missing_display"
    assert error.details() == {"reason": "missing_display", "template": "@[__id__]"}


def test_non_string_template_raises_config_error():
    with pytest.raises(ConfigError) as excinfo:
        compile_template(None)  # type: ignore[arg-type]
    assert excinfo.value.reason == "invalid_type"


def test_markup_template_is_immutable():
    template = compile_template(DEFAULT_MARKUP)
    assert isinstance(template, MarkupTemplate)
    with pytest.raises(AttributeError):
        template.source = "other"  # type: ignore[misc]
