"""Tests for mention extraction and plain text rendering."""

from __future__ import annotations

import pytest

from mentionkit.markup.codec import DEFAULT_MARKUP
from mentionkit.markup.index import MentionIndex, get_plain_text, iter_markup, parse_mentions

TEMPLATES = [
    (DEFAULT_MARKUP, "Hi @[Alice](1), meet @[Bob](7)!"),
    ("{{__type__:__id__|__display__}}", "ping {{user:3|Cy}} and {{team:core|Core Team}} now"),
    ("#__display__#", "tags #one# #two##three#"),
    ("<a href='/__id__'>__display__ (__id__)</a>", "see <a href='/u1'>Uma (u1)</a>."),
]


def _upper_with_at(id: str, display: str, type: str | None) -> str:
    return f"@{display.upper()}"


@pytest.mark.parametrize("template, markup", TEMPLATES)
@pytest.mark.parametrize("transform", [None, _upper_with_at])
def test_mention_offsets_match_rendered_plain_text(template, markup, transform):
    plain = get_plain_text(markup, template, transform)
    mentions = parse_mentions(markup, template, transform)
    assert mentions

    previous_end = 0
    for mention in mentions:
        rendered = transform(mention.id, mention.display, mention.type) if transform else mention.display
        assert plain[mention.plain_start : mention.plain_end] == rendered
        assert mention.plain_start >= previous_end
        assert markup[mention.markup_start : mention.markup_end]
        previous_end = mention.plain_end


def test_parse_default_markup():
    mentions = parse_mentions("Hi @[Alice](1), meet @[Bob](7)!", DEFAULT_MARKUP)
    assert [(m.id, m.display, m.type) for m in mentions] == [("1", "Alice", None), ("7", "Bob", None)]
    alice, bob = mentions
    assert (alice.markup_start, alice.markup_end) == (3, 14)
    assert (alice.plain_start, alice.plain_end) == (3, 8)
    assert (bob.markup_start, bob.markup_end) == (21, 30)
    assert (bob.plain_start, bob.plain_end) == (15, 18)
    assert get_plain_text("Hi @[Alice](1), meet @[Bob](7)!", DEFAULT_MARKUP) == "Hi Alice, meet Bob!"


def test_type_placeholder_is_captured():
    mentions = parse_mentions("{{team:core|Core Team}}", "{{__type__:__id__|__display__}}")
    assert mentions[0].type == "team"
    assert mentions[0].id == "core"
    assert mentions[0].display == "Core Team"


def test_id_defaults_to_display_without_id_placeholder():
    mentions = parse_mentions("tags #one# here", "#__display__#")
    assert mentions[0].id == "one"
    assert mentions[0].display == "one"


def test_chunks_cover_markup_and_plain_text_contiguously():
    markup = "a @[b](1)c@[d](2)"
    chunks = list(iter_markup(markup, DEFAULT_MARKUP))
    assert [chunk.text for chunk in chunks] == ["a ", "b", "c", "d"]
    assert [chunk.is_mention for chunk in chunks] == [False, True, False, True]
    for before, after in zip(chunks, chunks[1:]):
        assert before.markup_end == after.markup_start
        assert before.plain_end == after.plain_start
    assert chunks[-1].markup_end == len(markup)


@pytest.mark.parametrize("markup", ["", "no mentions here", "broken @[token(1)"])
def test_markup_without_mentions_is_its_own_plain_text(markup):
    assert parse_mentions(markup, DEFAULT_MARKUP) == []
    assert get_plain_text(markup, DEFAULT_MARKUP) == markup


def test_mention_index_build_snapshot():
    index = MentionIndex.build("Hi @[Alice](1)!", DEFAULT_MARKUP)
    assert index.plain_text == "Hi Alice!"
    assert [m.display for m in index.mentions] == ["Alice"]
    assert index.mentions[0].plain_range.to_tuple() == (3, 8)
    assert index.mentions[0].markup_range.to_tuple() == (3, 14)
    assert index.template.source == DEFAULT_MARKUP
