"""Extract mention tokens from a markup string and render its plain text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from ..core.ranges import TextRange
from .codec import MarkupTemplate, compile_template

DisplayTransform = Callable[[str, str, Optional[str]], str]


def default_display_transform(id: str, display: str, type: str | None) -> str:
    return display


@dataclass(slots=True, frozen=True)
class Mention:
    """A mention token anchored in both the markup and the plain text."""

    id: str
    display: str
    type: str | None
    markup_start: int
    markup_end: int
    plain_start: int
    plain_end: int

    @property
    def markup_range(self) -> TextRange:
        return TextRange(self.markup_start, self.markup_end)

    @property
    def plain_range(self) -> TextRange:
        return TextRange(self.plain_start, self.plain_end)


@dataclass(slots=True, frozen=True)
class MarkupChunk:
    """One run of a markup string: either literal text or a single mention.

    ``text`` is what the chunk contributes to the plain text, so for a mention
    it is the transformed display rather than the raw token.
    """

    text: str
    markup_start: int
    markup_end: int
    plain_start: int
    mention: Mention | None = None

    @property
    def plain_end(self) -> int:
        return self.plain_start + len(self.text)

    @property
    def is_mention(self) -> bool:
        return self.mention is not None


def iter_markup(
    markup: str,
    template: str | MarkupTemplate,
    display_transform: DisplayTransform | None = None,
) -> Iterator[MarkupChunk]:
    """Walk ``markup`` once, left to right, yielding literal and mention chunks.

    Plain offsets are derived from a running delta between markup consumed and
    plain text produced; the delta only moves when a mention is emitted.
    """

    compiled = compile_template(template)
    transform = display_transform or default_display_transform
    source = markup or ""
    cursor = 0
    delta = 0
    for match in compiled.finditer(source):
        start, end = match.span()
        if start > cursor:
            yield MarkupChunk(source[cursor:start], cursor, start, cursor - delta)
        groups = match.groupdict()
        display = groups["display"]
        mention_id = groups.get("id")
        if mention_id is None:
            mention_id = display
        mention_type = groups.get("type")
        rendered = transform(mention_id, display, mention_type)
        plain_start = start - delta
        mention = Mention(
            id=mention_id,
            display=display,
            type=mention_type,
            markup_start=start,
            markup_end=end,
            plain_start=plain_start,
            plain_end=plain_start + len(rendered),
        )
        yield MarkupChunk(rendered, start, end, plain_start, mention)
        delta += (end - start) - len(rendered)
        cursor = end
    if cursor < len(source):
        yield MarkupChunk(source[cursor:], cursor, len(source), cursor - delta)


def parse_mentions(
    markup: str,
    template: str | MarkupTemplate,
    display_transform: DisplayTransform | None = None,
) -> list[Mention]:
    """Return the mentions of ``markup`` in document order."""

    return [chunk.mention for chunk in iter_markup(markup, template, display_transform) if chunk.mention]


def get_plain_text(
    markup: str,
    template: str | MarkupTemplate,
    display_transform: DisplayTransform | None = None,
) -> str:
    """Return ``markup`` with every token replaced by its (transformed) display."""

    return "".join(chunk.text for chunk in iter_markup(markup, template, display_transform))


@dataclass(slots=True, frozen=True)
class MentionIndex:
    """Snapshot of one markup string: its chunks, mentions and plain text."""

    markup: str
    template: MarkupTemplate
    chunks: tuple[MarkupChunk, ...]
    plain_text: str

    @classmethod
    def build(
        cls,
        markup: str,
        template: str | MarkupTemplate,
        display_transform: DisplayTransform | None = None,
    ) -> MentionIndex:
        compiled = compile_template(template)
        chunks = tuple(iter_markup(markup, compiled, display_transform))
        plain_text = "".join(chunk.text for chunk in chunks)
        return cls(markup=markup or "", template=compiled, chunks=chunks, plain_text=plain_text)

    @property
    def mentions(self) -> tuple[Mention, ...]:
        return tuple(chunk.mention for chunk in self.chunks if chunk.mention is not None)


__all__ = [
    "DisplayTransform",
    "MarkupChunk",
    "Mention",
    "MentionIndex",
    "default_display_transform",
    "get_plain_text",
    "iter_markup",
    "parse_mentions",
]
