"""Translate caret and selection offsets between plain text and markup."""

from __future__ import annotations

from bisect import bisect_right
from enum import Enum

from ..core.ranges import TextRange
from .codec import MarkupTemplate
from .index import DisplayTransform, Mention, MentionIndex


class Bias(str, Enum):
    """Where an offset strictly inside a mention snaps to in markup space."""

    START = "start"
    END = "end"
    NONE = "none"


class PositionMapper:
    """Offset conversions over one :class:`MentionIndex` snapshot."""

    __slots__ = ("_index", "_mentions", "_starts")

    def __init__(self, index: MentionIndex) -> None:
        self._index = index
        self._mentions = index.mentions
        self._starts = [mention.plain_start for mention in self._mentions]

    @classmethod
    def from_markup(
        cls,
        markup: str,
        template: str | MarkupTemplate,
        display_transform: DisplayTransform | None = None,
    ) -> PositionMapper:
        return cls(MentionIndex.build(markup, template, display_transform))

    @property
    def index(self) -> MentionIndex:
        return self._index

    @property
    def plain_text(self) -> str:
        return self._index.plain_text

    @property
    def mentions(self) -> tuple[Mention, ...]:
        return self._mentions

    def clamp(self, plain_index: int) -> int:
        """Clamp ``plain_index`` to ``[0, len(plain_text)]``."""

        return max(0, min(int(plain_index), len(self._index.plain_text)))

    def mention_at(self, plain_index: int) -> Mention | None:
        """Return the mention whose display strictly encloses ``plain_index``."""

        position = bisect_right(self._starts, plain_index) - 1
        if position < 0:
            return None
        mention = self._mentions[position]
        return mention if mention.plain_range.strictly_contains(plain_index) else None

    def is_inside_of_mention(self, plain_index: int) -> bool:
        """Return ``True`` for interior positions; mention boundaries are outside."""

        return self.mention_at(plain_index) is not None

    def map_plain_to_markup(self, plain_index: int, bias: Bias = Bias.START) -> int | None:
        """Return the markup offset for ``plain_index``.

        Interior positions cannot be expressed without splitting a token, so they
        snap to the token start (``Bias.START``) or end (``Bias.END``).
        ``Bias.NONE`` returns ``None`` for them instead.
        """

        index = self.clamp(plain_index)
        for chunk in self._index.chunks:
            if chunk.mention is None:
                if chunk.plain_start <= index <= chunk.plain_end:
                    return chunk.markup_start + (index - chunk.plain_start)
                continue
            if index == chunk.plain_start:
                return chunk.markup_start
            if index == chunk.plain_end:
                return chunk.markup_end
            if chunk.plain_start < index < chunk.plain_end:
                if bias is Bias.NONE:
                    return None
                return chunk.markup_end if bias is Bias.END else chunk.markup_start
        return len(self._index.markup)

    def find_mention_touched_by_deletion(
        self,
        caret_after_deletion: int,
        *,
        selection_end_before: int | None = None,
    ) -> Mention | None:
        """Return the mention a deletion ending at ``caret_after_deletion`` ran into.

        The caret must sit on or inside the mention's display (end excluded).
        When the pre-edit selection end is known it must lie past the mention
        start, otherwise nothing was deleted from the mention.
        """

        caret = self.clamp(caret_after_deletion)
        position = bisect_right(self._starts, caret) - 1
        if position < 0:
            return None
        mention = self._mentions[position]
        if not mention.plain_start <= caret < mention.plain_end:
            return None
        if selection_end_before is not None and selection_end_before <= mention.plain_start:
            return None
        return mention

    def mentions_overlapping(self, start: int, end: int) -> list[Mention]:
        """Return mentions sharing at least one character with ``[start, end)``."""

        span = TextRange(start, end)
        return [mention for mention in self._mentions if mention.plain_range.overlaps(span)]


__all__ = ["Bias", "PositionMapper"]
