"""Helpers for widening removed plain-text ranges to whole mentions."""

from __future__ import annotations

from dataclasses import dataclass

from ..markup.index import Mention
from ..markup.positions import PositionMapper


@dataclass(slots=True, frozen=True)
class NormalizedPlainRange:
    """A removal span whose edges never fall strictly inside a mention."""

    start: int
    end: int
    cut: tuple[Mention, ...] = ()

    @property
    def widened(self) -> bool:
        return bool(self.cut)


def widen_to_mentions(mapper: PositionMapper, start: int, end: int) -> NormalizedPlainRange:
    """Push each edge of ``[start, end)`` out to the span of the mention it cuts."""

    left = mapper.clamp(start)
    right = mapper.clamp(end)
    if right < left:
        left, right = right, left

    cut: list[Mention] = []
    left_mention = mapper.mention_at(left)
    if left_mention is not None:
        left = left_mention.plain_start
        cut.append(left_mention)
    right_mention = mapper.mention_at(right)
    if right_mention is not None:
        right = right_mention.plain_end
        if right_mention is not left_mention:
            cut.append(right_mention)
    return NormalizedPlainRange(start=left, end=right, cut=tuple(cut))


__all__ = ["NormalizedPlainRange", "widen_to_mentions"]
