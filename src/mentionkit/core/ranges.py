"""Half-open offset spans shared by the plain text and markup layers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True, order=True)
class TextRange:
    """``[start, end)`` offsets into one string.

    Negative offsets become zero and reversed ends are swapped, so a range
    built from raw widget values is always well formed.
    """

    start: int
    end: int

    def __post_init__(self) -> None:
        start = max(0, int(self.start))
        end = max(0, int(self.end))
        if end < start:
            start, end = end, start
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @classmethod
    def caret(cls, index: int) -> TextRange:
        return cls(index, index)

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_caret(self) -> bool:
        return self.start == self.end

    def strictly_contains(self, index: int) -> bool:
        """``True`` for interior offsets; both edges count as outside."""

        return self.start < index < self.end

    def overlaps(self, other: TextRange) -> bool:
        """``True`` when the spans share at least one character."""

        return self.start < other.end and other.start < self.end

    def clamp(self, *, upper: int) -> TextRange:
        """Pull both ends into ``[0, upper]``."""

        return TextRange(min(self.start, upper), min(self.end, upper))

    def to_tuple(self) -> tuple[int, int]:
        return (self.start, self.end)


__all__ = ["TextRange"]
