"""Detect the autocomplete query being typed right before the caret."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from ..markup.codec import ConfigError

Trigger = Union[str, re.Pattern]


@dataclass(slots=True, frozen=True)
class TriggerMatch:
    """A pending query: ``sequence`` is the trigger plus the query text."""

    query: str
    sequence_start: int
    sequence_end: int

    @property
    def match_start(self) -> int:
        return self.sequence_start


def build_trigger_pattern(trigger: Trigger, *, allow_space_in_query: bool = False) -> re.Pattern[str]:
    """Return the pattern matching a trigger and query anchored at the end.

    String triggers must follow the start of the text or whitespace. The query
    may not contain the trigger characters nor, unless allowed, whitespace.
    Compiled patterns are used as given; they should expose a ``sequence`` and a
    ``query`` group, or else the first two positional groups are used.
    """

    if isinstance(trigger, re.Pattern):
        return trigger
    if not isinstance(trigger, str) or not trigger:
        raise ConfigError("Trigger must be a non-empty string or a compiled pattern", reason="invalid_trigger")
    escaped = re.escape(trigger)
    excluded = "".join(re.escape(char) for char in dict.fromkeys(trigger))
    if not allow_space_in_query:
        excluded = r"\s" + excluded
    return re.compile(rf"(?:^|\s)(?P<sequence>{escaped}(?P<query>[^{excluded}]*))\Z")


class TriggerMatcher:
    """Matches one source's trigger against the text preceding the caret."""

    __slots__ = ("_pattern", "trigger", "allow_space_in_query")

    def __init__(self, trigger: Trigger = "@", *, allow_space_in_query: bool = False) -> None:
        self.trigger = trigger
        self.allow_space_in_query = allow_space_in_query
        self._pattern = build_trigger_pattern(trigger, allow_space_in_query=allow_space_in_query)

    @property
    def pattern(self) -> re.Pattern[str]:
        return self._pattern

    def match(self, text_before_caret: str) -> TriggerMatch | None:
        """Return the query ending at the end of ``text_before_caret`` if any."""

        found = self._pattern.search(text_before_caret or "")
        if found is None:
            return None
        names = found.re.groupindex
        if "sequence" in names and "query" in names:
            sequence_group: int | str = "sequence"
            query_group: int | str = "query"
        elif found.re.groups >= 2:
            sequence_group, query_group = 1, 2
        else:
            sequence_group, query_group = 0, 0
        start, end = found.span(sequence_group)
        query = found.group(query_group) or ""
        return TriggerMatch(query=query, sequence_start=start, sequence_end=end)


__all__ = ["Trigger", "TriggerMatch", "TriggerMatcher", "build_trigger_pattern"]
