"""Generation-tagged suggestion state shared by rendering and keyboard focus.

Every refresh of the queries starts a new generation. Results carry the
generation of the query they answer and are ignored once it is stale, which is
the only cancellation mechanism for providers still running.

Rendering order and focus order both come from :func:`flatten_suggestions`.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Callable

from .sources import GroupBy, Suggestion

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Query:
    """A trigger match handed to a provider, tagged with its generation."""

    source_type: str
    query: str
    sequence_start: int
    sequence_end: int
    plain_text: str
    generation: int


@dataclass(slots=True, frozen=True)
class SuggestionGroup:
    name: str
    label: str
    suggestions: tuple[Suggestion, ...]


@dataclass(slots=True, frozen=True)
class SuggestionSet:
    """The latest results of one source, already split into ordered groups."""

    query: Query
    groups: tuple[SuggestionGroup, ...]

    @property
    def source_type(self) -> str:
        return self.query.source_type

    @property
    def results(self) -> tuple[Suggestion, ...]:
        return tuple(item for group in self.groups for item in group.suggestions)


@dataclass(slots=True, frozen=True)
class FlatSuggestion:
    """One row of the flattened list, with everything needed to insert it."""

    index: int
    suggestion: Suggestion
    query: Query
    group: SuggestionGroup


@dataclass(slots=True, frozen=True)
class SuggestionState:
    """Immutable snapshot of all sources' suggestions for one generation."""

    generation: int = 0
    sets: Mapping[str, SuggestionSet] = field(default_factory=dict)
    order: tuple[str, ...] = ()
    focus_index: int = 0

    def ordered_sets(self) -> tuple[SuggestionSet, ...]:
        """Sets in source order; sets of unknown sources trail in arrival order."""

        ordered = [self.sets[name] for name in self.order if name in self.sets]
        ordered.extend(entry for name, entry in self.sets.items() if name not in self.order)
        return tuple(ordered)

    @property
    def is_empty(self) -> bool:
        return count_suggestions(self) == 0


def group_suggestions(
    candidates: Iterable[Suggestion],
    group_by: GroupBy,
    group_names: Mapping[str, str],
) -> tuple[SuggestionGroup, ...]:
    """Bucket ``candidates`` by ``group_by`` and order buckets by ``group_names``.

    Groups missing from ``group_names`` follow the declared ones in the order
    they were first seen.
    """

    buckets: dict[str, list[Suggestion]] = {}
    for candidate in candidates:
        buckets.setdefault(str(group_by(candidate)), []).append(candidate)
    names = [name for name in group_names if name in buckets]
    names.extend(name for name in buckets if name not in group_names)
    return tuple(
        SuggestionGroup(name=name, label=str(group_names.get(name, name)), suggestions=tuple(buckets[name]))
        for name in names
    )


def flatten_suggestions(state: SuggestionState) -> tuple[FlatSuggestion, ...]:
    """Return every suggestion once, in display and navigation order."""

    flat: list[FlatSuggestion] = []
    for entry in state.ordered_sets():
        for group in entry.groups:
            for suggestion in group.suggestions:
                flat.append(FlatSuggestion(len(flat), suggestion, entry.query, group))
    return tuple(flat)


def count_suggestions(state: SuggestionState) -> int:
    return len(flatten_suggestions(state))


def flatten_index(state: SuggestionState, index: int) -> FlatSuggestion | None:
    """Return the suggestion at flat position ``index`` or ``None`` when out of range."""

    flat = flatten_suggestions(state)
    if 0 <= index < len(flat):
        return flat[index]
    return None


def merge_suggestion_set(state: SuggestionState, suggestion_set: SuggestionSet) -> SuggestionState:
    """Return ``state`` with ``suggestion_set`` replacing its source's previous set.

    Sets from another generation leave ``state`` untouched. Focus is clamped to
    the last valid row when the list shrinks.
    """

    if suggestion_set.query.generation != state.generation:
        return state
    sets = dict(state.sets)
    sets[suggestion_set.source_type] = suggestion_set
    merged = replace(state, sets=sets)
    total = count_suggestions(merged)
    if merged.focus_index >= total:
        merged = replace(merged, focus_index=max(total - 1, 0))
    return merged


class SuggestionAggregator:
    """Thread-safe holder of the current :class:`SuggestionState`.

    Providers may deliver from any thread; each delivery swaps in a new
    immutable state under a lock.
    """

    def __init__(self, order: Callable[[], tuple[str, ...]] | None = None) -> None:
        self._lock = threading.Lock()
        self._order = order or tuple
        self._state = SuggestionState()

    @property
    def state(self) -> SuggestionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._state.generation

    def begin_generation(self) -> int:
        """Drop all suggestions and invalidate every outstanding query."""

        with self._lock:
            self._state = SuggestionState(generation=self._state.generation + 1, order=tuple(self._order()))
            return self._state.generation

    def deliver(
        self,
        query: Query,
        candidates: Iterable[Any],
        *,
        group_by: GroupBy,
        group_names: Mapping[str, str],
    ) -> bool:
        """Merge a provider's results; return ``False`` when they were stale."""

        if query.generation != self._state.generation:
            LOGGER.debug(
                "Dropping stale results for %r (generation %d, current %d)",
                query.source_type,
                query.generation,
                self._state.generation,
            )
            return False
        suggestions = [Suggestion.from_value(item) for item in candidates or ()]
        groups = group_suggestions(suggestions, group_by, group_names)
        with self._lock:
            merged = merge_suggestion_set(self._state, SuggestionSet(query=query, groups=groups))
            if merged is self._state:
                return False
            self._state = merged
        return True

    def flatten(self) -> tuple[FlatSuggestion, ...]:
        return flatten_suggestions(self._state)

    def count(self) -> int:
        return count_suggestions(self._state)

    def focused(self) -> FlatSuggestion | None:
        state = self._state
        return flatten_index(state, state.focus_index)

    def shift_focus(self, delta: int) -> int:
        """Move focus by ``delta`` rows, wrapping around the list."""

        with self._lock:
            total = count_suggestions(self._state)
            index = (self._state.focus_index + delta) % total if total else 0
            self._state = replace(self._state, focus_index=index)
            return index

    def set_focus(self, index: int) -> int:
        with self._lock:
            total = count_suggestions(self._state)
            index = max(0, min(int(index), total - 1)) if total else 0
            self._state = replace(self._state, focus_index=index)
            return index


__all__ = [
    "FlatSuggestion",
    "Query",
    "SuggestionAggregator",
    "SuggestionGroup",
    "SuggestionSet",
    "SuggestionState",
    "count_suggestions",
    "flatten_index",
    "flatten_suggestions",
    "group_suggestions",
    "merge_suggestion_set",
]
