"""Mention sources: trigger, data provider and grouping for one mention type."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Callable

from .triggers import Trigger, TriggerMatcher

LOGGER = logging.getLogger(__name__)

ProviderCallback = Callable[[Sequence[Any]], None]
Provider = Callable[[str, ProviderCallback], Any]
GroupBy = Callable[["Suggestion"], str]

DEFAULT_GROUP = "all"


@dataclass(slots=True, frozen=True)
class Suggestion:
    """A candidate offered for a query; ``data`` keeps any extra provider fields."""

    id: str
    display: str
    data: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def label(self) -> str:
        return self.display or self.id

    @classmethod
    def from_value(cls, value: Any) -> Suggestion:
        """Coerce a mapping, string or ``id``/``display`` object into a suggestion."""

        if isinstance(value, Suggestion):
            return value
        if isinstance(value, str):
            return cls(id=value, display=value)
        if isinstance(value, Mapping):
            if value.get("id") is None:
                raise ValueError("Suggestion mappings require an id")
            identifier = str(value["id"])
            display = value.get("display")
            extra = {key: item for key, item in value.items() if key not in {"id", "display"}}
            return cls(id=identifier, display=str(display) if display else identifier, data=extra)
        identifier = getattr(value, "id", None)
        if identifier is not None:
            display = getattr(value, "display", None)
            return cls(id=str(identifier), display=str(display) if display else str(identifier))
        raise TypeError(f"Unsupported suggestion value: {value!r}")


def _group_all(_suggestion: Suggestion) -> str:
    return DEFAULT_GROUP


def filter_provider(data: Sequence[Any]) -> Provider:
    """Return a synchronous provider doing a case-insensitive substring search."""

    candidates = tuple(Suggestion.from_value(item) for item in data)

    def provide(query: str, _callback: ProviderCallback) -> list[Suggestion]:
        needle = (query or "").lower()
        return [item for item in candidates if needle in item.label.lower()]

    return provide


def resolve_provider(data: Provider | Sequence[Any]) -> Provider:
    """Use callables as providers and wrap static sequences in :func:`filter_provider`."""

    if callable(data):
        return data
    if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
        return filter_provider(data)
    raise TypeError("Mention source data must be a provider callable or a sequence of candidates")


@dataclass(slots=True)
class MentionSource:
    """Configuration for one kind of mention (users, tags, ...).

    ``trigger``, ``allow_space_in_query`` and ``append_space_on_add`` fall back to the
    input-level settings when left as ``None``. ``group_names`` maps group keys
    to labels; its order is the order groups are listed in.
    """

    type: str
    data: Provider | Sequence[Any]
    trigger: Trigger | None = None
    allow_space_in_query: bool | None = None
    append_space_on_add: bool | None = None
    group_by: GroupBy = _group_all
    group_names: Mapping[str, str] = field(default_factory=lambda: {DEFAULT_GROUP: "All Suggestions"})
    is_loading: bool = False
    on_add: Callable[[str, str], None] | None = None
    on_remove: Callable[[str, str], None] | None = None
    provider: Provider = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.type:
            raise ValueError("Mention sources require a type")
        self.provider = resolve_provider(self.data)

    def matcher(self, *, default_trigger: Trigger = "@", allow_space_default: bool = False) -> TriggerMatcher:
        trigger = self.trigger if self.trigger is not None else default_trigger
        allow_space = self.allow_space_in_query
        if allow_space is None:
            allow_space = allow_space_default
        return TriggerMatcher(trigger, allow_space_in_query=allow_space)


class SourceRegistry:
    """Ordered collection of sources keyed by type.

    Iteration order is registration order, except that an updated source moves
    to the end.
    """

    __slots__ = ("_sources",)

    def __init__(self, sources: Sequence[MentionSource] = ()) -> None:
        self._sources: list[MentionSource] = []
        for source in sources:
            self.register(source)

    def register(self, source: MentionSource) -> None:
        if source.type in self:
            self.update(source)
            return
        self._sources.append(source)
        LOGGER.debug("Registered mention source %r (trigger=%r)", source.type, source.trigger)

    def update(self, source: MentionSource) -> None:
        self._sources = [entry for entry in self._sources if entry.type != source.type]
        self._sources.append(source)
        LOGGER.debug("Updated mention source %r", source.type)

    def unregister(self, source_type: str) -> MentionSource | None:
        removed = self.get(source_type)
        if removed is not None:
            self._sources.remove(removed)
        return removed

    def get(self, source_type: str) -> MentionSource | None:
        for source in self._sources:
            if source.type == source_type:
                return source
        return None

    def types(self) -> tuple[str, ...]:
        return tuple(source.type for source in self._sources)

    def __contains__(self, source_type: object) -> bool:
        return any(source.type == source_type for source in self._sources)

    def __iter__(self) -> Iterator[MentionSource]:
        return iter(tuple(self._sources))

    def __len__(self) -> int:
        return len(self._sources)


__all__ = [
    "DEFAULT_GROUP",
    "GroupBy",
    "MentionSource",
    "Provider",
    "ProviderCallback",
    "SourceRegistry",
    "Suggestion",
    "filter_provider",
    "resolve_provider",
]
