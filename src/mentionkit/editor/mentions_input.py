"""Headless controller behind a text field that supports mentions.

The controller owns the markup value and translates the events a text widget
can observe (new plain text, selection moves, key presses) into markup edits
and suggestion queries. Presentation stays with the host; it subscribes to the
controller's :class:`~mentionkit.events.EventBus` and re-renders from
:attr:`MentionsInput.plain_text` whenever the markup changes.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Awaitable, Sequence

from ..core.ranges import TextRange
from ..events import (
    EventBus,
    FocusChanged,
    MarkupChanged,
    MentionAdded,
    MentionRemoved,
    SelectionRestored,
    SuggestionsCleared,
    SuggestionsUpdated,
)
from ..markup.codec import MarkupTemplate, compile_template
from ..markup.index import DisplayTransform, Mention, MentionIndex
from ..markup.positions import PositionMapper
from ..settings import MentionSettings
from ..suggestions.aggregator import FlatSuggestion, Query, SuggestionAggregator, SuggestionState
from ..suggestions.sources import MentionSource, ProviderCallback, SourceRegistry, Suggestion
from .changes import TokenHook, compute_change, insert_mention

LOGGER = logging.getLogger(__name__)


class Key(str, Enum):
    """Keys the controller handles while suggestions are listed."""

    ESCAPE = "escape"
    UP = "up"
    DOWN = "down"
    RETURN = "return"
    TAB = "tab"
    SPACE = "space"


@dataclass(slots=True, frozen=True)
class ChangeOutcome:
    """New state after an edit; hosts restore ``selection`` when flagged."""

    markup: str
    plain_text: str
    mentions: tuple[Mention, ...]
    selection: TextRange
    restore_selection: bool = False


class MentionsInput:
    """Markup value, selection and suggestion state for one text field."""

    def __init__(
        self,
        value: str = "",
        *,
        settings: MentionSettings | None = None,
        markup: str | MarkupTemplate | None = None,
        display_transform: DisplayTransform | None = None,
        sources: Sequence[MentionSource] = (),
        event_bus: EventBus | None = None,
        compile_markup: TokenHook | None = None,
    ) -> None:
        self._settings = settings or MentionSettings()
        self._template = compile_template(markup if markup is not None else self._settings.markup)
        self._display_transform = display_transform
        self._compile_markup = compile_markup
        self._registry = SourceRegistry(sources)
        self._aggregator = SuggestionAggregator(self._registry.types)
        self._events = event_bus or EventBus()
        self._index = MentionIndex.build(value or "", self._template, display_transform)
        self._selection: TextRange | None = None
        self._composing = False
        self._tasks: set[asyncio.Future[Any]] = set()

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------
    @property
    def value(self) -> str:
        """The markup string; the only state worth persisting."""

        return self._index.markup

    @property
    def plain_text(self) -> str:
        return self._index.plain_text

    @property
    def mentions(self) -> tuple[Mention, ...]:
        return self._index.mentions

    @property
    def template(self) -> MarkupTemplate:
        return self._template

    @property
    def settings(self) -> MentionSettings:
        return self._settings

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def sources(self) -> SourceRegistry:
        return self._registry

    @property
    def selection(self) -> TextRange | None:
        """Last known selection in plain coordinates, ``None`` while blurred."""

        return self._selection

    @property
    def suggestions(self) -> SuggestionState:
        return self._aggregator.state

    @property
    def is_loading(self) -> bool:
        return any(source.is_loading for source in self._registry)

    @property
    def is_composing(self) -> bool:
        return self._composing

    @property
    def suggestions_visible(self) -> bool:
        """Whether a host should show the suggestion list right now."""

        if self._selection is None:
            return False
        return self._aggregator.count() > 0 or self.is_loading

    def visible_suggestions(self) -> tuple[FlatSuggestion, ...]:
        return self._aggregator.flatten()

    def focused_suggestion(self) -> FlatSuggestion | None:
        return self._aggregator.focused()

    def mapper(self) -> PositionMapper:
        return PositionMapper(self._index)

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------
    def register_source(self, source: MentionSource) -> None:
        self._registry.register(source)

    def update_source(self, source: MentionSource) -> None:
        self._registry.update(source)

    def unregister_source(self, source_type: str) -> MentionSource | None:
        return self._registry.unregister(source_type)

    # ------------------------------------------------------------------
    # Value and selection
    # ------------------------------------------------------------------
    def set_value(self, markup: str) -> None:
        """Replace the markup from the outside without emitting change events."""

        self._index = MentionIndex.build(markup or "", self._template, self._display_transform)
        if self._selection is not None:
            self._selection = self._selection.clamp(upper=len(self._index.plain_text))

    def set_selection(self, start: int, end: int | None = None) -> TextRange:
        """Select a plain range on behalf of the host and ask it to apply it."""

        selection = TextRange(start, start if end is None else end).clamp(upper=len(self.plain_text))
        self._selection = selection
        self._events.publish(SelectionRestored(selection.start, selection.end))
        return selection

    # ------------------------------------------------------------------
    # Host event handlers
    # ------------------------------------------------------------------
    def handle_change(
        self,
        new_plain_text: str,
        selection_start: int,
        selection_end: int | None = None,
    ) -> ChangeOutcome:
        """Apply the plain text reported by the widget after one edit.

        ``selection_start``/``selection_end`` describe the widget's selection
        after the edit. The selection recorded before the edit disambiguates
        where the edit happened.
        """

        before = self._selection
        caret_after = selection_end if selection_end is not None else selection_start
        result = compute_change(
            self.value,
            new_plain_text,
            before.start if before is not None else None,
            before.end if before is not None else None,
            caret_after,
            template=self._template,
            display_transform=self._display_transform,
        )
        old_mapper = self.mapper()
        touched = old_mapper.find_mention_touched_by_deletion(
            selection_start,
            selection_end_before=before.end if before is not None else None,
        )

        selection = TextRange(selection_start, caret_after)
        restore = False
        if result.widened or (touched is not None and before is not None):
            selection = TextRange.caret(result.caret)
            restore = True
        selection = selection.clamp(upper=len(result.plain_text))

        changed = result.markup != self.value
        self._index = result.index
        self._selection = selection
        for mention in result.removed_mentions:
            self._notify_removed(mention)
        if changed:
            self._events.publish(MarkupChanged(result.markup, result.plain_text, result.index.mentions))
        if restore:
            LOGGER.debug("Restoring caret to %d after edit touched a mention", selection.start)
            self._events.publish(SelectionRestored(selection.start, selection.end))
        return ChangeOutcome(
            markup=result.markup,
            plain_text=result.plain_text,
            mentions=result.index.mentions,
            selection=selection,
            restore_selection=restore,
        )

    def handle_select(self, selection_start: int, selection_end: int | None = None, plain_text: str | None = None) -> None:
        """Track a caret or selection move and refresh the pending queries."""

        if self._composing:
            return
        text = self.plain_text if plain_text is None else plain_text
        end = selection_start if selection_end is None else selection_end
        self._selection = TextRange(selection_start, end).clamp(upper=len(text))
        if self._selection.is_caret:
            self.update_queries(text, self._selection.start)
        else:
            self.clear_suggestions()

    def handle_blur(self, *, clicked_suggestion: bool = False) -> None:
        """Forget the selection unless focus moved into the suggestion list."""

        if not clicked_suggestion:
            self._selection = None

    def handle_key(self, key: Key | str) -> bool:
        """Handle a navigation key; return ``True`` when the host should swallow it."""

        if self._aggregator.count() == 0:
            return False
        try:
            key = Key(key)
        except ValueError:
            return False
        if key is Key.ESCAPE:
            self.clear_suggestions()
        elif key is Key.DOWN:
            self.shift_focus(1)
        elif key is Key.UP:
            self.shift_focus(-1)
        elif key in (Key.RETURN, Key.TAB):
            self.select_focused()
        elif key is Key.SPACE:
            if not self._settings.select_on_space:
                return False
            self.select_focused()
        return True

    def composition_start(self) -> None:
        self._composing = True

    def composition_end(self) -> None:
        self._composing = False

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------
    def update_queries(self, plain_text: str, caret: int) -> list[Query]:
        """Start a new generation and query every source whose trigger matches."""

        generation = self._aggregator.begin_generation()
        self._events.publish(SuggestionsCleared(generation))

        mapper = self.mapper()
        if mapper.is_inside_of_mention(caret) or mapper.is_inside_of_mention(caret - 1):
            return []

        before_caret = (plain_text or "")[: max(0, caret)]
        queries: list[Query] = []
        for source in self._registry:
            matcher = source.matcher(
                default_trigger=self._settings.default_trigger,
                allow_space_default=self._settings.allow_space_in_query,
            )
            match = matcher.match(before_caret)
            if match is None:
                continue
            query = Query(
                source_type=source.type,
                query=match.query,
                sequence_start=match.sequence_start,
                sequence_end=match.sequence_end,
                plain_text=plain_text,
                generation=generation,
            )
            queries.append(query)
            self._query_source(query, source)
        return queries

    def clear_suggestions(self) -> None:
        generation = self._aggregator.begin_generation()
        self._events.publish(SuggestionsCleared(generation))

    def shift_focus(self, delta: int) -> int:
        index = self._aggregator.shift_focus(delta)
        self._events.publish(FocusChanged(index))
        return index

    def set_focus(self, index: int) -> int:
        index = self._aggregator.set_focus(index)
        self._events.publish(FocusChanged(index))
        return index

    def select_focused(self) -> ChangeOutcome | None:
        focused = self._aggregator.focused()
        if focused is None:
            return None
        return self.add_mention(focused.suggestion, focused.query)

    def add_mention(self, suggestion: Suggestion | Any, query: Query) -> ChangeOutcome:
        """Replace the query text with a mention token for ``suggestion``."""

        suggestion = Suggestion.from_value(suggestion)
        source = self._registry.get(query.source_type)
        append_space = self._settings.append_space_on_add
        if source is not None and source.append_space_on_add is not None:
            append_space = source.append_space_on_add

        new_markup, caret = insert_mention(
            self.value,
            query.sequence_start,
            query.sequence_end,
            suggestion.id,
            suggestion.display,
            query.source_type,
            template=self._template,
            display_transform=self._display_transform,
            append_space=append_space,
            compile_markup=self._compile_markup,
        )
        self._index = MentionIndex.build(new_markup, self._template, self._display_transform)
        selection = TextRange.caret(caret).clamp(upper=len(self.plain_text))
        self._selection = selection

        self._events.publish(MarkupChanged(self.value, self.plain_text, self.mentions))
        self._events.publish(MentionAdded(query.source_type, suggestion.id, suggestion.display))
        self._events.publish(SelectionRestored(selection.start, selection.end))
        self.clear_suggestions()
        if source is not None and source.on_add is not None:
            source.on_add(suggestion.id, suggestion.display)
        return ChangeOutcome(
            markup=self.value,
            plain_text=self.plain_text,
            mentions=self.mentions,
            selection=selection,
            restore_selection=True,
        )

    # ------------------------------------------------------------------
    # Provider plumbing
    # ------------------------------------------------------------------
    def _query_source(self, query: Query, source: MentionSource) -> None:
        callback: ProviderCallback = partial(self._deliver, query, source)
        try:
            result = source.provider(query.query, callback)
        except Exception:
            LOGGER.exception("Provider for %r failed on query %r", source.type, query.query)
            return
        if inspect.isawaitable(result):
            self._schedule(result, callback, source)
        elif isinstance(result, (str, bytes)):
            LOGGER.warning("Provider for %r returned a string instead of candidates", source.type)
        elif result is not None:
            callback(result)

    def _schedule(self, awaitable: Awaitable[Any], callback: ProviderCallback, source: MentionSource) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            LOGGER.warning("Provider for %r returned an awaitable outside a running event loop", source.type)
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        task.add_done_callback(partial(self._finish_task, callback, source))

    def _finish_task(self, callback: ProviderCallback, source: MentionSource, task: asyncio.Future[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            LOGGER.error("Provider for %r failed", source.type, exc_info=error)
            return
        result = task.result()
        if result is not None:
            callback(result)

    def _deliver(self, query: Query, source: MentionSource, candidates: Sequence[Any]) -> None:
        try:
            accepted = self._aggregator.deliver(
                query,
                candidates,
                group_by=source.group_by,
                group_names=source.group_names,
            )
        except (TypeError, ValueError):
            LOGGER.exception("Provider for %r returned malformed candidates", source.type)
            return
        if accepted:
            self._events.publish(SuggestionsUpdated(query.generation, source.type, self._aggregator.count()))

    def _notify_removed(self, mention: Mention) -> None:
        source = self._source_for(mention)
        self._events.publish(MentionRemoved(source.type if source else mention.type, mention.id, mention.display))
        if source is not None and source.on_remove is not None:
            source.on_remove(mention.id, mention.display)

    def _source_for(self, mention: Mention) -> MentionSource | None:
        if mention.type:
            return self._registry.get(mention.type)
        if len(self._registry) == 1:
            return next(iter(self._registry))
        return None


__all__ = ["ChangeOutcome", "Key", "MentionsInput"]
