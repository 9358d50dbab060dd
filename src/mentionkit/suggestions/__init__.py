"""Trigger detection, mention sources and suggestion aggregation."""

from .aggregator import (
    FlatSuggestion,
    Query,
    SuggestionAggregator,
    SuggestionGroup,
    SuggestionSet,
    SuggestionState,
    count_suggestions,
    flatten_index,
    flatten_suggestions,
    group_suggestions,
)
from .sources import MentionSource, SourceRegistry, Suggestion, filter_provider, resolve_provider
from .triggers import TriggerMatch, TriggerMatcher, build_trigger_pattern

__all__ = [
    "FlatSuggestion",
    "MentionSource",
    "Query",
    "SourceRegistry",
    "Suggestion",
    "SuggestionAggregator",
    "SuggestionGroup",
    "SuggestionSet",
    "SuggestionState",
    "TriggerMatch",
    "TriggerMatcher",
    "build_trigger_pattern",
    "count_suggestions",
    "filter_provider",
    "flatten_index",
    "flatten_suggestions",
    "group_suggestions",
    "resolve_provider",
]
