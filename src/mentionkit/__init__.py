"""Mention-aware text input core: markup/plain text mapping and suggestions."""

from .core.ranges import TextRange
from .editor.changes import apply_change, compute_change, insert_mention
from .editor.mentions_input import ChangeOutcome, Key, MentionsInput
from .events import EventBus
from .markup.codec import DEFAULT_MARKUP, ConfigError, MarkupTemplate, compile_template
from .markup.index import Mention, MentionIndex, get_plain_text, parse_mentions
from .markup.positions import Bias, PositionMapper
from .settings import MentionSettings, SettingsStore
from .suggestions.sources import MentionSource, Suggestion
from .suggestions.triggers import TriggerMatcher

__version__ = "0.1.0"

__all__ = [
    "Bias",
    "ChangeOutcome",
    "ConfigError",
    "DEFAULT_MARKUP",
    "EventBus",
    "Key",
    "MarkupTemplate",
    "Mention",
    "MentionIndex",
    "MentionSettings",
    "MentionSource",
    "MentionsInput",
    "PositionMapper",
    "SettingsStore",
    "Suggestion",
    "TextRange",
    "TriggerMatcher",
    "apply_change",
    "compile_template",
    "compute_change",
    "get_plain_text",
    "insert_mention",
    "parse_mentions",
]
