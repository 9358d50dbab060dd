"""Markup template compilation, mention extraction and offset mapping."""

from .codec import DEFAULT_MARKUP, ConfigError, MarkupTemplate, compile_template, generate
from .index import DisplayTransform, MarkupChunk, Mention, MentionIndex, get_plain_text, iter_markup, parse_mentions
from .positions import Bias, PositionMapper

__all__ = [
    "Bias",
    "ConfigError",
    "DEFAULT_MARKUP",
    "DisplayTransform",
    "MarkupChunk",
    "MarkupTemplate",
    "Mention",
    "MentionIndex",
    "PositionMapper",
    "compile_template",
    "generate",
    "get_plain_text",
    "iter_markup",
    "parse_mentions",
]
