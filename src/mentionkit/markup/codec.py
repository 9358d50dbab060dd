"""Compile markup templates such as ``@[__display__](__id__)``.

A template is split once into literal segments and placeholder slots. The
same segment list drives both directions: the regular expression used to
find mention tokens in a markup string, and the substitution that produces a
token for a chosen suggestion.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator, Union

LOGGER = logging.getLogger(__name__)

DEFAULT_MARKUP = "@[__display__](__id__)"
PLACEHOLDER_NAMES: tuple[str, ...] = ("display", "id", "type")
_PLACEHOLDER_RE = re.compile(r"__(display|id|type)__")


class ConfigError(ValueError):
    """Raised when a template or trigger cannot be compiled."""

    def __init__(
        self,
        message: str,
        *,
        reason: str = "invalid_template",
        template: str | None = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.template = template

    def details(self) -> dict[str, str | None]:
        return {"reason": self.reason, "template": self.template}


@dataclass(slots=True, frozen=True)
class Placeholder:
    """A named slot inside a template (``display``, ``id`` or ``type``)."""

    name: str

    @property
    def marker(self) -> str:
        return f"__{self.name}__"


Segment = Union[str, Placeholder]


@dataclass(slots=True, frozen=True)
class MarkupTemplate:
    """Compiled template: ordered segments plus the derived token pattern."""

    source: str
    segments: tuple[Segment, ...]
    pattern: re.Pattern[str]

    @property
    def placeholders(self) -> tuple[str, ...]:
        """Placeholder names in template order, repeats included."""

        return tuple(seg.name for seg in self.segments if isinstance(seg, Placeholder))

    @property
    def has_id(self) -> bool:
        return "id" in self.placeholders

    @property
    def has_type(self) -> bool:
        return "type" in self.placeholders

    def generate(self, id: object, display: str, type: str | None = None) -> str:
        """Return the markup token for a mention, filling slots in template order."""

        values = {"display": str(display), "id": "" if id is None else str(id), "type": type or ""}
        parts: list[str] = []
        for segment in self.segments:
            if isinstance(segment, Placeholder):
                parts.append(values[segment.name])
            else:
                parts.append(segment)
        return "".join(parts)

    def finditer(self, markup: str, pos: int = 0) -> Iterator[re.Match[str]]:
        """Yield non-overlapping token matches left to right starting at ``pos``."""

        return self.pattern.finditer(markup, pos)


def compile_template(template: str | MarkupTemplate) -> MarkupTemplate:
    """Compile ``template`` or return it unchanged when already compiled.

    Raises :class:`ConfigError` when the template has no ``__display__`` slot.
    """

    if isinstance(template, MarkupTemplate):
        return template
    if not isinstance(template, str):
        raise ConfigError(
            f"Markup template must be a string, got {type(template).__name__}",
            reason="invalid_type",
        )
    return _compile(template)


@lru_cache(maxsize=64)
def _compile(source: str) -> MarkupTemplate:
    segments = _split_segments(source)
    if not any(isinstance(seg, Placeholder) and seg.name == "display" for seg in segments):
        raise ConfigError(
            f"Markup template {source!r} has no __display__ placeholder",
            reason="missing_display",
            template=source,
        )
    pattern = re.compile(_build_pattern(segments), re.DOTALL)
    LOGGER.debug("Compiled markup template %r -> %s", source, pattern.pattern)
    return MarkupTemplate(source=source, segments=segments, pattern=pattern)


def _split_segments(source: str) -> tuple[Segment, ...]:
    segments: list[Segment] = []
    cursor = 0
    for match in _PLACEHOLDER_RE.finditer(source):
        if match.start() > cursor:
            segments.append(source[cursor : match.start()])
        segments.append(Placeholder(match.group(1)))
        cursor = match.end()
    if cursor < len(source):
        segments.append(source[cursor:])
    return tuple(segments)


def _build_pattern(segments: tuple[Segment, ...]) -> str:
    seen: set[str] = set()
    parts: list[str] = []
    for segment in segments:
        if not isinstance(segment, Placeholder):
            parts.append(re.escape(segment))
        elif segment.name in seen:
            # repeated slot must echo the first captured value
            parts.append(f"(?P={segment.name})")
        else:
            seen.add(segment.name)
            parts.append(f"(?P<{segment.name}>.+?)")
    return "".join(parts)


def generate(template: str | MarkupTemplate, id: object, display: str, type: str | None = None) -> str:
    """Return the markup token for ``(id, display, type)`` under ``template``."""

    return compile_template(template).generate(id, display, type)


__all__ = [
    "ConfigError",
    "DEFAULT_MARKUP",
    "MarkupTemplate",
    "PLACEHOLDER_NAMES",
    "Placeholder",
    "compile_template",
    "generate",
]
