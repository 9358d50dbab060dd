"""Rebuild a markup string from an edit observed on its plain text.

The text surface only ever reports the new plain text. The edit is recovered
by diffing the old and new plain text, the removed span is widened so no
mention is left half deleted, and the result is spliced into the markup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from ..core.ranges import TextRange
from ..markup.codec import MarkupTemplate, compile_template
from ..markup.index import DisplayTransform, Mention, MentionIndex, default_display_transform
from ..markup.positions import Bias, PositionMapper
from .range_normalizer import widen_to_mentions

LOGGER = logging.getLogger(__name__)

# post-processes a generated mention token before it is spliced in
TokenHook = Callable[[str], str]


@dataclass(slots=True, frozen=True)
class EditOperation:
    """Replacement of ``[plain_start, plain_end)`` by ``inserted_text``."""

    plain_start: int
    plain_end: int
    inserted_text: str

    @property
    def removed_range(self) -> TextRange:
        return TextRange(self.plain_start, self.plain_end)

    @property
    def is_noop(self) -> bool:
        return self.plain_start == self.plain_end and not self.inserted_text


@dataclass(slots=True, frozen=True)
class ChangeResult:
    """Outcome of :func:`compute_change`."""

    markup: str
    operation: EditOperation
    index: MentionIndex
    removed_mentions: tuple[Mention, ...] = ()
    widened: bool = False

    @property
    def plain_text(self) -> str:
        return self.index.plain_text

    @property
    def caret(self) -> int:
        """Plain offset just after the inserted text."""

        return self.operation.plain_start + len(self.operation.inserted_text)


def diff_plain_text(
    old_text: str,
    new_text: str,
    selection_start: int | None = None,
    selection_end: int | None = None,
    caret_after: int | None = None,
) -> EditOperation:
    """Recover the single edit that turns ``old_text`` into ``new_text``.

    The common prefix may not reach past the post-edit caret, nor past the
    start of a non-empty pre-edit selection; the common suffix is capped the
    same way from the end. A collapsed pre-edit caret caps nothing: undo and
    similar host edits move the caret without reporting a selection first.
    These caps only ever shrink the matched prefix and suffix; without them
    repeated characters around the edit point make the location ambiguous.
    """

    old_text = old_text or ""
    new_text = new_text or ""
    old_len = len(old_text)
    new_len = len(new_text)
    limit = min(old_len, new_len)

    prefix_cap = limit
    suffix_cap = limit
    if selection_start is not None:
        sel_start = _clamp(selection_start, old_len)
        sel_end = _clamp(selection_end if selection_end is not None else selection_start, old_len)
        if sel_end < sel_start:
            sel_start, sel_end = sel_end, sel_start
        if sel_start != sel_end:
            prefix_cap = min(prefix_cap, sel_start)
            suffix_cap = min(suffix_cap, old_len - sel_end)
    if caret_after is not None:
        caret = _clamp(caret_after, new_len)
        prefix_cap = min(prefix_cap, caret)
        suffix_cap = min(suffix_cap, new_len - caret)

    prefix = 0
    while prefix < prefix_cap and old_text[prefix] == new_text[prefix]:
        prefix += 1
    suffix_cap = min(suffix_cap, limit - prefix)
    suffix = 0
    while suffix < suffix_cap and old_text[old_len - 1 - suffix] == new_text[new_len - 1 - suffix]:
        suffix += 1

    return EditOperation(
        plain_start=prefix,
        plain_end=old_len - suffix,
        inserted_text=new_text[prefix : new_len - suffix],
    )


def compute_change(
    old_markup: str,
    new_plain_text: str,
    selection_start: int | None,
    selection_end: int | None,
    caret_after: int | None,
    *,
    template: str | MarkupTemplate,
    display_transform: DisplayTransform | None = None,
) -> ChangeResult:
    """Apply a plain-text edit to ``old_markup`` and describe what happened."""

    compiled = compile_template(template)
    old_markup = old_markup or ""
    mapper = PositionMapper.from_markup(old_markup, compiled, display_transform)
    old_plain = mapper.plain_text
    if old_plain == (new_plain_text or ""):
        noop = EditOperation(len(old_plain), len(old_plain), "")
        return ChangeResult(markup=old_markup, operation=noop, index=mapper.index)

    operation = diff_plain_text(old_plain, new_plain_text, selection_start, selection_end, caret_after)
    normalized = widen_to_mentions(mapper, operation.plain_start, operation.plain_end)
    if normalized.widened:
        LOGGER.debug(
            "Widened edit [%d, %d) to [%d, %d) to drop %d cut mention(s)",
            operation.plain_start,
            operation.plain_end,
            normalized.start,
            normalized.end,
            len(normalized.cut),
        )
        operation = EditOperation(normalized.start, normalized.end, operation.inserted_text)

    markup_start = mapper.map_plain_to_markup(normalized.start, Bias.START)
    markup_end = mapper.map_plain_to_markup(normalized.end, Bias.END)
    new_markup = old_markup[:markup_start] + operation.inserted_text + old_markup[markup_end:]
    removed = tuple(mapper.mentions_overlapping(normalized.start, normalized.end))
    return ChangeResult(
        markup=new_markup,
        operation=operation,
        index=MentionIndex.build(new_markup, compiled, display_transform),
        removed_mentions=removed,
        widened=normalized.widened,
    )


def apply_change(
    old_markup: str,
    new_plain_text: str,
    selection_start: int | None,
    selection_end: int | None,
    caret_after: int | None,
    *,
    template: str | MarkupTemplate,
    display_transform: DisplayTransform | None = None,
) -> str:
    """Return the markup reflecting ``new_plain_text``.

    Its plain text can differ from ``new_plain_text`` when the edit cut into a
    mention, because the whole mention is then removed.
    """

    return compute_change(
        old_markup,
        new_plain_text,
        selection_start,
        selection_end,
        caret_after,
        template=template,
        display_transform=display_transform,
    ).markup


def insert_mention(
    old_markup: str,
    query_start: int,
    query_end: int,
    id: object,
    display: str,
    type: str | None = None,
    *,
    template: str | MarkupTemplate,
    display_transform: DisplayTransform | None = None,
    append_space: bool = False,
    compile_markup: TokenHook | None = None,
) -> tuple[str, int]:
    """Replace the plain range ``[query_start, query_end)`` with a mention token.

    Returns the new markup and the plain caret offset just after the inserted
    display text (and the trailing space, when one is appended).
    ``compile_markup`` may rewrite the generated token; the trailing space is
    added after it runs.
    """

    compiled = compile_template(template)
    old_markup = old_markup or ""
    mapper = PositionMapper.from_markup(old_markup, compiled, display_transform)
    start = mapper.map_plain_to_markup(query_start, Bias.START)
    end = max(start, mapper.map_plain_to_markup(query_end, Bias.END))
    token = compiled.generate(id, display, type)
    if compile_markup is not None:
        token = compile_markup(token)
    transform = display_transform or default_display_transform
    rendered = transform("" if id is None else str(id), str(display), type)
    if append_space:
        token += " "
        rendered += " "
    new_markup = old_markup[:start] + token + old_markup[end:]
    return new_markup, mapper.clamp(query_start) + len(rendered)


def _clamp(value: int, length: int) -> int:
    return max(0, min(int(value), length))


__all__ = [
    "ChangeResult",
    "EditOperation",
    "TokenHook",
    "apply_change",
    "compute_change",
    "diff_plain_text",
    "insert_mention",
]
