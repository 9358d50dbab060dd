"""Edit reconstruction and the headless mentions input controller."""

from .changes import ChangeResult, EditOperation, apply_change, compute_change, diff_plain_text, insert_mention
from .mentions_input import ChangeOutcome, Key, MentionsInput
from .range_normalizer import NormalizedPlainRange, widen_to_mentions

__all__ = [
    "ChangeOutcome",
    "ChangeResult",
    "EditOperation",
    "Key",
    "MentionsInput",
    "NormalizedPlainRange",
    "apply_change",
    "compute_change",
    "diff_plain_text",
    "insert_mention",
    "widen_to_mentions",
]
