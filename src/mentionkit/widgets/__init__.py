"""Qt bindings for mention inputs."""

from .event_relay import EventRelay
from .mentions_edit import MentionsTextEdit

__all__ = ["EventRelay", "MentionsTextEdit"]
