"""
Stream event models - the decoded units of an incremental backend response.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class EventKind(Enum):
    """Kinds of decoded stream events."""
    TEXT = "text"
    TOOL_CALL = "tool_call"
    SPECIALIST = "specialist"


@dataclass(frozen=True)
class StreamEvent:
    """A text fragment or an inline control marker, in arrival order.

    For TEXT events ``value`` is the fragment verbatim; for TOOL_CALL and
    SPECIALIST events it is the tool or specialist name.
    """
    kind: EventKind
    value: str

    @classmethod
    def text(cls, value: str) -> StreamEvent:
        return cls(EventKind.TEXT, value)

    @classmethod
    def tool_call(cls, name: str) -> StreamEvent:
        return cls(EventKind.TOOL_CALL, name)

    @classmethod
    def specialist(cls, name: str) -> StreamEvent:
        return cls(EventKind.SPECIALIST, name)

    @property
    def is_text(self) -> bool:
        return self.kind is EventKind.TEXT

    @property
    def name(self) -> str:
        """Alias of ``value`` for marker events."""
        return self.value


def render_marker(event: StreamEvent) -> str:
    """Render an event the way the chat UI shows it inline."""
    if event.kind is EventKind.TOOL_CALL:
        return f"\n[Consulting {event.value}...]\n"
    if event.kind is EventKind.SPECIALIST:
        return f"\n[{event.value} specialist activated]\n"
    return event.value
