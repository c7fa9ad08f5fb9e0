"""Domain models package."""

from .conversation import MessageRole, Turn, Session, OutboundRequest, new_session_id
from .credentials import Credential
from .events import EventKind, StreamEvent, render_marker

__all__ = [
    "MessageRole",
    "Turn",
    "Session",
    "OutboundRequest",
    "new_session_id",
    "Credential",
    "EventKind",
    "StreamEvent",
    "render_marker"
]
