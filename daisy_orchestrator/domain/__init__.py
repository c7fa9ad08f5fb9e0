"""Domain layer - Pure business logic with no external dependencies."""

from .errors import ErrorKind, OrchestratorError, CredentialError, BackendError, BackendTimeoutError
from .models import (
    MessageRole,
    Turn,
    Session,
    OutboundRequest,
    Credential,
    EventKind,
    StreamEvent,
    render_marker
)

__all__ = [
    "ErrorKind",
    "OrchestratorError",
    "CredentialError",
    "BackendError",
    "BackendTimeoutError",
    "MessageRole",
    "Turn",
    "Session",
    "OutboundRequest",
    "Credential",
    "EventKind",
    "StreamEvent",
    "render_marker"
]
