"""
Domain errors - the failure taxonomy surfaced to callers of the orchestrator.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Stable, user-facing failure kinds."""
    UNAUTHENTICATED = "unauthenticated"
    INVALID_INPUT = "invalid_input"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    INTERNAL = "internal"


USER_MESSAGES = {
    ErrorKind.UNAUTHENTICATED: "Please sign in to continue.",
    ErrorKind.INVALID_INPUT: "Invalid message format. Please try again.",
    ErrorKind.RATE_LIMITED: "Service is busy. Try again shortly.",
    ErrorKind.TIMEOUT: "Request timed out. Try a simpler query.",
    ErrorKind.INTERNAL: "Unable to process your request. Please try again.",
}


class OrchestratorError(Exception):
    """Classified failure of a send; the message is safe to display."""

    def __init__(self, kind: ErrorKind, message: Optional[str] = None):
        self.kind = kind
        self.message = message or USER_MESSAGES[kind]
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"OrchestratorError(kind={self.kind.value!r}, message={self.message!r})"


class CredentialError(Exception):
    """No credential could be resolved for the current execution context."""


class BackendError(Exception):
    """Failure reported by the backend, either as an HTTP status or an error payload."""

    def __init__(
        self,
        detail: str = "",
        status_code: Optional[int] = None,
        status: Optional[str] = None
    ):
        self.detail = detail
        self.status_code = status_code
        # Google canonical status, e.g. RESOURCE_EXHAUSTED
        self.status = status
        super().__init__(detail or status or f"HTTP {status_code}")


class BackendTimeoutError(BackendError, TimeoutError):
    """The transport gave up waiting for the backend."""
