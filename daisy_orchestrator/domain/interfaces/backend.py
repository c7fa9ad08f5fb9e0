"""
Backend transport protocol interface.
Defines the "send message, get response or stream" contract.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, ContextManager, Dict, Iterator, Optional, Protocol

from ..models.conversation import OutboundRequest
from ..models.credentials import Credential


class ByteSource(Protocol):
    """An incrementally readable body held exclusively by its reader."""

    def iter_bytes(self) -> Iterator[bytes]:
        ...

    def close(self) -> None:
        ...


@dataclass
class BackendReply:
    """Either a byte stream (``stream``) or a complete response (``text``)."""
    stream: Optional[ByteSource] = None
    text: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_stream(self) -> bool:
        return self.stream is not None


class BackendTransport(Protocol):
    """Protocol for backend transport implementations."""

    def open(self, request: OutboundRequest, credential: Credential) -> ContextManager[BackendReply]:
        """Issue the request; the reply is released when the context exits."""
        ...

    def close(self) -> None:
        ...
