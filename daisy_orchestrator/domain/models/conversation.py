"""
Conversation domain models - Pure business logic for chat sessions.
"""

from __future__ import annotations
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, List, Optional


DEFAULT_CAPACITY = 10


class MessageRole(Enum):
    """Speaker of a turn."""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    """One message in a conversation. Immutable once appended."""
    role: MessageRole
    content: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire shape used in request context."""
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Turn:
        """Create Turn from dictionary."""
        try:
            role = MessageRole(data.get("role", "user"))
        except ValueError:
            role = MessageRole.USER
        return cls(role=role, content=data.get("content", ""))


def new_session_id() -> str:
    """Opaque id in the form session-<epoch ms>-<random suffix>."""
    return f"session-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


@dataclass
class Session:
    """Conversation identity plus a sliding window of recent turns."""
    capacity: int = DEFAULT_CAPACITY
    session_id: str = field(default_factory=new_session_id)
    _turns: Deque[Turn] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError("capacity must be at least 1")
        # Oldest turns fall off the left end
        self._turns = deque(maxlen=self.capacity)

    @property
    def history(self) -> List[Turn]:
        return list(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)

    def add_user_turn(self, content: str) -> Turn:
        turn = Turn(role=MessageRole.USER, content=content)
        self.append(turn)
        return turn

    def add_assistant_turn(self, content: str) -> Turn:
        turn = Turn(role=MessageRole.ASSISTANT, content=content)
        self.append(turn)
        return turn

    def previous_turns(self, limit: Optional[int] = None, exclude_last: bool = True) -> List[Turn]:
        """Turns to send as context; by default the newest (current) turn is left out."""
        turns = self.history
        if exclude_last and turns:
            turns = turns[:-1]
        if limit is not None:
            turns = turns[-limit:] if limit > 0 else []
        return turns

    def reset(self) -> None:
        """Start over with a fresh id and empty history."""
        self.session_id = new_session_id()
        self._turns.clear()


@dataclass(frozen=True)
class OutboundRequest:
    """Body of one backend call. Built fresh per send and never retained."""
    message: str
    session_id: str
    user_id: Optional[str] = None
    previous_messages: List[Turn] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        """Convert to the JSON body expected by the backend."""
        context: Dict[str, Any] = {
            "previousMessages": [turn.to_dict() for turn in self.previous_messages],
        }
        if self.user_id:
            context["userId"] = self.user_id
        return {
            "message": self.message,
            "sessionId": self.session_id,
            "context": context,
        }
