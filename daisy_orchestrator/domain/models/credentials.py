"""
Credential domain model.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional


@dataclass(frozen=True)
class Credential:
    """Bearer credential resolved for one call."""
    token: str
    user_id: Optional[str] = None
    expires_at: Optional[datetime] = None

    def is_expired(self, skew: timedelta = timedelta(0)) -> bool:
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) + skew >= self.expires_at

    @property
    def authorization_header(self) -> str:
        return f"Bearer {self.token}"

    def __repr__(self) -> str:
        # Keep tokens out of logs
        return f"Credential(user_id={self.user_id!r}, expires_at={self.expires_at!r})"
