"""Dataclasses representing chat messages and per-user session state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

MessageRole = Literal["user", "assistant", "system"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class ConversationMessage:
    """Single message stored in a user's chat history."""

    role: MessageRole
    content: str
    timestamp: datetime = field(default_factory=_utcnow)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "metadata": dict(self.metadata),
        }


@dataclass(slots=True)
class SessionRecord:
    """Bounded history plus scratch data for one user, valid until ``expires_at``."""

    expires_at: float
    history: list[ConversationMessage] = field(default_factory=list)
    session_data: dict[str, Any] = field(default_factory=dict)
