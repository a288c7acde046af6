"""Types passed between the assistant pipeline and its callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Sequence


class ReplySource(str, Enum):
    """Which path produced a reply."""

    AI = "ai"
    FALLBACK = "fallback"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(slots=True)
class CallerContext:
    """Authenticated caller identity as resolved by the HTTP layer."""

    user_id: str
    roles: Sequence[str] = field(default_factory=tuple)


@dataclass(slots=True, frozen=True)
class Alert:
    message: str
    severity: Severity
    timestamp: datetime
    action: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "action": self.action,
        }


@dataclass(slots=True)
class ChatReply:
    """Reply returned to the caller and recorded in session history."""

    reply: str
    source: ReplySource
    error: str | None = None
    confidence: float | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"reply": self.reply, "source": self.source.value}
        if self.error is not None:
            payload["error"] = self.error
        if self.confidence is not None:
            payload["confidence"] = self.confidence
        return payload
