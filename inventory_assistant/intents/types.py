"""Intent enum and classification result."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Intent(str, Enum):
    """Supported high-level intents."""

    CHECK_STOCK = "check_stock"
    DEDUCT_ITEMS = "deduct_items"
    ADD_STOCK = "add_stock"
    LOW_STOCK_ALERT = "low_stock_alert"
    HEALTH_CHECK = "health_check"
    AUTH = "auth"
    GENERAL_HELP = "general_help"
    BULK_OPERATIONS = "bulk_operations"
    USAGE_REPORT = "usage_report"
    USER_MANAGEMENT = "user_management"
    SYSTEM_STATUS = "system_status"


@dataclass(slots=True)
class IntentClassification:
    """Classifier output: resolved intent, extracted entities and confidence in [0, 1]."""

    intent: Intent
    entities: dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.5

    @property
    def item_name(self) -> str | None:
        value = self.entities.get("item_name")
        return value or None
