"""Inventory records and the repository interface the assistant reads from."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Sequence


@dataclass(slots=True)
class InventoryItem:
    """Stocked item as exposed to the assistant."""

    id: int
    name: str
    quantity: int
    reorder_level: int | None = None
    category: str | None = None
    location: str | None = None

    @property
    def is_low_stock(self) -> bool:
        return self.reorder_level is not None and self.quantity <= self.reorder_level

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class InventoryRepository(ABC):
    """Read-side queries used for prompt enrichment and alerts."""

    @abstractmethod
    async def find_by_name_substring(self, pattern: str) -> Sequence[InventoryItem]:
        """Return items whose name contains ``pattern``, case-insensitively."""

    @abstractmethod
    async def low_stock_items(self) -> Sequence[InventoryItem]:
        """Return items with a reorder level set and quantity at or below it."""

    @abstractmethod
    async def out_of_stock_count(self) -> int:
        """Count items whose quantity is zero."""

    @abstractmethod
    async def total_count(self) -> int:
        """Count all items."""

    @abstractmethod
    async def total_quantity(self) -> int:
        """Sum quantities across all items."""

    @abstractmethod
    async def high_usage_item_count(self, since: datetime, threshold: int) -> int:
        """Count items whose usage since ``since`` exceeds ``threshold`` units."""
