"""Attach live inventory data to the generation prompt."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from inventory_assistant.core.errors import EnrichmentError
from inventory_assistant.intents.types import Intent, IntentClassification
from inventory_assistant.inventory.base import InventoryRepository

logger = logging.getLogger("inventory.enrichment")

INVENTORY_VOCABULARY = re.compile(
    r"\b(?:stock|inventory|items?|supply|supplies|quantity|quantities|reorder|out\s+of)\b"
)
LOW_STOCK_PHRASE = re.compile(r"\blow\s+stock\b")
ENRICHING_INTENTS = frozenset({Intent.CHECK_STOCK, Intent.LOW_STOCK_ALERT})


@dataclass(slots=True, frozen=True)
class SpecificItems:
    query: str
    items: list[dict[str, Any]] = field(default_factory=list)
    kind: ClassVar[str] = "specific_items"

    def payload(self) -> dict[str, Any]:
        return {"type": self.kind, "query": self.query, "items": self.items}


@dataclass(slots=True, frozen=True)
class LowStock:
    items: list[dict[str, Any]] = field(default_factory=list)
    kind: ClassVar[str] = "low_stock"

    def payload(self) -> dict[str, Any]:
        return {"type": self.kind, "items": self.items}


@dataclass(slots=True, frozen=True)
class InventorySummary:
    total_items: int
    low_stock_count: int
    out_of_stock_count: int
    total_quantity: int
    kind: ClassVar[str] = "summary"

    def payload(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "total_items": self.total_items,
            "low_stock_count": self.low_stock_count,
            "out_of_stock_count": self.out_of_stock_count,
            "total_quantity": self.total_quantity,
        }


EnrichmentResult = Union[SpecificItems, LowStock, InventorySummary]


class DataEnricher:
    """Query the inventory for data relevant to a classified message."""

    def __init__(self, repository: InventoryRepository) -> None:
        self._repository = repository

    @staticmethod
    def is_relevant(text: str, classification: IntentClassification) -> bool:
        if classification.intent in ENRICHING_INTENTS:
            return True
        return bool(INVENTORY_VOCABULARY.search((text or "").lower()))

    async def enrich(self, text: str, classification: IntentClassification) -> EnrichmentResult:
        try:
            return await self._enrich(text, classification)
        except EnrichmentError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise EnrichmentError(f"Inventory lookup failed: {exc}") from exc

    async def _enrich(self, text: str, classification: IntentClassification) -> EnrichmentResult:
        item_name = classification.item_name
        if item_name:
            matches = await self._repository.find_by_name_substring(item_name)
            items = [{**item.to_dict(), "low_stock": item.is_low_stock} for item in matches]
            logger.debug("Enriched '%s' with %d matching items", item_name, len(items))
            return SpecificItems(query=item_name, items=items)

        normalized = (text or "").lower()
        if classification.intent is Intent.LOW_STOCK_ALERT or LOW_STOCK_PHRASE.search(normalized):
            low = sorted(await self._repository.low_stock_items(), key=lambda item: item.quantity)
            items = [
                {**item.to_dict(), "deficit": item.reorder_level - item.quantity}
                for item in low
                if item.reorder_level is not None
            ]
            return LowStock(items=items)

        return InventorySummary(
            total_items=await self._repository.total_count(),
            low_stock_count=len(await self._repository.low_stock_items()),
            out_of_stock_count=await self._repository.out_of_stock_count(),
            total_quantity=await self._repository.total_quantity(),
        )


def enrichment_instruction(result: EnrichmentResult) -> str:
    """Render enrichment data as a prompt section the model must quote verbatim."""

    serialized = json.dumps(result.payload(), ensure_ascii=False, sort_keys=True)
    return (
        "Current inventory data (authoritative; use these figures exactly as given "
        "and do not attempt to look anything up again):\n"
        f"{serialized}"
    )
