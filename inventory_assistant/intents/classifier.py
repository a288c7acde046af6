"""Keyword-scoring intent classifier with regex entity extraction."""

from __future__ import annotations

import re
from typing import Any, Callable

from .base import IntentClassifier
from .types import Intent, IntentClassification

# Declaration order doubles as the tie-break order.
INTENT_KEYWORDS: tuple[tuple[Intent, tuple[str, ...]], ...] = (
    (
        Intent.CHECK_STOCK,
        ("stock", "how many", "how much", "check", "inventory", "available", "quantity", "level"),
    ),
    (Intent.DEDUCT_ITEMS, ("deduct", "use", "take", "remove", "consume")),
    (Intent.ADD_STOCK, ("add", "receive", "restock", "replenish", "delivery")),
    (
        Intent.LOW_STOCK_ALERT,
        ("low stock", "running low", "reorder", "shortage", "out of stock", "alert"),
    ),
    (Intent.HEALTH_CHECK, ("health", "ping", "alive", "ready", "liveness")),
    (Intent.AUTH, ("login", "log in", "auth", "token", "register", "password", "sign in")),
    (Intent.GENERAL_HELP, ("help", "what can you do", "how do i", "guide", "example")),
    (Intent.BULK_OPERATIONS, ("bulk", "multiple", "batch", "import", "export")),
    (Intent.USAGE_REPORT, ("usage", "report", "history", "consumption", "trend")),
    (Intent.USER_MANAGEMENT, ("user", "role", "permission", "account", "admin")),
    (Intent.SYSTEM_STATUS, ("system", "status", "uptime", "version", "server")),
)

MIN_CONFIDENCE = 0.5
# Entity regexes backtrack; they only ever see this much of a message.
MAX_ENTITY_TEXT = 500

# Item names run until filler words, a reason clause or punctuation, six words at most.
_ITEM = r"(?!(?:do|does|are|is|we|the)\b)([a-z0-9][\w\-]*(?:\s+[a-z0-9][\w\-]*){0,5}?)"
_ITEM_END = (
    r"(?=\s+(?:do|does|did|are|is|we|left|remaining|in\s+stock|available|on\s+hand"
    r"|because|for|reason)\b|\s*[?.!,;]|\s*$)"
)

CHECK_STOCK_PATTERN = re.compile(
    r"(?:stock\s+of|how\s+many|how\s+much|check)\s+(?:the\s+)?"
    r"(?:stock\s+(?:of|for|on)\s+)?(?:the\s+)?" + _ITEM + _ITEM_END,
    re.IGNORECASE,
)
DEDUCT_QUANTITY_PATTERN = re.compile(r"\b(?:deduct|use|take|remove)\s+(\d+)", re.IGNORECASE)
DEDUCT_ITEM_PATTERN = re.compile(
    r"(\d+)\s+(?:(?:units?|pcs|pieces?|boxes?|packs?)\s+)?(?:(?:from|of)\s+)?(?:the\s+)?"
    + _ITEM
    + _ITEM_END,
    re.IGNORECASE,
)
REASON_PATTERN = re.compile(r"\b(?:because|for|reason:?)\s+(.+?)[\s.!]*$", re.IGNORECASE)
ADD_QUANTITY_PATTERN = re.compile(r"\b(?:add|receive|restock)\s+(\d+)", re.IGNORECASE)

Extraction = tuple[dict[str, Any], float]


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    words = r"\s+".join(re.escape(part) for part in keyword.split())
    # Whole words with simple inflections: "used", "checking", "restocked".
    return re.compile(rf"(?<!\w){words}(?:s|es|d|ed|ing)?(?!\w)")


_COMPILED_TABLE = tuple(
    (intent, tuple(_keyword_pattern(keyword) for keyword in keywords))
    for intent, keywords in INTENT_KEYWORDS
)


def _clean_item(value: str) -> str:
    return " ".join(value.lower().split()).strip(" -")


def _extract_check_stock(text: str) -> Extraction:
    match = CHECK_STOCK_PATTERN.search(text)
    if not match:
        return {}, 0.0
    item = _clean_item(match.group(1))
    if not item:
        return {}, 0.0
    return {"item_name": item}, 0.8


def _extract_deduct_items(text: str) -> Extraction:
    entities: dict[str, Any] = {}
    floor = 0.0

    quantity = DEDUCT_QUANTITY_PATTERN.search(text)
    if quantity:
        entities["quantity"] = int(quantity.group(1))

    item = DEDUCT_ITEM_PATTERN.search(text)
    if item and _clean_item(item.group(2)):
        entities["quantity"] = int(item.group(1))
        entities["item_name"] = _clean_item(item.group(2))
        floor = 0.9

    reason = REASON_PATTERN.search(text)
    if reason and reason.group(1).strip():
        entities["reason"] = reason.group(1).strip()

    return entities, floor


def _extract_add_stock(text: str) -> Extraction:
    match = ADD_QUANTITY_PATTERN.search(text)
    if not match:
        return {}, 0.0
    return {"quantity": int(match.group(1))}, 0.8


def _no_entities(text: str) -> Extraction:
    return {}, 0.0


_EXTRACTORS: dict[Intent, Callable[[str], Extraction]] = {
    Intent.CHECK_STOCK: _extract_check_stock,
    Intent.DEDUCT_ITEMS: _extract_deduct_items,
    Intent.ADD_STOCK: _extract_add_stock,
    Intent.LOW_STOCK_ALERT: _no_entities,
    Intent.HEALTH_CHECK: _no_entities,
    Intent.AUTH: _no_entities,
    Intent.GENERAL_HELP: _no_entities,
    Intent.BULK_OPERATIONS: _no_entities,
    Intent.USAGE_REPORT: _no_entities,
    Intent.USER_MANAGEMENT: _no_entities,
    Intent.SYSTEM_STATUS: _no_entities,
}

_missing = [intent.value for intent in Intent if intent not in _EXTRACTORS]
if _missing:
    raise RuntimeError(f"No entity extractor registered for intents: {', '.join(_missing)}")


class KeywordIntentClassifier(IntentClassifier):
    """Deterministic keyword scorer; ties resolve to the earlier table entry."""

    def describe(self) -> str:
        return "keyword-ratio"

    def classify(self, text: str) -> IntentClassification:
        raw = (text or "").strip()
        if not raw:
            return IntentClassification(intent=Intent.GENERAL_HELP, entities={}, confidence=MIN_CONFIDENCE)

        intent, score = self.score(raw.lower())
        entities, floor = _EXTRACTORS[intent](raw[:MAX_ENTITY_TEXT])
        confidence = min(1.0, max(score, floor, MIN_CONFIDENCE))
        return IntentClassification(intent=intent, entities=entities, confidence=confidence)

    @staticmethod
    def score(normalized: str) -> tuple[Intent, float]:
        """Return the best intent and its keyword ratio for lowercased text."""

        best_intent, best_score = Intent.GENERAL_HELP, 0.0
        for intent, patterns in _COMPILED_TABLE:
            hits = sum(1 for pattern in patterns if pattern.search(normalized))
            score = hits / len(patterns)
            if score > best_score:
                best_intent, best_score = intent, score
        return best_intent, best_score
