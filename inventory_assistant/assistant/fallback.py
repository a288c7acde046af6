"""Rule-based replies used whenever generation is unavailable."""

from __future__ import annotations

import re

HEALTH_PATTERN = re.compile(r"\b(?:health|status|ping)\b")
STOCK_PATTERNS = (
    re.compile(r"stock of ([\w\s\-]+)"),
    re.compile(r"how many ([\w\s\-]+?)(?:\s+(?:do|are|is|left|remain)\b|[?.!]|$)"),
    re.compile(r"\bcheck (?:the )?(?:stock (?:of|for) )?([\w\s\-]+)"),
)
DEDUCT_DETAIL_PATTERN = re.compile(
    r"\b(?:deduct|use|take|remove) (\d+) (?:(?:from|of) )?([\w\s\-]+?)(?:\s+(?:because|for|reason)\b.*)?$"
)
DEDUCT_PATTERN = re.compile(r"\b(?:deduct|use|take|remove)\b")
LOW_STOCK_PATTERN = re.compile(r"\blow stock\b|\breorder|\bshortage")
AUTH_PATTERN = re.compile(r"\b(?:login|log in|auth\w*|token|register)\b")
ADD_PATTERN = re.compile(r"\b(?:add|restock|replenish)\b")
BULK_PATTERN = re.compile(r"\b(?:bulk|multiple|batch)\b")

HELP_REPLY = (
    "I can help with inventory questions. Try:\n"
    "• \"health\"\n"
    "• \"stock of gauze pads\"\n"
    "• \"deduct 2 from syringes because ER\"\n"
    "• \"show low stock items\"\n"
    "• \"restock 50 bandages\""
)


def fallback_reply(text: str | None) -> str:
    """Return a deterministic canned reply; never empty, never raises."""

    message = " ".join(str(text or "").lower().split())

    if HEALTH_PATTERN.search(message):
        return (
            "Check the health endpoints:\n"
            "• GET /health (basic)\n"
            "• GET /ready (readiness and dependencies)"
        )

    for pattern in STOCK_PATTERNS:
        match = pattern.search(message)
        if match and match.group(1).strip():
            name = match.group(1).strip()
            return f"To check stock for '{name}': GET /items?search={name}. In the UI, use the search box."

    if DEDUCT_PATTERN.search(message):
        detail = DEDUCT_DETAIL_PATTERN.search(message)
        if detail and detail.group(2).strip():
            amount, name = detail.group(1), detail.group(2).strip()
            return (
                f"To deduct {amount} from '{name}': call POST /items/{{id}}/deduct with body "
                f"{{ amount: {amount}, reason: \"...\", user: \"...\" }}."
            )
        return (
            "To deduct stock, tell me the amount and the item, e.g. \"deduct 2 from syringes "
            "because ER\", or call POST /items/{id}/deduct with an amount and a reason."
        )

    if LOW_STOCK_PATTERN.search(message):
        return (
            "Low-stock items are those at or below their reorder level. "
            "Use GET /items/low-stock to list them and restock the ones with the largest deficit first."
        )

    if AUTH_PATTERN.search(message):
        return (
            "Auth flow:\n"
            "• POST /auth/register → returns token\n"
            "• POST /auth/login → returns token\n"
            "• Use Authorization: Bearer <token>\n"
            "• GET /auth/me to verify."
        )

    if ADD_PATTERN.search(message):
        return (
            "To add stock, update the item's quantity with PUT /items/{id}, or create a new item "
            "with POST /items including a name, quantity and optional reorder level."
        )

    if BULK_PATTERN.search(message):
        return (
            "Bulk changes are applied one item at a time: repeat POST /items/{id}/deduct or "
            "PUT /items/{id} for each item, or ask an administrator to run an import."
        )

    return HELP_REPLY
