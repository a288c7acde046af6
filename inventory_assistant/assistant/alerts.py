"""On-demand stock alerts."""

from __future__ import annotations

from datetime import datetime, time, timezone
from typing import Sequence

from inventory_assistant.core.errors import EnrichmentError
from inventory_assistant.inventory.base import InventoryRepository

from .types import Alert, Severity

DEFAULT_HIGH_USAGE_THRESHOLD = 20


def _plural(count: int, singular: str = "item", plural: str = "items") -> str:
    return f"{count} {singular if count == 1 else plural}"


async def compute_alerts(
    repository: InventoryRepository,
    now: datetime | None = None,
    high_usage_threshold: int = DEFAULT_HIGH_USAGE_THRESHOLD,
) -> list[Alert]:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    start_of_day = datetime.combine(now.astimezone(timezone.utc).date(), time.min, tzinfo=timezone.utc)

    try:
        low_stock = len(await repository.low_stock_items())
        out_of_stock = await repository.out_of_stock_count()
        high_usage = await repository.high_usage_item_count(start_of_day, high_usage_threshold)
    except Exception as exc:  # noqa: BLE001
        raise EnrichmentError(f"Alert computation failed: {exc}") from exc

    alerts: list[Alert] = []
    if low_stock:
        alerts.append(
            Alert(
                message=f"{_plural(low_stock)} at or below reorder level",
                severity=Severity.WARNING,
                timestamp=now,
                action="reorder",
            )
        )
    if out_of_stock:
        alerts.append(
            Alert(
                message=f"{_plural(out_of_stock)} out of stock",
                severity=Severity.CRITICAL,
                timestamp=now,
                action="restock",
            )
        )
    if high_usage:
        alerts.append(
            Alert(
                message=f"{_plural(high_usage)} used more than {high_usage_threshold} units today",
                severity=Severity.INFO,
                timestamp=now,
                action="review_usage",
            )
        )
    return alerts


def alerts_instruction(alerts: Sequence[Alert]) -> str:
    lines = [f"- [{alert.severity.value}] {alert.message} (suggested action: {alert.action})" for alert in alerts]
    return "Active inventory alerts:\n" + "\n".join(lines)
