import asyncio
from datetime import datetime, timedelta, timezone

from inventory_assistant.assistant.alerts import alerts_instruction, compute_alerts
from inventory_assistant.assistant.types import Severity
from inventory_assistant.inventory.sqlite import SQLiteInventoryRepository

NOW = datetime(2026, 3, 4, 15, 30, tzinfo=timezone.utc)


def item_id(repository, name):
    return asyncio.run(repository.find_by_name_substring(name))[0].id


def test_alerts_cover_low_out_and_high_usage(inventory_repository):
    inventory_repository.record_usage(item_id(inventory_repository, "swabs"), 25, reason="ward round", at=NOW)
    inventory_repository.record_usage(item_id(inventory_repository, "gauze"), 10, at=NOW)

    alerts = asyncio.run(compute_alerts(inventory_repository, NOW, high_usage_threshold=20))

    assert [(alert.severity, alert.action) for alert in alerts] == [
        (Severity.WARNING, "reorder"),
        (Severity.CRITICAL, "restock"),
        (Severity.INFO, "review_usage"),
    ]
    assert alerts[0].message == "3 items at or below reorder level"
    assert alerts[1].message == "1 item out of stock"
    assert alerts[2].message == "1 item used more than 20 units today"
    assert all(alert.timestamp == NOW for alert in alerts)


def test_usage_before_today_is_ignored(inventory_repository):
    yesterday = NOW - timedelta(days=1)
    inventory_repository.record_usage(item_id(inventory_repository, "swabs"), 50, at=yesterday)

    alerts = asyncio.run(compute_alerts(inventory_repository, NOW))

    assert "review_usage" not in [alert.action for alert in alerts]


def test_no_alerts_for_healthy_inventory(tmp_path):
    repository = SQLiteInventoryRepository(tmp_path / "healthy.db")
    repository.add_item("Gauze Pads", 100, reorder_level=10)

    assert asyncio.run(compute_alerts(repository, NOW)) == []


def test_instruction_lists_each_alert(inventory_repository):
    alerts = asyncio.run(compute_alerts(inventory_repository, NOW))
    text = alerts_instruction(alerts)

    assert text.startswith("Active inventory alerts:")
    assert "[critical] 1 item out of stock" in text
