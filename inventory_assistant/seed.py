"""Load inventory items from a JSON export into the SQLite database.

Each record needs ``name`` and ``quantity``; ``reorder_level``, ``category``
and ``location`` are optional.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from inventory_assistant.core.config import get_settings
from inventory_assistant.inventory.sqlite import SQLiteInventoryRepository


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed inventory items into SQLite")
    parser.add_argument(
        "input_file",
        type=Path,
        help="Path to a JSON file containing an array of item records.",
    )
    parser.add_argument(
        "--database",
        type=Path,
        default=None,
        help="SQLite database path (defaults to INVENTORY_DB_PATH).",
    )
    parser.add_argument(
        "--drop-existing",
        action="store_true",
        help="Delete existing items and usage records before importing.",
    )
    return parser.parse_args(argv)


def load_items(path: Path) -> list[dict]:
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)

    if not isinstance(data, list):
        raise ValueError("Expected top-level JSON array of item records")

    for index, record in enumerate(data):
        if not isinstance(record, dict) or not record.get("name"):
            raise ValueError(f"Record {index} is missing a name")
        if not isinstance(record.get("quantity"), int) or record["quantity"] < 0:
            raise ValueError(f"Record {index} ({record['name']}) needs a non-negative integer quantity")

    return data


def seed_items(repository: SQLiteInventoryRepository, items: list[dict], drop_existing: bool = False) -> int:
    if drop_existing:
        repository.drop_all()

    for item in items:
        repository.add_item(
            item["name"],
            item["quantity"],
            reorder_level=item.get("reorder_level"),
            category=item.get("category"),
            location=item.get("location"),
        )
    return len(items)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    database = args.database or get_settings().inventory_db_path
    items = load_items(args.input_file)

    repository = SQLiteInventoryRepository(database)
    count = seed_items(repository, items, drop_existing=args.drop_existing)
    print(f"Imported {count} items into {database}")


if __name__ == "__main__":
    main()
