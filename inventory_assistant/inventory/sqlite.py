"""SQLite-backed inventory repository."""

from __future__ import annotations

import asyncio
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Sequence

from .base import InventoryItem, InventoryRepository


def _as_utc_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _row_to_item(row: sqlite3.Row) -> InventoryItem:
    return InventoryItem(
        id=row["id"],
        name=row["name"],
        quantity=row["quantity"],
        reorder_level=row["reorder_level"],
        category=row["category"],
        location=row["location"],
    )


class SQLiteInventoryRepository(InventoryRepository):
    """Inventory queries over ``items`` and ``usage_records`` tables."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    quantity INTEGER NOT NULL DEFAULT 0 CHECK (quantity >= 0),
                    reorder_level INTEGER,
                    category TEXT,
                    location TEXT,
                    last_updated TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS usage_records (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    item_id INTEGER NOT NULL,
                    amount INTEGER NOT NULL CHECK (amount > 0),
                    date TEXT NOT NULL,
                    reason TEXT,
                    user TEXT,
                    FOREIGN KEY (item_id) REFERENCES items (id) ON DELETE CASCADE
                );

                CREATE INDEX IF NOT EXISTS idx_usage_item_date
                    ON usage_records (item_id, date);
                """
            )

    def is_ready(self) -> bool:
        try:
            with self._connection() as conn:
                conn.execute("SELECT 1 FROM items LIMIT 1")
        except sqlite3.Error:
            return False
        return True

    def add_item(
        self,
        name: str,
        quantity: int,
        *,
        reorder_level: int | None = None,
        category: str | None = None,
        location: str | None = None,
    ) -> InventoryItem:
        with self._connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO items (name, quantity, reorder_level, category, location, last_updated)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (name, quantity, reorder_level, category, location, _as_utc_iso(datetime.now(timezone.utc))),
            )
            item_id = cursor.lastrowid
        return InventoryItem(
            id=item_id,
            name=name,
            quantity=quantity,
            reorder_level=reorder_level,
            category=category,
            location=location,
        )

    def record_usage(
        self,
        item_id: int,
        amount: int,
        *,
        reason: str | None = None,
        user: str | None = None,
        at: datetime | None = None,
    ) -> None:
        """Deduct ``amount`` from an item and log the usage."""

        when = _as_utc_iso(at or datetime.now(timezone.utc))
        with self._connection() as conn:
            updated = conn.execute(
                "UPDATE items SET quantity = quantity - ?, last_updated = ? WHERE id = ? AND quantity >= ?",
                (amount, when, item_id, amount),
            )
            if updated.rowcount == 0:
                raise ValueError(f"Item {item_id} does not exist or has fewer than {amount} units")
            conn.execute(
                "INSERT INTO usage_records (item_id, amount, date, reason, user) VALUES (?, ?, ?, ?, ?)",
                (item_id, amount, when, reason, user),
            )

    def drop_all(self) -> None:
        with self._connection() as conn:
            conn.execute("DELETE FROM usage_records")
            conn.execute("DELETE FROM items")

    def _fetch_items(self, sql: str, params: tuple = ()) -> list[InventoryItem]:
        with self._connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_row_to_item(row) for row in rows]

    def _fetch_scalar(self, sql: str, params: tuple = ()) -> int:
        with self._connection() as conn:
            return conn.execute(sql, params).fetchone()[0]

    async def find_by_name_substring(self, pattern: str) -> Sequence[InventoryItem]:
        # LIKE wildcards in user text are matched literally.
        escaped = pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return await asyncio.to_thread(
            self._fetch_items,
            """
            SELECT id, name, quantity, reorder_level, category, location
            FROM items
            WHERE LOWER(name) LIKE LOWER(?) ESCAPE '\\'
            ORDER BY name ASC
            """,
            (f"%{escaped}%",),
        )

    async def low_stock_items(self) -> Sequence[InventoryItem]:
        return await asyncio.to_thread(
            self._fetch_items,
            """
            SELECT id, name, quantity, reorder_level, category, location
            FROM items
            WHERE reorder_level IS NOT NULL AND quantity <= reorder_level
            ORDER BY quantity ASC, name ASC
            """,
        )

    async def out_of_stock_count(self) -> int:
        return await asyncio.to_thread(self._fetch_scalar, "SELECT COUNT(*) FROM items WHERE quantity = 0")

    async def total_count(self) -> int:
        return await asyncio.to_thread(self._fetch_scalar, "SELECT COUNT(*) FROM items")

    async def total_quantity(self) -> int:
        return await asyncio.to_thread(self._fetch_scalar, "SELECT COALESCE(SUM(quantity), 0) FROM items")

    async def high_usage_item_count(self, since: datetime, threshold: int) -> int:
        return await asyncio.to_thread(
            self._fetch_scalar,
            """
            SELECT COUNT(*) FROM (
                SELECT item_id
                FROM usage_records
                WHERE date >= ?
                GROUP BY item_id
                HAVING SUM(amount) > ?
            )
            """,
            (_as_utc_iso(since), threshold),
        )
