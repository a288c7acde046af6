"""Inventory package exports."""

from .base import InventoryItem, InventoryRepository
from .sqlite import SQLiteInventoryRepository

__all__ = [
    "InventoryItem",
    "InventoryRepository",
    "SQLiteInventoryRepository",
]
