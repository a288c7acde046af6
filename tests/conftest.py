from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

import pytest

# Configure the app before anything imports it: no real completion calls and a throwaway DB.
os.environ["OPENAI_API_KEY"] = ""
os.environ["INVENTORY_DB_PATH"] = str(Path(tempfile.mkdtemp(prefix="inventory-tests-")) / "inventory.db")


@pytest.fixture(scope="session")
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def inventory_records(fixtures_dir: Path) -> list[dict]:
    return json.loads((fixtures_dir / "inventory_items.json").read_text(encoding="utf-8"))


@pytest.fixture
def low_stock_payload(fixtures_dir: Path) -> dict:
    return json.loads((fixtures_dir / "chat_low_stock.json").read_text(encoding="utf-8"))
