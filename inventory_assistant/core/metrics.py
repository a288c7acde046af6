"""Lightweight in-memory metrics collector."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass
from typing import Dict


@dataclass
class MetricSnapshot:
    total_requests: int
    intents: Dict[str, int]
    sources: Dict[str, int]
    fallback_reasons: Dict[str, int]


class MetricsCollector:
    """Thread-safe counters for chat traffic."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total_requests = 0
        self._intents: Counter[str] = Counter()
        self._sources: Counter[str] = Counter()
        self._fallback_reasons: Counter[str] = Counter()

    def record_request(self, intent: str, source: str) -> None:
        with self._lock:
            self._total_requests += 1
            self._intents[intent] += 1
            self._sources[source] += 1

    def record_fallback(self, reason: str) -> None:
        with self._lock:
            self._fallback_reasons[reason] += 1

    def snapshot(self) -> MetricSnapshot:
        with self._lock:
            return MetricSnapshot(
                total_requests=self._total_requests,
                intents=dict(self._intents),
                sources=dict(self._sources),
                fallback_reasons=dict(self._fallback_reasons),
            )
