"""Lightweight in-memory metrics collector."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass
from typing import Dict


@dataclass
class MetricSnapshot:
    total_requests: int
    decisions: Dict[str, int]
    rejections: Dict[str, int]
    degraded_fetches: Dict[str, int]


class MetricsCollector:
    """Thread-safe counter storage for basic service metrics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total_requests = 0
        self._decisions: Counter[str] = Counter()
        self._rejections: Counter[str] = Counter()
        self._degraded: Counter[str] = Counter()

    def record_request(self, decision: str) -> None:
        with self._lock:
            self._total_requests += 1
            self._decisions[decision] += 1

    def record_rejection(self, code: str) -> None:
        with self._lock:
            self._rejections[code] += 1

    def record_degraded(self, field: str) -> None:
        with self._lock:
            self._degraded[field] += 1

    def snapshot(self) -> MetricSnapshot:
        with self._lock:
            return MetricSnapshot(
                total_requests=self._total_requests,
                decisions=dict(self._decisions),
                rejections=dict(self._rejections),
                degraded_fetches=dict(self._degraded),
            )
