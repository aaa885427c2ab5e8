"""Simple in-memory per-client request quota.

Each client gets a fixed window: the first request opens the window, every
further request inside it increments the count, and once the count reaches
the limit the client is refused until the window expires.

Notes:
- This is in-memory per-process. In multi-worker deployments, limits are
  enforced per worker.
- The store is bounded. Expired entries are evicted first, then the entry
  whose window closes soonest.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from fastapi import Request


@dataclass
class ClientQuotaEntry:
    count: int
    window_expiry: float


@dataclass(frozen=True)
class QuotaDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: float


class QuotaStore:
    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        max_clients: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_clients = max_clients
        self._clock = clock
        self._entries: dict[str, ClientQuotaEntry] = {}
        # Guards the read-modify-write below; nothing inside awaits.
        self._lock = threading.Lock()

    def hit(self, client_id: str) -> QuotaDecision:
        """Count one request for ``client_id`` and report whether it is admitted."""

        now = self._clock()
        with self._lock:
            entry = self._entries.get(client_id)
            if entry is None or now >= entry.window_expiry:
                self._make_room(now)
                self._entries[client_id] = ClientQuotaEntry(count=1, window_expiry=now + self.window_seconds)
                return QuotaDecision(True, self.max_requests, self.max_requests - 1, 0.0)

            if entry.count >= self.max_requests:
                return QuotaDecision(False, self.max_requests, 0, entry.window_expiry - now)

            entry.count += 1
            return QuotaDecision(True, self.max_requests, self.max_requests - entry.count, 0.0)

    def get(self, client_id: str) -> ClientQuotaEntry | None:
        with self._lock:
            entry = self._entries.get(client_id)
            if entry is None:
                return None
            return ClientQuotaEntry(count=entry.count, window_expiry=entry.window_expiry)

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _make_room(self, now: float) -> None:
        if len(self._entries) < self.max_clients:
            return
        expired = [key for key, entry in self._entries.items() if now >= entry.window_expiry]
        for key in expired:
            del self._entries[key]
        while len(self._entries) >= self.max_clients:
            oldest = min(self._entries, key=lambda key: self._entries[key].window_expiry)
            del self._entries[oldest]


def extract_client_ip(request: Request, trust_x_forwarded_for: bool = False) -> str:
    """Return the client IP for rate limiting purposes.

    Security note: Trusting the `X-Forwarded-For` header is only safe when the app
    is deployed behind a trusted reverse proxy or load balancer that strips or
    overwrites this header. Otherwise, a malicious client could spoof their IP and
    bypass limits. When ``trust_x_forwarded_for`` is false (the default), the
    header is ignored and the connection's peer address is used instead.
    """

    if trust_x_forwarded_for:
        xff = request.headers.get("x-forwarded-for")
        if xff:
            # take the first non-empty trimmed value
            ip = xff.split(",")[0].strip()
            if ip:
                return ip

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def extract_client_id(request: Request, trust_x_forwarded_for: bool = False) -> str:
    """Return the quota key for a request.

    Client-supplied identity headers are not honoured; they would let a
    caller pick a fresh quota per request.
    """

    return f"ip:{extract_client_ip(request, trust_x_forwarded_for)}"
