"""Time-limited snapshot of remote dataset listings.

One snapshot is live at a time. A miss fans out to every source with
``asyncio.gather``; each source yields a :class:`FetchResult` so a failing
source degrades to an empty value without cancelling the others. Concurrent
misses may refill twice; the snapshot is immutable so the last write wins.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Generic, TypeVar

from librarian.core.metrics import MetricsCollector
from librarian.metadata.blob_store import BlobStore

logger = logging.getLogger("librarian.metadata")

T = TypeVar("T")

SNAPSHOT_KEY = "gcs_metadata"


@dataclass(frozen=True, slots=True)
class DeliveryZone:
    zip: str
    city: str
    county: str


@dataclass(frozen=True, slots=True)
class UseCase:
    problem: str
    solution: str


@dataclass(frozen=True)
class RemoteMetadataSnapshot:
    file_index: frozenset[str]
    catalog_guide: str
    delivery_zones: tuple[DeliveryZone, ...]
    use_cases: tuple[UseCase, ...]
    degraded: tuple[str, ...] = ()


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of one sub-fetch: a value, or an empty value plus the reason."""

    value: T
    reason: str | None = None

    @classmethod
    def ok(cls, value: T) -> "FetchResult[T]":
        return cls(value=value)

    @classmethod
    def degraded(cls, empty: T, reason: str) -> "FetchResult[T]":
        return cls(value=empty, reason=reason)

    @property
    def is_degraded(self) -> bool:
        return self.reason is not None


def parse_delivery_zones(raw: str) -> tuple[DeliveryZone, ...]:
    if not raw.strip():
        return ()
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("delivery zone data must be a JSON list")
    zones: list[DeliveryZone] = []
    for item in data:
        if not isinstance(item, dict) or item.get("zip") in (None, ""):
            continue
        zones.append(
            DeliveryZone(
                zip=str(item["zip"]).strip(),
                city=str(item.get("city", "")).strip(),
                county=str(item.get("county", "")).strip(),
            )
        )
    return tuple(zones)


def parse_use_cases(raw: str) -> tuple[UseCase, ...]:
    if not raw.strip():
        return ()
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("use-case data must be a JSON list")
    return tuple(
        UseCase(problem=str(item["problem"]).strip(), solution=str(item["solution"]).strip())
        for item in data
        if isinstance(item, dict) and item.get("problem") and item.get("solution")
    )


class MetadataCache:
    """Read-through cache over the blob store's metadata documents."""

    def __init__(
        self,
        blob_store: BlobStore,
        *,
        guide_name: str,
        delivery_name: str,
        use_case_name: str,
        fallback_guide_path: Path | None = None,
        ttl_seconds: float = 300.0,
        metrics: MetricsCollector | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._blob_store = blob_store
        self._guide_name = guide_name
        self._delivery_name = delivery_name
        self._use_case_name = use_case_name
        self._fallback_guide_path = fallback_guide_path
        self._ttl = ttl_seconds
        self._metrics = metrics
        self._clock = clock
        self._entries: dict[str, tuple[float, RemoteMetadataSnapshot]] = {}

    async def get(self) -> RemoteMetadataSnapshot:
        cached = self.peek()
        if cached is not None:
            return cached

        logger.info("Fetching fresh metadata snapshot")
        snapshot = await self._build_snapshot()
        self.set(snapshot)
        return snapshot

    def peek(self) -> RemoteMetadataSnapshot | None:
        entry = self._entries.get(SNAPSHOT_KEY)
        if entry is None:
            return None
        expires_at, snapshot = entry
        if self._clock() >= expires_at:
            self._entries.pop(SNAPSHOT_KEY, None)
            return None
        return snapshot

    def set(self, snapshot: RemoteMetadataSnapshot) -> None:
        self._entries[SNAPSHOT_KEY] = (self._clock() + self._ttl, snapshot)

    def invalidate(self) -> None:
        self._entries.pop(SNAPSHOT_KEY, None)

    def teardown(self) -> None:
        self._entries.clear()

    async def _build_snapshot(self) -> RemoteMetadataSnapshot:
        files, guide, zones, use_cases = await asyncio.gather(
            self._fetch("file_index", self._blob_store.list_documents, frozenset(), frozenset),
            self._fetch("catalog_guide", lambda: self._read_text(self._guide_name), "", str),
            self._fetch(
                "delivery_zones",
                lambda: self._read_text(self._delivery_name),
                (),
                parse_delivery_zones,
            ),
            self._fetch("use_cases", lambda: self._read_text(self._use_case_name), (), parse_use_cases),
        )

        results = {"file_index": files, "catalog_guide": guide, "delivery_zones": zones, "use_cases": use_cases}
        for field, result in results.items():
            if result.is_degraded:
                logger.warning("Metadata field %s degraded: %s", field, result.reason)
                if self._metrics is not None:
                    self._metrics.record_degraded(field)

        guide_text = guide.value
        if not guide_text.strip():
            guide_text = self._load_fallback_guide()

        return RemoteMetadataSnapshot(
            file_index=files.value,
            catalog_guide=guide_text,
            delivery_zones=zones.value,
            use_cases=use_cases.value,
            degraded=tuple(field for field, result in results.items() if result.is_degraded),
        )

    async def _fetch(
        self,
        field: str,
        fetch: Callable[[], Awaitable[Any]],
        empty: T,
        convert: Callable[[Any], T],
    ) -> FetchResult[T]:
        try:
            return FetchResult.ok(convert(await fetch()))
        except Exception as exc:  # noqa: BLE001
            logger.debug("Fetch for %s failed", field, exc_info=True)
            return FetchResult.degraded(empty, f"{type(exc).__name__}: {exc}")

    async def _read_text(self, name: str) -> str:
        if not await self._blob_store.exists(name):
            raise FileNotFoundError(f"{name} not found in bucket")
        content = await self._blob_store.download(name)
        return content.decode("utf-8", errors="replace")

    def _load_fallback_guide(self) -> str:
        path = self._fallback_guide_path
        if path is None or not path.exists():
            return ""
        try:
            logger.info("Using local fallback catalog guide %s", path)
            return path.read_text(encoding="utf-8")
        except OSError:
            logger.exception("Failed to read fallback guide %s", path)
            return ""
