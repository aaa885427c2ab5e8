"""Curated premium product records and document-to-record resolution."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger("librarian.premium")

KNOWN_PREFIXES = ("grounding__", "sku_master__", "sku_protocol__", "sds__")
KNOWN_EXTENSIONS = (".txt", ".pdf", ".json", ".md")
SEGMENT_MARKER = "__"


@dataclass(frozen=True, slots=True)
class PremiumProductRecord:
    slug: str
    display_name: str
    canonical_description: str
    category: str
    variants: frozenset[str]


def normalize_slug(value: str) -> str:
    return re.sub(r"[\s_]+", "-", value.strip()).lower()


def slug_from_identifier(identifier: str) -> str:
    """Derive the matching slug for a document identifier.

    ``grounding/grounding__delta-green-concentrate__v1.txt`` becomes
    ``delta-green-concentrate``.
    """

    name = identifier.rsplit("/", 1)[-1]
    lowered = name.lower()
    for prefix in KNOWN_PREFIXES:
        if lowered.startswith(prefix):
            name = name[len(prefix):]
            break
    for extension in KNOWN_EXTENSIONS:
        if name.lower().endswith(extension):
            name = name[: -len(extension)]
            break
    name = name.split(SEGMENT_MARKER, 1)[0]
    return normalize_slug(name)


def resolve(identifier: str, records: Mapping[str, PremiumProductRecord]) -> PremiumProductRecord | None:
    """Return the curated record for a document, or ``None`` when none matches.

    Exact key first, then a variant, then prefix containment in either
    direction. The last rule bridges base-family naming (``delta-green`` vs
    ``delta-green-concentrate``) and can match unrelated products that share
    a prefix.
    """

    slug = slug_from_identifier(identifier)
    if not slug:
        return None

    record = records.get(slug)
    if record is not None:
        return record

    for record in records.values():
        if slug in record.variants:
            return record

    for key, record in records.items():
        if key.startswith(slug) or slug.startswith(key):
            return record

    return None


def _parse_record(slug: str, raw: Mapping[str, Any]) -> PremiumProductRecord:
    variants = {normalize_slug(str(variant)) for variant in raw.get("variants") or [] if str(variant).strip()}
    if slug in variants:
        logger.warning("Record %s lists itself as a variant; dropping it", slug)
        variants.discard(slug)
    return PremiumProductRecord(
        slug=slug,
        display_name=str(raw.get("display_name") or "").strip(),
        canonical_description=str(raw.get("canonical_description") or "").strip(),
        category=str(raw.get("category") or "").strip(),
        variants=frozenset(variants),
    )


def load_premium_records(path: Path) -> dict[str, PremiumProductRecord]:
    """Load the curated dataset; a missing file yields an empty mapping."""

    path = Path(path)
    if not path.exists():
        logger.warning("Premium product dataset not found at %s", path)
        return {}

    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)

    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object keyed by product slug")

    records: dict[str, PremiumProductRecord] = {}
    for key, raw in data.items():
        if not isinstance(raw, dict):
            logger.warning("Skipping malformed premium record %s", key)
            continue
        slug = normalize_slug(str(key))
        records[slug] = _parse_record(slug, raw)

    logger.info("Loaded %d premium product records", len(records))
    return records
