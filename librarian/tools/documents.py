"""Grounding document tool: premium record plus technical record text."""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Mapping

from pypdf import PdfReader

from librarian.metadata.blob_store import BlobStore
from librarian.metadata.premium import PremiumProductRecord, resolve
from librarian.tools.base import Tool, ToolContext, ToolResponse

logger = logging.getLogger("librarian.documents")

NOT_LOADED = "TECHNICAL RECORD COULD NOT BE LOADED. Answer only from the premium data above, or ask the user to contact support."
PLACEHOLDER = "Not available"

BINARY_EXTENSIONS = (".pdf",)


def extract_pdf_text(data: bytes) -> str:
    """Best-effort plain text of every page."""

    reader = PdfReader(io.BytesIO(data))
    return "\n".join((page.extract_text() or "") for page in reader.pages).strip()


def premium_block(record: PremiumProductRecord | None) -> str:
    if record is None:
        return "\n".join(
            [
                "PREMIUM PRODUCT DATA: none curated for this record.",
                f"DISPLAY NAME: {PLACEHOLDER}",
                f"CATEGORY: {PLACEHOLDER}",
                f"DESCRIPTION: {PLACEHOLDER}",
                f"VARIANTS: {PLACEHOLDER}",
            ]
        )
    return "\n".join(
        [
            "PREMIUM PRODUCT DATA (HIGHEST PRIORITY):",
            f"DISPLAY NAME: {record.display_name or PLACEHOLDER}",
            f"CATEGORY: {record.category or PLACEHOLDER}",
            f"DESCRIPTION: {record.canonical_description or PLACEHOLDER}",
            f"VARIANTS: {', '.join(sorted(record.variants)) or PLACEHOLDER}",
        ]
    )


class DocumentTool(Tool):
    """Load the selected grounding document and its curated premium record."""

    name = "document"

    def __init__(
        self,
        blob_store: BlobStore,
        premium_records: Mapping[str, PremiumProductRecord],
        text_limit: int = 30_000,
    ) -> None:
        self._blob_store = blob_store
        self._premium_records = premium_records
        self._text_limit = text_limit

    async def run(self, context: ToolContext) -> ToolResponse:
        identifier = context.decision.document or ""
        record = resolve(identifier, self._premium_records)
        text = await self._load_text(identifier, context.snapshot.file_index)

        technical = NOT_LOADED if text is None else f"TECHNICAL RECORD FOR: {identifier}\nCONTENT:\n{text}"
        content = "\n".join(["STATUS: PRODUCT IDENTIFIED.", premium_block(record), technical])
        return ToolResponse(
            content=content,
            data={"document": identifier, "premium": record.slug if record else None},
            success=text is not None,
        )

    async def _load_text(self, identifier: str, file_index: frozenset[str]) -> str | None:
        if identifier not in file_index:
            logger.warning("Selected document %s is not in the file index", identifier)
            return None
        try:
            data = await self._blob_store.download(identifier)
            if identifier.lower().endswith(BINARY_EXTENSIONS):
                text = await asyncio.to_thread(extract_pdf_text, data)
            else:
                text = data.decode("utf-8", errors="replace")
        except Exception:  # noqa: BLE001
            logger.exception("Error reading document %s", identifier)
            return None
        return text[: self._text_limit]
