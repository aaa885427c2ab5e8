"""Blob-store collaborator: list, check and download grounding documents."""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import threading
from pathlib import Path
from typing import Protocol

from google.cloud import storage  # type: ignore[attr-defined]
from google.oauth2 import service_account

logger = logging.getLogger("librarian.blob_store")


class BlobStore(Protocol):
    """The three bucket operations the pipeline depends on."""

    async def list_documents(self) -> list[str]:
        ...

    async def exists(self, name: str) -> bool:
        ...

    async def download(self, name: str) -> bytes:
        ...


class GCSBlobStore:
    """Google Cloud Storage implementation of :class:`BlobStore`.

    Credentials are resolved on first use: a base64-encoded service account
    JSON takes precedence, then a key file path, then the ambient default
    application credentials (Cloud Run, GCE).
    """

    def __init__(
        self,
        bucket_name: str,
        *,
        credentials_base64: str | None = None,
        credentials_file: Path | None = None,
    ) -> None:
        self.bucket_name = bucket_name
        self._credentials_base64 = credentials_base64
        self._credentials_file = credentials_file
        self._client: storage.Client | None = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> storage.Client:
        # Called from worker threads; a cold cache refill fans out four at once.
        with self._client_lock:
            if self._client is None:
                self._client = self._build_client()
            return self._client

    def _build_client(self) -> storage.Client:
        if self._credentials_base64:
            info = json.loads(base64.b64decode(self._credentials_base64).decode("utf-8"))
            credentials = service_account.Credentials.from_service_account_info(info)
            client = storage.Client(credentials=credentials, project=info.get("project_id"))
        elif self._credentials_file:
            client = storage.Client.from_service_account_json(str(self._credentials_file))
        else:
            client = storage.Client()
        logger.debug("GCS client initialised for bucket %s", self.bucket_name)
        return client

    def _bucket(self) -> storage.Bucket:
        return self._get_client().bucket(self.bucket_name)

    async def list_documents(self) -> list[str]:
        def _list() -> list[str]:
            return [blob.name for blob in self._get_client().list_blobs(self.bucket_name)]

        return await asyncio.to_thread(_list)

    async def exists(self, name: str) -> bool:
        return await asyncio.to_thread(lambda: self._bucket().blob(name).exists())

    async def download(self, name: str) -> bytes:
        return await asyncio.to_thread(lambda: self._bucket().blob(name).download_as_bytes())
