from __future__ import annotations

from pathlib import Path

import pytest

from librarian.core.config import Settings
from librarian.metadata.cache import DeliveryZone, RemoteMetadataSnapshot, UseCase
from librarian.metadata.premium import load_premium_records
from tests.fakes import USE_CASES, ZONES, FakeBlobStore, FakeLanguageModel, bucket_objects, make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore(bucket_objects())


@pytest.fixture
def llm() -> FakeLanguageModel:
    return FakeLanguageModel()


@pytest.fixture(scope="session")
def premium_records():
    return load_premium_records(Path(__file__).resolve().parent.parent / "librarian" / "data" / "premium_products.json")


@pytest.fixture
def snapshot() -> RemoteMetadataSnapshot:
    return RemoteMetadataSnapshot(
        file_index=frozenset(bucket_objects()),
        catalog_guide="Delta Green | degreaser",
        delivery_zones=tuple(DeliveryZone(**zone) for zone in ZONES),
        use_cases=tuple(UseCase(**case) for case in USE_CASES),
    )
