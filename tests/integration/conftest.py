"""Integration fixtures: an app wired to in-memory collaborators."""

import pytest
from fastapi.testclient import TestClient

from librarian.main import create_app
from tests.fakes import FakeBlobStore, FakeLanguageModel, bucket_objects, make_settings


@pytest.fixture()
def make_client(premium_records):
    def _make(llm=None, blob_store=None, **settings_overrides):
        app = create_app(
            make_settings(**settings_overrides),
            blob_store=blob_store or FakeBlobStore(bucket_objects()),
            llm=llm or FakeLanguageModel(),
            premium_records=premium_records,
        )
        return TestClient(app)

    return _make
