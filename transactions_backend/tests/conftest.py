import os
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid network dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from src.api.main import create_app  # noqa: E402
from src.api.repositories import InMemoryDocumentStore  # noqa: E402
from src.api.settings import get_settings  # noqa: E402


@pytest.fixture()
def settings():
    return replace(get_settings(), persistence_backend="memory", startup_policy="degraded", cors_allow_origins=["*"])


@pytest.fixture()
def store():
    return InMemoryDocumentStore()


@pytest.fixture()
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client
