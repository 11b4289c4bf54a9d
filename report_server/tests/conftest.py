"""
Shared fixtures: a fresh app per test and an in-memory versioned document store.
"""

from typing import Optional

import pytest
from fastapi.testclient import TestClient

from report_server.banlist.store import (
    DocumentNotFound,
    PreconditionFailed,
    VersionedDocument,
    VersionedDocumentStore,
)
from report_server.config import Settings
from report_server.main import create_app


def make_settings(**overrides) -> Settings:
    values = {
        "reports_webhook": "",
        "actions_webhook": "",
        "ban_list_enabled": False,
        "github_token": "",
        "login_hashes": "",
        "report_rate_limit_max": 5,
        "report_rate_limit_window_seconds": 900,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class InMemoryDocumentStore(VersionedDocumentStore):
    """Single-path store; the version token is bumped on every successful put."""

    def __init__(self, content: Optional[str] = None):
        self.content = content
        self.version = "v0" if content is not None else None
        self.commits = []
        self.gets = 0

    def get(self, path):
        self.gets += 1
        if self.content is None:
            raise DocumentNotFound(path)
        return VersionedDocument(content=self.content, version=self.version)

    def put(self, path, content, expected_version, message):
        if expected_version != self.version:
            raise PreconditionFailed(f"expected {self.version}, got {expected_version}")
        self.version = f"v{len(self.commits) + 1}"
        self.content = content
        self.commits.append({"path": path, "message": message, "expected_version": expected_version})
        return self.version


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def app_factory():
    def _build(**overrides):
        return create_app(make_settings(**overrides))
    return _build


@pytest.fixture
def client(app_factory):
    """TestClient over a fresh app with default test settings."""
    return TestClient(app_factory())


@pytest.fixture
def client_factory(app_factory):
    def _build(**overrides):
        return TestClient(app_factory(**overrides))
    return _build


@pytest.fixture
def memory_store():
    return InMemoryDocumentStore()


@pytest.fixture
def document_store_factory():
    return InMemoryDocumentStore
