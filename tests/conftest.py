import pytest
from fastapi.testclient import TestClient

from config import Settings, get_settings
from main import app, get_store
from waitlist import InMemoryWaitlistStore, JsonFileWaitlistStore


@pytest.fixture
def store():
    return InMemoryWaitlistStore()


@pytest.fixture
def json_store(tmp_path):
    return JsonFileWaitlistStore(tmp_path / "waitlist_emails.json")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        backend="memory",
        waitlist_file=tmp_path / "waitlist_emails.json",
        export_dir=tmp_path / "exports",
        export_cleanup_seconds=0,
        fallback_file=tmp_path / "fallback.json",
    )


@pytest.fixture
def client(store, settings):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
