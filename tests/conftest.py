"""Shared fixtures: every test gets its own storage tree under tmp_path."""
import json
import os

import pytest
from fastapi.testclient import TestClient

from admin_panel.config import Settings
from admin_panel.dependencies import build_services, get_services
from admin_panel.main import app


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        STORAGE_DIR=str(tmp_path / "uploads"),
        UPLOAD_LOG_PATH=str(tmp_path / "data" / "uploadLog.json"),
        ID_COUNTER_PATH=str(tmp_path / "data" / "idCounter.json"),
        LOCK_FILE_PATH=str(tmp_path / "data" / "upload.lock"),
        IMG_SCROLL_DATA_PATH=str(tmp_path / "data" / "imgScrollData.json"),
        IMG_SCROLL_COUNTER_PATH=str(tmp_path / "data" / "imgScrollCounter.json"),
        IMG_STYLES_DIR=str(tmp_path / "uploads" / "imgStyles"),
        LOCK_MAX_ATTEMPTS=5,
        LOCK_RETRY_INTERVAL_MS=10,
    )


@pytest.fixture
def services(test_settings):
    return build_services(test_settings)


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def raw_client(services):
    """Client that returns 500 responses instead of re-raising server errors."""
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def read_log(test_settings):
    """Return the upload log as currently persisted on disk."""
    def _read():
        with open(test_settings.UPLOAD_LOG_PATH, encoding="utf-8") as f:
            return json.load(f)
    return _read


@pytest.fixture
def write_log(test_settings):
    def _write(records):
        path = test_settings.UPLOAD_LOG_PATH
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(records, f)
    return _write


def make_record(record_id, **overrides):
    record = {
        "id": record_id,
        "fileName": f"1700000000000-123456789-file{record_id}.png",
        "originalName": f"file{record_id}.png",
        "fileType": "png",
        "uploadDate": f"2024-01-0{record_id}T00:00:00.000Z",
        "fileSize": 100 * record_id,
        "uploaderName": "System",
        "status": "complete",
    }
    record.update(overrides)
    return record
