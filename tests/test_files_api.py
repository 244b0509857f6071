import io
import json
import os

import pytest
from fastapi import UploadFile
from fastapi.testclient import TestClient

from admin_panel.dependencies import build_services, get_services
from admin_panel.errors import UploadLimitError
from admin_panel.main import app
from admin_panel.routes.files import _to_incoming

from conftest import make_record


def upload(client, *files):
    return client.post(
        "/api/upload",
        files=[("files", (name, b"x" * size, "image/png")) for name, size in files],
    )


def test_upload_two_files(client, read_log):
    resp = upload(client, ("A.png", 500), ("B.png", 700))
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert [f["id"] for f in body["files"]] == [1, 2]
    assert [f["fileType"] for f in body["files"]] == ["png", "png"]
    assert [f["fileSize"] for f in body["files"]] == [500, 700]
    assert {"fileName", "originalName", "uploadDate", "uploaderName", "status"} <= set(body["files"][0])
    assert len(read_log()) == 2


def test_upload_without_files_is_rejected(client):
    resp = client.post("/api/upload", data={"note": "nothing"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert resp.json()["error"] == "No files received"


def test_upload_with_busy_lock(client, services, test_settings):
    os.makedirs(os.path.dirname(test_settings.LOCK_FILE_PATH), exist_ok=True)
    with open(test_settings.LOCK_FILE_PATH, "w") as f:
        f.write("locked")
    resp = upload(client, ("A.png", 5))
    assert resp.status_code == 503
    assert resp.json()["success"] is False


def test_unexpected_upload_error_is_reported(client, services, monkeypatch):
    async def broken(files):
        raise ValueError("something odd")

    monkeypatch.setattr(services.pipeline, "handle_upload", broken)
    resp = upload(client, ("A.png", 5))
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Upload failed", "detail": "something odd"}


def test_reset_id_then_upload(client):
    upload(client, ("A.png", 1), ("B.png", 1))
    resp = client.post("/api/reset-id")
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert upload(client, ("C.png", 1)).json()["files"][0]["id"] == 1


def test_list_second_page_desc(client, write_log):
    write_log([make_record(1), make_record(2), make_record(3)])
    resp = client.get("/api/files", params={"page": 2, "perPage": 1, "sortBy": "id", "sortOrder": "desc"})
    assert resp.status_code == 200
    body = resp.json()
    assert [f["id"] for f in body["files"]] == [2]
    assert body["total"] == 3
    assert body["page"] == 2
    assert body["perPage"] == 1
    assert body["totalPages"] == 3


def test_list_defaults(client, write_log):
    write_log([make_record(i) for i in range(1, 10)])
    body = client.get("/api/files").json()
    assert body["perPage"] == 7
    assert [f["id"] for f in body["files"]] == [9, 8, 7, 6, 5, 4, 3]


def test_list_corrupt_log_heals(client, test_settings):
    os.makedirs(os.path.dirname(test_settings.UPLOAD_LOG_PATH), exist_ok=True)
    with open(test_settings.UPLOAD_LOG_PATH, "w") as f:
        f.write("[{broken")
    body = client.get("/api/files").json()
    assert body["files"] == []
    assert body["total"] == 0
    assert body["totalPages"] == 0
    with open(test_settings.UPLOAD_LOG_PATH) as f:
        assert json.load(f) == []


def test_delete_removes_record_and_payload(client, test_settings):
    files = upload(client, ("A.png", 1), ("B.png", 1), ("C.png", 1)).json()["files"]
    target = files[1]

    resp = client.delete(f"/api/files/{target['id']}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["total"] == 2
    assert not os.path.exists(os.path.join(test_settings.STORAGE_DIR, target["fileName"]))

    listing = client.get("/api/files", params={"perPage": 50}).json()
    assert target["id"] not in [f["id"] for f in listing["files"]]
    assert listing["total"] == 2


def test_delete_last_item_of_last_page_clamps(client, write_log):
    write_log([make_record(i) for i in range(1, 4)])
    body = client.delete("/api/files/1", params={"page": 3, "perPage": 1}).json()
    assert body["data"]["page"] == 2
    assert body["data"]["totalPages"] == 2
    assert [f["id"] for f in body["data"]["files"]] == [2]


def test_delete_only_item_clamps_to_first_page(client, write_log):
    write_log([make_record(1)])
    body = client.delete("/api/files/1", params={"page": 1, "perPage": 7}).json()
    assert body["data"] == {"files": [], "total": 0, "page": 1, "perPage": 7, "totalPages": 0}


def test_delete_missing_payload_still_deletes_record(client, write_log, read_log):
    write_log([make_record(1)])
    assert client.delete("/api/files/1").status_code == 200
    assert read_log() == []


def test_delete_unknown_id(client, write_log):
    write_log([make_record(1)])
    resp = client.delete("/api/files/42")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "File not found"}


def test_update_status_only(client, write_log, read_log):
    original = make_record(1)
    write_log([original])
    resp = client.put("/api/files/1", data={"status": "archived"})
    assert resp.status_code == 200
    file = resp.json()["file"]
    assert file["status"] == "archived"
    assert file["fileName"] == original["fileName"]
    assert file["fileSize"] == original["fileSize"]
    assert file["originalName"] == original["originalName"]
    assert read_log()[0] == {**original, "status": "archived"}


def test_update_empty_fields_keep_old_values(client, write_log):
    write_log([make_record(1)])
    file = client.put("/api/files/1", data={"originalName": "", "status": "x"}).json()["file"]
    assert file["originalName"] == "file1.png"


def test_update_with_replacement_payload(client, test_settings):
    old = upload(client, ("A.png", 10)).json()["files"][0]
    resp = client.put(
        f"/api/files/{old['id']}",
        data={"originalName": "Renamed.jpg"},
        files={"file": ("new.jpg", b"y" * 42, "image/jpeg")},
    )
    assert resp.status_code == 200
    file = resp.json()["file"]
    assert file["id"] == old["id"]
    assert file["fileSize"] == 42
    assert file["fileType"] == "jpg"
    assert file["originalName"] == "Renamed.jpg"
    assert file["fileName"] != old["fileName"]
    assert not os.path.exists(os.path.join(test_settings.STORAGE_DIR, old["fileName"]))
    assert os.path.exists(os.path.join(test_settings.STORAGE_DIR, file["fileName"]))


def test_update_unknown_id(client, write_log):
    write_log([])
    resp = client.put("/api/files/3", data={"status": "archived"})
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_download(client):
    stored = upload(client, ("A.png", 12)).json()["files"][0]["fileName"]
    resp = client.get(f"/api/download/{stored}")
    assert resp.status_code == 200
    assert resp.content == b"x" * 12


def test_download_missing(client):
    resp = client.get("/api/download/nope.png")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_liveness_endpoints(client):
    assert client.get("/api/upload/check").json() == {"status": "ok"}
    assert client.post("/api/upload/check").json() == {"status": "ok"}
    assert client.get("/api/test").status_code == 200


def test_health(client):
    body = client.get("/api/health").json()
    assert body["status"] == "ok"
    assert body["uploadLocked"] is False


def test_list_skips_incomplete_entries(raw_client, write_log):
    write_log([{"id": 1, "fileName": "x.png"}, make_record(2)])
    resp = raw_client.get("/api/files")
    assert resp.status_code == 200
    body = resp.json()
    assert [f["id"] for f in body["files"]] == [2]
    assert body["total"] == 1


def test_unexpected_update_error_is_json(raw_client, services, write_log, monkeypatch):
    write_log([make_record(1)])

    async def disk_full(payload, declared_name):
        raise OSError("disk full")

    monkeypatch.setattr(services.storage, "stage", disk_full)
    resp = raw_client.put("/api/files/1", files={"file": ("new.png", b"y", "image/png")})
    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.json() == {"success": False, "error": "Internal error", "detail": "disk full"}


@pytest.fixture
def small_limit_client(test_settings):
    cfg = test_settings.model_copy(update={"MAX_FILE_SIZE": 16})
    limited = build_services(cfg)
    app.dependency_overrides[get_services] = lambda: limited
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_oversized_upload_is_rejected_before_staging(small_limit_client, test_settings):
    resp = small_limit_client.post(
        "/api/upload",
        files=[("files", ("ok.png", b"x" * 16, "image/png")), ("files", ("big.png", b"x" * 17, "image/png"))],
    )
    assert resp.status_code == 413
    assert resp.json()["success"] is False
    assert not os.path.exists(test_settings.STORAGE_DIR) or os.listdir(test_settings.STORAGE_DIR) == []


def test_oversized_replacement_is_rejected(small_limit_client, write_log, read_log):
    write_log([make_record(1)])
    resp = small_limit_client.put("/api/files/1", files={"file": ("big.png", b"x" * 40, "image/png")})
    assert resp.status_code == 413
    assert read_log()[0]["fileSize"] == 100


async def test_upload_is_read_in_bounded_size():
    upload = UploadFile(file=io.BytesIO(b"x" * 1000), filename="big.bin")
    with pytest.raises(UploadLimitError):
        await _to_incoming(upload, 64)
    assert upload.file.tell() == 65
