import pytest
from fastapi.testclient import TestClient

from app.api.v1.endpoints import upload as upload_endpoint
from app.core.constants import StorageFailure
from app.core.errors import ConfigurationError
from app.integrations.storage.base import StorageBackendError
from app.main import create_app
from conftest import FakeStorage, make_settings


def post_image(client, name="photo.JPG", content_type="image/jpeg", size=50 * 1024, field="uploadImage"):
    return client.post("/upload", files={field: (name, b"\x00" * size, content_type)})


def test_scenario_a_jpeg_upload(client, storage):
    resp = post_image(client)
    body = resp.json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["message"] == "File uploaded successfully"
    assert body["fileName"].startswith("category/")
    assert body["fileName"].endswith(".jpg")
    assert body["imageUrl"].endswith(body["fileName"])
    assert body["originalName"] == "photo.JPG"
    assert body["fileSize"] == 50 * 1024
    assert len(storage.puts) == 1
    assert storage.puts[0][2] == "image/jpeg"


def test_scenario_b_too_large(client, storage):
    resp = post_image(client, name="big.png", content_type="image/png", size=150 * 1024)
    body = resp.json()
    assert resp.status_code == 400
    assert body["success"] is False
    assert body["code"] == "too_large"
    assert body["message"] == "File size too large. Maximum 100KB allowed."
    assert storage.puts == []


def test_scenario_c_unsupported_type(client, storage):
    resp = post_image(client, name="doc.pdf", content_type="application/pdf", size=1024)
    body = resp.json()
    assert resp.status_code == 400
    assert body["code"] == "unsupported_type"
    assert body["message"] == "Only JPG, PNG, and WebP files are allowed!"
    assert storage.puts == []


def test_scenario_d_permission_error_hides_credentials(settings):
    storage = FakeStorage(
        error=StorageBackendError(
            StorageFailure.PERMISSION_DENIED,
            "AccessDenied",
            detail=f"denied for {settings.s3_access_key} / {settings.s3_secret_key}",
        )
    )
    with TestClient(create_app(settings, storage=storage)) as client:
        resp = post_image(client)
    body = resp.json()
    assert resp.status_code == 500
    assert body["success"] is False
    assert body["backendCode"] == "AccessDenied"
    assert settings.s3_access_key not in resp.text
    assert settings.s3_secret_key not in resp.text
    assert "imageUrl" not in body


def test_scenario_e_health(client):
    resp = client.get("/health")
    body = resp.json()
    assert resp.status_code == 200
    assert body["supportedFormats"] == ["JPG", "PNG", "WebP"]
    assert body["maxFileSize"] == "100KB"
    assert body["maxFileSizeBytes"] == 102400
    assert body["timestamp"]


def test_missing_file(client, storage):
    resp = client.post("/upload", data={"note": "hello"}, files={"other": ("", b"", "application/octet-stream")})
    assert resp.status_code == 400
    assert resp.json()["code"] == "missing_file"
    assert resp.json()["message"] == "No file uploaded"


def test_unexpected_field_name(client, storage):
    resp = post_image(client, field="image")
    body = resp.json()
    assert resp.status_code == 400
    assert body["code"] == "malformed_request"
    assert "uploadImage" in body["message"]
    assert storage.puts == []


def test_too_many_files(client, storage):
    files = [
        ("uploadImage", ("a.png", b"\x00" * 10, "image/png")),
        ("uploadImage", ("b.png", b"\x00" * 10, "image/png")),
    ]
    resp = client.post("/upload", files=files)
    assert resp.status_code == 400
    assert resp.json()["code"] == "too_many_files"
    assert storage.puts == []


def test_non_multipart_body(client):
    resp = client.post("/upload", json={"uploadImage": "x"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "malformed_request"


def test_broken_multipart_body(client):
    resp = client.post(
        "/upload",
        content=b"--xyz\r\nContent-Disposition: form-data; name=\"uploadImage\"; filename=\"a.png\"\r\n",
        headers={"Content-Type": "multipart/form-data"},
    )
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_failures_do_not_stop_service(settings):
    storage = FakeStorage(error=StorageBackendError(StorageFailure.CONNECTIVITY, "EndpointConnectionError"))
    with TestClient(create_app(settings, storage=storage)) as client:
        assert post_image(client).status_code == 500
        storage.error = None
        assert post_image(client).status_code == 200


def test_storage_probe_ok(client, storage):
    resp = client.get("/test-aws")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "Storage connection successful",
        "bucket": "test-bucket",
        "region": "us-east-1",
    }
    assert storage.head_calls == 1


def test_storage_probe_failure(settings):
    storage = FakeStorage(error=StorageBackendError(StorageFailure.BUCKET_NOT_FOUND, "NoSuchBucket"))
    with TestClient(create_app(settings, storage=storage)) as client:
        resp = client.get("/test-aws")
    assert resp.status_code == 500
    assert resp.json()["status"] == "Storage connection failed"
    assert resp.json()["code"] == "NoSuchBucket"


def test_unknown_route(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Endpoint not found"}


def test_metrics_counts_uploads(client):
    post_image(client)
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert 'image_upload_uploads_total{outcome="success"}' in resp.text


def test_missing_bucket_is_fatal_at_startup():
    settings = make_settings(s3_bucket="")
    with pytest.raises(ConfigurationError):
        with TestClient(create_app(settings)):
            pass


def test_local_backend_round_trip(tmp_path):
    settings = make_settings(storage_provider="local", storage_local_dir=str(tmp_path))
    with TestClient(create_app(settings)) as client:
        resp = post_image(client, name="pic.webp", content_type="image/webp", size=2048)
        body = resp.json()
        assert resp.status_code == 200
        assert body["imageUrl"] == f"/public/{body['fileName']}"

        fetched = client.get(body["imageUrl"])
        assert fetched.status_code == 200
        assert fetched.content == b"\x00" * 2048
        assert (tmp_path / body["fileName"]).is_file()

        assert client.get("/test-aws").status_code == 200


def test_public_route_disabled_for_s3(client):
    resp = client.get("/public/category/1_abcdef.png")
    assert resp.status_code == 404


def test_oversized_upload_read_is_capped(client, storage, monkeypatch):
    captured = []
    original = upload_endpoint.read_upload_request

    async def recording(request, field_name, policy):
        upload_request = await original(request, field_name, policy)
        captured.append(upload_request)
        return upload_request

    monkeypatch.setattr(upload_endpoint, "read_upload_request", recording)
    resp = post_image(client, name="huge.png", content_type="image/png", size=5 * 1024 * 1024)
    assert resp.status_code == 400
    assert resp.json()["code"] == "too_large"
    assert len(captured[0].payload) == 102400 + 1
    assert storage.puts == []


def test_many_file_parts_stop_the_parser(client, storage):
    files = [("uploadImage", (f"{i}.png", b"\x00" * 10, "image/png")) for i in range(50)]
    resp = client.post("/upload", files=files)
    assert resp.status_code == 400
    assert resp.json()["code"] == "too_many_files"
    assert storage.puts == []


def test_truncated_multipart_body(client, storage):
    body = (
        b"--xyz\r\n"
        b'Content-Disposition: form-data; name="uploadImage"; filename="a.png"\r\n'
        b"Content-Type: image/png\r\n"
        b"\r\n"
        b"\x89PNG partial"
    )
    resp = client.post("/upload", content=body, headers={"Content-Type": "multipart/form-data; boundary=xyz"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "malformed_request"
    assert storage.puts == []


def test_upload_requests_are_counted(client):
    post_image(client)
    resp = client.get("/metrics")
    assert 'image_upload_requests_total{path="/upload"}' in resp.text


def test_request_id_header(client):
    resp = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert resp.headers["X-Request-ID"] == "abc123"
    assert client.get("/health").headers["X-Request-ID"]
