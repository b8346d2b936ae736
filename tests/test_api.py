import httpx
import pytest
from fastapi.testclient import TestClient

from rxscan.api.routes import get_ocr_engine, get_storage_client
from rxscan.main import app
from rxscan.ocr.engine import OcrError
from rxscan.storage.client import StorageClient

client = TestClient(app)

SAMPLE = (
    "Patient: Jane Doe, 34 yrs\n"
    "Date: 12/05/2023\n"
    "1. Amoxicillin 500mg - twice daily after food\n"
    "2. Amoxicillin 500mg\n"
)


class FakeEngine:
    def __init__(self, text="", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def extract_text(self, image_bytes, language):
        self.calls.append((image_bytes, language))
        if self.error:
            raise self.error
        return self.text


@pytest.fixture(autouse=True)
def _clear_overrides():
    yield
    app.dependency_overrides.clear()


def upload(language="eng", data=b"\x89PNG fake"):
    return client.post(
        "/api/scan",
        files={"file": ("rx.png", data, "image/png")},
        data={"language": language},
    )


def test_health():
    assert client.get("/health").json() == {"status": "ok"}


def test_languages():
    langs = client.get("/api/languages").json()
    assert {"code": "eng", "name": "English"} in langs
    assert {"code": "hin", "name": "Hindi"} in langs


def test_parse_sample():
    r = client.post("/api/parse", json={"text": SAMPLE})
    assert r.status_code == 200
    body = r.json()
    assert body["patientInfo"] == {"name": "Jane Doe", "age": "34", "date": "12/05/2023"}
    assert body["medications"] == [
        {"name": "Amoxicillin", "dosage": "500mg", "instructions": "twice daily after food"},
    ]
    assert body["text"] == SAMPLE
    assert body["language"] == "eng"


def test_parse_whitespace_omits_fields():
    body = client.post("/api/parse", json={"text": "   ", "language": "hin"}).json()
    assert body == {"text": "   ", "language": "hin"}


def test_scan_runs_ocr_then_parses():
    engine = FakeEngine(text=SAMPLE)
    app.dependency_overrides[get_ocr_engine] = lambda: engine
    r = upload(language="eng")
    assert r.status_code == 200
    assert r.json()["medications"][0]["dosage"] == "500mg"
    assert engine.calls == [(b"\x89PNG fake", "eng")]


def test_scan_ocr_failure_is_422():
    engine = FakeEngine(error=OcrError("Failed to process prescription image"))
    app.dependency_overrides[get_ocr_engine] = lambda: engine
    r = upload()
    assert r.status_code == 422
    assert r.json()["detail"] == "Failed to process prescription image"


def test_scan_unsupported_language_is_400():
    engine = FakeEngine(text=SAMPLE)
    app.dependency_overrides[get_ocr_engine] = lambda: engine
    r = upload(language="xx")
    assert r.status_code == 400
    assert engine.calls == []


def test_scan_empty_upload_is_400():
    app.dependency_overrides[get_ocr_engine] = lambda: FakeEngine(text=SAMPLE)
    assert upload(data=b"").status_code == 400


def _storage_override(handler):
    def _dep():
        c = StorageClient(base_url="http://storage.test", user_id=7, transport=httpx.MockTransport(handler))
        try:
            yield c
        finally:
            c.close()
    return _dep


def test_save_scan():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        if request.url.path == "/api/prescriptions":
            return httpx.Response(201, json={"id": 11})
        return httpx.Response(201, json={"id": 99})

    app.dependency_overrides[get_storage_client] = _storage_override(handler)
    result = client.post("/api/parse", json={"text": SAMPLE}).json()
    r = client.post("/api/scan/save", json={"result": result, "title": "Clinic visit"})
    assert r.status_code == 200
    assert r.json() == {"prescription": {"id": 11}, "medications": [{"id": 99}]}
    assert seen == ["/api/prescriptions", "/api/medications"]


def test_save_scan_backend_failure_is_502():
    app.dependency_overrides[get_storage_client] = _storage_override(
        lambda request: httpx.Response(500, json={"message": "Server error"})
    )
    r = client.post("/api/scan/save", json={"result": {"text": "x", "language": "eng"}})
    assert r.status_code == 502


def test_save_scan_non_json_backend_reply_is_502():
    app.dependency_overrides[get_storage_client] = _storage_override(
        lambda request: httpx.Response(200, text="OK")
    )
    r = client.post("/api/scan/save", json={"result": {"text": "x", "language": "eng"}})
    assert r.status_code == 502


def test_metrics_exposed():
    client.post("/api/parse", json={"text": SAMPLE})
    body = client.get("/metrics").text
    assert "scan_requests_total" in body
    assert "medications_extracted" in body
