from fastapi.testclient import TestClient

from app.main import app
from app.deps import get_html_translator


def test_http_exception_payload_includes_error_meta_and_request_id():
    client = TestClient(app)
    request_id = "test-http-exception-id"
    response = client.get(
        "/api/v1/does-not-exist",
        headers={"X-Request-Id": request_id},
    )

    assert response.status_code == 404
    payload = response.json()
    assert payload["detail"] == "Not Found"
    assert payload["error"]["code"] == "HTTP_404"
    assert payload["error"]["request_id"] == request_id
    assert response.headers.get("x-request-id") == request_id


def test_validation_error_payload_is_structured():
    client = TestClient(app)
    response = client.post("/api/v1/translate/html", json={})

    assert response.status_code == 422
    payload = response.json()
    assert payload["error"]["code"] == "VALIDATION_ERROR"
    assert payload["error"]["message"] == "Request validation failed"
    assert isinstance(payload["detail"], list)
    assert payload["error"]["request_id"]
    assert response.headers.get("x-request-id") == payload["error"]["request_id"]


def test_unhandled_exception_returns_sanitized_500_payload():
    class _BoomTranslator:
        async def translate_html(self, *args, **kwargs):
            raise RuntimeError("boom")

    app.dependency_overrides[get_html_translator] = lambda: _BoomTranslator()
    try:
        client = TestClient(app, raise_server_exceptions=False)
        response = client.post(
            "/api/v1/translate/html",
            json={"content": "<p>Hello</p>"},
            headers={"X-Request-Id": "test-boom-500"},
        )
        assert response.status_code == 500
        payload = response.json()
        assert payload["detail"] == "Internal server error"
        assert payload["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert payload["error"]["request_id"] == "test-boom-500"
        assert response.headers.get("x-request-id") == "test-boom-500"
    finally:
        app.dependency_overrides = {}
