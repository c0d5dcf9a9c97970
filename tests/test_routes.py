from conftest import make_upload

from app.errors import EstimationError, QUOTA_MESSAGE
from app.middleware import SESSION_COOKIE_NAME
from app.schemas import ErrorKind


def upload(client, data: bytes, content_type: str = "image/jpeg", filename: str = "chair.jpg"):
    return client.post("/api/form/image", files={"file": (filename, data, content_type)})


def test_health(app_client):
    assert app_client.get("/health").json() == {"status": "ok"}


def test_index_renders_form_and_sets_session(app_client):
    response = app_client.get("/")
    assert response.status_code == 200
    assert "Local Market Estimator" in response.text
    assert SESSION_COOKIE_NAME in response.cookies


def test_end_to_end_office_chair(app_client, fake_client):
    image = make_upload(2 * 1024 * 1024)

    state = upload(app_client, image.data).json()
    assert state["previewUrl"].startswith("/api/previews/")
    assert state["canSubmit"] is False

    state = app_client.post("/api/form/postal-code", json={"postalCode": "94107"}).json()
    assert state["canSubmit"] is True

    response = app_client.post("/api/form/submit")
    assert response.status_code == 200
    result = response.json()["result"]
    assert result["price"] == "$45"
    assert result["confidence"] == "Medium"
    assert result["badge"]["variant"] == "warning"
    assert result["priceRange"] == "$30 - $60"
    assert fake_client.calls[0][1] == "94107"

    page = app_client.get("/")
    assert "Office Chair" in page.text
    assert "$30 - $60" in page.text


def test_preview_served_and_released_on_new_image(app_client):
    first = upload(app_client, make_upload(1024).data).json()["previewUrl"]
    preview = app_client.get(first)
    assert preview.status_code == 200
    assert preview.headers["content-type"] == "image/jpeg"

    second = upload(app_client, make_upload(2048, content_type="image/png").data, "image/png", "lamp.png").json()["previewUrl"]

    assert second != first
    assert app_client.get(first).status_code == 404
    assert app_client.get(second).status_code == 200


def test_rejected_upload_never_reaches_client(app_client, fake_client):
    response = upload(app_client, b"GIF89a", "image/gif", "anim.gif")
    assert response.status_code == 400
    assert response.json()["imageError"] == "Please select a valid image file (PNG, JPG, or WEBP)."

    too_big = upload(app_client, b"\0" * (10 * 1024 * 1024 + 1))
    assert too_big.status_code == 400
    assert too_big.json()["imageError"] == "File size must be less than 10MB."

    app_client.post("/api/form/postal-code", json={"postalCode": "94107"})
    response = app_client.post("/api/form/submit")

    assert response.status_code == 422
    assert response.json()["error"]["classification"] == "InvalidInput"
    assert fake_client.calls == []


def test_invalid_postal_code_blocks_submit(app_client, fake_client):
    upload(app_client, make_upload(1024).data)
    for code in ("1234", "123456", "ABCDE"):
        state = app_client.post("/api/form/postal-code", json={"postalCode": code}).json()
        assert state["canSubmit"] is False
    assert app_client.post("/api/form/submit").status_code == 422
    assert fake_client.calls == []


def test_provider_failure_clears_result(app_client, fake_client):
    upload(app_client, make_upload(1024).data)
    app_client.post("/api/form/postal-code", json={"postalCode": "90210"})
    assert app_client.post("/api/form/submit").json()["result"] is not None

    fake_client.error = EstimationError(ErrorKind.QUOTA_EXCEEDED, QUOTA_MESSAGE)
    response = app_client.post("/api/form/submit")

    assert response.status_code == 502
    body = response.json()
    assert body["result"] is None
    assert body["state"] == "failure"
    assert body["error"] == {"message": QUOTA_MESSAGE, "classification": "QuotaExceeded"}


def test_edit_clears_result(app_client):
    upload(app_client, make_upload(1024).data)
    app_client.post("/api/form/postal-code", json={"postalCode": "90210"})
    app_client.post("/api/form/submit")

    state = app_client.post("/api/form/postal-code", json={"postalCode": "9021"}).json()

    assert state["state"] == "idle"
    assert state["result"] is None


def test_sessions_are_isolated(app_client):
    from fastapi.testclient import TestClient

    upload(app_client, make_upload(1024).data)
    other = TestClient(app_client.app)

    assert other.get("/api/form").json()["previewUrl"] is None


def test_reset(app_client):
    upload(app_client, make_upload(1024).data)
    state = app_client.post("/api/form/reset").json()
    assert state["previewUrl"] is None
    assert state["postalCode"] == ""


def test_unhandled_error_renders_recovery_panel(app_client, fake_client, monkeypatch):
    from app.routes import pages

    def explode(*args, **kwargs):
        raise RuntimeError("template blew up")

    monkeypatch.setattr(pages, "present_state", explode)
    response = app_client.get("/")

    assert response.status_code == 500
    assert "Something went wrong" in response.text
    assert "Try Again" in response.text


def test_unhandled_api_error_returns_json(app_client, monkeypatch):
    from app.routes import form

    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(form, "present_state", explode)
    response = app_client.get("/api/form")

    assert response.status_code == 500
    assert response.json() == {"detail": "An unexpected error occurred. Please try again."}


def test_upload_rate_limited(app_client, monkeypatch):
    from app.config import Settings
    from app.ratelimit import limiter
    from app.routes import form

    monkeypatch.setattr(form, "get_settings", lambda: Settings(provider="gemini", api_key="abc", upload_rate_limit="2/minute"))
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    try:
        assert upload(app_client, make_upload(1024).data).status_code == 200
        assert upload(app_client, make_upload(2048).data).status_code == 200
        assert upload(app_client, make_upload(4096).data).status_code == 429
    finally:
        limiter.reset()


def test_submit_while_in_flight_returns_state(app_client, fake_client):
    from app.controller import FormState

    upload(app_client, make_upload(1024).data)
    app_client.post("/api/form/postal-code", json={"postalCode": "94107"})
    controller = app_client.app.state.sessions.get(app_client.cookies[SESSION_COOKIE_NAME])
    controller.state = FormState.SUBMITTING

    response = app_client.post("/api/form/submit")

    assert response.status_code == 409
    body = response.json()
    assert body["state"] == "submitting"
    assert body["canSubmit"] is False
    assert body["isLoading"] is True
    assert fake_client.calls == []


def test_page_recovers_from_bodies_without_state(app_client):
    page = app_client.get("/").text
    assert 'send("/api/form")' in page
    assert "requestSeq" in page


def test_request_log_skips_previews(app_client, caplog):
    import logging

    caplog.set_level(logging.INFO, logger="estimator")
    preview_url = upload(app_client, make_upload(1024).data).json()["previewUrl"]
    app_client.get(preview_url)

    messages = [r.getMessage() for r in caplog.records if r.name == "estimator"]
    assert "POST /api/form/image 200" in messages
    assert not any("/api/previews/" in m for m in messages)
    upload_record = next(r for r in caplog.records if r.getMessage() == "POST /api/form/image 200")
    assert int(upload_record.extra_data["upload_bytes"]) > 1024
