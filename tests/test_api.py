from __future__ import annotations

from fastapi.testclient import TestClient

from api.main import create_app
from config import Settings


class _RecordingDispatcher:
    def __init__(self, fail: bool = False) -> None:
        self.payloads: list[dict] = []
        self.fail = fail

    async def dispatch(self, payload):
        self.payloads.append(payload)
        if self.fail:
            raise RuntimeError("boom")


class _Directory:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error

    async def ping(self) -> None:
        if self.error is not None:
            raise self.error


def _client(**overrides) -> tuple[TestClient, object]:
    settings = Settings(_env_file=None, **overrides)
    app = create_app(settings)
    # bez `with` — lifespan (Telegram, baza) nie startuje
    return TestClient(app), app


def test_root_reports_bot_title():
    client, _ = _client(bot_title="Calc")

    response = client.get("/")

    assert response.status_code == 200
    assert response.text == "OK - Calc Bot"


def test_evaluate_endpoint_success():
    client, _ = _client()

    response = client.post("/evaluate", json={"expression": "12×(3+4)"})

    assert response.status_code == 200
    assert response.json() == {"ok": True, "value": "84", "error": None, "message": None}


def test_evaluate_endpoint_rejection():
    client, _ = _client()

    body = client.post("/evaluate", json={"expression": "import('fs')"}).json()

    assert body["ok"] is False
    assert body["error"] == "unsupported_construct"
    assert body["message"] == "Unsupported expression."


def test_health_without_directory_is_degraded():
    client, _ = _client(app_version="9.9.9")

    body = client.get("/health").json()

    assert body["status"] == "degraded"
    assert body["db"] == "not connected"
    assert body["version"] == "9.9.9"
    assert body["uptime"].endswith("s")


def test_health_with_directory():
    client, app = _client()
    app.state.directory = _Directory()

    assert client.get("/health").json()["status"] == "ok"

    app.state.directory = _Directory(error=ConnectionError("refused"))
    body = client.get("/health").json()

    assert body["status"] == "degraded"
    assert body["db"] == "error: refused"


def test_webhook_dispatches_update():
    client, app = _client()
    dispatcher = _RecordingDispatcher()
    app.state.dispatcher = dispatcher

    response = client.post("/telegram", json={"update_id": 1})

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert dispatcher.payloads == [{"update_id": 1}]


def test_webhook_acknowledges_even_when_handling_fails():
    client, app = _client()
    app.state.dispatcher = _RecordingDispatcher(fail=True)

    response = client.post("/telegram", json={"update_id": 2})

    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_webhook_rejects_wrong_secret():
    client, app = _client(webhook_secret="s3cret", webhook_path="/hook")
    dispatcher = _RecordingDispatcher()
    app.state.dispatcher = dispatcher

    wrong = client.post("/hook", json={"update_id": 3}, headers={"X-Telegram-Bot-Api-Secret-Token": "nope"})
    right = client.post("/hook", json={"update_id": 4}, headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"})

    assert wrong.status_code == 403
    assert right.status_code == 200
    assert dispatcher.payloads == [{"update_id": 4}]


def test_evaluate_endpoint_deep_nesting_is_rejected_not_500():
    client, _ = _client()

    response = client.post("/evaluate", json={"expression": "(" * 300 + "1" + ")" * 300})

    assert response.status_code == 200
    assert response.json()["error"] == "evaluation_failure"
