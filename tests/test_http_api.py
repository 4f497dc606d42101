"""Tests for the FastAPI generation and history endpoints."""

import dataclasses
import json
from unittest.mock import MagicMock, patch

import pytest
import requests
from fastapi.testclient import TestClient

from _helpers import direct_success, make_response
from prompt_architect.api.http_api import (
    MAX_REQUEST_BYTES,
    app,
    get_gateway_config,
    get_history_store,
)
from prompt_architect.llm.provider_config import GatewayConfig
from prompt_architect.memory.history_store import HistoryStore


@pytest.fixture
def api(direct_config: GatewayConfig):
    """TestClient factory with overridable config and history store."""

    def _make(config: GatewayConfig = direct_config, store=None) -> TestClient:
        app.dependency_overrides[get_gateway_config] = lambda: config
        app.dependency_overrides[get_history_store] = lambda: store
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


def _body(n: int = 1, **extra) -> dict:
    body = {
        "prompts": [
            {"imageIndex": i, "description": f"scene {i}", "imageData": None} for i in range(n)
        ],
        "promptCount": n,
        "videoDuration": 10,
    }
    body.update(extra)
    return body


# ============================================================
# Generation
# ============================================================

def test_generate_returns_raw_text(api) -> None:
    with patch.object(requests.Session, "post", return_value=direct_success("--- Prompt 1 ---\nok")) as post:
        response = api().post("/api/generate", json=_body(1))

    assert response.status_code == 200
    assert response.json() == {"results": "--- Prompt 1 ---\nok"}
    post.assert_called_once()


def test_prompt_count_larger_than_list_uses_list(api) -> None:
    with patch.object(requests.Session, "post", return_value=direct_success()) as post:
        response = api().post("/api/generate", json=_body(2, promptCount=5))

    assert response.status_code == 200
    parts = post.call_args.kwargs["json"]["contents"][0]["parts"]
    assert [p["text"] for p in parts[:2]] == [
        "[Image 1 Description]: scene 0",
        "[Image 2 Description]: scene 1",
    ]
    assert parts[2]["text"].startswith("Generate 2 optimized")


def test_prompt_count_smaller_than_list_slices(api) -> None:
    with patch.object(requests.Session, "post", return_value=direct_success()) as post:
        api().post("/api/generate", json=_body(3, promptCount=1))

    parts = post.call_args.kwargs["json"]["contents"][0]["parts"]
    assert len(parts) == 2


@pytest.mark.parametrize("body", [{}, {"prompts": []}, {"prompts": None, "promptCount": 1}])
def test_missing_prompts_is_400(api, body: dict) -> None:
    response = api().post("/api/generate", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "No prompts provided"}


def test_invalid_json_is_400(api) -> None:
    response = api().post(
        "/api/generate", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert "error" in response.json()


def test_oversized_body_is_400(api) -> None:
    huge = "x" * (MAX_REQUEST_BYTES + 1)

    with patch.object(requests.Session, "post") as post:
        response = api().post("/api/generate", json=_body(1, padding=huge))

    assert response.status_code == 400
    assert "too large" in response.json()["error"]
    post.assert_not_called()


@pytest.mark.parametrize("duration", [20, "long", True, 10.9, 15.4])
def test_invalid_duration_is_400(api, duration) -> None:
    response = api().post("/api/generate", json=_body(1, videoDuration=duration))

    assert response.status_code == 400


def test_invalid_prompt_entry_is_400(api) -> None:
    response = api().post("/api/generate", json={"prompts": ["just a string"], "promptCount": 1})

    assert response.status_code == 400


def test_missing_credential_is_500_with_sources(api, direct_config) -> None:
    config = dataclasses.replace(
        direct_config, credentials=(("AI_GATEWAY_API_KEY", None), ("GEMINI_API_KEY", ""))
    )

    response = api(config).post("/api/generate", json=_body(1))

    assert response.status_code == 500
    assert "AI_GATEWAY_API_KEY" in response.json()["error"]
    assert "GEMINI_API_KEY" in response.json()["error"]


def test_openai_key_on_direct_endpoint_is_400_without_network(api, direct_config) -> None:
    config = dataclasses.replace(direct_config, credentials=(("AI_GATEWAY_API_KEY", "sk-abc123"),))

    with patch.object(requests.Session, "post") as post:
        response = api(config).post("/api/generate", json=_body(1))

    assert response.status_code == 400
    assert "AI_GATEWAY_API_KEY" in response.json()["error"]
    post.assert_not_called()


def test_upstream_status_is_relayed(api) -> None:
    with patch.object(requests.Session, "post", return_value=make_response(429, text="quota")):
        response = api().post("/api/generate", json=_body(1))

    assert response.status_code == 429
    assert response.json() == {"error": "AI API returned 429: quota"}


def test_transport_failure_is_generic_500(api) -> None:
    with patch.object(requests.Session, "post", side_effect=requests.ConnectionError("down")):
        response = api().post("/api/generate", json=_body(1))

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate prompts. Please try again."}


def test_history_failure_does_not_affect_response(api) -> None:
    store = MagicMock(spec=HistoryStore)
    store.append.side_effect = RuntimeError("insert failed")

    with patch.object(requests.Session, "post", return_value=direct_success("--- Prompt 1 ---\nok")):
        response = api(store=store).post("/api/generate", json=_body(1))

    assert response.status_code == 200
    assert response.json() == {"results": "--- Prompt 1 ---\nok"}
    store.append.assert_called_once()


# ============================================================
# History
# ============================================================

def test_generation_is_recorded_and_listed(api, sqlite_url: str) -> None:
    store = HistoryStore(sqlite_url)
    client = api(store=store)

    with patch.object(requests.Session, "post", return_value=direct_success("--- Prompt 1 ---\nok")):
        client.post("/api/generate", json=_body(1))

    response = client.get("/api/history")

    assert response.status_code == 200
    [entry] = response.json()["history"]
    assert entry["imageCount"] == 1
    assert entry["prompts"] == [{"imageIndex": 0, "description": "scene 0"}]
    assert entry["results"] == [{"title": "Prompt 1", "content": "ok"}]
    store.dispose()


def test_history_masks_store_failure(api) -> None:
    store = MagicMock(spec=HistoryStore)
    store.init.side_effect = RuntimeError("database unreachable")

    response = api(store=store).get("/api/history")

    assert response.status_code == 200
    assert response.json() == {"history": []}


def test_history_without_store_is_empty(api) -> None:
    response = api(store=None).get("/api/history")

    assert response.json() == {"history": []}


def test_health_reports_protocol(api) -> None:
    body = api().get("/api/health").json()

    assert body["status"] == "ok"
    assert body["protocol"] == "direct"
    assert "AIza" not in json.dumps(body)
