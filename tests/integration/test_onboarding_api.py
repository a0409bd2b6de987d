"""
Integration tests for onboarding/api endpoints.

Tests the FastAPI onboarding routes end to end:
- Conversation start in the lifespan and /api/health
- /api/onboarding/actions driving registration and setup
- Transcripts, app listings and progress
- Step previews

Every client uses zero delays, so each POST returns after the bot replied.
"""

from typing import Any

import pytest

BASE = "/api/onboarding"


def act(client, kind: str, **fields: Any) -> dict[str, Any]:
    response = client.post(f"{BASE}/actions", json={"kind": kind, **fields})
    assert response.status_code == 200
    return response.json()


def answer(client, prompt: str, value: Any = None, app_id: str | None = None) -> dict[str, Any]:
    data = act(client, "answer", prompt=prompt, value=value, app_id=app_id)
    assert data["success"], data
    return data


def register_ios_app(client) -> dict[str, Any]:
    answer(client, "environment-select", "production")
    answer(client, "platform-multi-select", ["ios"])
    answer(client, "platform-registration", {"mode": "search", "query": "Shop App"})
    answer(client, "app-search-results", "ios-1")
    return answer(client, "timezone-currency-confirm", "confirm")


# ─────────────────────────────────────────────────────────────────────────────
# Startup
# ─────────────────────────────────────────────────────────────────────────────


class TestStartup:
    def test_health(self, api_client):
        response = api_client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["apps"] == 0
        assert "version" in data

    def test_conversation_started_by_lifespan(self, api_client):
        state = api_client.get(f"{BASE}/state").json()

        assert state["started"] is True
        assert state["active"] == "session"
        assert state["session"]["pending"] == "environment-select"
        assert state["apps"] == []
        assert state["overall_progress"] == 0.0
        assert state["seed"]["organization"] == ""

    def test_greeting_messages(self, api_client):
        messages = api_client.get(f"{BASE}/session/messages").json()

        assert [m["role"] for m in messages] == ["bot", "bot"]
        assert messages[0]["content"] == [{"type": "text", "text": "Hi! I'm your setup assistant."}]
        assert messages[1]["content"][-1]["type"] == "environment-select"

    def test_seeded_greeting(self, seeded_api_client):
        messages = seeded_api_client.get(f"{BASE}/session/messages").json()

        assert messages[0]["content"][0]["text"].startswith("Hi Acme!")


# ─────────────────────────────────────────────────────────────────────────────
# Actions
# ─────────────────────────────────────────────────────────────────────────────


class TestActions:
    def test_answer_returns_next_prompt(self, api_client):
        data = answer(api_client, "environment-select", "dev")

        assert data == {
            "success": True,
            "context": "session",
            "code": None,
            "error": None,
            "pending": "app-name-input-dev",
        }

    def test_wrong_prompt_is_invalid_transition(self, api_client):
        data = act(api_client, "answer", prompt="platform-multi-select", value=["ios"])

        assert data["success"] is False
        assert data["code"] == "invalid_transition"
        assert data["pending"] == "environment-select"

    def test_bad_value_is_validation_error(self, api_client):
        data = act(api_client, "answer", prompt="environment-select", value="staging")

        assert data["code"] == "validation_error"

    def test_object_items_are_validation_error(self, api_client):
        answer(api_client, "environment-select", "production")

        data = act(api_client, "answer", prompt="platform-multi-select", value=[{"x": 1}])

        assert data["code"] == "validation_error"
        assert data["pending"] == "platform-multi-select"

    def test_unknown_kind(self, api_client):
        data = act(api_client, "dance")

        assert data["code"] == "validation_error"

    def test_missing_kind_is_rejected_by_schema(self, api_client):
        response = api_client.post(f"{BASE}/actions", json={"prompt": "environment-select"})

        assert response.status_code == 422

    def test_free_text(self, api_client):
        data = act(api_client, "text", text="What is an MMP?")

        assert data["success"]
        assert data["pending"] == "environment-select"
        messages = api_client.get(f"{BASE}/session/messages").json()
        assert messages[-2]["role"] == "user"

    def test_registration_switches_to_app(self, api_client):
        data = register_ios_app(api_client)

        app_id = data["context"]
        assert app_id != "session"
        assert data["pending"] == "token-display"

        apps = api_client.get(f"{BASE}/apps").json()
        assert [a["id"] for a in apps] == [app_id]
        assert apps[0]["app_info"]["app_name"] == "Shop App"
        assert apps[0]["is_expanded"] is True
        assert apps[0]["progress"] == 0.0

    def test_setup_walk_updates_progress(self, api_client):
        app_id = register_ios_app(api_client)["context"]

        answer(api_client, "token-display", "continue", app_id=app_id)
        answer(api_client, "sdk-install-choice", "self", app_id=app_id)
        data = answer(api_client, "framework-select", "flutter", app_id=app_id)

        assert data["pending"] == "sdk-init-code"
        progress = api_client.get(f"{BASE}/progress").json()
        assert progress["apps"][app_id] == pytest.approx(1 / 13)
        assert progress["overall"] == pytest.approx(1 / 13)

    def test_step_click_with_unmet_prerequisites(self, api_client):
        app_id = register_ios_app(api_client)["context"]

        data = act(api_client, "step-click", app_id=app_id, step_id="data-verify")

        assert data["code"] == "invalid_transition"

    def test_add_app_and_expand(self, api_client):
        first = register_ios_app(api_client)["context"]

        data = act(api_client, "add-app")
        assert data["context"] == "session"
        assert data["pending"] == "environment-select"

        data = act(api_client, "expand", value=first)
        assert data["context"] == first
        assert api_client.get(f"{BASE}/state").json()["active"] == first


# ─────────────────────────────────────────────────────────────────────────────
# App transcripts
# ─────────────────────────────────────────────────────────────────────────────


class TestAppMessages:
    def test_app_transcript(self, api_client):
        app_id = register_ios_app(api_client)["context"]

        messages = api_client.get(f"{BASE}/apps/{app_id}/messages").json()

        token_display = messages[-1]["content"][-1]
        assert token_display["type"] == "token-display"
        assert set(token_display) == {"type", "app_sdk_token", "web_sdk_token", "api_token"}

    def test_unknown_app_is_404(self, api_client):
        response = api_client.get(f"{BASE}/apps/missing/messages")

        assert response.status_code == 404


# ─────────────────────────────────────────────────────────────────────────────
# Step preview
# ─────────────────────────────────────────────────────────────────────────────


class TestStepPreview:
    def test_dev_web(self, api_client):
        response = api_client.get(f"{BASE}/steps", params={"platforms": "web", "environment": "dev"})

        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == ["web-sdk-install", "web-sdk-init", "sdk-test"]
        assert all(s["status"] == "pending" for s in response.json())

    def test_production_default(self, api_client):
        steps = api_client.get(f"{BASE}/steps", params={"platforms": "ios,android"}).json()

        assert len(steps) == 13
        assert steps[-1]["id"] == "data-verify"

    def test_native_framework(self, api_client):
        steps = api_client.get(
            f"{BASE}/steps", params={"platforms": "android", "framework": "android-native", "environment": "dev"}
        ).json()

        assert steps[0]["id"] == "android-sdk-install"

    def test_unknown_platform_is_400(self, api_client):
        response = api_client.get(f"{BASE}/steps", params={"platforms": "windows"})

        assert response.status_code == 400
