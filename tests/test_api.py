import pytest
from fastapi.testclient import TestClient
from jose import jwt

from meetbot.core import auth
from meetbot.core.config import Settings
from meetbot.core.dependencies import get_chatbot_engine
from meetbot.core.flags import FeatureFlags
from meetbot.factory import create_app

SECRET = "test-secret"


@pytest.fixture
def client(engine):
    app = create_app()
    app.dependency_overrides[get_chatbot_engine] = lambda: engine
    return TestClient(app)


@pytest.fixture
def auth_on(monkeypatch):
    monkeypatch.setattr(auth, "get_flags", lambda: FeatureFlags(FF_USE_AUTH=True))
    monkeypatch.setattr(auth, "get_settings", lambda: Settings(JWT_SECRET=SECRET))


def bearer(claims: dict) -> dict:
    return {"Authorization": f"Bearer {jwt.encode(claims, SECRET, algorithm='HS256')}"}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "service": "meetbot"}


def test_chat(client):
    response = client.post("/v1/chat", json={"message": "hello"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["intent"] == "greeting"
    assert body["user_id"] == auth.DEV_USER.user_id
    assert body["session_id"]


def test_chat_slot_filling(client):
    first = client.post("/v1/chat", json={"message": "schedule a meeting"}).json()
    assert first["needs_input"] == "date"
    second = client.post("/v1/chat", json={"message": "tomorrow at 2pm"}).json()
    assert second["intent"] == "schedule_meeting"
    assert "Meeting scheduled successfully!" in second["message"]
    assert second["session_id"] == first["session_id"]


def test_chat_with_timezone(client, store):
    client.post("/v1/chat", json={"message": "hi", "timezone": "Europe/Berlin"})
    assert store.get_context(auth.DEV_USER.user_id, "timezone") == "Europe/Berlin"


def test_empty_message(client):
    body = client.post("/v1/chat", json={"message": ""}).json()
    assert body["success"] is True
    assert body["intent"] == "unknown"


def test_conversation_lifecycle(client):
    assert client.get("/v1/conversations/me").status_code == 404

    client.post("/v1/chat", json={"message": "hello"})
    current = client.get("/v1/conversations/me").json()
    assert current["status"] == "active"
    assert current["message_count"] == 1
    assert current["last_intent"] == "greeting"

    ended = client.post("/v1/conversations/me/end")
    assert ended.status_code == 200
    assert ended.json()["status"] == "ended"
    assert client.post("/v1/conversations/me/end").status_code == 404

    # the ended record is still visible until swept
    assert client.get("/v1/conversations/me").json()["status"] == "ended"


def test_clear_context(client, store):
    client.post("/v1/chat", json={"message": "schedule a meeting"})
    assert client.delete("/v1/conversations/me/context").status_code == 204
    assert not store.has_context(auth.DEV_USER.user_id, "pendingIntent")


def test_stats(client):
    client.post("/v1/chat", json={"message": "hello"})
    assert client.get("/v1/conversations/stats").json() == {
        "active_session_count": 1,
        "total_sessions": 1,
    }


# ── Auth ─────────────────────────────────────────────────────────────

def test_missing_token_is_rejected(client, auth_on):
    response = client.post("/v1/chat", json={"message": "hello"})
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_bad_token_is_rejected(client, auth_on):
    response = client.post("/v1/chat", json={"message": "hello"},
                           headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_token_without_subject_is_rejected(client, auth_on):
    response = client.post("/v1/chat", json={"message": "hello"}, headers=bearer({"email": "x@y.z"}))
    assert response.status_code == 401


def test_user_id_comes_from_token(client, auth_on):
    response = client.post("/v1/chat", json={"message": "hello"}, headers=bearer({"sub": "carol"}))
    assert response.status_code == 200
    assert response.json()["user_id"] == "carol"


def test_health_needs_no_token(client, auth_on):
    assert client.get("/health").status_code == 200
