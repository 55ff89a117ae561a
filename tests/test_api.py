import asyncio
import time

import httpx
import pytest
from fastapi.testclient import TestClient

from chatapp.main import create_app
from chatcore.core.state import Config
from chatcore.errors import TransportError
from chatcore.store.persistence import JsonFilePersistence

from conftest import FakeTransport


@pytest.fixture
def fake():
    return FakeTransport(reply="Sure, here you go.")


@pytest.fixture
def client(tmp_path, fake):
    cfg = Config(
        profile="test",
        host="http://ollama.test:11434",
        model=None,
        temperature=0.7,
        max_tokens=256,
        store_path=tmp_path / "sessions.json",
    )
    app = create_app(cfg, transport=fake)
    with TestClient(app) as c:
        yield c


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_meta_reports_selected_model(client):
    body = client.get("/meta").json()
    assert body["selected_model"] == "llama3:8b"
    assert body["busy"] is False


def test_first_start_has_one_active_session(client):
    body = client.get("/sessions").json()
    assert body["active_session_id"] == 1
    assert [s["id"] for s in body["items"]] == [1]
    assert body["items"][0]["active"] is True


def test_create_rename_activate_and_delete(client):
    created = client.post("/sessions", json={"name": "Recipes"}).json()
    assert created["id"] == 2
    assert client.get("/sessions").json()["active_session_id"] == 2

    renamed = client.patch("/sessions/2", json={"name": "Cooking"}).json()
    assert renamed["name"] == "Cooking"

    assert client.post("/sessions/1/activate").status_code == 200
    assert client.get("/sessions").json()["active_session_id"] == 1

    resp = client.delete("/sessions/1")
    assert resp.json() == {"ok": True, "active_session_id": 2}


def test_deleting_last_session_conflicts(client):
    resp = client.delete("/sessions/1")
    assert resp.status_code == 409
    assert client.get("/sessions").json()["active_session_id"] == 1


def test_unknown_session_is_404(client):
    assert client.get("/sessions/9").status_code == 404
    assert client.patch("/sessions/9", json={"name": "x"}).status_code == 404
    assert client.post("/sessions/9/activate").status_code == 404
    assert client.delete("/sessions/9").status_code == 404


def test_chat_turn_round_trip(client, tmp_path, fake):
    resp = client.post("/chat", json={"content": "hi", "temperature": 0.2, "max_tokens": 32})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "completed"
    assert body["content"] == "Sure, here you go."
    assert fake.calls[0]["options"].max_tokens == 32

    page = client.get("/sessions/1/messages").json()
    assert page["items"] == [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "Sure, here you go."},
    ]
    # Written through to disk
    saved = JsonFilePersistence(tmp_path / "sessions.json").load()
    assert [m.content for m in saved[0].messages] == ["hi", "Sure, here you go."]


def test_chat_rejects_blank_input(client, fake):
    resp = client.post("/chat", json={"content": "   "})
    assert resp.status_code == 422
    assert resp.json()["status"] == "rejected"
    assert fake.calls == []


def test_chat_rejects_out_of_range_temperature(client):
    assert client.post("/chat", json={"content": "hi", "temperature": 9}).status_code == 422


def test_failed_turn_is_reported_not_raised(client, fake):
    fake.error = TransportError("Connection refused (http://ollama.test:11434)", kind="connection_refused")
    body = client.post("/chat", json={"content": "hi"}).json()
    assert body["status"] == "failed"
    assert body["error_kind"] == "connection_refused"
    assert body["hints"]
    items = client.get("/sessions/1/messages").json()["items"]
    assert items == [{"role": "user", "content": "hi"}]


def test_messages_are_paginated(client):
    for text in ("a", "b", "c"):
        client.post("/chat", json={"content": text})
    first = client.get("/sessions/1/messages", params={"limit": 4}).json()
    assert len(first["items"]) == 4
    assert first["next_cursor"] == 4
    rest = client.get("/sessions/1/messages", params={"cursor": 4, "limit": 4}).json()
    assert len(rest["items"]) == 2
    assert rest["next_cursor"] is None


def test_recall_over_http(client):
    client.post("/chat", json={"content": "a"})
    client.post("/chat", json={"content": "b"})
    assert client.post("/recall/previous").json()["text"] == "b"
    assert client.post("/recall/previous").json()["text"] == "a"
    assert client.post("/recall/next").json()["text"] == "b"
    assert client.post("/recall/next").json() == {"text": "", "cursor": None}


def test_clear_session(client):
    client.post("/chat", json={"content": "a"})
    body = client.post("/sessions/1/clear").json()
    assert body["messages"] == []


def test_models_listing_selection_and_refresh(client, fake):
    body = client.get("/models").json()
    assert [m["name"] for m in body["items"]] == ["llama3:8b", "mistral:7b"]
    assert body["selected"] == "llama3:8b"

    assert client.put("/models/selected", json={"name": "mistral:7b"}).json()["selected"] == "mistral:7b"
    assert client.put("/models/selected", json={"name": "gpt-4"}).status_code == 404

    fake.models.append({"name": "phi3"})
    refreshed = client.post("/models/refresh").json()
    assert refreshed["selected"] == "mistral:7b"
    assert len(refreshed["items"]) == 3


def test_model_refresh_failure_is_bad_gateway(client, fake):
    fake.list_error = TransportError("Network error: unreachable", kind="network")
    assert client.post("/models/refresh").status_code == 502
    # Previous list is still served from cache
    assert client.get("/models").json()["selected"] == "llama3:8b"


def test_model_details(client):
    assert client.get("/models/llama3:8b").json()["details"]["family"] == "llama"
    assert client.get("/models/unknown").status_code == 404


def test_websocket_ping(client):
    with client.websocket_connect("/ws/chat") as ws:
        assert ws.receive_json() == {"type": "connected"}
        assert ws.receive_json()["type"] == "snapshot"
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}


def test_websocket_replays_active_transcript_on_connect(client):
    client.post("/chat", json={"content": "hi"})
    client.post("/sessions", json={"name": "Recipes"})
    client.post("/sessions/1/activate")
    with client.websocket_connect("/ws/chat") as ws:
        assert ws.receive_json() == {"type": "connected"}
        snap = ws.receive_json()
        assert snap == {
            "type": "snapshot",
            "session_id": 1,
            "name": "Chat 1",
            "messages": [
                {"role": "user", "content": "hi"},
                {"role": "assistant", "content": "Sure, here you go."},
            ],
            "pending": False,
            "model": "llama3:8b",
        }
        ws.send_json({"type": "sync"})
        assert ws.receive_json() == snap


def test_websocket_input_recall(client):
    client.post("/chat", json={"content": "first"})
    client.post("/chat", json={"content": "second"})
    with client.websocket_connect("/ws/chat") as ws:
        ws.receive_json()
        ws.receive_json()
        ws.send_json({"type": "recall", "direction": "previous"})
        assert ws.receive_json() == {"type": "recall", "text": "second"}
        ws.send_json({"type": "recall", "direction": "previous"})
        assert ws.receive_json() == {"type": "recall", "text": "first"}
        ws.send_json({"type": "recall", "direction": "next"})
        assert ws.receive_json() == {"type": "recall", "text": "second"}
        # Unknown frames get no answer; the socket keeps serving
        ws.send_text("not json")
        ws.send_json({"type": "prompt", "content": "ignored"})
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}


class SlowModelListTransport(FakeTransport):
    def list_models(self):
        time.sleep(0.5)
        return super().list_models()


@pytest.mark.asyncio
async def test_first_chat_fetches_models_off_the_event_loop(tmp_path):
    cfg = Config(
        profile="test",
        host="http://ollama.test:11434",
        model=None,
        temperature=0.7,
        max_tokens=256,
        store_path=tmp_path / "sessions.json",
    )
    app = create_app(cfg, transport=SlowModelListTransport(reply="ok"))
    gaps = []
    done = asyncio.Event()

    async def ticker():
        last = time.monotonic()
        while not done.is_set():
            await asyncio.sleep(0.01)
            now = time.monotonic()
            gaps.append(now - last)
            last = now

    tick = asyncio.create_task(ticker())
    # ASGITransport skips startup, so the model list is still unloaded here
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        resp = await ac.post("/chat", json={"content": "hi"})
    done.set()
    await tick

    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"
    assert gaps
    assert max(gaps) < 0.25
