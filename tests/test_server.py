"""오버레이 / 에디터 이벤트 HTTP API 테스트"""

import random

import pytest
from fastapi.testclient import TestClient

from src.overlay import OverlayFeed
from src.overlay.server import app, attach_session
from src.overlay.state import new_overlay_state
from src.stream import StreamSession

from conftest import FakeClient, FakeCompletions

CODE = "def foo():\n    return 42\n"


@pytest.fixture
def session(settings, timers, spawned):
    s = StreamSession(
        settings,
        feed=OverlayFeed(new_overlay_state()),
        rng=random.Random(0),
        client_factory=lambda _: FakeClient(FakeCompletions('[{"text": "hi"}]')),
        clock=timers.clock,
        call_later=timers.call_later,
        spawn=spawned,
    )
    attach_session(s)
    yield s
    attach_session(None)


@pytest.fixture
def client():
    return TestClient(app)


def test_index_page(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "/api/state" in r.text


def test_state_without_session(client):
    attach_session(None)
    data = client.get("/api/state").json()
    assert set(data) == {"messages", "notices", "total_donations", "viewer_count"}


def test_events_rejected_without_session(client):
    attach_session(None)
    r = client.post("/api/events/save", json={"text": CODE})
    assert r.status_code == 503
    assert client.get("/api/viewers").status_code == 503


def test_state_reflects_session(client, session):
    session.feed.add_notice("info", "공지")
    data = client.get("/api/state").json()
    assert data["notices"][0]["text"] == "공지"
    assert data["viewer_count"] == session.ledger.viewer_count


def test_viewers_and_refresh(client, session):
    viewers = client.get("/api/viewers").json()["viewers"]
    assert [v["id"] for v in viewers] == ["viewer_anonymous", "viewer_linus", "viewer_jobs"]
    assert viewers[0]["unlocked"] is True
    r = client.post("/api/viewers/refresh")
    assert r.json() == {"ok": True, "count": 3}


def test_save_event(client, session, spawned):
    r = client.post("/api/events/save", json={"text": CODE, "languageId": "python", "cursorLine": 1, "uri": "a.py"})
    assert r.json() == {"decision": "fired"}
    assert len(spawned.coros) == 1
    r = client.post("/api/events/save", json={"text": CODE})
    assert r.json() == {"decision": "cooldown"}


def test_change_event(client, session, spawned):
    r = client.post("/api/events/change", json={"text": CODE, "insertedText": "a"})
    assert r.json() == {"decision": None}
    assert session.scheduler.idle_pending
    paste = "x = 1\n" * 12
    r = client.post("/api/events/change", json={"text": CODE + paste, "insertedText": paste})
    assert r.json() == {"decision": "fired"}


def test_diagnostics_event(client, session):
    r = client.post("/api/events/diagnostics", json={"text": CODE, "errorCount": 2})
    assert r.json() == {"decision": "fired"}
    r = client.post("/api/events/diagnostics", json={"text": CODE, "errorCount": 1})
    assert r.json() == {"decision": None}


def test_bad_body(client, session):
    r = client.post("/api/events/diagnostics", json={"text": CODE, "errorCount": "many"})
    assert r.status_code == 422


def test_clear(client, session):
    session.feed.add_notice("warning", "x")
    assert client.post("/api/clear").json() == {"ok": True}
    assert session.feed.state["notices"] == []
