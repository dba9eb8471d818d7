"""
테스트 공용 fixture

- FakeTimers: 스케줄러 clock / call_later 대체 (수동으로 시간 진행)
- FakeCompletions: openai chat.completions.create 대체
"""

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.storage import StateStore
from src.stream import SessionState
from src.utils import StreamerSettings
from src.viewers import ViewerRegistry


class _Handle:
    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeTimers:
    """monotonic 시계 + call_later 큐."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.handles = []

    def clock(self) -> float:
        return self.now

    def call_later(self, delay, callback):
        handle = _Handle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [h for h in self.handles if not h.cancelled and h.due <= target]
            if not due:
                break
            h = min(due, key=lambda x: x.due)
            self.handles.remove(h)
            self.now = h.due
            h.callback()
        self.now = target

    @property
    def pending(self):
        return [h for h in self.handles if not h.cancelled]


class SpawnRecorder:
    """스케줄러가 띄운 코루틴을 실행하지 않고 모아둠."""

    def __init__(self):
        self.coros = []

    def __call__(self, coro):
        self.coros.append(coro)

    async def run_all(self):
        coros, self.coros = self.coros, []
        for c in coros:
            await c

    def close(self):
        for c in self.coros:
            c.close()
        self.coros = []


def completion(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeCompletions:
    """chat.completions.create 호출 기록 + 지정 응답/예외."""

    def __init__(self, content="[]", error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return completion(self.content)


class FakeClient:
    def __init__(self, completions: FakeCompletions):
        self.chat = SimpleNamespace(completions=completions)


@pytest.fixture
def timers():
    return FakeTimers()


@pytest.fixture
def spawned():
    recorder = SpawnRecorder()
    yield recorder
    recorder.close()


@pytest.fixture
def store(tmp_path):
    return StateStore(tmp_path / "state" / "stream_state.json")


@pytest.fixture
def session_state():
    return SessionState(viewer_count=1205)


@pytest.fixture
def registry(session_state, store, tmp_path):
    reg = ViewerRegistry(session_state, store, tmp_path / "missing_viewers.json")
    reg.load()
    return reg


@pytest.fixture
def settings(tmp_path):
    return StreamerSettings(
        base_url="http://llm.test/v1/",
        api_key="test-key",
        model="test-model",
        viewers_path=tmp_path / "viewers.json",
        personas_path=tmp_path / "personas.json",
        state_path=tmp_path / "state" / "stream_state.json",
    )
