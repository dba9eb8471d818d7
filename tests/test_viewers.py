"""시청자 카탈로그 / 후원 장부 테스트"""

import json
import random

from src.chat import ChatMessage
from src.storage import StateStore
from src.storage.state_store import TOTAL_DONATIONS_KEY, UNLOCKED_VIEWERS_KEY
from src.stream import SessionState
from src.viewers import EconomyLedger, Viewer, ViewerRegistry, default_viewers, names_match
from src.viewers.economy import VIEWER_COUNT_FLOOR


def _write_catalog(path, viewers):
    path.write_text(json.dumps({"viewers": viewers}, ensure_ascii=False), encoding="utf-8")


def _donation(amount, author="잡스"):
    return ChatMessage(id=f"d{amount}", text="후원", kind="pro", author=author, donation=amount)


class TestViewerModel:
    def test_from_dict_fills_optional_fields(self):
        v = Viewer.from_dict({"id": "a", "name": "에이", "price": "300"})
        assert v.price == 300
        assert v.unlocked is False
        assert v.avatar == "" and v.tag == "" and v.prompts == []

    def test_from_dict_rejects_missing_name(self):
        assert Viewer.from_dict({"id": "a"}) is None
        assert Viewer.from_dict("not a dict") is None

    def test_id_falls_back_to_name(self):
        assert Viewer.from_dict({"name": "비"}).id == "비"

    def test_negative_price_clamped(self):
        assert Viewer.from_dict({"id": "a", "name": "a", "price": -10}).price == 0


class TestRegistryLoad:
    def test_missing_file_uses_defaults(self, registry):
        ids = [v.id for v in registry.viewers]
        assert ids == [v.id for v in default_viewers()]
        assert [v.id for v in registry.unlocked_viewers()] == ["viewer_anonymous"]

    def test_invalid_file_uses_defaults(self, tmp_path, session_state):
        path = tmp_path / "viewers.json"
        path.write_text("{broken", encoding="utf-8")
        reg = ViewerRegistry(session_state, catalog_path=path)
        assert len(reg.load()) == 3

    def test_catalog_initial_unlock_rule(self, tmp_path):
        path = tmp_path / "viewers.json"
        _write_catalog(path, [
            {"id": "free", "name": "무료", "price": 0},
            {"id": "flag", "name": "플래그", "price": 500, "unlocked": True},
            {"id": "saved", "name": "저장됨", "price": 500},
            {"id": "locked", "name": "잠김", "price": 500},
            {"id": "free", "name": "중복"},
        ])
        state = SessionState(unlocked_viewer_ids={"saved"})
        reg = ViewerRegistry(state, catalog_path=path)
        reg.load()
        assert [v.id for v in reg.viewers] == ["free", "flag", "saved", "locked"]
        assert reg.list_unlocked_names(10) == ["무료", "플래그", "저장됨"]
        assert reg.list_unlocked_names(2) == ["무료", "플래그"]

    def test_refresh_keeps_unlocks(self, tmp_path, store):
        path = tmp_path / "viewers.json"
        _write_catalog(path, [{"id": "a", "name": "에이", "price": 10}])
        state = SessionState()
        reg = ViewerRegistry(state, store, path)
        reg.load()
        reg.check_unlock(10)
        _write_catalog(path, [{"id": "a", "name": "에이", "price": 10}, {"id": "b", "name": "비", "price": 99}])
        reg.refresh()
        assert reg.get("a").unlocked is True
        assert reg.get("b").unlocked is False


class TestFindForAuthor:
    def test_exact_then_containment(self, registry):
        assert registry.find_for_author("잡스").id == "viewer_jobs"
        assert registry.find_for_author("스티브잡스").id == "viewer_jobs"
        assert registry.find_for_author("행인").id == "viewer_anonymous"

    def test_no_match(self, registry):
        assert registry.find_for_author("아무도아님") is None
        assert registry.find_for_author("") is None

    def test_names_match(self):
        assert names_match("잡스", "잡스")
        assert names_match("스티브잡스", "잡스")
        assert names_match("잡", "잡스")
        assert not names_match("리누스", "잡스")
        assert not names_match("", "잡스")
        assert not names_match("잡스", "")


class TestCheckUnlock:
    def test_unlocks_and_persists(self, registry, store, session_state):
        newly = registry.check_unlock(1500)
        assert [v.id for v in newly] == ["viewer_jobs"]
        assert "viewer_jobs" in session_state.unlocked_viewer_ids
        assert store.get(UNLOCKED_VIEWERS_KEY) == ["viewer_jobs"]

    def test_idempotent(self, registry):
        registry.check_unlock(2500)
        assert registry.check_unlock(2500) == []
        assert registry.check_unlock(3000) == []

    def test_below_price(self, registry, store):
        assert registry.check_unlock(999) == []
        assert store.get(UNLOCKED_VIEWERS_KEY) is None


class TestEconomyLedger:
    def test_apply_messages_sums_positive_donations(self, session_state):
        ledger = EconomyLedger(session_state)
        msgs = [_donation(30), ChatMessage(id="n", text="x", kind="newbie"), _donation(70)]
        assert ledger.apply_messages(msgs) == 100
        assert ledger.total_donations == 100

    def test_settle_unlocks_and_persists(self, registry, store, session_state):
        session_state.total_donations = 950
        ledger = EconomyLedger(session_state, store)
        total, newly = ledger.settle([_donation(60)], registry)
        assert total == 1010
        assert [v.id for v in newly] == ["viewer_jobs"]
        assert store.get(TOTAL_DONATIONS_KEY) == 1010
        reloaded = StateStore(store.path)
        assert reloaded.load_total_donations() == 1010
        assert reloaded.load_unlocked_ids() == {"viewer_jobs"}

    def test_settle_without_donation_does_not_write(self, registry, store, session_state):
        ledger = EconomyLedger(session_state, store)
        ledger.settle([ChatMessage(id="n", text="x", kind="newbie")], registry)
        assert not store.path.exists()

    def test_drift_floor(self):
        state = SessionState(viewer_count=VIEWER_COUNT_FLOOR)
        ledger = EconomyLedger(state, rng=random.Random(3))
        for _ in range(200):
            assert ledger.drift() >= VIEWER_COUNT_FLOOR

    def test_drift_step_is_small(self, session_state):
        ledger = EconomyLedger(session_state, rng=random.Random(7))
        before = ledger.viewer_count
        after = ledger.drift()
        assert abs(after - before) <= 2


def test_session_state_restore(store):
    store.set(TOTAL_DONATIONS_KEY, 1234)
    store.set(UNLOCKED_VIEWERS_KEY, ["viewer_jobs"])
    state = SessionState.restore(store, random.Random(1))
    assert state.total_donations == 1234
    assert state.unlocked_viewer_ids == {"viewer_jobs"}
    assert 1205 <= state.viewer_count < 1405


def test_unlock_sequence_and_restart(tmp_path, store):
    path = tmp_path / "viewers.json"
    _write_catalog(path, [{"id": "k", "name": "천원", "price": 1000}])
    state = SessionState()
    reg = ViewerRegistry(state, store, path)
    reg.load()
    results = [[v.id for v in reg.check_unlock(total)] for total in (0, 999, 1000)]
    assert results == [[], [], ["k"]]

    restarted = ViewerRegistry(SessionState.restore(StateStore(store.path)), catalog_path=path)
    restarted.load()
    assert restarted.get("k").unlocked is True
    assert restarted.check_unlock(5000) == []


class _ReadOnlyStore(StateStore):
    """디스크 쓰기가 항상 실패하는 저장소."""

    def _flush(self):
        raise OSError("read-only file system")


def test_settle_survives_write_failure(tmp_path):
    store = _ReadOnlyStore(tmp_path / "state.json")
    state = SessionState(total_donations=990)
    reg = ViewerRegistry(state, store, tmp_path / "missing.json")
    reg.load()
    total, newly = EconomyLedger(state, store).settle([_donation(20)], reg)
    assert total == 1010
    assert [v.id for v in newly] == ["viewer_jobs"]
    assert reg.get("viewer_jobs").unlocked is True
